"""Application configuration builder."""

from __future__ import annotations

import os
from dataclasses import dataclass

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from .db.db_init import init_db

STORE_BACKENDS = ("sql", "memory")


@dataclass(slots=True)
class RunnerLimits:
    timeout_seconds: float
    max_in_flight_jobs: int
    provider: str
    model: str


@dataclass(slots=True)
class AppConfig:
    database_url: str
    store_backend: str
    engine: Engine | None
    session_factory: sessionmaker[Session] | None
    record_ttl_seconds: int
    expiry_sweep_seconds: float
    runner: RunnerLimits


def load_config() -> AppConfig:
    """Load configuration from environment (SQLite by default)."""
    store_backend = os.getenv("JOB_STORE_BACKEND", "sql").lower()
    if store_backend not in STORE_BACKENDS:
        raise ValueError(
            f"JOB_STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}, got '{store_backend}'"
        )

    database_url = os.getenv("DATABASE_URL", "sqlite:///streetsketch.db")
    engine: Engine | None = None
    session_factory: sessionmaker[Session] | None = None
    if store_backend == "sql":
        engine = create_engine(database_url, future=True)
        session_factory = sessionmaker(bind=engine, expire_on_commit=False)
        init_db(engine)

    runner = RunnerLimits(
        timeout_seconds=float(os.getenv("RUNNER_TIMEOUT_SECONDS", 90)),
        max_in_flight_jobs=int(os.getenv("MAX_IN_FLIGHT_JOBS", 12)),
        provider=os.getenv("STYLIZE_PROVIDER", "gemini"),
        model=os.getenv("GEMINI_MODEL", "gemini-2.5-flash-image"),
    )

    return AppConfig(
        database_url=database_url,
        store_backend=store_backend,
        engine=engine,
        session_factory=session_factory,
        record_ttl_seconds=int(os.getenv("JOB_RECORD_TTL_SECONDS", 3600)),
        expiry_sweep_seconds=float(os.getenv("JOB_EXPIRY_SWEEP_SECONDS", 300)),
        runner=runner,
    )

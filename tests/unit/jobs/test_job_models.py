from __future__ import annotations

from datetime import timedelta

import pytest

from src.streetsketch.jobs.job_models import JobRecord, JobStatus, new_job_id, utcnow

pytestmark = pytest.mark.unit


def test_complete_record_carries_result_only() -> None:
    record = JobRecord.complete("job-1", "data:image/png;base64,AAAA")

    assert record.status is JobStatus.COMPLETE
    assert record.result == "data:image/png;base64,AAAA"
    assert record.message is None
    assert record.expires_at is None


def test_error_record_defaults_message() -> None:
    record = JobRecord.error("job-1", "")

    assert record.status is JobStatus.ERROR
    assert record.message == "Unknown error"
    assert record.result is None


@pytest.mark.parametrize(
    "kwargs",
    [
        {"status": JobStatus.PENDING},
        {"status": JobStatus.COMPLETE},
        {"status": JobStatus.COMPLETE, "result": "data:x", "message": "oops"},
        {"status": JobStatus.ERROR},
        {"status": JobStatus.ERROR, "message": "oops", "result": "data:x"},
    ],
)
def test_invalid_records_are_rejected(kwargs) -> None:
    with pytest.raises(ValueError):
        JobRecord(job_id="job-1", **kwargs)


def test_with_ttl_sets_expiry_from_creation_time() -> None:
    created = utcnow()
    record = JobRecord.error("job-1", "boom", created_at=created).with_ttl(60)

    assert record.expires_at == created + timedelta(seconds=60)
    assert not record.is_expired(created + timedelta(seconds=59))
    assert record.is_expired(created + timedelta(seconds=60))


def test_record_without_expiry_never_expires() -> None:
    record = JobRecord.error("job-1", "boom")

    assert not record.is_expired(utcnow() + timedelta(days=365))


def test_new_job_ids_are_unique() -> None:
    ids = {new_job_id() for _ in range(100)}

    assert len(ids) == 100
    assert all(len(job_id) == 32 for job_id in ids)

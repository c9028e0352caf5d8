"""Stylize the Street View frame of an address through a running job API."""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

import httpx

from src.streetsketch.client.client_config import ClientSettings
from src.streetsketch.client.controller import StylizeController
from src.streetsketch.client.flow_state import FlowStep
from src.streetsketch.client.job_client import RemoteJobStore, StylizeApiClient
from src.streetsketch.client.submitter import JobSubmitter
from src.streetsketch.jobs.job_errors import JobError
from src.streetsketch.logging import configure_logging
from src.streetsketch.media.data_urls import decode_data_url, extension_for
from src.streetsketch.providers.style_prompts import ART_STYLES, DEFAULT_STYLE
from src.streetsketch.sources.street_view import StreetViewSource


def parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Turn a Street View frame into artwork.")
    parser.add_argument("address", help="Street address to look up.")
    parser.add_argument("--style", choices=ART_STYLES, default=DEFAULT_STYLE)
    parser.add_argument("--heading", type=int)
    parser.add_argument("--pitch", type=int)
    parser.add_argument("--fov", type=int)
    parser.add_argument(
        "--output",
        type=Path,
        default=Path("streetsketch"),
        help="Output path without extension; it is derived from the image type.",
    )
    return parser.parse_args(argv)


async def run(args: argparse.Namespace, settings: ClientSettings) -> int:
    async with httpx.AsyncClient(
        base_url=settings.api_base_url, timeout=settings.request_timeout_seconds
    ) as http:
        api = StylizeApiClient(http)
        controller = StylizeController(
            submitter=JobSubmitter(
                starter=api,
                reader=RemoteJobStore(api),
                interval_seconds=settings.poll_interval_seconds,
                max_attempts=settings.poll_max_attempts,
            ),
            source=StreetViewSource(settings.maps_api_key, size=settings.street_view_size),
        )

        state = controller.submit_address(args.address)
        if state.step is not FlowStep.FRAMING:
            print(state.error, file=sys.stderr)
            return 1
        controller.set_pov(heading=args.heading, pitch=args.pitch, fov=args.fov)
        controller.capture()
        controller.select_style(args.style)
        state = await controller.stylize()

    if state.step is not FlowStep.DONE or not state.generated_image:
        print(state.error or "Stylization failed", file=sys.stderr)
        return 1

    payload, content_type = decode_data_url(state.generated_image)
    target = args.output.with_suffix(f".{extension_for(content_type)}")
    target.write_bytes(payload)
    print(f"saved {target} ({len(payload)} bytes)", file=sys.stdout)
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv if argv is not None else sys.argv[1:])
    configure_logging()
    try:
        return asyncio.run(run(args, ClientSettings()))
    except JobError as exc:
        print(f"stylize failed: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())

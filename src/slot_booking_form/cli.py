from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional, Sequence

import requests

from .models import Slot
from .remote import RemoteHtmlResponseError, SlotFetchError, fetch_slots
from .settings import USER_AGENT, BookingConfig, load_config
from .store import available_count, booked_slots, format_date_label, split_by_period, unique_dates


def format_slots_text(slots: Sequence[Slot], *, default_year: int) -> str:
    """Render slots grouped by day, then by morning and afternoon."""

    if not slots:
        return "目前沒有可預約的時段"

    lines: list[str] = []
    for date_key in unique_dates(slots):
        if lines:
            lines.append("")
        lines.append(format_date_label(date_key, default_year))

        day_slots = [slot for slot in slots if slot.date == date_key]
        morning, afternoon = split_by_period(day_slots)
        for heading, group in (("上午", morning), ("下午", afternoon)):
            if not group:
                continue
            lines.append(f"  {heading}")
            for slot in group:
                status = f"booked ({slot.display_name})" if slot.is_booked else "free"
                lines.append(f"    {slot.time_slot}  {status}")

    lines.append("")
    lines.append(f"此活動尚可預約 {available_count(slots)} 次")
    return "\n".join(lines)


def format_slots_structured(slots: Sequence[Slot], *, default_year: int) -> str:
    """Render slots as a fixed-width table of key attributes."""

    if not slots:
        return "目前沒有可預約的時段"

    headers = ("date", "label", "time", "booked", "company")

    rows: list[tuple[str, ...]] = []
    for slot in slots:
        rows.append(
            (
                slot.date,
                format_date_label(slot.date, default_year),
                slot.time_slot,
                "yes" if slot.is_booked else "no",
                slot.display_name if slot.is_booked else "",
            )
        )

    widths = [len(header) for header in headers]
    for row in rows:
        widths = [max(width, len(value)) for width, value in zip(widths, row)]

    def render_row(values: Sequence[str]) -> str:
        return " | ".join(value.ljust(width) for value, width in zip(values, widths))

    separator = "-+-".join("-" * width for width in widths)

    lines = [render_row(headers), separator]
    lines.extend(render_row(row) for row in rows)
    return "\n".join(lines)


def parse_args(argv: Optional[list[str]] = None, config: Optional[BookingConfig] = None) -> argparse.Namespace:
    """Construct the CLI argument parser and parse inputs."""

    config = config or BookingConfig()
    parser = argparse.ArgumentParser(
        description="List booking slots from the reservation sheet endpoint.",
    )
    parser.add_argument(
        "--endpoint",
        default=config.endpoint_url,
        help="Script endpoint URL (default: configured endpoint).",
    )
    parser.add_argument(
        "--timeout",
        type=int,
        default=config.timeout,
        help=f"HTTP timeout in seconds (default: {config.timeout}).",
    )
    parser.add_argument(
        "--filter-date",
        help="Restrict results to one date key exactly as the sheet stores it (e.g. 4/22).",
    )
    parser.add_argument(
        "--format",
        "-f",
        choices=("text", "json", "structured"),
        default="text",
        help="Output format (default: text).",
    )
    parser.add_argument(
        "--booked",
        action="store_true",
        help="List booked slots only. Requires --password.",
    )
    parser.add_argument(
        "--password",
        default="",
        help="Shared password for the booked list.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose logging for troubleshooting.",
    )
    return parser.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    """Entry point for the CLI application."""

    try:
        config = load_config()
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr)
        return 2

    args = parse_args(argv, config)

    log_level = logging.DEBUG if args.debug else logging.WARNING
    logging.basicConfig(level=log_level, format="[%(levelname)s] %(message)s")

    if args.booked and args.password != config.shared_secret:
        print("密碼錯誤！", file=sys.stderr)
        return 2

    session = requests.Session()
    session.headers.update({"User-Agent": USER_AGENT})

    try:
        slots = fetch_slots(session=session, endpoint=args.endpoint, timeout=args.timeout)
    except RemoteHtmlResponseError as exc:
        print(f"Endpoint returned HTML, check that the script is shared with anyone: {exc}", file=sys.stderr)
        return 1
    except SlotFetchError as exc:
        print(f"Malformed slot data: {exc}", file=sys.stderr)
        return 1
    except requests.RequestException as exc:
        print(f"Failed to fetch slot data: {exc}", file=sys.stderr)
        return 1

    if args.filter_date:
        slots = [slot for slot in slots if slot.date == args.filter_date]
    if args.booked:
        slots = booked_slots(slots)

    if args.format == "json":
        print(json.dumps([slot.to_dict() for slot in slots], indent=2, ensure_ascii=False))
    elif args.format == "structured":
        print(format_slots_structured(slots, default_year=config.default_year))
    else:
        print(format_slots_text(slots, default_year=config.default_year))

    return 0


if __name__ == "__main__":
    sys.exit(main())

from __future__ import annotations

import json
import logging
from typing import Any

import requests

from ..models import Reservation, Slot
from .errors import MalformedPayloadError, RemoteHtmlResponseError

logger = logging.getLogger(__name__)

# text/plain keeps browsers from sending a CORS preflight, which the script host rejects.
WRITE_HEADERS = {"Content-Type": "text/plain;charset=utf-8"}


def fetch_slots(
    *,
    session: requests.Session,
    endpoint: str,
    timeout: int,
) -> list[Slot]:
    logger.debug("Fetching slots from %s", endpoint)
    response = session.get(endpoint, params={"action": "read"}, timeout=timeout)
    # The script host answers access errors with an HTML page, whatever the status.
    content_type = response.headers.get("content-type") or ""
    if "text/html" in content_type:
        raise RemoteHtmlResponseError(
            f"Endpoint returned HTML ({content_type}, status {response.status_code}); "
            "check the script access setting"
        )
    response.raise_for_status()

    try:
        data: Any = response.json()
    except ValueError as exc:
        raise MalformedPayloadError(f"Response is not valid JSON: {exc}") from exc

    if not isinstance(data, list):
        raise MalformedPayloadError(f"Expected a JSON array, got {type(data).__name__}")

    slots: list[Slot] = []
    for index, item in enumerate(data):
        if not isinstance(item, dict):
            raise MalformedPayloadError(f"Item {index} is not an object: {item!r}")
        slots.append(Slot.from_dict(item))

    logger.debug("Fetched %d slots", len(slots))
    return slots


def submit_reservation(
    *,
    session: requests.Session,
    endpoint: str,
    reservation: Reservation,
    date: str,
    time_slot: str,
    timeout: int,
) -> None:
    """Send a reservation without looking at the answer.

    The script host does not expose the write response to cross-origin callers, so
    success means only that the request left without a transport error.
    """

    payload = reservation.to_payload(date, time_slot)
    logger.debug("Submitting reservation for %s %s", date, time_slot)
    session.post(
        endpoint,
        data=json.dumps(payload, ensure_ascii=False).encode("utf-8"),
        headers=WRITE_HEADERS,
        timeout=timeout,
        allow_redirects=False,
    )

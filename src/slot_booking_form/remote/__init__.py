from __future__ import annotations

from .apps_script import fetch_slots, submit_reservation
from .errors import MalformedPayloadError, RemoteHtmlResponseError, SlotFetchError

__all__ = [
    "MalformedPayloadError",
    "RemoteHtmlResponseError",
    "SlotFetchError",
    "fetch_slots",
    "submit_reservation",
]

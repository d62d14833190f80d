from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_ENDPOINT = (
    "https://script.google.com/macros/s/"
    "AKfycbz7M4PehYvIg9olRmBWI_MH2efPkk9BgOoHitD3RajLOfihi0bMZV6YLUaA7iBXzGmI/exec"
)
# Shared secret for the buyer list. This is a UI gate only, not access control.
DEFAULT_SHARED_SECRET = "123"
DEFAULT_TIMEOUT = 30
SUCCESS_DISPLAY_SECONDS = 2.0
DEFAULT_YEAR = 2026
USER_AGENT = "slot-booking-form/0.1 (+https://script.google.com)"


@dataclass(frozen=True)
class BookingConfig:
    """Everything the gateway and controller need to talk to the endpoint."""

    endpoint_url: str = DEFAULT_ENDPOINT
    shared_secret: str = DEFAULT_SHARED_SECRET
    timeout: int = DEFAULT_TIMEOUT
    success_display_seconds: float = SUCCESS_DISPLAY_SECONDS
    default_year: int = DEFAULT_YEAR


def load_config() -> BookingConfig:
    endpoint = os.getenv("SLOT_BOOKING_ENDPOINT") or DEFAULT_ENDPOINT
    secret = os.getenv("SLOT_BOOKING_PASSWORD") or DEFAULT_SHARED_SECRET

    timeout_raw = os.getenv("SLOT_BOOKING_TIMEOUT")
    timeout = DEFAULT_TIMEOUT
    if timeout_raw:
        try:
            timeout = int(timeout_raw)
        except ValueError as e:
            raise RuntimeError(
                f"Invalid SLOT_BOOKING_TIMEOUT value: {timeout_raw!r}. Expected integer seconds."
            ) from e

    return BookingConfig(endpoint_url=endpoint, shared_secret=secret, timeout=timeout)

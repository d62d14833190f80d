from __future__ import annotations

import json
from typing import Any, Optional

import pytest
import requests

from slot_booking_form.settings import BookingConfig


def content_type_is_bare_text(content_type: str) -> bool:
    return content_type.startswith("text/") and "charset" not in content_type


class FakeResponse:
    def __init__(self, text: str = "[]", *, content_type: str = "application/json", status_code: int = 200) -> None:
        self.content = text.encode("utf-8")
        self.headers = {"content-type": content_type} if content_type else {}
        self.status_code = status_code

    @property
    def text(self) -> str:
        # requests falls back to ISO-8859-1 for text/* without a charset.
        if content_type_is_bare_text(self.headers.get("content-type", "")):
            return self.content.decode("iso-8859-1")
        return self.content.decode("utf-8")

    def json(self) -> Any:
        return json.loads(self.content.decode("utf-8"))

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error", response=None)


class FakeSession:
    """Records calls and hands back queued responses. Tests never touch the network."""

    def __init__(self) -> None:
        self.get_responses: list[Any] = []
        self.post_error: Optional[Exception] = None
        self.get_calls: list[dict[str, Any]] = []
        self.post_calls: list[dict[str, Any]] = []

    def queue_json(self, data: Any) -> None:
        self.get_responses.append(FakeResponse(json.dumps(data, ensure_ascii=False)))

    def queue(self, item: Any) -> None:
        self.get_responses.append(item)

    def get(self, url: str, **kwargs: Any) -> FakeResponse:
        self.get_calls.append({"url": url, **kwargs})
        item = self.get_responses.pop(0) if self.get_responses else FakeResponse("[]")
        if isinstance(item, Exception):
            raise item
        return item

    def post(self, url: str, **kwargs: Any) -> FakeResponse:
        self.post_calls.append({"url": url, **kwargs})
        if self.post_error is not None:
            raise self.post_error
        return FakeResponse("", content_type="text/html")


@pytest.fixture
def session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def config() -> BookingConfig:
    return BookingConfig(
        endpoint_url="https://script.example.test/exec",
        shared_secret="123",
        timeout=5,
        success_display_seconds=2.0,
        default_year=2026,
    )

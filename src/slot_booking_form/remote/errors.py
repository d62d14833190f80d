from __future__ import annotations


class SlotFetchError(Exception):
    """The endpoint answered, but not with a slot list."""


class RemoteHtmlResponseError(SlotFetchError):
    """An HTML page came back, usually because the script is not shared with everyone."""


class MalformedPayloadError(SlotFetchError):
    """The body was not a JSON array of slot objects."""

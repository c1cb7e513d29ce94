from __future__ import annotations


class RateConsoleError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class UpstreamError(RateConsoleError):
    """The rate API could not be reached or answered with an error status."""


class UnexpectedResponseFormat(UpstreamError):
    """The rate API answered with something other than JSON (usually an HTML error page)."""

    def __init__(self, message: str, status_code: int | None = None, snippet: str = ""):
        self.snippet = snippet
        super().__init__(message, status_code)


class StoreError(RateConsoleError):
    pass


class HotelNotFound(StoreError):
    pass

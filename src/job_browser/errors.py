"""Error taxonomy shared by the page source, record store, and controller."""

from __future__ import annotations


class FetchError(RuntimeError):
    """Raised when a page cannot be fetched or decoded. Recoverable by retry."""

    def __init__(self, message: str, *, page: int | None = None) -> None:
        super().__init__(message)
        self.page = page


class ContractViolation(FetchError):
    """Raised when the page source returns a payload of the wrong shape."""


class StorageError(RuntimeError):
    """Raised when the record store fails to read or write a bookmark."""

    def __init__(self, message: str, *, record_id: str | None = None) -> None:
        super().__init__(message)
        self.record_id = record_id


__all__ = [
    "ContractViolation",
    "FetchError",
    "StorageError",
]

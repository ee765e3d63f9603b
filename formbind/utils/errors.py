"""Custom exceptions for engine operations.

Nothing here is fatal to the process: every error is scoped to one bind,
capture or export and leaves the document and value map untouched.
"""

from __future__ import annotations


class UnknownTemplateKindError(ValueError):
    """Raised when a template kind is outside the closed enumeration."""

    def __init__(self, kind: object) -> None:
        super().__init__(f"Unknown template kind: {kind!r}")
        self.kind = kind


class UnknownFieldError(KeyError):
    """Raised when a field key is not defined for the session's template kind."""

    def __init__(self, key: str, *, kind: str | None = None) -> None:
        super().__init__(key)
        self.key = key
        self.kind = kind

    def __str__(self) -> str:
        if self.kind is None:
            return f"Unknown field: {self.key}"
        return f"Unknown field for {self.kind}: {self.key}"


class UnknownRosterEntryError(LookupError):
    """Raised when a person row refers to a worker id absent from the roster."""

    def __init__(self, entry_id: str) -> None:
        super().__init__(f"Unknown roster entry: {entry_id}")
        self.entry_id = entry_id


class CaptureFailedError(Exception):
    """Raised when a signature capture produces no usable image."""

    def __init__(self, message: str, *, field_key: str | None = None) -> None:
        super().__init__(message)
        self.field_key = field_key


class UploadFailedError(Exception):
    """Raised when the remote image store rejects or never acknowledges an upload."""

    def __init__(
        self,
        message: str,
        *,
        field_key: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.field_key = field_key
        self.status_code = status_code


class ExportFailedError(Exception):
    """Raised when rendering or rasterisation fails; no partial artifact exists."""

    def __init__(self, message: str, *, stage: str) -> None:
        super().__init__(message)
        self.stage = stage

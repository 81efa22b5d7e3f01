"""
Error types shared by the compendium maintenance scripts.

Scripts catch these in main(), print a one-line diagnostic to stderr and
return a non-zero exit code. Anything else propagates.
"""

from __future__ import annotations

from pathlib import Path

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


class CompendiumError(Exception):
    """Base class for every error the scripts report and exit on."""


class ConfigurationMissing(CompendiumError):
    def __init__(self, names: list[str]):
        self.names = list(names)
        super().__init__("Missing configuration: set " + " and ".join(self.names))


class RemoteRequestFailed(CompendiumError):
    """The data store or the image API returned an error."""

    def __init__(self, operation: str, target: str, code: str = "", message: str = ""):
        self.operation = operation
        self.target = target
        self.code = code or ""
        self.message = message or ""
        detail = f"[{self.code}] {self.message}" if self.code else self.message
        super().__init__(f"{operation} {target} failed: {detail}".rstrip(": "))

    @property
    def is_conflict(self) -> bool:
        return self.code == UNIQUE_VIOLATION


class MalformedInput(CompendiumError):
    def __init__(self, path: Path | str, reason: str):
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"{self.path}: {reason}")


class PartialInsertFailure(CompendiumError):
    """One or more catalog rows could not be inserted. inserted may be empty if every insert failed."""

    def __init__(self, failures: list[tuple[str, RemoteRequestFailed]], inserted: list[str]):
        self.failures = list(failures)
        self.inserted = list(inserted)
        names = ", ".join(repr(value) for value, _ in self.failures)
        if self.inserted:
            summary = f"{len(self.failures)} insert(s) failed ({names}); {len(self.inserted)} inserted"
        else:
            summary = f"{len(self.failures)} insert(s) failed ({names}); nothing inserted"
        super().__init__(summary)


class ImageGenerationError(RemoteRequestFailed):
    """Base for typed image API failures. kind is the short label written to status columns."""

    kind = "unknown"


class QuotaExceeded(ImageGenerationError):
    kind = "quota_exceeded"


class RateLimited(ImageGenerationError):
    kind = "rate_limited"


class ImageValidationError(ImageGenerationError):
    kind = "validation_error"


class UnknownImageError(ImageGenerationError):
    kind = "unknown"

# core/errors.py
from __future__ import annotations


class CleanupError(RuntimeError):
    """Base class for every fatal cleanup failure."""


class ConfigError(CleanupError):
    pass


class SubmissionFetchError(CleanupError):
    pass


class SubmissionDeleteError(CleanupError):
    pass


class ObjectDeleteError(CleanupError):
    def __init__(self, message: str, *, failed_keys: list[str] | None = None):
        super().__init__(message)
        self.failed_keys = list(failed_keys or [])


class EntitlementError(CleanupError):
    pass


class UnknownParameterError(EntitlementError):
    """The premium function rejected the argument name we called it with."""

    def __init__(self, message: str, *, param_name: str):
        super().__init__(message)
        self.param_name = param_name


class PaginationError(CleanupError):
    pass


class PromptSeedError(CleanupError):
    pass

from __future__ import annotations


class ManualImportError(Exception):
    """Base exception with user-friendly message."""
    pass


class ConfigError(ManualImportError):
    pass


class ImportStateError(ManualImportError):
    pass


class UnsupportedTypeError(ManualImportError):
    pass


class TooLargeError(ManualImportError):
    pass


class DecodeFailureError(ManualImportError):
    pass


class PersistenceError(ManualImportError):
    pass


class ImportTimeoutError(ManualImportError):
    pass

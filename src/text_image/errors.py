from __future__ import annotations


class ConversionError(RuntimeError):
    """Base error for every failure surfaced by the conversion pipeline."""

    default_code = "CONVERSION_ERROR"

    def __init__(self, message: str, *, code: str | None = None) -> None:
        super().__init__(message)
        self.code = code or self.default_code


class InvalidOptionError(ConversionError):
    default_code = "INVALID_OPTION"


class BinaryNotFoundError(ConversionError):
    default_code = "BINARY_NOT_FOUND"


class FetchError(ConversionError):
    default_code = "FETCH_FAILED"


class ConversionFailedError(ConversionError):
    default_code = "CONVERSION_FAILED"


class ConversionIOError(ConversionError):
    default_code = "IO_ERROR"


__all__ = [
    "ConversionError",
    "InvalidOptionError",
    "BinaryNotFoundError",
    "FetchError",
    "ConversionFailedError",
    "ConversionIOError",
]

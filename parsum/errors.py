# Author      : Tyson Limato
# Date        : 2025-7-2
# File Name   : errors.py


class ParsumError(Exception):
    """Base class for every fatal condition of the parallel sum pipeline."""


class SetupError(ParsumError):
    """
    Raised when the device, the compiled kernel or the compute backend
    cannot be acquired. Nothing can run without these.
    """


class InvalidInput(ParsumError):
    """
    Raised for a non-positive element count, segment size or execution width,
    or a dataset the device cannot accept. Always raised before any buffer
    allocation or dispatch.
    """


class DispatchFailure(ParsumError):
    """
    Raised when the device reports an error during or after submission.
    There is no retry and no fallback to the baseline result.
    """


class ReductionMismatch(ParsumError):
    """Raised in strict mode when the parallel and baseline totals differ."""

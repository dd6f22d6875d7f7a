"""Process-wide batch size used by [delete_all][obsweep.delete_all]."""

from __future__ import annotations

import os
import threading

from obsweep.exceptions import InvalidConfigurationError

DEFAULT_BATCH_SIZE = 10
"""The batch size used when neither `set_batch_size` nor the environment set one."""

BATCH_SIZE_ENV_VAR = "OBSWEEP_BATCH_SIZE"
"""Environment variable consulted on the first read of the batch size."""

_lock = threading.Lock()
_batch_size: int | None = None


def validate_batch_size(value: object, *, name: str = "batch_size") -> int:
    """Return `value` if it is a positive integer, otherwise raise.

    Raises:
        InvalidConfigurationError: if `value` is not an `int` or is less than 1.

    """
    # bool is a subclass of int, but True is never a meaningful page size
    if isinstance(value, bool) or not isinstance(value, int):
        msg = f"{name} must be an integer, got {value!r}"
        raise InvalidConfigurationError(msg)
    if value < 1:
        msg = f"{name} must be at least 1, got {value}"
        raise InvalidConfigurationError(msg)
    return value


def _batch_size_from_env() -> int:
    raw = os.environ.get(BATCH_SIZE_ENV_VAR)
    if raw is None or not raw.strip():
        return DEFAULT_BATCH_SIZE

    try:
        value = int(raw)
    except ValueError as err:
        msg = f"{BATCH_SIZE_ENV_VAR} must be an integer, got {raw!r}"
        raise InvalidConfigurationError(msg) from err

    return validate_batch_size(value, name=BATCH_SIZE_ENV_VAR)


def get_batch_size() -> int:
    """Return the process-wide batch size.

    On first use this is read from the `OBSWEEP_BATCH_SIZE` environment variable,
    falling back to `DEFAULT_BATCH_SIZE` (10).
    """
    global _batch_size  # noqa: PLW0603
    with _lock:
        if _batch_size is None:
            _batch_size = _batch_size_from_env()
        return _batch_size


def set_batch_size(batch_size: int) -> None:
    """Set the process-wide batch size used by subsequent bulk deletes.

    The new value applies to every store. Runs that are already in progress keep
    the batch size they started with.

    Args:
        batch_size: The maximum number of paths deleted per page. Must be >= 1.

    Raises:
        InvalidConfigurationError: if `batch_size` is not a positive integer.

    """
    global _batch_size  # noqa: PLW0603
    value = validate_batch_size(batch_size)
    with _lock:
        _batch_size = value


def _reset_batch_size() -> None:
    """Forget the current value so the next read consults the environment again."""
    global _batch_size  # noqa: PLW0603
    with _lock:
        _batch_size = None

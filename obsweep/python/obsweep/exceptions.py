"""Exceptions raised by obsweep stores and the bulk deletion functions."""


class BaseError(Exception):
    """The base exception class."""


class NotFoundError(BaseError, FileNotFoundError):
    """Error when the object is not found at given location."""


class StoreUnavailableError(BaseError, OSError):
    """Error when the backing store could not be reached or mutated."""


class InvalidConfigurationError(BaseError, ValueError):
    """Error when a configuration value is invalid.

    Raised for a non-positive batch size or concurrency limit, an unparseable
    `OBSWEEP_BATCH_SIZE` environment variable, or an unknown URL scheme.
    """

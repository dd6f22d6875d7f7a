"""Stores that can be drained with [delete_all][obsweep.delete_all]."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Union
from urllib.parse import urlparse

import obsweep as sweep
from obsweep import _store
from obsweep.exceptions import InvalidConfigurationError

if TYPE_CHECKING:
    import sys
    from collections.abc import Callable, Sequence

    from obsweep import CancelSignal, DeleteAllResult

    if sys.version_info >= (3, 10):
        from typing import TypeAlias
    else:
        from typing_extensions import TypeAlias


__all__ = [
    "LocalStore",
    "MemoryStore",
    "S3Store",
    "from_url",
]


class _BulkDeleteMixin:
    def delete_all(
        self,
        *,
        batch_size: int | None = None,
        cancel: CancelSignal | None = None,
        on_page: Callable[[int, Sequence[str]], None] | None = None,
    ) -> DeleteAllResult:
        """Delete every path in this store, in pages of at most `batch_size` paths.

        Refer to the documentation for [delete_all][obsweep.delete_all].
        """
        return sweep.delete_all(
            self,  # type: ignore (Argument of type "Self@_BulkDeleteMixin" cannot be assigned to parameter "store")
            batch_size=batch_size,
            cancel=cancel,
            on_page=on_page,
        )

    async def delete_all_async(
        self,
        *,
        batch_size: int | None = None,
        cancel: CancelSignal | None = None,
        on_page: Callable[[int, Sequence[str]], None] | None = None,
        max_concurrency: int = 1,
    ) -> DeleteAllResult:
        """Call `delete_all` asynchronously.

        Refer to the documentation for [delete_all_async][obsweep.delete_all_async].
        """
        return await sweep.delete_all_async(
            self,  # type: ignore (Argument of type "Self@_BulkDeleteMixin" cannot be assigned to parameter "store")
            batch_size=batch_size,
            cancel=cancel,
            on_page=on_page,
            max_concurrency=max_concurrency,
        )


class LocalStore(_BulkDeleteMixin, _store.LocalStore):
    """A files storage interface to a directory on the local filesystem.

    Can optionally be created with a directory prefix.

    ```py
    from pathlib import Path

    store = LocalStore()
    store = LocalStore(prefix="/path/to/directory")
    store = LocalStore(prefix=Path("."))
    ```
    """


class MemoryStore(_BulkDeleteMixin, _store.MemoryStore):
    """A fully in-memory implementation of the files storage capability.

    Create a new in-memory store:
    ```py
    store = MemoryStore()
    ```
    """


class S3Store(_BulkDeleteMixin, _store.S3Store):
    """Interface to an Amazon S3 bucket.

    Connection settings not passed explicitly are resolved by boto3 from the
    environment. Refer to [`S3Store.__init__`][obsweep.store.S3Store] for the
    accepted options.

    **Anonymous requests**:

    Pass `skip_signature=True` as a keyword argument.
    """


ObjectStore: TypeAlias = Union[LocalStore, MemoryStore, S3Store]
"""All built-in store implementations."""


def _parse_scheme(url: str) -> str | None:
    scheme = urlparse(url).scheme
    if scheme == "memory":
        return "memory"
    if scheme == "file":
        return "local"
    if scheme in ("s3", "s3a"):
        return "s3"
    return None


def from_url(url: str, **kwargs: Any) -> ObjectStore:
    """Easy construction of store by URL, identifying the relevant store.

    This will defer to a store-specific `from_url` constructor based on the provided
    `url`. E.g. passing `"s3://bucket/path"` will defer to
    [`S3Store.from_url`][obsweep.store.S3Store.from_url].

    Supported formats:

    - `file:///path/to/my/dir` -> [`LocalStore`][obsweep.store.LocalStore]
    - `memory:///` -> [`MemoryStore`][obsweep.store.MemoryStore]
    - `s3://bucket/path` -> [`S3Store`][obsweep.store.S3Store] (also supports `s3a`)

    Args:
        url: well-known storage URL.

    Keyword Args:
        kwargs: per-store configuration passed down to store-specific builders.

    Raises:
        InvalidConfigurationError: for an unknown scheme, or configuration passed
            to a store that accepts none.

    """
    scheme = _parse_scheme(url)
    if scheme == "s3":
        return S3Store.from_url(url, **kwargs)
    if scheme == "local":
        return LocalStore.from_url(url, **kwargs)
    if scheme == "memory":
        if kwargs:
            msg = "MemoryStore does not accept any configuration"
            raise InvalidConfigurationError(msg)

        return MemoryStore()

    msg = f"Unknown scheme: {url}"
    raise InvalidConfigurationError(msg)

"""Integration with the [fsspec] library.

[fsspec]: https://github.com/fsspec/filesystem_spec

[FsspecStore][obsweep.fsspec.FsspecStore] adapts any fsspec filesystem (local,
in-memory, SFTP, cloud filesystems such as `s3fs` or `gcsfs`, ...) to the files
storage capability, so that a directory tree on it can be drained with
[delete_all][obsweep.delete_all]:

```py
from obsweep.fsspec import FsspecStore

store = FsspecStore("memory", root="/scratch")
store.delete_all(batch_size=100)
```

Asynchronous fsspec filesystems created with `asynchronous=True` are called through
their native coroutines. Every other filesystem is called from a worker thread by
the async methods.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

import fsspec
import fsspec.asyn

from obsweep.exceptions import NotFoundError, StoreUnavailableError
from obsweep.store import _BulkDeleteMixin

if TYPE_CHECKING:
    from collections.abc import Iterator

__all__ = ["FsspecStore"]


@contextmanager
def _translate_errors(location: str) -> Iterator[None]:
    try:
        yield
    except FileNotFoundError as err:
        msg = f"Object at location {location} not found"
        raise NotFoundError(msg) from err
    except OSError as err:
        msg = f"Filesystem request for {location} failed: {err}"
        raise StoreUnavailableError(msg) from err


class FsspecStore(_BulkDeleteMixin):
    """A files storage implementation backed by an fsspec filesystem.

    Paths are relative to `root`, which acts like a store prefix.
    """

    def __init__(
        self,
        fs: fsspec.AbstractFileSystem | str,
        root: str = "",
        **storage_options: Any,
    ) -> None:
        """Construct a new FsspecStore.

        Args:
            fs: An fsspec filesystem instance, or a protocol name such as `"memory"`
                or `"file"` to construct one with `fsspec.filesystem`.
            root: The directory on `fs` holding the store's files. Defaults to `""`,
                the filesystem root.

        Keyword Args:
            storage_options: passed on to `fsspec.filesystem` when `fs` is a protocol
                name.

        """
        if isinstance(fs, str):
            fs = fsspec.filesystem(fs, **storage_options)
        elif storage_options:
            msg = "storage_options are only used when fs is a protocol name"
            raise TypeError(msg)

        self.fs = fs
        self.root = fs._strip_protocol(root).rstrip("/") if root else ""

    def __repr__(self) -> str:
        return f"FsspecStore(fs={type(self.fs).__name__}, root={self.root!r})"

    @property
    def _native_async(self) -> bool:
        return isinstance(self.fs, fsspec.asyn.AsyncFileSystem) and bool(
            self.fs.asynchronous,
        )

    def _full_path(self, path: str) -> str:
        # Relative segments would address files outside the root
        if any(segment in (".", "..") for segment in path.split("/")):
            msg = f"Object at location {path} not found"
            raise NotFoundError(msg)
        if self.root:
            return f"{self.root}/{path}"
        return path

    def _relative(self, full_path: str) -> str:
        if self.root:
            return full_path[len(self.root) + 1 :]
        return full_path

    def list_files(self) -> list[str]:
        with _translate_errors(self.root or "/"):
            found = self.fs.find(self.root)
        return [self._relative(path) for path in sorted(found)]

    async def list_files_async(self) -> list[str]:
        if not self._native_async:
            return await asyncio.to_thread(self.list_files)

        with _translate_errors(self.root or "/"):
            found = await self.fs._find(self.root)
        return [self._relative(path) for path in sorted(found)]

    def delete_file(self, path: str) -> None:
        full_path = self._full_path(path)
        with _translate_errors(path):
            self.fs.rm_file(full_path)

    async def delete_file_async(self, path: str) -> None:
        if not self._native_async:
            await asyncio.to_thread(self.delete_file, path)
            return

        full_path = self._full_path(path)
        with _translate_errors(path):
            await self.fs._rm_file(full_path)

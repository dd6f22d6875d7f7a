"""Protocols describing the minimal capability a store needs for bulk deletion.

Any object with matching methods satisfies these protocols; there is no need to
inherit from them.

```py
from obsweep import FilesStorage

class MyStore:
    def list_files(self) -> list[str]: ...
    def delete_file(self, path: str) -> None: ...

assert isinstance(MyStore(), FilesStorage)
```
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

__all__ = [
    "DeleteFile",
    "DeleteFileAsync",
    "FilesStorage",
    "FilesStorageAsync",
    "ListFiles",
    "ListFilesAsync",
]


@runtime_checkable
class ListFiles(Protocol):
    def list_files(self) -> list[str]:
        """Return every path currently known to the store.

        The full listing is returned in one call. Stores may raise
        [StoreUnavailableError][obsweep.exceptions.StoreUnavailableError] if the
        backing store cannot be reached.
        """
        ...


@runtime_checkable
class DeleteFile(Protocol):
    def delete_file(self, path: str) -> None:
        """Delete exactly one path.

        Raises:
            NotFoundError: if `path` does not exist in the store.
            StoreUnavailableError: if the backing store failed.

        """
        ...


@runtime_checkable
class FilesStorage(ListFiles, DeleteFile, Protocol):
    """The capability required by [delete_all][obsweep.delete_all]."""


@runtime_checkable
class ListFilesAsync(Protocol):
    async def list_files_async(self) -> list[str]:
        """Call `list_files` asynchronously."""
        ...


@runtime_checkable
class DeleteFileAsync(Protocol):
    async def delete_file_async(self, path: str) -> None:
        """Call `delete_file` asynchronously."""
        ...


@runtime_checkable
class FilesStorageAsync(ListFilesAsync, DeleteFileAsync, Protocol):
    """The capability required by [delete_all_async][obsweep.delete_all_async]."""

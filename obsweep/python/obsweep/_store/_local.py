from __future__ import annotations

import asyncio
import os
from pathlib import Path
from typing import TYPE_CHECKING
from urllib.parse import unquote, urlparse

from obsweep.exceptions import (
    InvalidConfigurationError,
    NotFoundError,
    StoreUnavailableError,
)

if TYPE_CHECKING:
    import sys

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self


class LocalStore:
    """A files storage interface to a directory on the local filesystem.

    Paths are relative to the prefix and always use `/` as the separator.

    ```py
    from pathlib import Path

    store = LocalStore()
    store = LocalStore(prefix="/path/to/directory")
    store = LocalStore(prefix=Path("."))
    ```
    """

    def __init__(
        self,
        prefix: str | Path | None = None,
        *,
        automatic_cleanup: bool = False,
        mkdir: bool = False,
    ) -> None:
        """Create a new LocalStore.

        Args:
            prefix: Use the specified prefix applied to all paths. Defaults to `None`,
                the current working directory.

        Keyword Args:
            automatic_cleanup: if `True`, enables automatic cleanup of empty directories
                when deleting files. Defaults to False.
            mkdir: if `True` and `prefix` is not `None`, the directory at `prefix` will
                attempt to be created. Note that this root directory will not be cleaned
                up, even if `automatic_cleanup` is `True`.

        """
        self._prefix = Path(prefix) if prefix is not None else None
        self._automatic_cleanup = automatic_cleanup

        if mkdir and self._prefix is not None:
            self._prefix.mkdir(parents=True, exist_ok=True)

    @classmethod
    def from_url(
        cls,
        url: str,
        *,
        automatic_cleanup: bool = False,
        mkdir: bool = False,
    ) -> Self:
        """Construct a new LocalStore from a `file://` URL.

        **Examples:**

        Construct a new store with a directory prefix:
        ```py
        url = "file:///tmp/scratch/"
        store = LocalStore.from_url(url)
        ```
        """
        parsed = urlparse(url)
        if parsed.scheme != "file":
            msg = f"Expected a file:// URL, got {url!r}"
            raise InvalidConfigurationError(msg)
        if parsed.netloc not in ("", "localhost"):
            msg = f"Remote hosts are not supported in file URLs: {url!r}"
            raise InvalidConfigurationError(msg)

        return cls(
            unquote(parsed.path) or "/",
            automatic_cleanup=automatic_cleanup,
            mkdir=mkdir,
        )

    def __repr__(self) -> str:
        return f"LocalStore(prefix={self._prefix!r})"

    def __eq__(self, value: object) -> bool:
        if not isinstance(value, LocalStore):
            return NotImplemented
        return (
            self._root == value._root
            and self._automatic_cleanup == value._automatic_cleanup
        )

    def __hash__(self) -> int:
        return hash((self._root, self._automatic_cleanup))

    @property
    def prefix(self) -> Path | None:
        """Get the prefix applied to all operations in this store, if any."""
        return self._prefix

    @property
    def _root(self) -> Path:
        return (self._prefix or Path()).absolute()

    def list_files(self) -> list[str]:
        root = self._root
        if not root.is_dir():
            return []

        try:
            paths = [
                path.relative_to(root).as_posix()
                for path in root.rglob("*")
                if path.is_file()
            ]
        except OSError as err:
            msg = f"Unable to list {root}: {err}"
            raise StoreUnavailableError(msg) from err

        return sorted(paths)

    async def list_files_async(self) -> list[str]:
        return await asyncio.to_thread(self.list_files)

    def _target(self, path: str) -> Path:
        root = self._root
        target = root.joinpath(*path.split("/"))
        # Parent only, so a symlinked file inside the root stays deletable
        resolved_root = root.resolve()
        parent = target.parent.resolve()
        if ".." in path.split("/") or (
            parent != resolved_root and resolved_root not in parent.parents
        ):
            msg = f"Object at location {path} not found"
            raise NotFoundError(msg)
        return target

    def delete_file(self, path: str) -> None:
        root = self._root
        target = self._target(path)
        try:
            target.unlink()
        except FileNotFoundError as err:
            msg = f"Object at location {path} not found"
            raise NotFoundError(msg) from err
        except OSError as err:
            msg = f"Unable to delete {path}: {err}"
            raise StoreUnavailableError(msg) from err

        if self._automatic_cleanup:
            self._remove_empty_parents(target.parent, root)

    async def delete_file_async(self, path: str) -> None:
        await asyncio.to_thread(self.delete_file, path)

    @staticmethod
    def _remove_empty_parents(directory: Path, root: Path) -> None:
        while directory != root and root in directory.parents:
            try:
                os.rmdir(directory)
            except OSError:
                # Not empty, or already removed by a concurrent delete
                return
            directory = directory.parent

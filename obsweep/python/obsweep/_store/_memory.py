from __future__ import annotations

import threading
import uuid
from typing import TYPE_CHECKING

from obsweep.exceptions import NotFoundError

if TYPE_CHECKING:
    import sys
    from collections.abc import Iterable

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self


class MemoryStore:
    """A fully in-memory implementation of the files storage capability.

    Create a new, empty in-memory store:
    ```py
    store = MemoryStore()
    ```

    Or one holding 100 random unique paths:
    ```py
    store = MemoryStore.seeded(100)
    ```
    """

    def __init__(self, paths: Iterable[str] | None = None) -> None:
        """Create a new MemoryStore.

        Args:
            paths: Paths the store initially holds, in listing order. Defaults to
                `None`, an empty store.

        """
        self._lock = threading.Lock()
        self._paths: list[str] = list(paths) if paths is not None else []

    @classmethod
    def seeded(cls, count: int = 100) -> Self:
        """Construct a store holding `count` unique random paths."""
        return cls(str(uuid.uuid4()) for _ in range(count))

    def __repr__(self) -> str:
        return f"MemoryStore(len={len(self._paths)})"

    def __len__(self) -> int:
        with self._lock:
            return len(self._paths)

    def put(self, path: str) -> None:
        """Add `path` to the end of the listing, if not already present."""
        with self._lock:
            if path not in self._paths:
                self._paths.append(path)

    def list_files(self) -> list[str]:
        with self._lock:
            return list(self._paths)

    async def list_files_async(self) -> list[str]:
        return self.list_files()

    def delete_file(self, path: str) -> None:
        with self._lock:
            try:
                self._paths.remove(path)
            except ValueError as err:
                msg = f"Object at location {path} not found"
                raise NotFoundError(msg) from err

    async def delete_file_async(self, path: str) -> None:
        self.delete_file(path)

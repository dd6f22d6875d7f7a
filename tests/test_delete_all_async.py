from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

import obsweep as sweep
from obsweep.exceptions import (
    InvalidConfigurationError,
    NotFoundError,
    StoreUnavailableError,
)
from obsweep.store import MemoryStore

if TYPE_CHECKING:
    from collections.abc import Iterable


class SlowStore(MemoryStore):
    """A MemoryStore whose async deletes yield to the event loop."""

    def __init__(
        self,
        paths,
        *,
        fail_on: Iterable[str] = (),
        error: type[Exception] = NotFoundError,
        delays: dict[str, float] | None = None,
    ):
        super().__init__(paths)
        self.started: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self._fail_on = set(fail_on)
        self._error = error
        self._delays = delays or {}

    async def delete_file_async(self, path: str) -> None:
        self.started.append(path)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self._delays.get(path, 0.01))
            if path in self._fail_on:
                msg = f"Unable to delete {path}"
                raise self._error(msg)
            await super().delete_file_async(path)
        finally:
            self.in_flight -= 1


@pytest.mark.asyncio
async def test_delete_all_async():
    store = MemoryStore.seeded(100)

    result = await sweep.delete_all_async(store)

    assert await store.list_files_async() == []
    assert result == {"deleted": 100, "pages": 10, "batch_size": 10, "cancelled": False}


@pytest.mark.asyncio
async def test_delete_all_async_configured_batch_size():
    sweep.set_batch_size(5)
    store = MemoryStore.seeded(100)

    result = await store.delete_all_async()

    assert store.list_files() == []
    assert result["batch_size"] == 5
    assert result["pages"] == 20


@pytest.mark.asyncio
async def test_delete_all_async_empty_store():
    store = SlowStore([])
    result = await store.delete_all_async()
    assert result["pages"] == 0
    assert store.started == []


@pytest.mark.asyncio
async def test_sequential_failure_stops_immediately():
    paths = [f"file{i}.txt" for i in range(10)]
    store = SlowStore(paths, fail_on=["file2.txt"])

    with pytest.raises(NotFoundError):
        await store.delete_all_async(batch_size=5)

    assert store.started == paths[:3]
    assert store.max_in_flight == 1
    assert store.list_files() == paths[2:]


@pytest.mark.asyncio
async def test_concurrent_deletes_within_page():
    store = SlowStore([f"file{i}.txt" for i in range(20)])
    pages: list[int] = []

    result = await store.delete_all_async(
        batch_size=10,
        max_concurrency=4,
        on_page=lambda _, page: pages.append(len(page)),
    )

    assert result == {"deleted": 20, "pages": 2, "batch_size": 10, "cancelled": False}
    assert pages == [10, 10]
    assert store.max_in_flight == 4
    assert store.list_files() == []


@pytest.mark.asyncio
async def test_concurrent_failure_aborts_run():
    paths = [f"file{i}.txt" for i in range(20)]
    store = SlowStore(paths, fail_on=["file1.txt"])

    with pytest.raises(NotFoundError):
        await store.delete_all_async(batch_size=10, max_concurrency=2)

    # Nothing from the second page was started
    assert all(path in paths[:10] for path in store.started)
    assert set(paths[10:]) <= set(store.list_files())
    assert "file1.txt" in store.list_files()


@pytest.mark.asyncio
async def test_store_unavailable_aborts_async_run():
    paths = [f"file{i}.txt" for i in range(10)]
    store = SlowStore(paths, fail_on=["file4.txt"], error=StoreUnavailableError)

    with pytest.raises(StoreUnavailableError, match="file4.txt"):
        await store.delete_all_async(batch_size=3)

    assert store.started == paths[:5]
    assert store.list_files() == paths[4:]


@pytest.mark.asyncio
async def test_concurrent_failure_counts_completed_deletes(log_messages: list[str]):
    paths = [f"file{i}.txt" for i in range(5)]
    # The failing delete finishes last, after every other delete of the page
    store = SlowStore(paths, fail_on=["file0.txt"], delays={"file0.txt": 0.05})

    with pytest.raises(NotFoundError):
        await store.delete_all_async(batch_size=5, max_concurrency=5)

    assert store.list_files() == ["file0.txt"]
    assert "Delete failed on page 0 (4 paths deleted): " in "\n".join(log_messages)


class FailOnCancelStore(SlowStore):
    """A SlowStore whose interrupted deletes fail instead of being cancelled."""

    async def delete_file_async(self, path: str) -> None:
        try:
            await super().delete_file_async(path)
        except asyncio.CancelledError:
            msg = f"Connection reset while deleting {path}"
            raise StoreUnavailableError(msg) from None


@pytest.mark.asyncio
async def test_concurrent_failure_raises_first_to_complete():
    paths = [f"file{i}.txt" for i in range(4)]
    store = FailOnCancelStore(
        paths,
        fail_on=["file3.txt"],
        delays={"file0.txt": 0.05, "file3.txt": 0.001},
    )

    # file0.txt fails too, but only after file3.txt has already failed
    with pytest.raises(NotFoundError, match="file3.txt"):
        await store.delete_all_async(batch_size=4, max_concurrency=4)

    assert "file0.txt" in store.list_files()


@pytest.mark.asyncio
async def test_cancel_async_between_pages():
    store = MemoryStore([f"file{i}.txt" for i in range(9)])
    cancel = asyncio.Event()

    result = await store.delete_all_async(
        batch_size=3,
        cancel=cancel,
        on_page=lambda _, __: cancel.set(),
    )

    assert result == {"deleted": 3, "pages": 1, "batch_size": 3, "cancelled": True}
    assert len(store.list_files()) == 6


@pytest.mark.asyncio
@pytest.mark.parametrize("max_concurrency", [0, -2])
async def test_invalid_max_concurrency(max_concurrency: int):
    store = MemoryStore.seeded(3)
    with pytest.raises(InvalidConfigurationError):
        await store.delete_all_async(max_concurrency=max_concurrency)
    assert len(store.list_files()) == 3

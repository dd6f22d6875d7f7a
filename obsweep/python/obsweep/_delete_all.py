"""Delete every object in a store, one bounded page at a time."""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Protocol, TypedDict

from loguru import logger

from obsweep._config import get_batch_size, validate_batch_size

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator, Sequence

    from obsweep._protocols import FilesStorage, FilesStorageAsync

__all__ = [
    "CancelSignal",
    "DeleteAllResult",
    "delete_all",
    "delete_all_async",
]


class DeleteAllResult(TypedDict):
    """Result of a [delete_all][obsweep.delete_all] call."""

    deleted: int
    """The number of paths that were deleted."""

    pages: int
    """The number of pages that were fully processed."""

    batch_size: int
    """The page size used for the whole run."""

    cancelled: bool
    """Whether the run stopped early because the cancellation signal was set."""


class CancelSignal(Protocol):
    """Anything with an `is_set` method, such as `threading.Event` or `asyncio.Event`."""

    def is_set(self) -> bool: ...


def _resolve_batch_size(batch_size: int | None) -> int:
    # Read once so a concurrent `set_batch_size` never changes the page size
    # mid-run.
    if batch_size is None:
        return get_batch_size()
    return validate_batch_size(batch_size)


def _pages(snapshot: list[str], batch_size: int) -> Iterator[list[str]]:
    for start in range(0, len(snapshot), batch_size):
        yield snapshot[start : start + batch_size]


def _result(
    *,
    deleted: int,
    pages: int,
    batch_size: int,
    cancelled: bool,
) -> DeleteAllResult:
    return {
        "deleted": deleted,
        "pages": pages,
        "batch_size": batch_size,
        "cancelled": cancelled,
    }


def delete_all(
    store: FilesStorage,
    *,
    batch_size: int | None = None,
    cancel: CancelSignal | None = None,
    on_page: Callable[[int, Sequence[str]], None] | None = None,
) -> DeleteAllResult:
    """Delete every path in the store, in pages of at most `batch_size` paths.

    The store is listed exactly once. The resulting snapshot is then split into
    pages and each path of each page is deleted in listing order. Paths added to the
    store after the listing are not deleted.

    The first error raised by the store aborts the run and is propagated unchanged:
    no further paths are deleted and nothing is retried. Paths deleted before the
    error stay deleted, so calling `delete_all` again resumes the drain against the
    store's current listing.

    ```py
    import obsweep
    from obsweep.store import MemoryStore

    store = MemoryStore.seeded(100)
    result = obsweep.delete_all(store, batch_size=25)
    assert result["pages"] == 4
    ```

    Args:
        store: Any object with `list_files` and `delete_file` methods.

    Keyword Args:
        batch_size: The page size. Defaults to the process-wide value from
            [get_batch_size][obsweep.get_batch_size], read once when the run starts.
        cancel: A signal checked before each page. Once it is set, the run stops
            without starting another page and the result has `cancelled=True`.
        on_page: Called with the page index and the page's paths after each page
            has been fully deleted.

    Returns:
        A summary of the run.

    Raises:
        InvalidConfigurationError: if `batch_size` is not a positive integer.

    """
    size = _resolve_batch_size(batch_size)
    snapshot = list(store.list_files())
    logger.debug("Deleting {} paths in pages of {}", len(snapshot), size)

    deleted = 0
    pages = 0
    for page in _pages(snapshot, size):
        if cancel is not None and cancel.is_set():
            logger.info("Delete cancelled after {} pages ({} paths)", pages, deleted)
            return _result(deleted=deleted, pages=pages, batch_size=size, cancelled=True)

        try:
            for path in page:
                store.delete_file(path)
                deleted += 1
        except Exception as err:
            logger.error(
                "Delete failed on page {} ({} paths deleted): {!r}",
                pages,
                deleted,
                err,
            )
            raise

        if on_page is not None:
            on_page(pages, page)
        logger.debug("Deleted page {} ({} paths)", pages, len(page))
        pages += 1

    logger.info("Deleted {} paths in {} pages", deleted, pages)
    return _result(deleted=deleted, pages=pages, batch_size=size, cancelled=False)


async def _delete_page_concurrently(
    store: FilesStorageAsync,
    page: list[str],
    max_concurrency: int,
) -> tuple[int, BaseException | None]:
    """Delete one page with bounded concurrency.

    Returns the number of successful deletes and the first error to complete, if
    any. Once a delete fails, the page's pending deletes are cancelled.
    """
    semaphore = asyncio.Semaphore(max_concurrency)

    async def _delete(path: str) -> None:
        async with semaphore:
            await store.delete_file_async(path)

    # Done callbacks run in completion order
    finished: list[asyncio.Future[None]] = []
    tasks = [asyncio.ensure_future(_delete(path)) for path in page]
    for task in tasks:
        task.add_done_callback(finished.append)

    try:
        await asyncio.wait(tasks, return_when=asyncio.FIRST_EXCEPTION)
    finally:
        for task in tasks:
            if not task.done():
                task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

    succeeded = 0
    first_error: BaseException | None = None
    for task in finished:
        if task.cancelled():
            continue
        err = task.exception()
        if err is None:
            succeeded += 1
        elif first_error is None:
            first_error = err
    return succeeded, first_error


async def delete_all_async(
    store: FilesStorageAsync,
    *,
    batch_size: int | None = None,
    cancel: CancelSignal | None = None,
    on_page: Callable[[int, Sequence[str]], None] | None = None,
    max_concurrency: int = 1,
) -> DeleteAllResult:
    """Call `delete_all` asynchronously.

    Refer to the documentation for [delete_all][obsweep.delete_all]. The store must
    provide `list_files_async` and `delete_file_async`.

    Keyword Args:
        batch_size: The page size. Defaults to the process-wide value.
        cancel: A signal (usually an `asyncio.Event`) checked before each page.
        on_page: Called with the page index and the page's paths after each page.
        max_concurrency: The maximum number of deletes in flight within one page.
            Pages are always processed one after another. With the default of `1`,
            deletes are issued sequentially. With a higher value, the first delete to
            fail cancels the rest of its page and its error is raised.

    """
    size = _resolve_batch_size(batch_size)
    concurrency = validate_batch_size(max_concurrency, name="max_concurrency")
    snapshot = list(await store.list_files_async())
    logger.debug("Deleting {} paths in pages of {}", len(snapshot), size)

    deleted = 0
    pages = 0
    for page in _pages(snapshot, size):
        if cancel is not None and cancel.is_set():
            logger.info("Delete cancelled after {} pages ({} paths)", pages, deleted)
            return _result(deleted=deleted, pages=pages, batch_size=size, cancelled=True)

        try:
            if concurrency == 1:
                for path in page:
                    await store.delete_file_async(path)
                    deleted += 1
            else:
                succeeded, first_error = await _delete_page_concurrently(
                    store,
                    page,
                    concurrency,
                )
                deleted += succeeded
                if first_error is not None:
                    raise first_error
        except Exception as err:
            logger.error(
                "Delete failed on page {} ({} paths deleted): {!r}",
                pages,
                deleted,
                err,
            )
            raise

        if on_page is not None:
            on_page(pages, page)
        logger.debug("Deleted page {} ({} paths)", pages, len(page))
        pages += 1

    logger.info("Deleted {} paths in {} pages", deleted, pages)
    return _result(deleted=deleted, pages=pages, batch_size=size, cancelled=False)

# ruff: noqa
import asyncio
import sys

from tqdm import tqdm

import obsweep as sweep
from obsweep.store import MemoryStore, from_url

DEFAULT_COUNT = 10_000


def sync_delete_progress_bar(store):
    total = len(store.list_files())
    with tqdm(total=total) as pbar:
        sweep.delete_all(
            store,
            batch_size=100,
            on_page=lambda _index, page: pbar.update(len(page)),
        )


async def async_delete_progress_bar(store):
    total = len(await store.list_files_async())
    with tqdm(total=total) as pbar:
        await sweep.delete_all_async(
            store,
            batch_size=100,
            on_page=lambda _index, page: pbar.update(len(page)),
        )


def main():
    if len(sys.argv) >= 2:
        store = from_url(sys.argv[1])
        print("Synchronous delete:")
        sync_delete_progress_bar(store)
        return

    print("Synchronous delete:")
    sync_delete_progress_bar(MemoryStore.seeded(DEFAULT_COUNT))
    print("Asynchronous delete:")
    asyncio.run(async_delete_progress_bar(MemoryStore.seeded(DEFAULT_COUNT)))


if __name__ == "__main__":
    main()

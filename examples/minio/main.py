# ruff: noqa
import asyncio

from loguru import logger

import obsweep as sweep
from obsweep.store import S3Store


async def main():
    logger.enable("obsweep")

    store = S3Store(
        "test-bucket",
        endpoint="http://localhost:9000",
        access_key_id="minioadmin",
        secret_access_key="minioadmin",
        region="us-east-1",
    )

    print("List files:")
    files = await store.list_files_async()
    print(files)

    print("\nDelete everything, 5 at a time:")
    sweep.set_batch_size(5)
    result = await sweep.delete_all_async(store, max_concurrency=5)
    print(result)


if __name__ == "__main__":
    asyncio.run(main())

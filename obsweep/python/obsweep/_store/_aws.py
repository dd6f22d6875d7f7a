from __future__ import annotations

import asyncio
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any
from urllib.parse import urlparse

import boto3
import boto3.session
from botocore import UNSIGNED
from botocore.client import Config
from botocore.exceptions import BotoCoreError, ClientError

from obsweep.exceptions import (
    InvalidConfigurationError,
    NotFoundError,
    StoreUnavailableError,
)

if TYPE_CHECKING:
    import sys
    from collections.abc import Iterator

    if sys.version_info >= (3, 11):
        from typing import Self
    else:
        from typing_extensions import Self

_NOT_FOUND_CODES = frozenset({"404", "NoSuchKey", "NotFound"})


@contextmanager
def _translate_errors(location: str) -> Iterator[None]:
    """Translate boto3 errors into obsweep ones."""
    try:
        yield
    except ClientError as err:
        code = err.response.get("Error", {}).get("Code")
        if code in _NOT_FOUND_CODES:
            msg = f"Object at location {location} not found"
            raise NotFoundError(msg) from err
        msg = f"S3 request for {location} failed ({code}): {err}"
        raise StoreUnavailableError(msg) from err
    except BotoCoreError as err:
        msg = f"S3 request for {location} failed: {err}"
        raise StoreUnavailableError(msg) from err


class S3Store:
    """Files storage interface to an Amazon S3 bucket, built on boto3.

    Credentials and region are resolved by boto3 as usual (environment variables,
    shared config files, instance metadata) unless passed explicitly.

    **Examples**:

    **Anonymous requests**:

    Pass `skip_signature=True` to send unsigned requests, for example to a public
    bucket or a local test server.

    **S3-compatible services**:

    ```py
    store = S3Store(
        "test-bucket",
        endpoint="http://localhost:9000",
        access_key_id="minioadmin",
        secret_access_key="minioadmin",
    )
    ```
    """

    def __init__(  # noqa: PLR0913
        self,
        bucket: str,
        *,
        prefix: str | None = None,
        session: boto3.session.Session | None = None,
        client: Any = None,
        endpoint: str | None = None,
        region: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        session_token: str | None = None,
        skip_signature: bool = False,
    ) -> None:
        """Create a new S3Store.

        Args:
            bucket: The bucket name.

        Keyword Args:
            prefix: A key prefix applied to all paths, like a directory inside the
                bucket. Defaults to `None`.
            session: The boto3 session used to create the client. Defaults to `None`,
                in which case a new `boto3.session.Session` will be used.
            client: A preconfigured boto3 S3 client. When passed, every other
                connection option is ignored.
            endpoint: Custom endpoint URL, such as a MinIO or moto server.
            region: The AWS region.
            access_key_id: AWS access key id.
            secret_access_key: AWS secret access key.
            session_token: AWS session token.
            skip_signature: if `True`, requests are sent unsigned. Defaults to False.

        """
        if not bucket:
            msg = "S3Store requires a bucket name"
            raise InvalidConfigurationError(msg)

        self._bucket = bucket
        self._prefix = prefix.strip("/") if prefix else ""

        if client is None:
            if session is None:
                session = boto3.session.Session()
            config = Config(signature_version=UNSIGNED) if skip_signature else None
            client = session.client(
                "s3",
                endpoint_url=endpoint,
                region_name=region,
                aws_access_key_id=access_key_id,
                aws_secret_access_key=secret_access_key,
                aws_session_token=session_token,
                config=config,
            )
        self._client = client

    @classmethod
    def from_url(cls, url: str, **kwargs: Any) -> Self:
        """Construct a new S3Store from a URL.

        Supports `s3://bucket/path` and `s3a://bucket/path`. Any path in the URL is
        used as the store prefix. Other keyword arguments are passed to the
        constructor.

        ```py
        store = S3Store.from_url("s3://bucket/path/to/dir", region="us-east-1")
        ```
        """
        parsed = urlparse(url)
        if parsed.scheme not in ("s3", "s3a"):
            msg = f"Expected an s3:// URL, got {url!r}"
            raise InvalidConfigurationError(msg)

        prefix = parsed.path.strip("/") or None
        if "prefix" in kwargs:
            prefix = kwargs.pop("prefix")
        return cls(parsed.netloc, prefix=prefix, **kwargs)

    def __repr__(self) -> str:
        return f"S3Store(bucket={self._bucket!r}, prefix={self._prefix!r})"

    @property
    def bucket(self) -> str:
        """The bucket this store operates on."""
        return self._bucket

    @property
    def prefix(self) -> str | None:
        """Get the key prefix applied to all operations in this store, if any."""
        return self._prefix or None

    def _key(self, path: str) -> str:
        if self._prefix:
            return f"{self._prefix}/{path}"
        return path

    def list_files(self) -> list[str]:
        params = {"Bucket": self._bucket}
        if self._prefix:
            params["Prefix"] = f"{self._prefix}/"

        paths: list[str] = []
        strip = len(params.get("Prefix", ""))
        with _translate_errors(f"s3://{self._bucket}/{self._prefix}"):
            paginator = self._client.get_paginator("list_objects_v2")
            for page in paginator.paginate(**params):
                paths.extend(obj["Key"][strip:] for obj in page.get("Contents", []))

        return paths

    async def list_files_async(self) -> list[str]:
        return await asyncio.to_thread(self.list_files)

    def delete_file(self, path: str) -> None:
        key = self._key(path)
        with _translate_errors(path):
            # DeleteObject succeeds for missing keys, so check first
            self._client.head_object(Bucket=self._bucket, Key=key)
            self._client.delete_object(Bucket=self._bucket, Key=key)

    async def delete_file_async(self, path: str) -> None:
        await asyncio.to_thread(self.delete_file, path)

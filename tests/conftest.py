from __future__ import annotations

import boto3
import pytest
import requests
from botocore import UNSIGNED
from botocore.client import Config
from loguru import logger
from moto.moto_server.threaded_moto_server import ThreadedMotoServer

from obsweep import DEFAULT_BATCH_SIZE, set_batch_size
from obsweep._config import _reset_batch_size
from obsweep.store import S3Store

TEST_BUCKET_NAME = "test"
TEST_KEYS = ["afile", "dir/bfile", "dir/nested/cfile"]


@pytest.fixture(autouse=True)
def default_batch_size():
    """Restore the process-wide batch size around each test."""
    set_batch_size(DEFAULT_BATCH_SIZE)
    yield
    _reset_batch_size()


@pytest.fixture
def log_messages():
    """Collect the package's log messages, which are disabled by default."""
    messages: list[str] = []
    logger.enable("obsweep")
    sink = logger.add(lambda message: messages.append(message.record["message"]))
    yield messages
    logger.remove(sink)
    logger.disable("obsweep")


# See docs here: https://docs.getmoto.org/en/latest/docs/server_mode.html
@pytest.fixture
def moto_server_uri():
    """Fixture to run a mocked AWS server for testing."""
    # Note: pass `port=0` to get a random free port.
    server = ThreadedMotoServer(ip_address="localhost", port=0)
    server.start()
    if hasattr(server, "get_host_and_port"):
        host, port = server.get_host_and_port()
    else:
        s = server._server
        assert s is not None
        host, port = s.server_address
    uri = f"http://{host}:{port}"
    yield uri
    server.stop()


@pytest.fixture
def s3_client(moto_server_uri: str):
    return boto3.client(
        "s3",
        config=Config(signature_version=UNSIGNED),
        region_name="us-east-1",
        endpoint_url=moto_server_uri,
    )


@pytest.fixture
def s3(moto_server_uri: str, s3_client):
    s3_client.create_bucket(Bucket=TEST_BUCKET_NAME, ACL="public-read")
    for key in TEST_KEYS:
        s3_client.put_object(Bucket=TEST_BUCKET_NAME, Key=key, Body=b"hello world")
    yield moto_server_uri
    requests.post(f"{moto_server_uri}/moto-api/reset", timeout=30)


@pytest.fixture
def s3_store(s3: str):
    return S3Store.from_url(
        f"s3://{TEST_BUCKET_NAME}/",
        endpoint=s3,
        region="us-east-1",
        skip_signature=True,
    )

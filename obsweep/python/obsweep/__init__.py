from loguru import logger

from . import exceptions, store
from ._config import (
    BATCH_SIZE_ENV_VAR,
    DEFAULT_BATCH_SIZE,
    get_batch_size,
    set_batch_size,
)
from ._delete_all import (
    CancelSignal,
    DeleteAllResult,
    delete_all,
    delete_all_async,
)
from ._protocols import (
    DeleteFile,
    DeleteFileAsync,
    FilesStorage,
    FilesStorageAsync,
    ListFiles,
    ListFilesAsync,
)

# Library code stays quiet until the application calls `logger.enable("obsweep")`
logger.disable("obsweep")

__version__ = "0.1.0"

__all__ = [
    "BATCH_SIZE_ENV_VAR",
    "DEFAULT_BATCH_SIZE",
    "CancelSignal",
    "DeleteAllResult",
    "DeleteFile",
    "DeleteFileAsync",
    "FilesStorage",
    "FilesStorageAsync",
    "ListFiles",
    "ListFilesAsync",
    "__version__",
    "delete_all",
    "delete_all_async",
    "exceptions",
    "get_batch_size",
    "set_batch_size",
    "store",
]

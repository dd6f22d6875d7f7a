from ._aws import S3Store as S3Store
from ._local import LocalStore as LocalStore
from ._memory import MemoryStore as MemoryStore

__all__ = ["LocalStore", "MemoryStore", "S3Store"]

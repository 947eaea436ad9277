from .config import BlobStoreConfig

__all__ = ["BlobStoreConfig"]

"""Two-tier PDF object storage."""

from .backend import StorageBackend, FilesystemStorageBackend

__all__ = ["StorageBackend", "FilesystemStorageBackend"]

"""
Blob storage for uploaded project files.

Exports:
- BlobStore: Storage interface
- LocalBlobStore: Filesystem implementation
"""

from .blob_store import BlobStore, LocalBlobStore

__all__ = [
    "BlobStore",
    "LocalBlobStore",
]

# -*- coding: utf-8 -*-
"""aliasfs is a content-addressed file store with a layer of human-facing
aliases on top. What does that mean? Uploaded bytes are stored once per
distinct content hash, and any number of aliases, each with its own original
file name, access policy and expiry, can point at the same stored file.

Typical use cases for this kind of system are ones where:

- Users upload the same file many times under different names.
- A file behind one name is replaced while other names keep the old content.
- Stored bytes must only be deleted once nothing refers to them anymore.
"""

from .__meta__ import (
    __title__,
    __summary__,
    __url__,
    __version__,
    __author__,
    __email__,
    __license__,
)

from .blobstore import BlobStore, PathGenerator
from .coordinator import FileCoordinator
from .db import Database
from .exceptions import AliasFSError, Misconfigured, NotFound, StoreFailure
from .mounts import Mounts
from .records import BlobRef, FileAlias, FileMetadata, FilePath
from .stores import AliasStore, MetadataStore


__all__ = (
    "AliasFSError",
    "AliasStore",
    "BlobRef",
    "BlobStore",
    "Database",
    "FileAlias",
    "FileCoordinator",
    "FileMetadata",
    "FilePath",
    "MetadataStore",
    "Misconfigured",
    "Mounts",
    "NotFound",
    "PathGenerator",
    "StoreFailure",
)

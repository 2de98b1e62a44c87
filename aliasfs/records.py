# -*- coding: utf-8 -*-
"""Immutable value types passed between the coordinator and its stores.

Records are never mutated in place; build a changed copy with ``_replace`` and
persist it through the owning store.
"""

import os
from collections import namedtuple


class FileMetadata(
    namedtuple("FileMetadata", ["md5_hash", "file_uri"], defaults=(None, None))
):
    """De-duplication index entry mapping a content hash to the URI of the
    stored bytes.

    Attributes:
        md5_hash (str): Hex digest of the file contents.
        file_uri (str): Mounted URI of the blob, e.g. ``local://ab/cd/abcd.txt``.
    """


class FileAlias(
    namedtuple(
        "FileAlias",
        ["alias", "file_uri", "original_name", "access", "expire"],
        defaults=(None, None, None, None, None),
    )
):
    """Human-facing name for stored content.

    Attributes:
        alias (str): Unique key.
        file_uri (str): Mounted URI of the referenced blob.
        original_name (str): File name given at upload time.
        access (str): Access policy. Stored, never interpreted here.
        expire (str): Expiry as given by the caller, kept as text. Stored,
            never interpreted here.
    """


class BlobRef(namedtuple("BlobRef", ["uri", "relpath", "abspath"])):
    """Location of a blob: its mounted URI, its path inside the blob store and
    its system path (``None`` when the backing filesystem has none).
    """


class FilePath(namedtuple("FilePath", ["relpath", "destination_dir", "base_uri"])):
    """Where a stored file can be found and served from. Never persisted."""

    @property
    def abspath(self):
        """System path of the file, or ``None`` without a destination dir."""
        if not self.destination_dir:
            return None
        return os.path.join(self.destination_dir, *self.relpath.split("/"))

    @property
    def url(self):
        """Public URL of the file under :attr:`base_uri`."""
        if not self.base_uri:
            return "/" + self.relpath
        return self.base_uri.rstrip("/") + "/" + self.relpath

# -*- coding: utf-8 -*-


"""
common utils for aliasfs
"""


import hashlib
import io
import os
from datetime import date
from typing import List, Optional, Tuple, Union

import fs as pyfs
import fs.base


CHUNK_SIZE = 64 * 1024
URI_SEPARATOR = "://"


def compact(items):
    """Return only truthy elements of `items`."""
    return [item for item in items if item]


def to_bytes(text):
    if isinstance(text, (bytes, bytearray)):
        return bytes(text)
    return bytes(text, "utf8")


def expire_value(value):
    """Return `value` as the text kept in the alias table, or ``None`` when
    falsy. Dates and datetimes are kept in ISO 8601 form, anything else as
    ``str(value)``.
    """
    if not value:
        return None
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def shard(digest, depth, width) -> List[str]:
    # This creates a list of `depth` number of tokens with width
    # `width` from the first part of the id plus the remainder.
    return compact(
        [digest[i * width : width * (i + 1)] for i in range(depth)]
        + [digest[depth * width :]]
    )


def fileext(name: Optional[str]) -> str:
    """Return the extension of file `name` without the leading dot. Returns an
    empty string when `name` is empty or has no extension.
    """
    if not name:
        return ""
    return os.path.splitext(name)[1].lstrip(os.extsep)


def dotted(extension: Optional[str]) -> str:
    """Return `extension` with a leading dot, or an empty string."""
    if extension and not extension.startswith(os.extsep):
        extension = os.extsep + extension
    elif not extension:
        extension = ""
    return extension


def load_fs(root: Union[pyfs.base.FS, str]) -> pyfs.base.FS:
    """Return `root` if it is already a filesystem, otherwise open it as a
    local path or PyFilesystem2 URL, creating it if missing.
    """
    if isinstance(root, pyfs.base.FS):
        return root
    return pyfs.open_fs(root, create=True)


def computehash(stream, algorithm="md5") -> str:
    """Compute hash of `stream` contents using `algorithm`."""
    hash = hashlib.new(algorithm)
    for data in stream:
        hash.update(to_bytes(data))
    return hash.hexdigest()


class Stream(object):
    """Common interface for bytes, file-like objects and local file paths.

    If `obj` is a path to a file, then it will be opened until :meth:`close` is
    called. If `obj` is a file-like object, then it's original position will be
    restored when :meth:`close` is called instead of closing the object
    automatically.

    Successive readings of the stream is supported without having to manually
    set it's position back to ``0``.
    """

    def __init__(self, obj):
        if isinstance(obj, (bytes, bytearray)):
            obj = io.BytesIO(obj)
            pos = 0
        elif hasattr(obj, "read"):
            pos = obj.tell()
        elif isinstance(obj, (str, os.PathLike)) and os.path.isfile(obj):
            obj = io.open(obj, "rb")
            pos = None
        else:
            raise ValueError(
                "Object must be bytes, a valid file path or a readable object."
            )

        self._obj = obj
        self._pos = pos

    def __iter__(self):
        """Read underlying IO object in chunks and yield results. Return object
        to original position if we didn't open it originally.
        """
        self._obj.seek(0)

        while True:
            data = self._obj.read(CHUNK_SIZE)

            if not data:
                break

            yield data

        if self._pos is not None:
            self._obj.seek(self._pos)

    def close(self):
        """Close underlying IO object if we opened it, else return it to
        original position.
        """
        if self._pos is None:
            self._obj.close()
        else:
            self._obj.seek(self._pos)


def mount_uri(mount, relpath) -> str:
    """Build a file URI ``"<mount>://<relpath>"``."""
    return "{0}{1}{2}".format(mount, URI_SEPARATOR, relpath)


def split_uri(uri) -> Tuple[Optional[str], str]:
    """Split a file URI into ``(mount, relpath)``. Mount is ``None`` when `uri`
    carries no mount marker.
    """
    mount, sep, relpath = uri.partition(URI_SEPARATOR)
    if not sep:
        return None, uri
    return mount, relpath

"""Module for BlobStore and PathGenerator classes."""

import io
import logging
import os
import uuid
from contextlib import closing
from typing import Iterable, Optional, Union

import fs as pyfs
import fs.base
import fs.errors
import fs.path
import fs.tools
from fs.permissions import Permissions

import aliasfs.utils as u
from aliasfs.exceptions import StoreFailure
from aliasfs.records import BlobRef

logger = logging.getLogger(__name__)


class PathGenerator(object):
    """Generate fresh, sharded blob paths inside a blob store.

    Attributes:
        mount (str): Mount marker prefixed to generated URIs.
        destination_dir (str): System path of the blob store root, or ``None``
            when the backing filesystem has no system path.
        base_uri (str): Public base URL stored files are served from.
        depth (int): Number of subfolders to create when generating a path.
        width (int): Width of each subfolder name.
    """

    def __init__(self,
                 mount: str,
                 destination_dir: Optional[str] = None,
                 base_uri: str = "",
                 depth: int = 2,
                 width: int = 2):
        self.mount = mount
        self.destination_dir = destination_dir
        self.base_uri = base_uri
        self.depth = depth
        self.width = width

    def generate_uri(self, extension: Optional[str] = None) -> BlobRef:
        """Return a new :class:`BlobRef` for a random id with `extension`
        appended. Nothing is written.
        """
        paths = u.shard(uuid.uuid4().hex, self.depth, self.width)
        relpath = pyfs.path.join(*paths) + u.dotted(extension)
        return BlobRef(self.mount_uri(relpath), relpath, self.abspath(relpath))

    def mount_uri(self, relpath: str) -> str:
        return u.mount_uri(self.mount, relpath)

    def abspath(self, relpath: str) -> Optional[str]:
        if not self.destination_dir:
            return None
        return os.path.join(self.destination_dir, *relpath.split("/"))


class BlobStore(object):
    """Byte storage for file contents on any PyFilesystem2 filesystem.

    Attributes:
        root: Filesystem, directory path or filesystem URL used as root of
            storage space. Created if missing.
        mount (str, optional): Mount marker prefixed to URIs of stored files.
            Defaults to ``'local'``.
        base_uri (str, optional): Public base URL files are served from.
        depth (int, optional): Depth of subfolders to create when saving a
            file.
        width (int, optional): Width of each subfolder to create when saving a
            file.
        dmode (int, optional): Directory mode permission to set for
            subdirectories. Defaults to ``0o755`` which allows owner/group to
            read/write and everyone else to read and everyone to execute.
    """

    def __init__(self,
                 root: Union[pyfs.base.FS, str],
                 mount: str = "local",
                 base_uri: str = "",
                 depth: int = 2,
                 width: int = 2,
                 dmode: int = 0o755):
        self.fs = u.load_fs(root)
        self.mount = mount
        self.dmode = dmode
        self.path_generator = PathGenerator(
            mount,
            destination_dir=self._syspath(),
            base_uri=base_uri,
            depth=depth,
            width=width,
        )

    def create_from_bytes(self, body: bytes, extension: Optional[str] = None) -> BlobRef:
        """Store `body` at a newly generated path.

        Args:
            body: File contents.
            extension: Optional extension to append to the generated path.

        Returns:
            Location of the new blob.
        """
        return self._create(u.to_bytes(body), extension)

    def create_from_path(self, path: str, extension: Optional[str] = None) -> BlobRef:
        """Copy the local file at `path` to a newly generated path."""
        return self._create(path, extension)

    def replace(self, relpath: str, body: bytes) -> None:
        """Overwrite the contents of the existing blob at `relpath`.

        Raises:
            StoreFailure: If no blob exists at `relpath` or the write fails.
        """
        if not self.fs.isfile(relpath):
            raise StoreFailure("Could not locate blob", {"path": relpath})

        with closing(u.Stream(u.to_bytes(body))) as stream:
            self._write(relpath, stream)

        logger.debug(f"Replaced blob {relpath!r} in {self.mount!r}")

    def delete(self, relpath: str) -> None:
        """Delete the blob at `relpath`. Remove any empty directories after
        deleting. No exception is raised if the blob doesn't exist.
        """
        if not self.fs.isfile(relpath):
            return

        try:
            self.fs.remove(relpath)
        except pyfs.errors.FSError as exc:
            raise StoreFailure("Could not delete blob", {"path": relpath}) from exc

        self._remove_empty(pyfs.path.dirname(relpath))
        logger.debug(f"Deleted blob {relpath!r} from {self.mount!r}")

    def open(self, relpath: str, mode: str = "rb") -> io.IOBase:
        """Return open IOBase object for the blob at `relpath`.

        Raises:
            IOError: If file doesn't exist.
        """
        if not self.fs.isfile(relpath):
            raise IOError("Could not locate file: {0}".format(relpath))

        return self.fs.open(relpath, mode)

    def read(self, relpath: str) -> bytes:
        with closing(self.open(relpath)) as fileobj:
            return fileobj.read()

    def exists(self, relpath: str) -> bool:
        """Check whether a blob exists at `relpath`."""
        return self.fs.isfile(relpath)

    def files(self) -> Iterable[str]:
        """Return generator that yields the relative paths of all blobs."""
        for path in self.fs.walk.files():
            yield pyfs.path.relpath(path)

    def count(self) -> int:
        """Return count of the number of blobs in the backing :attr:`fs`."""
        return sum(1 for _ in self.files())

    def size(self) -> int:
        """Return the total size in bytes of all blobs."""
        return sum(info.size
                   for _, info in self.fs.walk.info(namespaces=['details'])
                   if not info.is_dir)

    def __contains__(self, relpath: str) -> bool:
        return self.exists(relpath)

    def __iter__(self) -> Iterable[str]:
        """Iterate over all blobs in the backing store."""
        return self.files()

    def __len__(self) -> int:
        return self.count()

    def _create(self, content, extension: Optional[str] = None) -> BlobRef:
        ref = self.path_generator.generate_uri(extension)

        with closing(u.Stream(content)) as stream:
            self._makedirs(pyfs.path.dirname(ref.relpath))
            self._write(ref.relpath, stream)

        logger.debug(f"Created blob {ref.uri!r}")
        return ref

    def _write(self, relpath: str, stream: u.Stream) -> None:
        try:
            with closing(self.fs.open(relpath, mode='wb')) as p:
                for data in stream:
                    p.write(data)
        except pyfs.errors.FSError as exc:
            raise StoreFailure("Could not write blob", {"path": relpath}) from exc

    def _remove_empty(self, path: str) -> None:
        """Successively remove all empty folders starting with `path` and
        proceeding "up" through directory tree until reaching the root.
        """
        if path in ("", "/"):
            return

        try:
            pyfs.tools.remove_empty(self.fs, path)
        except pyfs.errors.ResourceNotFound:
            # Guard against paths that don't exist in the FS.
            return None

    def _makedirs(self, dir_path: str) -> None:
        """Physically create the folder path."""
        if dir_path in ("", "/"):
            return

        try:
            # this is creating a directory, so we use dmode here.
            perms = Permissions.create(self.dmode)
            self.fs.makedirs(dir_path, permissions=perms, recreate=True)
        except pyfs.errors.FSError as exc:
            raise StoreFailure("Could not create folder", {"path": dir_path}) from exc

    def _syspath(self) -> Optional[str]:
        try:
            return self.fs.getsyspath("/")
        except pyfs.errors.NoSysPath:
            return None

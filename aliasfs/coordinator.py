"""Module for the FileCoordinator class.

The coordinator keeps three things consistent: the alias table, the metadata
(hash to URI) table and the bytes held by the blob stores. Content is stored
once per distinct hash; the number of aliases pointing at a URI decides whether
that content may be changed in place or deleted.
"""

import logging
from contextlib import closing
from typing import List, Optional, Tuple

import aliasfs.utils as u
from aliasfs import config
from aliasfs.blobstore import BlobStore
from aliasfs.db import Database
from aliasfs.exceptions import Misconfigured, NotFound, StoreFailure
from aliasfs.mounts import Mounts
from aliasfs.records import FileAlias, FileMetadata, FilePath
from aliasfs.stores import AliasStore, MetadataStore

logger = logging.getLogger(__name__)


class FileCoordinator(object):
    """Save, replace and delete aliased files with content de-duplication.

    Args:
        database (Database): Database shared by both stores.
        metadata_store (MetadataStore, optional): Hash to URI index. Defaults
            to one on `database`.
        alias_store (AliasStore, optional): Alias table. Defaults to one on
            `database`.
        mounts (Mounts, optional): Registry used to find the blob store a URI
            lives on.
        blob_store (BlobStore, optional): Store new content is written to.
            Required before saving or replacing; see :meth:`set_blob_store`.
        hash_algorithm (str, optional): Algorithm available in ``hashlib``
            used for content hashes. Defaults to ``'md5'``.
    """

    def __init__(self,
                 database: Database,
                 metadata_store: Optional[MetadataStore] = None,
                 alias_store: Optional[AliasStore] = None,
                 mounts: Optional[Mounts] = None,
                 blob_store: Optional[BlobStore] = None,
                 hash_algorithm: str = "md5"):
        self.database = database
        self.metadata_store = metadata_store or MetadataStore(database)
        self.alias_store = alias_store or AliasStore(database)
        self.mounts = mounts if mounts is not None else Mounts()
        self.hash_algorithm = hash_algorithm
        self.blob_store = None

        if blob_store is not None:
            self.set_blob_store(blob_store)

    @classmethod
    def from_settings(cls, settings: Optional[config.Settings] = None):
        """Wire a coordinator, its database and its blob store from
        `settings`. Creates the tables if they don't exist.
        """
        settings = settings or config.settings

        database = Database(settings.database_url, echo=settings.database_echo)
        database.create_all()

        blob_store = BlobStore(
            settings.storage_root,
            mount=settings.storage_mount,
            base_uri=settings.storage_base_uri,
            depth=settings.storage_depth,
            width=settings.storage_width,
            dmode=settings.storage_dmode,
        )

        return cls(database,
                   blob_store=blob_store,
                   hash_algorithm=settings.hash_algorithm)

    def set_blob_store(self, blob_store: BlobStore):
        """Set the store new content is written to and register it under its
        mount.
        """
        self.blob_store = self.mounts.register(blob_store)
        return self

    def save_from_bytes(self,
                        body: bytes,
                        original_name: Optional[str] = None,
                        access: Optional[str] = None,
                        expire=None,
                        alias: Optional[str] = None) -> FileAlias:
        """Store `body` under an alias, reusing stored content with the same
        hash.

        Args:
            body: File contents.
            original_name: File name given by the uploader. Its extension is
                used for new blobs and generated aliases.
            access: Access policy stored with the alias.
            expire: Expiry stored with the alias as text (see
                :func:`aliasfs.utils.expire_value`). Falsy values become ``None``.
            alias: Alias key. Generated from `original_name` when omitted.

        Returns:
            The persisted alias.

        Raises:
            Misconfigured: If no blob store is set.
            StoreFailure: If a row insert or blob write fails.
        """
        blob_store = self._require_blob_store("save_from_bytes")
        body = u.to_bytes(body)

        file_alias = self.alias_store.new_record()._replace(
            alias=alias or self.generate_alias(original_name),
            original_name=original_name,
            access=access,
            expire=u.expire_value(expire),
        )

        return self._save(
            file_alias,
            self._hash(body),
            lambda extension: blob_store.create_from_bytes(body, extension),
        )

    def save_from_path(self, file_alias: FileAlias, path: str) -> FilePath:
        """Store the local file at `path` under `file_alias`, reusing stored
        content with the same hash.

        Raises:
            Misconfigured: If no blob store is set.
            StoreFailure: If a row insert or blob write fails.
        """
        blob_store = self._require_blob_store("save_from_path")
        file_alias = file_alias._replace(expire=u.expire_value(file_alias.expire))

        file_alias = self._save(
            file_alias,
            self._hash(path),
            lambda extension: blob_store.create_from_path(path, extension),
        )

        return self.create_file_path(file_alias)

    def save_unique_file(self, metadata: FileMetadata, file_alias: FileAlias) -> None:
        """Insert a new metadata row and its first alias row as one unit.
        Either both rows are committed or neither is; errors are re-raised.
        """
        with self.database.transaction():
            self.metadata_store.insert(metadata)
            self.alias_store.insert(file_alias)

    def replace(self,
                file_alias: FileAlias,
                body: bytes,
                original_name: Optional[str] = None,
                access: Optional[str] = None,
                expire=None) -> FilePath:
        """Replace the content of `file_alias` with `body`.

        The alias's original name, access and expire are always overwritten.
        If `body` matches stored content, the alias is pointed at it. Otherwise
        content referenced only by this alias is overwritten in place, while
        content shared with other aliases is left untouched and the alias moves
        to a new blob.

        Returns:
            Location of the alias's content after the replace.

        Raises:
            Misconfigured: If no blob store is set.
            NotFound: If the alias doesn't reference tracked content.
            StoreFailure: If a row update or blob write fails.
        """
        blob_store = self._require_blob_store("replace")
        body = u.to_bytes(body)
        digest = self._hash(body)
        previous_uri = file_alias.file_uri

        file_alias = file_alias._replace(
            original_name=original_name,
            access=access,
            expire=u.expire_value(expire),
        )
        orphans = []

        with self.database.transaction():
            existing = self.metadata_store.find_by_hash(digest)

            if existing is not None:
                logger.debug(f"Redirecting alias {file_alias.alias!r} to {existing.file_uri!r}")
                file_alias = file_alias._replace(file_uri=existing.file_uri)
                self._update_alias(file_alias)

                if previous_uri and previous_uri != existing.file_uri:
                    orphans = self._collect_unreferenced(previous_uri)
            else:
                sharing = self._sharing_aliases(file_alias, previous_uri)

                if len(sharing) == 1:
                    blob_owner = self.mounts.resolve(previous_uri)

                    # Row first: a hash clash aborts before any bytes change.
                    self.metadata_store.update_by_uri(
                        self.metadata_store.new_record()._replace(md5_hash=digest),
                        previous_uri,
                    )
                    blob_owner.replace(self.mounts.unmount(previous_uri), body)
                    self._update_alias(file_alias)
                    logger.info(f"Replaced content of {previous_uri!r} in place")
                else:
                    ref = blob_store.create_from_bytes(
                        body, u.fileext(file_alias.original_name)
                    )
                    metadata = self.metadata_store.new_record()._replace(
                        md5_hash=digest, file_uri=ref.uri
                    )
                    file_alias = file_alias._replace(file_uri=ref.uri)

                    self.metadata_store.insert(metadata)
                    self._update_alias(file_alias)
                    logger.info(
                        f"Moved alias {file_alias.alias!r} off shared content "
                        f"{previous_uri!r} to {ref.uri!r}"
                    )

        self._delete_blobs(orphans)

        return self.create_file_path(file_alias)

    def delete(self, alias: str) -> None:
        """Delete `alias`. The stored content and its metadata are deleted
        too when no other alias references them.

        Raises:
            NotFound: If the alias doesn't exist or references untracked
                content. Nothing is changed.
            StoreFailure: If a row delete or blob delete fails.
        """
        orphans = []

        with self.database.transaction():
            file_alias = self.alias_store.find_by_alias(alias)
            if file_alias is None:
                raise NotFound("Resource not exists", {"alias": alias})

            sharing = self.alias_store.find_all_by_uri(file_alias.file_uri, lock=True)
            if not sharing:
                raise NotFound(
                    "Resource not exists",
                    {"alias": alias, "file_uri": file_alias.file_uri},
                )

            if len(sharing) == 1:
                blob_owner = self.mounts.resolve(file_alias.file_uri)
                self.alias_store.delete_by_alias(file_alias.alias)
                self.metadata_store.delete_by_uri(file_alias.file_uri)
                orphans = [(blob_owner, self.mounts.unmount(file_alias.file_uri))]
            else:
                self.alias_store.delete_by_alias(file_alias.alias)

        logger.info(f"Deleted alias {alias!r}")
        self._delete_blobs(orphans)

    def find(self, alias: str) -> FileAlias:
        """Return the alias record for `alias`.

        Raises:
            NotFound: If the alias doesn't exist.
        """
        file_alias = self.alias_store.find_by_alias(alias)
        if file_alias is None:
            raise NotFound("Resource not exists", {"alias": alias})
        return file_alias

    def resolve(self, alias: str) -> FilePath:
        """Return where the content of `alias` is served from."""
        return self.create_file_path(self.find(alias))

    def open(self, alias: str, mode: str = "rb"):
        """Return an open file object for the content of `alias`."""
        file_alias = self.find(alias)
        blob_owner = self.mounts.resolve(file_alias.file_uri)
        return blob_owner.open(self.mounts.unmount(file_alias.file_uri), mode)

    def generate_alias(self, original_name: Optional[str]) -> str:
        """Return a fresh alias built by the blob store's path generator from
        the extension of `original_name`.

        The alias is the generated relpath (e.g. ``3f/a2/3fa2....png``). It
        carries no mount prefix and is not a file URI; the URI of the content
        is assigned separately when a blob is written.
        """
        blob_store = self._require_blob_store("generate_alias")
        return blob_store.path_generator.generate_uri(u.fileext(original_name)).relpath

    def create_file_path(self, file_alias: FileAlias) -> FilePath:
        """Derive the :class:`FilePath` of the content `file_alias` references."""
        generator = self.mounts.resolve(file_alias.file_uri).path_generator
        return FilePath(
            self.mounts.unmount(file_alias.file_uri),
            generator.destination_dir,
            generator.base_uri,
        )

    def _save(self, file_alias: FileAlias, digest: str, create_blob) -> FileAlias:
        with self.database.transaction():
            existing = self.metadata_store.find_by_hash(digest)

            if existing is not None:
                logger.debug(f"Content {digest} already stored at {existing.file_uri!r}")
                file_alias = file_alias._replace(file_uri=existing.file_uri)
                self.alias_store.insert(file_alias)
                return file_alias

            # Blob first so a failed write leaves no rows behind.
            ref = create_blob(u.fileext(file_alias.original_name))
            metadata = self.metadata_store.new_record()._replace(
                md5_hash=digest, file_uri=ref.uri
            )
            file_alias = file_alias._replace(file_uri=ref.uri)

            self.save_unique_file(metadata, file_alias)

        logger.info(f"Stored new content {digest} at {ref.uri!r} as {file_alias.alias!r}")
        return file_alias

    def _sharing_aliases(self, file_alias: FileAlias, uri: Optional[str]) -> List[FileAlias]:
        sharing = self.alias_store.find_all_by_uri(uri, lock=True) if uri else []

        if not sharing:
            raise NotFound(
                "Resource not exists", {"alias": file_alias.alias, "file_uri": uri}
            )

        if file_alias.alias not in {other.alias for other in sharing}:
            raise NotFound(
                "Alias does not reference file",
                {"alias": file_alias.alias, "file_uri": uri},
            )

        return sharing

    def _update_alias(self, file_alias: FileAlias) -> None:
        if not self.alias_store.update_by_alias(file_alias, file_alias.alias):
            raise NotFound("Resource not exists", {"alias": file_alias.alias})

    def _collect_unreferenced(self, uri: str) -> List[Tuple[BlobStore, str]]:
        """Delete the metadata row of `uri` if no alias references it anymore
        and return its blob for deletion once the transaction commits.
        """
        if self.alias_store.find_all_by_uri(uri, lock=True):
            return []

        if not self.metadata_store.delete_by_uri(uri):
            return []

        logger.info(f"Collected unreferenced content at {uri!r}")
        return [(self.mounts.resolve(uri), self.mounts.unmount(uri))]

    def _delete_blobs(self, blobs: List[Tuple[BlobStore, str]]) -> None:
        for blob_owner, relpath in blobs:
            try:
                blob_owner.delete(relpath)
            except StoreFailure:
                logger.warning(f"Blob {relpath!r} in {blob_owner.mount!r} left orphaned")
                raise

    def _require_blob_store(self, operation: str) -> BlobStore:
        if self.blob_store is None:
            raise Misconfigured(
                "File storage adapter must be specified", {"operation": operation}
            )
        return self.blob_store

    def _hash(self, content) -> str:
        with closing(u.Stream(content)) as stream:
            return u.computehash(stream, self.hash_algorithm)

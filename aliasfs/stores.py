"""Metadata and alias stores backed by SQLAlchemy.

Each call joins the transaction open on the current thread (see
:meth:`aliasfs.db.Database.transaction`) or runs in its own short one.
"""

from typing import List, Optional

from sqlalchemy import delete, func, select, update

from aliasfs.db import Database
from aliasfs.models import FileAliasRow, FileMetadataRow
from aliasfs.records import FileAlias, FileMetadata


class MetadataStore(object):
    """Hash to file URI de-duplication index."""

    def __init__(self, database: Database):
        self.database = database

    def new_record(self) -> FileMetadata:
        return FileMetadata()

    def find_by_hash(self, md5_hash: str) -> Optional[FileMetadata]:
        """Return the metadata for content hash `md5_hash` or ``None``."""
        with self.database.transaction() as session:
            row = session.scalars(
                select(FileMetadataRow).where(FileMetadataRow.md5_hash == md5_hash)
            ).first()
            return row.to_record() if row is not None else None

    def find_by_uri(self, uri: str) -> Optional[FileMetadata]:
        with self.database.transaction() as session:
            row = session.scalars(
                select(FileMetadataRow).where(FileMetadataRow.file_uri == uri)
            ).first()
            return row.to_record() if row is not None else None

    def insert(self, metadata: FileMetadata) -> FileMetadata:
        with self.database.transaction() as session:
            session.add(
                FileMetadataRow(md5_hash=metadata.md5_hash, file_uri=metadata.file_uri)
            )
            session.flush()
        return metadata

    def update_by_uri(self, metadata: FileMetadata, uri: str) -> int:
        """Set the hash of the row stored at `uri` to ``metadata.md5_hash``.
        The URI itself is left unchanged. Return the number of rows updated.
        """
        with self.database.transaction() as session:
            result = session.execute(
                update(FileMetadataRow)
                .where(FileMetadataRow.file_uri == uri)
                .values(md5_hash=metadata.md5_hash)
            )
            return result.rowcount

    def delete_by_uri(self, uri: str) -> int:
        with self.database.transaction() as session:
            result = session.execute(
                delete(FileMetadataRow).where(FileMetadataRow.file_uri == uri)
            )
            return result.rowcount

    def count(self) -> int:
        with self.database.transaction() as session:
            return session.scalar(select(func.count()).select_from(FileMetadataRow))


class AliasStore(object):
    """Alias to file URI table. The number of aliases sharing a URI is the
    reference count of the content stored there.
    """

    def __init__(self, database: Database):
        self.database = database

    def new_record(self) -> FileAlias:
        return FileAlias()

    def find_by_alias(self, alias: str) -> Optional[FileAlias]:
        """Return the alias record for key `alias` or ``None``."""
        with self.database.transaction() as session:
            row = session.scalars(
                select(FileAliasRow).where(FileAliasRow.alias == alias)
            ).first()
            return row.to_record() if row is not None else None

    def find_all_by_uri(self, uri: str, lock: bool = False) -> List[FileAlias]:
        """Return all aliases referencing `uri`.

        Args:
            uri (str): Mounted file URI.
            lock (bool, optional): Read the rows with ``SELECT ... FOR UPDATE``
                so the count stays valid until the enclosing transaction ends.
                Dialects without row locks ignore it. Defaults to ``False``.
        """
        stmt = (
            select(FileAliasRow)
            .where(FileAliasRow.file_uri == uri)
            .order_by(FileAliasRow.id)
        )
        if lock:
            stmt = stmt.with_for_update()

        with self.database.transaction() as session:
            return [row.to_record() for row in session.scalars(stmt)]

    def insert(self, alias: FileAlias) -> FileAlias:
        with self.database.transaction() as session:
            session.add(FileAliasRow(**alias._asdict()))
            session.flush()
        return alias

    def update_by_alias(self, alias: FileAlias, key: str) -> int:
        """Overwrite the row stored under `key` with the fields of `alias`.
        Return the number of rows updated.
        """
        with self.database.transaction() as session:
            result = session.execute(
                update(FileAliasRow)
                .where(FileAliasRow.alias == key)
                .values(**alias._asdict())
            )
            return result.rowcount

    def delete_by_alias(self, key: str) -> int:
        with self.database.transaction() as session:
            result = session.execute(
                delete(FileAliasRow).where(FileAliasRow.alias == key)
            )
            return result.rowcount

    def count(self) -> int:
        with self.database.transaction() as session:
            return session.scalar(select(func.count()).select_from(FileAliasRow))

"""Database tables for file metadata and file aliases."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from sqlalchemy import DateTime, ForeignKey, Integer, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from aliasfs.records import FileAlias, FileMetadata


class Base(DeclarativeBase):
    pass


class FileMetadataRow(Base):
    """One row per distinct content hash.

    ``md5_hash`` is the de-duplication key. Its unique constraint is what keeps
    racing uploads of the same bytes from producing two rows.
    """

    __tablename__ = "file_metadata"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    md5_hash: Mapped[str] = mapped_column(String(128), unique=True, index=True)
    file_uri: Mapped[str] = mapped_column(String(1024), unique=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def to_record(self) -> FileMetadata:
        return FileMetadata(md5_hash=self.md5_hash, file_uri=self.file_uri)


class FileAliasRow(Base):
    """One row per alias. Several rows may share a ``file_uri``."""

    __tablename__ = "file_alias"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    alias: Mapped[str] = mapped_column(String(1024), unique=True, index=True)
    file_uri: Mapped[str] = mapped_column(
        String(1024), ForeignKey("file_metadata.file_uri"), index=True
    )
    original_name: Mapped[Optional[str]] = mapped_column(String(1024))
    access: Mapped[Optional[str]] = mapped_column(String(64))
    expire: Mapped[Optional[str]] = mapped_column(String(64))
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def to_record(self) -> FileAlias:
        return FileAlias(
            alias=self.alias,
            file_uri=self.file_uri,
            original_name=self.original_name,
            access=self.access,
            expire=self.expire,
        )

# -*- coding: utf-8 -*-

import pytest

from aliasfs import FileAlias, FileMetadata, StoreFailure


@pytest.fixture
def metadata(metadata_store):
    return metadata_store.insert(FileMetadata("hash-a", "local://ab/a.txt"))


@pytest.fixture
def alias(alias_store, metadata):
    return alias_store.insert(
        FileAlias(
            alias="report",
            file_uri=metadata.file_uri,
            original_name="report.txt",
            access="private",
            expire="2030-01-01T12:00:00",
        )
    )


def test_metadata_store_new_record(metadata_store):
    assert metadata_store.new_record() == FileMetadata(None, None)


def test_metadata_store_find_by_hash(metadata_store, metadata):
    assert metadata_store.find_by_hash("hash-a") == metadata
    assert metadata_store.find_by_hash("invalid") is None


def test_metadata_store_find_by_uri(metadata_store, metadata):
    assert metadata_store.find_by_uri(metadata.file_uri) == metadata
    assert metadata_store.find_by_uri("local://invalid") is None


def test_metadata_store_unique_hash(metadata_store, metadata):
    with pytest.raises(StoreFailure) as excinfo:
        metadata_store.insert(FileMetadata("hash-a", "local://cd/other.txt"))

    assert excinfo.value.__cause__ is not None
    assert metadata_store.count() == 1


def test_metadata_store_update_by_uri(metadata_store, metadata):
    updated = metadata_store.update_by_uri(
        metadata_store.new_record()._replace(md5_hash="hash-b"), metadata.file_uri
    )

    assert updated == 1
    assert metadata_store.find_by_hash("hash-a") is None
    assert metadata_store.find_by_hash("hash-b").file_uri == metadata.file_uri


def test_metadata_store_delete_by_uri(metadata_store, metadata):
    assert metadata_store.delete_by_uri(metadata.file_uri) == 1
    assert metadata_store.delete_by_uri(metadata.file_uri) == 0
    assert metadata_store.count() == 0


def test_alias_store_new_record(alias_store):
    assert alias_store.new_record() == FileAlias(None, None, None, None, None)


def test_alias_store_find_by_alias(alias_store, alias):
    found = alias_store.find_by_alias("report")

    assert found == alias
    assert found.expire == "2030-01-01T12:00:00"
    assert alias_store.find_by_alias("invalid") is None


@pytest.mark.parametrize("lock", [False, True])
def test_alias_store_find_all_by_uri(alias_store, alias, lock):
    other = alias_store.insert(alias._replace(alias="copy"))

    assert alias_store.find_all_by_uri(alias.file_uri, lock=lock) == [alias, other]
    assert alias_store.find_all_by_uri("local://invalid", lock=lock) == []


def test_alias_store_unique_alias(alias_store, alias):
    with pytest.raises(StoreFailure):
        alias_store.insert(alias)

    assert alias_store.count() == 1


def test_alias_store_update_by_alias(alias_store, alias):
    changed = alias._replace(original_name="final.txt", access=None, expire=None)

    assert alias_store.update_by_alias(changed, "report") == 1
    assert alias_store.find_by_alias("report") == changed
    assert alias_store.update_by_alias(changed._replace(alias="invalid"), "invalid") == 0


def test_alias_store_delete_by_alias(alias_store, alias):
    assert alias_store.delete_by_alias("report") == 1
    assert alias_store.find_by_alias("report") is None
    assert alias_store.delete_by_alias("report") == 0


def test_transaction_rolls_back_all_stores(database, metadata_store, alias_store):
    with pytest.raises(StoreFailure):
        with database.transaction():
            metadata_store.insert(FileMetadata("hash-x", "local://x.txt"))
            alias_store.insert(FileAlias("x", "local://x.txt"))
            alias_store.insert(FileAlias("x", "local://x.txt"))

    assert metadata_store.count() == 0
    assert alias_store.count() == 0
    assert not database.in_transaction


def test_transaction_reraises_other_errors(database, metadata_store):
    with pytest.raises(RuntimeError):
        with database.transaction():
            metadata_store.insert(FileMetadata("hash-x", "local://x.txt"))
            raise RuntimeError("boom")

    assert metadata_store.count() == 0


def test_transaction_nested_joins_outer(database, metadata_store):
    with database.transaction() as outer:
        with database.transaction() as inner:
            assert inner is outer
            assert database.in_transaction

    assert not database.in_transaction

# -*- coding: utf-8 -*-
"""Shared pytest fixtures for aliasfs tests."""

import pytest

from aliasfs import BlobStore, Database, FileCoordinator


BASE_URI = "https://files.example.com/"


@pytest.fixture
def database(tmpdir):
    db = Database("sqlite:///{0}".format(tmpdir.join("aliasfs.db")))
    db.create_all()

    yield db

    db.dispose()


@pytest.fixture
def testpath(tmpdir):
    return tmpdir.mkdir("blobs")


@pytest.fixture
def blob_store(testpath):
    return BlobStore(str(testpath), base_uri=BASE_URI)


@pytest.fixture
def coordinator(database, blob_store):
    return FileCoordinator(database, blob_store=blob_store)


@pytest.fixture
def metadata_store(coordinator):
    return coordinator.metadata_store


@pytest.fixture
def alias_store(coordinator):
    return coordinator.alias_store

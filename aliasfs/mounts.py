"""Resolve mounted file URIs to the blob store holding them.

A file URI is ``"<mount>://<relpath>"``: the mount names a registered
:class:`aliasfs.blobstore.BlobStore`, the relpath is the blob's path inside it.
"""

from typing import Dict

import aliasfs.utils as u
from aliasfs.blobstore import BlobStore
from aliasfs.exceptions import Misconfigured


class Mounts(object):
    """Registry of blob stores keyed by mount marker."""

    def __init__(self, *blob_stores: BlobStore):
        self._stores: Dict[str, BlobStore] = {}
        for blob_store in blob_stores:
            self.register(blob_store)

    def register(self, blob_store: BlobStore) -> BlobStore:
        self._stores[blob_store.mount] = blob_store
        return blob_store

    def resolve(self, uri: str) -> BlobStore:
        """Return the blob store that `uri` is mounted on.

        Raises:
            Misconfigured: If `uri` has no mount or its mount isn't registered.
        """
        mount, _ = u.split_uri(uri)
        try:
            return self._stores[mount]
        except KeyError:
            raise Misconfigured(
                "No blob store registered for mount", {"mount": mount, "uri": uri}
            ) from None

    def unmount(self, uri: str) -> str:
        """Strip the mount prefix from `uri`."""
        return u.split_uri(uri)[1]

    def __contains__(self, mount: str) -> bool:
        return mount in self._stores

    def __len__(self) -> int:
        return len(self._stores)

# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any, BinaryIO, Dict, TYPE_CHECKING
import os
import uuid
import shutil

import structlog

from ... import encoding, graph, tracking
from ..._cancel import Cancellable
from .._archive import write_archive_to_manifest
from .._commit import Commit
from .._dirmeta import DirMeta
from .._errors import TransactionError
from ._database import FSDatabase
from ._payloads import FSPayloadStorage, makedirs_with_perms
from ._refs import repository_lock, validate_ref_name

if TYPE_CHECKING:
    from ._repository import FSRepository

_LOGGER = structlog.get_logger("dlayer.storage.fs")


class FSTransaction:
    """Stages writes in a private directory of the repository.

    Staged payloads and objects are moved into the repository
    on commit, and then the pending refs are written, all while
    holding the repository lock.
    """

    def __init__(self, repo: "FSRepository") -> None:

        self._repo = repo
        self._root = os.path.join(repo.root, "tmp", "txn-" + uuid.uuid4().hex)
        makedirs_with_perms(os.path.dirname(self._root))
        os.mkdir(self._root, mode=0o700)
        self.payloads = FSPayloadStorage(os.path.join(self._root, "payloads"))
        self.objects = FSDatabase(os.path.join(self._root, "objects"))
        self._refs: Dict[str, encoding.Digest] = {}
        self._active = True

    def is_active(self) -> bool:
        return self._active

    def write_archive(
        self, reader: BinaryIO, cancellable: Cancellable = None
    ) -> tracking.Manifest:

        self._ensure_active()
        return write_archive_to_manifest(
            reader, self.payloads, self.objects, cancellable=cancellable
        )

    def write_dirmeta(self, meta: DirMeta) -> encoding.Digest:

        self._ensure_active()
        self.objects.write_object(meta)
        return meta.digest()

    def write_manifest(self, manifest: tracking.Manifest) -> encoding.Digest:
        """Store the given tree.

        Raises:
            graph.UnknownObjectError: if the tree references a payload
                or directory metadata that is not stored
        """

        self._ensure_active()
        for _, entry in manifest.walk():
            if entry.kind is tracking.EntryKind.BLOB:
                self._ensure_payload(entry.object)
        for digest in manifest.child_objects():
            self._ensure_object(digest)
        self.objects.write_object(manifest)
        return manifest.digest()

    def write_commit(
        self,
        manifest: encoding.Digest,
        metadata: Dict[str, Any],
        subject: str = "",
    ) -> encoding.Digest:
        """Create a commit of a stored tree.

        Raises:
            graph.UnknownObjectError: if the tree is not stored
        """

        self._ensure_active()
        self._ensure_object(manifest)
        commit = Commit(manifest, metadata=metadata, subject=subject)
        self.objects.write_object(commit)
        return commit.digest()

    def set_ref(self, ref: str, revision: encoding.Digest) -> None:

        self._ensure_active()
        validate_ref_name(ref)
        self._refs[ref] = revision

    def commit(self) -> None:

        self._ensure_active()
        try:
            with repository_lock(self._repo.root):
                payload_count = self.payloads.move_to(self._repo.payloads)
                object_count = self.objects.move_to(self._repo.objects)
                for ref, revision in self._refs.items():
                    self._repo.refs.write_ref(ref, revision)
        except Exception as e:
            raise TransactionError(f"Failed to commit transaction: {e}") from e
        finally:
            self._cleanup()
        _LOGGER.debug(
            "transaction committed",
            payloads=payload_count,
            objects=object_count,
            refs=list(self._refs),
        )

    def abort(self) -> None:

        if not self._active:
            return
        self._cleanup()
        _LOGGER.debug("transaction aborted", root=self._root)

    def _cleanup(self) -> None:

        self._active = False
        shutil.rmtree(self._root, ignore_errors=True)

    def _ensure_active(self) -> None:

        if not self._active:
            raise TransactionError("Transaction is no longer active")

    def _ensure_payload(self, digest: encoding.Digest) -> None:

        for payloads in (self.payloads, self._repo.payloads):
            if payloads.has_digest(digest):
                return
        raise graph.UnknownObjectError(digest)

    def _ensure_object(self, digest: encoding.Digest) -> None:

        for database in (self.objects, self._repo.objects):
            if database.has_digest(digest):
                return
        raise graph.UnknownObjectError(digest)


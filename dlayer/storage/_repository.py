# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any, BinaryIO, ContextManager, Dict, Iterable, Tuple
from typing_extensions import Protocol, runtime_checkable

from .. import encoding, tracking
from .._cancel import Cancellable
from ._commit import Commit
from ._dirmeta import DirMeta
from ._options import CheckoutOptions


@runtime_checkable
class Transaction(Protocol):
    """A set of writes that become visible together, or not at all.

    Nothing written through a transaction can be seen by readers of
    the repository until commit() succeeds, and refs are only ever
    updated during a successful commit.
    """

    def write_archive(
        self, reader: BinaryIO, cancellable: Cancellable = None
    ) -> tracking.Manifest:
        """Ingest the given tar stream, returning the resulting tree."""
        ...

    def write_dirmeta(self, meta: DirMeta) -> encoding.Digest:
        """Store a set of directory attributes, returning their digest."""
        ...

    def write_manifest(self, manifest: tracking.Manifest) -> encoding.Digest:
        """Store the given tree, returning its digest."""
        ...

    def write_commit(
        self,
        manifest: encoding.Digest,
        metadata: Dict[str, Any],
        subject: str = "",
    ) -> encoding.Digest:
        """Create a new commit for a stored tree, returning the revision."""
        ...

    def set_ref(self, ref: str, revision: encoding.Digest) -> None:
        """Point the named ref at the given revision once committed."""
        ...

    def commit(self) -> None:
        """Publish all writes and ref updates of this transaction.

        Raises:
            TransactionError: if the transaction is no longer active
        """
        ...

    def abort(self) -> None:
        """Discard all writes and ref updates of this transaction."""
        ...


@runtime_checkable
class ObjectStore(Protocol):
    """The content addressable storage that layers are imported into."""

    def address(self) -> str:
        """Return the address of this repository."""
        ...

    def transaction(self) -> ContextManager[Transaction]:
        """Begin a new transaction.

        The transaction is committed when the context exits normally,
        and aborted if it exits with an error.
        """
        ...

    def resolve_ref(self, ref: str) -> encoding.Digest:
        """Return the revision that the named ref points to.

        Raises:
            graph.UnknownReferenceError: if the ref does not exist
        """
        ...

    def has_ref(self, ref: str) -> bool:
        """Return true if the named ref exists."""
        ...

    def iter_refs(self, prefix: str = "") -> Iterable[Tuple[str, encoding.Digest]]:
        """Iterate the refs whose name starts with the given prefix."""
        ...

    def read_commit(self, revision: encoding.Digest) -> Commit:
        """Read a commit object.

        Raises:
            graph.UnknownObjectError: if the commit does not exist
        """
        ...

    def load_commit_metadata(self, revision: encoding.Digest) -> Dict[str, Any]:
        """Return the metadata mapping attached to a commit.

        Raises:
            graph.UnknownObjectError: if the commit does not exist
        """
        ...

    def read_manifest(self, digest: encoding.Digest) -> tracking.Manifest:
        """Read a stored tree.

        Raises:
            graph.UnknownObjectError: if the tree does not exist
        """
        ...

    def checkout_tree(
        self,
        options: CheckoutOptions,
        destination: str,
        revision: encoding.Digest,
        dir_fd: int = None,
    ) -> None:
        """Write the tree of a commit into the destination directory.

        The destination is relative to dir_fd when one is given,
        and is created if it does not exist.
        """
        ...

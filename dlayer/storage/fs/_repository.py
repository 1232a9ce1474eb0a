# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any, Dict, Iterator, Optional, Tuple
import os
import contextlib

import semver

import dlayer

from ... import encoding, tracking
from .._commit import Commit
from .._options import CheckoutOptions
from .._registry import register_scheme
from ._checkout import checkout_manifest
from ._database import FSDatabase
from ._payloads import FSPayloadStorage, makedirs_with_perms
from ._refs import RefStorage
from ._transaction import FSTransaction


class MigrationRequiredError(RuntimeError):
    """Denotes a repository that must be upgraded before use with this dlayer version."""

    def __init__(self, current_version: str, required_version: str) -> None:
        super(MigrationRequiredError, self).__init__(
            "Repository is not compatible with this version"
            f" of dlayer [{current_version} < {required_version}]"
        )


class FSRepository:
    """A pure filesystem-based repository of layer data."""

    def __init__(self, root: str, create: bool = False):

        if root.startswith("file:///"):
            root = root[len("file://") :]
        elif root.startswith("file:"):
            root = root[len("file:") :]

        self.__root = os.path.abspath(root)

        if not os.path.exists(self.__root) and not create:
            raise ValueError("Directory does not exist: " + self.__root)
        makedirs_with_perms(self.__root)

        if len(os.listdir(self.__root)) == 0:
            set_last_migration(self.__root, dlayer.__version__)

        self.objects = FSDatabase(os.path.join(self.__root, "objects"))
        self.payloads = FSPayloadStorage(os.path.join(self.__root, "payloads"))
        self.refs = RefStorage(os.path.join(self.__root, "refs"))

        self.minimum_compatible_version = "0.1.0"
        last_migration = self.last_migration()
        if last_migration is None:
            raise ValueError("Not a dlayer repository: " + self.__root)
        repo_version = semver.VersionInfo.parse(last_migration)
        if repo_version.compare(dlayer.__version__) > 0:
            raise RuntimeError(
                f"Repository requires a newer version of dlayer [{repo_version}]: {self.address()}"
            )
        if repo_version.compare(self.minimum_compatible_version) < 0:
            raise MigrationRequiredError(
                str(repo_version), self.minimum_compatible_version
            )

    @property
    def root(self) -> str:
        return self.__root

    def address(self) -> str:
        return f"file://{self.root}"

    def last_migration(self) -> Optional[str]:

        return read_last_migration_version(self.__root)

    @contextlib.contextmanager
    def transaction(self) -> Iterator[FSTransaction]:

        txn = FSTransaction(self)
        try:
            yield txn
        except BaseException:
            txn.abort()
            raise
        if txn.is_active():
            txn.commit()

    def resolve_ref(self, ref: str) -> encoding.Digest:

        return self.refs.resolve_ref(ref)

    def has_ref(self, ref: str) -> bool:

        return self.refs.has_ref(ref)

    def iter_refs(self, prefix: str = "") -> Iterator[Tuple[str, encoding.Digest]]:

        return self.refs.iter_refs(prefix)

    def remove_ref(self, ref: str) -> None:

        self.refs.remove_ref(ref)

    def read_commit(self, revision: encoding.Digest) -> Commit:

        obj = self.objects.read_object(revision)
        if not isinstance(obj, Commit):
            raise ValueError(f"Object is not a commit: {revision}")
        return obj

    def read_manifest(self, digest: encoding.Digest) -> tracking.Manifest:

        obj = self.objects.read_object(digest)
        if not isinstance(obj, tracking.Manifest):
            raise ValueError(f"Object is not a manifest: {digest}")
        return obj

    def load_commit_metadata(self, revision: encoding.Digest) -> Dict[str, Any]:

        return self.read_commit(revision).metadata

    def checkout_tree(
        self,
        options: CheckoutOptions,
        destination: str,
        revision: encoding.Digest,
        dir_fd: int = None,
    ) -> None:

        commit = self.read_commit(revision)
        manifest = self.read_manifest(commit.manifest)
        checkout_manifest(manifest, self.payloads, options, destination, dir_fd)


def read_last_migration_version(root: str) -> Optional[str]:
    """Read the last marked migration version for a repository root path.

    Returns:
        the version string, or None if the root is not versioned
    """

    version_file = os.path.join(root, "VERSION")
    try:
        with open(version_file, "r") as f:
            return f.read().strip()
    except FileNotFoundError:
        return None


def set_last_migration(root: str, version: str = None) -> None:
    """Set the last migration version of the repo with the given root directory."""

    if version is None:
        version = dlayer.__version__
    version_file = os.path.join(root, "VERSION")
    with open(version_file, "w+") as f:
        f.write(version)
    try:
        os.chmod(version_file, 0o666)
    except PermissionError:
        pass


register_scheme("file", FSRepository)
register_scheme("", FSRepository)

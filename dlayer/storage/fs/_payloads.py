# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Iterator, BinaryIO
import os
import uuid

import sentry_sdk
import structlog

from ... import graph, encoding
from .._payload import PayloadStorage

_logger = structlog.get_logger("dlayer.storage.fs")
_CHUNK_SIZE = 1024 * 64


class FSPayloadStorage(PayloadStorage):
    """Stores payloads as read-only files named by their digest."""

    def __init__(self, root: str) -> None:

        self.__root = os.path.abspath(root)
        self.directory_permissions = 0o777
        self.file_permissions = 0o444

    @property
    def root(self) -> str:
        """Return the root directory of this storage."""
        return self.__root

    def iter_digests(self) -> Iterator[encoding.Digest]:

        try:
            dirs = os.listdir(self.__root)
        except FileNotFoundError:
            dirs = []

        for dirname in sorted(dirs):
            dirpath = os.path.join(self.__root, dirname)
            if len(dirname) != 2 or not os.path.isdir(dirpath):
                continue
            for entry in sorted(os.listdir(dirpath)):
                yield encoding.parse_digest(dirname + entry)

    def write_payload(self, reader: BinaryIO) -> encoding.Digest:

        working_file = os.path.join(self.root, uuid.uuid4().hex)

        hasher = encoding.Hasher()
        self._ensure_base_dir(working_file)
        with open(working_file, "wb+") as writer:
            while True:
                chunk = reader.read(_CHUNK_SIZE)
                if not chunk:
                    break
                hasher.update(chunk)
                writer.write(chunk)
        digest = hasher.digest()

        path = self._build_digest_path(digest)
        self._ensure_base_dir(path)
        if os.path.exists(path):
            os.remove(working_file)
            return digest
        try:
            os.rename(working_file, path)
        except Exception:
            os.remove(working_file)
            raise
        try:
            os.chmod(path, self.file_permissions)
        except Exception as e:
            # not a good enough reason to fail entirely
            sentry_sdk.capture_exception(e)
            _logger.warning(f"Failed to set payload permissions: {e}")

        return digest

    def open_payload(self, digest: encoding.Digest) -> BinaryIO:

        path = self._build_digest_path(digest)
        try:
            return open(path, "rb")
        except FileNotFoundError:
            raise graph.UnknownObjectError(digest)

    def has_digest(self, digest: encoding.Digest) -> bool:
        """Return true if data is stored under the given digest."""

        return os.path.exists(self._build_digest_path(digest))

    def move_to(self, other: "FSPayloadStorage") -> int:
        """Move every payload in this storage into another one.

        Payloads that already exist in the other storage are discarded.

        Returns:
            int: the number of payloads that were newly added to other
        """

        count = 0
        for digest in list(self.iter_digests()):
            source = self._build_digest_path(digest)
            target = other._build_digest_path(digest)
            if other.has_digest(digest):
                os.remove(source)
                continue
            other._ensure_base_dir(target)
            os.rename(source, target)
            count += 1
        return count

    def _build_digest_path(self, digest: encoding.Digest) -> str:

        digest_str = str(digest)
        return os.path.join(self.__root, digest_str[:2], digest_str[2:])

    def _ensure_base_dir(self, filepath: str) -> None:

        makedirs_with_perms(os.path.dirname(filepath), self.directory_permissions)


def makedirs_with_perms(dirname: str, perms: int = 0o777) -> None:
    """Recursively create the given directory with the appropriate permissions."""

    dirnames = os.path.normpath(os.path.abspath(dirname)).split(os.sep)
    for i in range(2, len(dirnames) + 1):
        dirname = os.path.join("/", *dirnames[0:i])

        try:
            # stat first to trigger the automounter
            # in cases when the desired path is in that location,
            # otherwise mkdir just gives permission denied
            # when the path actually already exists
            if os.path.exists(dirname):
                continue
            os.mkdir(dirname, mode=0o777)
        except FileExistsError:
            continue

        try:
            os.chmod(dirname, perms)
        except PermissionError:
            # not fatal, so it's worth allowing things to continue
            # even though it could cause permission issues later on
            pass

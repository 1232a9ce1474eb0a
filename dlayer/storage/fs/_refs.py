# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Iterator, Tuple
import os
import fcntl
import uuid
import contextlib
import unicodedata

from ... import graph, encoding
from .._errors import InvalidRefError
from ._payloads import makedirs_with_perms

_REF_UTF_CATEGORIES = (
    "Ll",  # letter lower
    "Lu",  # letter upper
    "Pd",  # punctuation dash
    "Nd",  # number digit
)
_REF_UTF_NAMES = (
    unicodedata.name("_"),
    unicodedata.name("."),
    unicodedata.name(":"),
    unicodedata.name("@"),
    unicodedata.name("+"),
)


class RefStorage:
    """Stores named refs as small files that each hold one revision.

    Ref names are slash separated paths, and each update
    replaces the previous value of the ref atomically.
    """

    def __init__(self, root: str) -> None:

        self._root = os.path.abspath(root)

    @property
    def root(self) -> str:
        return self._root

    def has_ref(self, ref: str) -> bool:
        """Return true if the given ref exists in this storage."""

        try:
            self.resolve_ref(ref)
        except graph.UnknownReferenceError:
            return False
        return True

    def resolve_ref(self, ref: str) -> encoding.Digest:
        """Return the revision currently pointed to by a ref.

        Raises:
            graph.UnknownReferenceError: if the ref does not exist
        """

        try:
            validate_ref_name(ref)
        except InvalidRefError as e:
            raise graph.UnknownReferenceError(str(e)) from None
        filepath = os.path.join(self._root, ref)
        try:
            with open(filepath, "r") as f:
                value = f.read().strip()
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            raise graph.UnknownReferenceError(f"Unknown ref: {ref}")
        try:
            return encoding.parse_digest(value)
        except ValueError as e:
            raise graph.UnknownReferenceError(f"Ref is corrupt: {ref} ({e})")

    def iter_refs(self, prefix: str = "") -> Iterator[Tuple[str, encoding.Digest]]:
        """Iterate the refs whose names begin with prefix, in name order."""

        names = []
        for root, dirs, files in os.walk(self._root):
            dirs[:] = [d for d in dirs if not d.startswith(".")]
            for filename in files:
                if filename.startswith("."):
                    continue
                filepath = os.path.join(root, filename)
                name = os.path.relpath(filepath, self._root).replace(os.sep, "/")
                if name.startswith(prefix):
                    names.append(name)

        for name in sorted(names):
            try:
                yield name, self.resolve_ref(name)
            except graph.UnknownReferenceError:
                # removed or corrupt since the listing was taken
                continue

    def write_ref(self, ref: str, revision: encoding.Digest) -> None:
        """Point the given ref at a revision, replacing any previous value.

        Raises:
            InvalidRefError: if the ref name cannot be stored
        """

        validate_ref_name(ref)
        filepath = os.path.join(self._root, ref)
        dirname, basename = os.path.split(filepath)
        working_file = os.path.join(dirname, f".{basename}.{uuid.uuid4().hex}")
        try:
            makedirs_with_perms(dirname, perms=0o777)
            with open(working_file, "w") as writer:
                writer.write(revision.str())
                writer.write("\n")
        except NotADirectoryError:
            raise InvalidRefError(ref, "a parent of this name is already a ref")

        try:
            os.replace(working_file, filepath)
        except IsADirectoryError:
            os.remove(working_file)
            raise InvalidRefError(ref, "a ref namespace exists with this name")
        except Exception:
            with contextlib.suppress(FileNotFoundError):
                os.remove(working_file)
            raise

    def remove_ref(self, ref: str) -> None:
        """Remove the given ref from this storage.

        Raises:
            graph.UnknownReferenceError: if the ref does not exist
        """

        validate_ref_name(ref)
        filepath = os.path.join(self._root, ref)
        try:
            os.remove(filepath)
        except (FileNotFoundError, NotADirectoryError, IsADirectoryError):
            raise graph.UnknownReferenceError(f"Unknown ref: {ref}")

        dirname = os.path.dirname(filepath)
        while dirname != self._root:
            try:
                os.rmdir(dirname)
            except OSError:
                break
            dirname = os.path.dirname(dirname)


def validate_ref_name(ref: str) -> None:
    """Check that the given ref name can be stored.

    Raises:
        InvalidRefError: if the name is not valid
    """

    if not ref:
        raise InvalidRefError(ref, "ref name cannot be empty")
    for component in ref.split("/"):
        if not component:
            raise InvalidRefError(ref, "empty path component")
        if component.startswith("."):
            raise InvalidRefError(ref, "path components cannot start with '.'")
    index = _find_ref_error(ref)
    if index >= 0:
        err_str = f"{ref[:index]} > {ref[index]} < {ref[index+1:]}"
        raise InvalidRefError(ref, f"invalid character at pos {index}: {err_str}")


def _find_ref_error(ref: str) -> int:

    for i, char in enumerate(ref):
        if char == "/":
            continue
        category = unicodedata.category(char)
        if category in _REF_UTF_CATEGORIES:
            continue
        name = unicodedata.name(char, "")
        if name in _REF_UTF_NAMES:
            continue
        return i
    return -1


@contextlib.contextmanager
def repository_lock(root: str) -> Iterator[None]:
    """Hold the exclusive write lock of the repository at root.

    Writers that need to publish objects and refs wait for any
    other writer in the same repository to finish first.
    """

    lockfile = os.path.join(root, "lock")
    try:
        fd = os.open(lockfile, os.O_CREAT | os.O_RDWR, 0o666)
    except OSError as e:
        raise RuntimeError(f"Cannot lock repository: {str(e)} [{root}]")
    try:
        fcntl.flock(fd, fcntl.LOCK_EX)
        yield
    finally:
        os.close(fd)

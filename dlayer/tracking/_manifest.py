# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import BinaryIO, Iterable, Tuple
import posixpath

from .. import encoding, graph
from ._entry import EntryKind, Entry


class Manifest(graph.Object):
    """A mutable tree of file system entries.

    Manifests are built up while an archive is ingested, and
    are stored as a single object once complete.
    """

    __fields__ = ("root",)

    def __init__(self, root: Entry = None) -> None:

        self.root = Entry() if root is None else root

    def is_empty(self) -> bool:
        """Return true if this manifest has no contents."""

        return len(self.root) == 0

    def has_root_metadata(self) -> bool:
        """Return true if attributes were recorded for the root directory."""

        return self.root.object != encoding.NULL_DIGEST

    def child_objects(self) -> Tuple[encoding.Digest, ...]:
        """Return the directory metadata objects referenced by this manifest."""

        children = []
        for entry in [self.root] + [e for _, e in self.walk()]:
            if entry.kind is not EntryKind.TREE:
                continue
            if entry.object == encoding.NULL_DIGEST:
                continue
            if entry.object not in children:
                children.append(entry.object)
        return tuple(children)

    def encode(self, writer: BinaryIO) -> None:

        self.root.encode(writer)

    @classmethod
    def decode(cls, reader: BinaryIO) -> "Manifest":

        return Manifest(Entry.decode(reader))

    def get_path(self, path: str) -> Entry:
        """Get an entry in this manifest given it's filepath.

        Raises:
            NotADirectoryError: if an element in the path is not a directory
            FileNotFoundError: if the entry does not exist
        """

        entry = self.root
        steps = _split_path(path)
        i = 0
        while i < len(steps):
            if entry.kind is not EntryKind.TREE:
                raise NotADirectoryError("/".join(steps[:i]))
            step = steps[i]
            if step not in entry:
                raise FileNotFoundError("/".join(steps[: i + 1]))
            entry = entry[step]
            i += 1

        return entry

    def list_dir(self, path: str) -> Tuple[str, ...]:
        """List the contents of a directory in this manifest.

        Raises:
            FileNotFoundError: if the directory does not exist
            NotADirectoryError: if the entry at the given path is not a tree
        """

        entry = self.get_path(path)
        if entry.kind is not EntryKind.TREE:
            raise NotADirectoryError(path)
        return tuple(sorted(entry.keys()))

    def walk(self) -> Iterable[Tuple[str, Entry]]:
        """Walk the contents of this manifest depth-first, in name order."""

        def iter_node(root: str, entry: Entry) -> Iterable[Tuple[str, Entry]]:

            for name in sorted(entry):
                child = entry[name]
                full_path = posixpath.join(root, name)
                yield full_path, child
                if child.kind is EntryKind.TREE:
                    yield from iter_node(full_path, child)

        return iter_node("/", self.root)

    def mkdirs(self, path: str) -> Entry:
        """Ensure that all levels of the given directory name exist.

        Entries that do not exist are created with a resonable default
        file mode, but can and should be updated in the case where this
        is not desired.

        Raises:
            NotADirectoryError: if an element in the path is not a directory
        """

        entry = self.root
        for step in _split_path(path):
            if step not in entry:
                entry[step] = Entry()
            entry = entry[step]
            if entry.kind is not EntryKind.TREE:
                raise NotADirectoryError(step)
        return entry

    def mkfile(self, path: str) -> Entry:
        """Create a new blob entry at the given path.

        Any parent directories are created as needed, and any existing
        entry at the path is replaced.
        """

        *dirname, name = _split_path(path) or [""]
        if not name:
            raise IsADirectoryError(path)
        parent = self.mkdirs("/".join(dirname))
        new_node = Entry(kind=EntryKind.BLOB)
        parent[name] = new_node
        return new_node

    def remove(self, path: str) -> Entry:
        """Remove and return the entry at the given path.

        Raises:
            FileNotFoundError: if the entry does not exist
        """

        *dirname, name = _split_path(path) or [""]
        if not name:
            raise PermissionError("cannot remove the manifest root")
        parent = self.get_path("/".join(dirname))
        if parent.kind is not EntryKind.TREE or name not in parent:
            raise FileNotFoundError(path)
        return parent.pop(name)


def _split_path(path: str) -> list:

    path = posixpath.normpath("/" + path).strip("/")
    if not path:
        return []
    return path.split("/")

# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any, BinaryIO, Tuple
import enum
import stat

from .. import encoding

Xattrs = Tuple[Tuple[str, bytes], ...]


class EntryKind(enum.Enum):

    TREE = "tree"  # directory / node
    BLOB = "file"  # file or symlink / leaf


class Entry(dict):
    """One node of a manifest, named by its key in the parent entry.

    Tree entries hold their children as dictionary items, and reference
    the digest of their directory metadata object (or the null digest
    if no metadata was ever recorded for the directory). Blob entries
    reference the payload holding their file data or link target.
    """

    __fields__ = ("kind", "object", "mode", "size", "uid", "gid", "xattrs")

    def __init__(
        self,
        kind: EntryKind = EntryKind.TREE,
        object: encoding.Digest = encoding.NULL_DIGEST,
        mode: int = stat.S_IFDIR | 0o755,
        size: int = 0,
        uid: int = 0,
        gid: int = 0,
        xattrs: Xattrs = tuple(),
    ) -> None:
        self.kind = kind
        self.object = object
        self.mode = mode
        self.size = size
        self.uid = uid
        self.gid = gid
        self.xattrs = xattrs

    def __str__(self) -> str:
        return repr(self)

    def __repr__(self) -> str:

        return f"Entry({repr(self.kind)}, 0o{self.mode:06o}, size={self.size}, object={repr(self.object)})"

    def __eq__(self, other: Any) -> bool:

        if not isinstance(other, Entry):
            raise TypeError(
                f"'==' not supported between '{type(self).__name__}' and '{type(other).__name__}'"
            )

        return (
            other.kind is self.kind
            and other.object == self.object
            and other.mode == self.mode
            and other.size == self.size
            and other.uid == self.uid
            and other.gid == self.gid
            and other.xattrs == self.xattrs
            and dict.__eq__(self, other)
        )

    __hash__ = None  # type: ignore

    @property
    def is_symlink(self) -> bool:
        return stat.S_ISLNK(self.mode)

    def encode(self, writer: BinaryIO) -> None:

        encoding.write_string(writer, self.kind.value)
        encoding.write_digest(writer, self.object)
        encoding.write_int(writer, self.mode)
        encoding.write_int(writer, self.size)
        encoding.write_int(writer, self.uid)
        encoding.write_int(writer, self.gid)
        encoding.write_int(writer, len(self.xattrs))
        for name, value in self.xattrs:
            encoding.write_string(writer, name)
            encoding.write_bytes(writer, value)
        if self.kind is not EntryKind.TREE:
            return
        encoding.write_int(writer, len(self))
        for name in sorted(self):
            encoding.write_string(writer, name)
            self[name].encode(writer)

    @classmethod
    def decode(cls, reader: BinaryIO) -> "Entry":

        entry = Entry(
            kind=EntryKind(encoding.read_string(reader)),
            object=encoding.read_digest(reader),
            mode=encoding.read_int(reader),
            size=encoding.read_int(reader),
            uid=encoding.read_int(reader),
            gid=encoding.read_int(reader),
        )
        xattrs = []
        for _ in range(encoding.read_int(reader)):
            name = encoding.read_string(reader)
            xattrs.append((name, encoding.read_bytes(reader)))
        entry.xattrs = tuple(xattrs)
        if entry.kind is EntryKind.TREE:
            for _ in range(encoding.read_int(reader)):
                name = encoding.read_string(reader)
                entry[name] = Entry.decode(reader)
        return entry

# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import BinaryIO, Tuple
import stat

from .. import encoding, graph, tracking


class DirMeta(graph.Object):
    """The attributes of a single directory, stored apart from its contents."""

    __fields__ = ["mode", "uid", "gid", "xattrs"]

    def __init__(
        self,
        mode: int = stat.S_IFDIR | 0o755,
        uid: int = 0,
        gid: int = 0,
        xattrs: tracking.Xattrs = tuple(),
    ) -> None:

        self.mode = mode
        self.uid = uid
        self.gid = gid
        self.xattrs = tuple(sorted(xattrs))
        super(DirMeta, self).__init__()

    def child_objects(self) -> Tuple[encoding.Digest, ...]:
        return tuple()

    def apply_to(self, entry: tracking.Entry, digest: encoding.Digest) -> None:
        """Record these attributes on the given tree entry."""

        entry.object = digest
        entry.mode = self.mode
        entry.uid = self.uid
        entry.gid = self.gid
        entry.xattrs = self.xattrs

    def encode(self, writer: BinaryIO) -> None:

        encoding.write_int(writer, self.mode)
        encoding.write_int(writer, self.uid)
        encoding.write_int(writer, self.gid)
        encoding.write_int(writer, len(self.xattrs))
        for name, value in self.xattrs:
            encoding.write_string(writer, name)
            encoding.write_bytes(writer, value)

    @classmethod
    def decode(cls, reader: BinaryIO) -> "DirMeta":

        mode = encoding.read_int(reader)
        uid = encoding.read_int(reader)
        gid = encoding.read_int(reader)
        xattrs = []
        for _ in range(encoding.read_int(reader)):
            name = encoding.read_string(reader)
            xattrs.append((name, encoding.read_bytes(reader)))
        return DirMeta(mode=mode, uid=uid, gid=gid, xattrs=tuple(xattrs))


DEFAULT_ROOT_DIRMETA = DirMeta(mode=stat.S_IFDIR | 0o755, uid=0, gid=0)

# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Dict, Type
import io

from ... import graph, encoding, tracking
from .._commit import Commit
from .._dirmeta import DirMeta
from ._payloads import FSPayloadStorage

_OBJECT_HEADER = b"--DLAYER--"
_OBJECT_KINDS: Dict[int, Type[graph.Object]] = {
    0: tracking.Manifest,
    1: DirMeta,
    2: Commit,
}


class FSDatabase(FSPayloadStorage, graph.Database):
    """An object database implementation that persists data using the local file system."""

    def read_object(self, digest: encoding.Digest) -> graph.Object:

        with self.open_payload(digest) as payload:
            reader = io.BytesIO(payload.read())

        try:
            encoding.consume_header(reader, _OBJECT_HEADER)
            kind = encoding.read_int(reader)
            if kind not in _OBJECT_KINDS:
                raise ValueError(f"Object is corrupt: unknown kind {kind} [{digest}]")
            return _OBJECT_KINDS[kind].decode(reader)
        except EOFError as e:
            raise ValueError(f"Object is corrupt: {e} [{digest}]") from None
        finally:
            reader.close()

    def write_object(self, obj: graph.Object) -> None:

        for kind, cls in _OBJECT_KINDS.items():
            if isinstance(obj, cls):
                break
        else:
            raise ValueError(f"Unknown object kind, cannot store: {type(obj)}")

        filepath = self._build_digest_path(obj.digest())
        self._ensure_base_dir(filepath)
        try:
            with open(filepath, "xb") as writer:
                encoding.write_header(writer, _OBJECT_HEADER)
                encoding.write_int(writer, kind)
                obj.encode(writer)
        except FileExistsError:
            return

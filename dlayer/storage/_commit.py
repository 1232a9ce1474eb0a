# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any, BinaryIO, Dict, Tuple
from datetime import datetime, timezone

import simplejson

from .. import encoding, graph


class Commit(graph.Object):
    """Commits bind a stored manifest to a set of metadata at a point in time.

    The digest of a commit is the revision identifier that
    refs point to. Time is always stored in UTC.
    """

    __fields__ = ["manifest", "metadata", "subject", "time"]

    def __init__(
        self,
        manifest: encoding.Digest,
        metadata: Dict[str, Any] = None,
        subject: str = "",
        time: datetime = None,
    ) -> None:

        self.manifest = manifest
        self.metadata = dict(metadata or {})
        self.subject = subject
        if time is None:
            self.time = datetime.now(timezone.utc).replace(microsecond=0)
        else:
            self.time = time
        super(Commit, self).__init__()

    def child_objects(self) -> Tuple[encoding.Digest, ...]:
        """Return the child object of this one in the object DG."""
        return (self.manifest,)

    def encode(self, writer: BinaryIO) -> None:

        encoding.write_digest(writer, self.manifest)
        encoding.write_string(writer, self.subject)
        encoding.write_string(writer, self.time.isoformat())
        metadata = simplejson.dumps(self.metadata, sort_keys=True)
        encoding.write_bytes(writer, metadata.encode("utf-8"))

    @classmethod
    def decode(cls, reader: BinaryIO) -> "Commit":

        manifest = encoding.read_digest(reader)
        subject = encoding.read_string(reader)
        time = datetime.fromisoformat(encoding.read_string(reader))
        metadata = simplejson.loads(encoding.read_bytes(reader).decode("utf-8"))
        return Commit(manifest, metadata=metadata, subject=subject, time=time)

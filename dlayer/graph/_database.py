# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Iterable
import abc

from .. import encoding
from ._object import Object


class UnknownObjectError(ValueError):
    """Denotes a missing object or one that is not present in the database."""

    def __init__(self, digest: encoding.Digest) -> None:

        self.digest = digest
        super(UnknownObjectError, self).__init__(f"Unknown object: {str(digest)}")


class UnknownReferenceError(ValueError):
    """Denotes a reference that is not known."""

    pass


class DatabaseView(metaclass=abc.ABCMeta):
    """A read-only object database."""

    @abc.abstractmethod
    def read_object(self, digest: encoding.Digest) -> Object:
        """Read information about the given object from the database.

        Raises:
            UnknownObjectError: if the identified object does not exist in the database.
        """
        ...

    @abc.abstractmethod
    def iter_digests(self) -> Iterable[encoding.Digest]:
        """Iterate all the object digests in this database."""
        ...

    def has_object(self, digest: encoding.Digest) -> bool:

        try:
            self.read_object(digest)
        except UnknownObjectError:
            return False
        else:
            return True


class Database(DatabaseView):
    """Databases store and retrieve graph objects."""

    @abc.abstractmethod
    def write_object(self, obj: Object) -> None:
        """Write an object to the database, for later retrieval."""
        ...
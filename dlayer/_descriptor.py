# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any, Dict, IO, NamedTuple, Optional

import simplejson

from ._errors import InvalidShapeError, MissingFieldError

ID_KEY = "id"
PARENT_KEY = "parent"


class _LayerDescriptor(NamedTuple):

    id: str
    parent: Optional[str]
    payload: Dict[str, Any]


class LayerDescriptor(_LayerDescriptor):
    """The metadata document that accompanies a layer archive.

    Only the layer id and its optional parent are interpreted, every
    other key of the document is carried along verbatim in payload.
    An empty parent is stored as None, and each descriptor holds its
    own copy of the payload mapping.
    """

    __slots__ = ()

    def __new__(
        cls, id: str, parent: Optional[str] = None, payload: Dict[str, Any] = None
    ) -> "LayerDescriptor":
        return super().__new__(cls, id, parent or None, dict(payload or {}))

    def is_root(self) -> bool:
        """Return true if this layer has no parent."""
        return not self.parent


def decode(document: Any) -> LayerDescriptor:
    """Decode a layer descriptor from a parsed json document.

    An absent, null or empty parent denotes a root layer.

    Raises:
        InvalidShapeError: if the document is not a mapping, if the
            id or parent are not strings, or if the other values
            cannot be stored as json
        MissingFieldError: if the document has no id
    """

    if not isinstance(document, dict):
        raise InvalidShapeError(
            f"Layer descriptor must be a mapping, got: {type(document).__name__}"
        )

    if ID_KEY not in document:
        raise MissingFieldError(ID_KEY)
    layer_id = document[ID_KEY]
    if not isinstance(layer_id, str):
        raise InvalidShapeError(
            f"Layer descriptor '{ID_KEY}' must be a string, got: {type(layer_id).__name__}"
        )

    parent = document.get(PARENT_KEY)
    if parent is not None and not isinstance(parent, str):
        raise InvalidShapeError(
            f"Layer descriptor '{PARENT_KEY}' must be a string, got: {type(parent).__name__}"
        )

    payload = dict(
        (k, v) for k, v in document.items() if k not in (ID_KEY, PARENT_KEY)
    )
    try:
        simplejson.dumps(payload)
    except (TypeError, ValueError) as e:
        raise InvalidShapeError(f"Layer descriptor is not valid json: {e}") from e
    return LayerDescriptor(layer_id, parent, payload)


def encode(descriptor: LayerDescriptor) -> Dict[str, Any]:
    """Encode a layer descriptor into a json compatible document."""

    document = dict(descriptor.payload)
    document[ID_KEY] = descriptor.id
    if descriptor.parent:
        document[PARENT_KEY] = descriptor.parent
    return document


def load_descriptor(stream: IO[Any]) -> LayerDescriptor:
    """Read and decode a layer descriptor from a json stream.

    Raises:
        InvalidShapeError: if the stream does not hold valid json
        MissingFieldError: if the document has no id
    """

    try:
        document = simplejson.load(stream)
    except simplejson.JSONDecodeError as e:
        raise InvalidShapeError(f"Layer descriptor is not valid json: {e}") from e
    return decode(document)


def read_descriptor_file(filepath: str) -> LayerDescriptor:
    """Read and decode the layer descriptor file at the given path."""

    with open(filepath, "r", encoding="utf-8") as stream:
        return load_descriptor(stream)

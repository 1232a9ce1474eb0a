# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import List, Tuple

import structlog

from . import encoding, graph, storage
from ._cancel import Cancellable
from ._descriptor import LayerDescriptor, decode
from ._errors import (
    ChainTooLongError,
    CorruptLayerError,
    DecodeError,
    UnknownLayerError,
)
from ._import import LAYER_METADATA_KEY
from ._naming import branch_name

_LOGGER = structlog.get_logger("dlayer.resolve")

DEFAULT_MAX_LAYERS = 1024


def resolve_layers(
    repo: storage.ObjectStore,
    layer_id: str,
    max_layers: int = DEFAULT_MAX_LAYERS,
    cancellable: Cancellable = None,
) -> List[encoding.Digest]:
    """Resolve the revisions of a layer and all of its ancestors.

    The result is ordered root first, with the given layer last.
    Cycles in the parent chain are not detected directly, they fail
    once the chain grows past max_layers.

    Raises:
        UnknownLayerError: if a layer in the chain was never imported
        CorruptLayerError: if a layer commit has no usable descriptor
        ChainTooLongError: if the chain is longer than max_layers
        CancelledError: if the resolution was cancelled
    """

    return [
        revision
        for _, revision in resolve_descriptors(repo, layer_id, max_layers, cancellable)
    ]


def resolve_descriptors(
    repo: storage.ObjectStore,
    layer_id: str,
    max_layers: int = DEFAULT_MAX_LAYERS,
    cancellable: Cancellable = None,
) -> List[Tuple[LayerDescriptor, encoding.Digest]]:
    """Resolve the descriptor and revision of a layer and each of its ancestors.

    See: resolve_layers
    """

    chain: List[Tuple[LayerDescriptor, encoding.Digest]] = []
    current = layer_id
    while True:
        if len(chain) >= max_layers:
            raise ChainTooLongError(layer_id, max_layers)
        if cancellable is not None:
            cancellable.raise_if_cancelled()

        descriptor, revision = read_layer(repo, current)
        _LOGGER.debug("resolved layer", layer=current, revision=revision.str())
        chain.append((descriptor, revision))
        if descriptor.is_root():
            break
        current = descriptor.parent  # type: ignore

    chain.reverse()
    return chain


def read_layer(
    repo: storage.ObjectStore, layer_id: str
) -> Tuple[LayerDescriptor, encoding.Digest]:
    """Read the current revision and stored descriptor of a single layer.

    Raises:
        UnknownLayerError: if the layer was never imported
        CorruptLayerError: if the layer commit has no usable descriptor
    """

    try:
        revision = repo.resolve_ref(branch_name(layer_id))
    except graph.UnknownReferenceError:
        raise UnknownLayerError(layer_id) from None

    try:
        metadata = repo.load_commit_metadata(revision)
    except (graph.UnknownObjectError, ValueError) as e:
        raise CorruptLayerError(layer_id, f"cannot load commit {revision}: {e}") from e

    if LAYER_METADATA_KEY not in metadata:
        raise CorruptLayerError(
            layer_id, f"commit {revision} has no '{LAYER_METADATA_KEY}' metadata"
        )
    try:
        descriptor = decode(metadata[LAYER_METADATA_KEY])
    except DecodeError as e:
        raise CorruptLayerError(layer_id, f"stored descriptor is invalid: {e}") from e
    return descriptor, revision

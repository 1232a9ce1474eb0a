# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import List, Sequence
import os

import structlog

from . import encoding, graph, storage
from ._cancel import Cancellable
from ._errors import CancelledError, CheckoutError, ResolveError
from ._resolve import DEFAULT_MAX_LAYERS, resolve_layers

_LOGGER = structlog.get_logger("dlayer.checkout")


def checkout_options(user_mode: bool = False) -> storage.CheckoutOptions:
    """Return the options used to apply each layer of a chain."""

    return storage.CheckoutOptions(
        overwrite=storage.OverwriteMode.UNION_FILES,
        process_whiteouts=True,
        user_mode=user_mode,
    )


def checkout_revisions(
    repo: storage.ObjectStore,
    revisions: Sequence[encoding.Digest],
    destination: str,
    user_mode: bool = False,
    cancellable: Cancellable = None,
) -> None:
    """Apply each revision in order on top of the destination directory.

    Files from later revisions replace those of earlier ones at the same
    path, and whiteouts in later revisions remove earlier paths.

    A failed checkout is NOT rolled back: the layers that were applied
    before the failure remain in the destination, which should then be
    discarded and checked out again from scratch rather than reused.

    Raises:
        CheckoutError: naming the revision that could not be applied
    """

    if not revisions:
        raise CheckoutError("No layers to check out")

    options = checkout_options(user_mode)
    first, rest = revisions[0], revisions[1:]
    _checkout_one(repo, options, destination, first, None, cancellable)

    try:
        target_fd = os.open(destination, os.O_RDONLY | os.O_DIRECTORY)
    except OSError as e:
        raise CheckoutError(f"Cannot open checkout destination: {e}") from e
    try:
        for revision in rest:
            _checkout_one(repo, options, ".", revision, target_fd, cancellable)
    finally:
        os.close(target_fd)

    _LOGGER.info(
        "checkout complete", destination=destination, layers=len(revisions)
    )


def checkout_layer(
    repo: storage.ObjectStore,
    layer_id: str,
    destination: str,
    user_mode: bool = False,
    max_layers: int = DEFAULT_MAX_LAYERS,
    cancellable: Cancellable = None,
) -> List[encoding.Digest]:
    """Check out a layer together with all of its ancestors.

    Returns:
        the revisions that were applied, root first

    Raises:
        CheckoutError: if the layer chain cannot be resolved or applied
    """

    try:
        revisions = resolve_layers(repo, layer_id, max_layers, cancellable)
    except ResolveError as e:
        raise CheckoutError(f"Cannot check out {layer_id}: {e}") from e

    checkout_revisions(repo, revisions, destination, user_mode, cancellable)
    return revisions


def _checkout_one(
    repo: storage.ObjectStore,
    options: storage.CheckoutOptions,
    destination: str,
    revision: encoding.Digest,
    dir_fd: int = None,
    cancellable: Cancellable = None,
) -> None:

    try:
        if cancellable is not None:
            cancellable.raise_if_cancelled()
        repo.checkout_tree(options, destination, revision, dir_fd=dir_fd)
    except (CancelledError, OSError, ValueError, graph.UnknownObjectError) as e:
        raise CheckoutError(
            f"Failed to check out revision {revision}: {e}", revision=revision
        ) from e
    _LOGGER.debug("checked out layer", revision=revision.str())

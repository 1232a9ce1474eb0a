# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any, BinaryIO, Mapping, Union
import sys
import tarfile

import structlog

from . import encoding, graph, storage
from ._cancel import Cancellable
from ._descriptor import LayerDescriptor, decode, encode, read_descriptor_file
from ._errors import CancelledError, DecodeError, LayerImportError
from ._naming import branch_name

_LOGGER = structlog.get_logger("dlayer.import")

LAYER_METADATA_KEY = "docker.layermeta"


def import_layer(
    repo: storage.ObjectStore,
    descriptor: Union[LayerDescriptor, Mapping[str, Any]],
    archive: BinaryIO,
    extra_ref: str = None,
    cancellable: Cancellable = None,
) -> encoding.Digest:
    """Import one layer archive into the repository as a new commit.

    The layer branch (and extra_ref, when given) are updated to the
    new revision together when the import succeeds. Nothing is
    published if any step fails.

    Raises:
        LayerImportError: if the layer could not be imported
        CancelledError: if the import was cancelled
    """

    layer_id = descriptor.id if isinstance(descriptor, LayerDescriptor) else None
    try:
        if isinstance(descriptor, LayerDescriptor):
            descriptor = decode(encode(descriptor))
        else:
            descriptor = decode(descriptor)
    except DecodeError as e:
        raise LayerImportError(layer_id, f"invalid layer descriptor: {e}") from e
    layer_id = descriptor.id

    try:
        with repo.transaction() as txn:
            _check_cancelled(cancellable)
            manifest = txn.write_archive(archive, cancellable=cancellable)

            _check_cancelled(cancellable)
            if not manifest.has_root_metadata():
                meta = storage.DEFAULT_ROOT_DIRMETA
                meta.apply_to(manifest.root, txn.write_dirmeta(meta))

            _check_cancelled(cancellable)
            manifest_digest = txn.write_manifest(manifest)
            revision = txn.write_commit(
                manifest_digest,
                {LAYER_METADATA_KEY: encode(descriptor)},
                subject=f"layer {layer_id}",
            )
            txn.set_ref(branch_name(layer_id), revision)
            if extra_ref is not None:
                txn.set_ref(extra_ref, revision)
            _check_cancelled(cancellable)
    except CancelledError:
        raise
    except (
        OSError,
        EOFError,
        ValueError,
        tarfile.TarError,
        graph.UnknownObjectError,
        storage.TransactionError,
    ) as e:
        raise LayerImportError(layer_id, str(e)) from e

    _LOGGER.info("layer imported", layer=layer_id, revision=revision.str())
    if extra_ref is not None:
        _LOGGER.debug("tagged layer", layer=layer_id, ref=extra_ref)
    return revision


def import_layer_files(
    repo: storage.ObjectStore,
    descriptor_path: str,
    archive_path: str = "-",
    extra_ref: str = None,
    cancellable: Cancellable = None,
) -> encoding.Digest:
    """Import a layer from a descriptor file and an archive file.

    An archive_path of '-' reads the archive from standard input.

    Raises:
        LayerImportError: if either file cannot be read or the import fails
        CancelledError: if the import was cancelled
    """

    try:
        descriptor = read_descriptor_file(descriptor_path)
    except DecodeError as e:
        raise LayerImportError(None, f"{descriptor_path}: {e}") from e
    except OSError as e:
        raise LayerImportError(None, f"cannot read descriptor: {e}") from e

    if archive_path == "-":
        return import_layer(
            repo, descriptor, sys.stdin.buffer, extra_ref, cancellable=cancellable
        )

    try:
        archive = open(archive_path, "rb")
    except OSError as e:
        raise LayerImportError(descriptor.id, f"cannot read archive: {e}") from e
    with archive:
        return import_layer(repo, descriptor, archive, extra_ref, cancellable)


def _check_cancelled(cancellable: Cancellable = None) -> None:

    if cancellable is not None:
        cancellable.raise_if_cancelled()

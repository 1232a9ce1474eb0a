# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Optional

from . import encoding


class DecodeError(ValueError):
    """Denotes a layer descriptor document that cannot be decoded."""

    pass


class MissingFieldError(DecodeError):
    """Denotes a layer descriptor without a required field."""

    def __init__(self, field: str) -> None:
        self.field = field
        super(MissingFieldError, self).__init__(f"Missing required key '{field}'")


class InvalidShapeError(DecodeError):
    """Denotes a layer descriptor that is not structured as expected."""

    pass


class LayerImportError(RuntimeError):
    """Denotes a failure to import a layer, nothing was published."""

    def __init__(self, layer_id: Optional[str], message: str) -> None:
        self.layer_id = layer_id
        if layer_id is not None:
            message = f"Failed to import layer {layer_id}: {message}"
        else:
            message = f"Failed to import layer: {message}"
        super(LayerImportError, self).__init__(message)


class ResolveError(RuntimeError):
    """Denotes a failure to resolve the ancestry of a layer."""

    pass


class UnknownLayerError(ResolveError):
    """Denotes a layer that has not been imported into the repository."""

    def __init__(self, layer_id: str) -> None:
        self.layer_id = layer_id
        super(UnknownLayerError, self).__init__(f"Unknown layer: {layer_id}")


class CorruptLayerError(ResolveError):
    """Denotes a layer commit without usable layer metadata."""

    def __init__(self, layer_id: str, message: str) -> None:
        self.layer_id = layer_id
        super(CorruptLayerError, self).__init__(f"Corrupt layer {layer_id}: {message}")


class ChainTooLongError(ResolveError):
    """Denotes an ancestry chain longer than allowed, possibly a cycle."""

    def __init__(self, layer_id: str, max_layers: int) -> None:
        self.layer_id = layer_id
        self.max_layers = max_layers
        super(ChainTooLongError, self).__init__(
            f"Layer maximum {max_layers} exceeded while resolving {layer_id}"
            " (the parent chain may contain a cycle)"
        )


class CancelledError(ResolveError):
    """Denotes an operation that was stopped by its cancellation token."""

    def __init__(self, message: str = "Operation was cancelled") -> None:
        super(CancelledError, self).__init__(message)


class CheckoutError(RuntimeError):
    """Denotes a failed checkout, the destination may be partially written."""

    def __init__(self, message: str, revision: encoding.Digest = None) -> None:
        self.revision = revision
        super(CheckoutError, self).__init__(message)

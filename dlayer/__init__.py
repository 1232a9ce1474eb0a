# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk
"""dlayer - store container image layers and check out their union"""

__version__ = "0.1.0"

from . import encoding, graph, tracking, storage
from ._errors import (
    DecodeError,
    MissingFieldError,
    InvalidShapeError,
    LayerImportError,
    ResolveError,
    UnknownLayerError,
    CorruptLayerError,
    ChainTooLongError,
    CancelledError,
    CheckoutError,
)
from ._cancel import Cancellable
from ._descriptor import (
    LayerDescriptor,
    decode,
    encode,
    load_descriptor,
    read_descriptor_file,
)
from ._naming import BRANCH_PREFIX, branch_name, layer_id_from_branch
from ._import import LAYER_METADATA_KEY, import_layer, import_layer_files
from ._resolve import (
    DEFAULT_MAX_LAYERS,
    resolve_layers,
    resolve_descriptors,
    read_layer,
)
from ._checkout import checkout_options, checkout_revisions, checkout_layer
from ._config import Config, ConfigError, load_config
from . import io

__all__ = list(locals().keys())

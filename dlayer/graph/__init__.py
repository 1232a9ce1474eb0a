# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

"""Low-level digraph representation and manipulation for data storage."""

from ._object import Object
from ._database import (
    Database,
    DatabaseView,
    UnknownObjectError,
    UnknownReferenceError,
)

# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from ._entry import EntryKind, Entry, Xattrs
from ._manifest import Manifest

__all__ = list(locals().keys())

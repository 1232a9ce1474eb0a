# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from ._errors import TransactionError, InvalidRefError
from ._payload import PayloadStorage
from ._dirmeta import DirMeta, DEFAULT_ROOT_DIRMETA
from ._commit import Commit
from ._options import CheckoutOptions, OverwriteMode
from ._archive import (
    write_archive_to_manifest,
    is_whiteout,
    WHITEOUT_PREFIX,
    OPAQUE_WHITEOUT,
)
from ._repository import ObjectStore, Transaction
from ._registry import register_scheme, open_repository

# automatically registered implementations
from . import fs

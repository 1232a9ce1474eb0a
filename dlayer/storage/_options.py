# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import NamedTuple
import enum


class OverwriteMode(enum.Enum):

    NONE = "none"  # fail on any existing entry
    UNION_FILES = "union_files"  # merge directories, replace everything else


class CheckoutOptions(NamedTuple):
    """Controls how a stored tree is written into a directory.

    user_mode skips replicating ownership and extended attributes,
    so that an unprivileged user can check out any tree.
    """

    overwrite: OverwriteMode = OverwriteMode.NONE
    process_whiteouts: bool = False
    user_mode: bool = False

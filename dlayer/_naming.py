# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Optional

BRANCH_PREFIX = "dockerimg/"


def branch_name(layer_id: str) -> str:
    """Return the name of the ref that tracks the given layer."""

    return BRANCH_PREFIX + layer_id


def layer_id_from_branch(name: str) -> Optional[str]:
    """Return the layer id tracked by the named ref, if it is a layer branch."""

    if not name.startswith(BRANCH_PREFIX):
        return None
    return name[len(BRANCH_PREFIX) :] or None

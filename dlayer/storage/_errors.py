# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk


class TransactionError(RuntimeError):
    """Denotes a transaction that cannot be used or could not be committed."""

    pass


class InvalidRefError(ValueError):
    """Denotes a ref name that cannot be stored."""

    def __init__(self, ref: str, reason: str) -> None:
        self.ref = ref
        super(InvalidRefError, self).__init__(f"Invalid ref name '{ref}': {reason}")

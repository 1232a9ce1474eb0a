# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from ._binary import (
    INT_SIZE,
    DecodeError,
    read_int,
    write_int,
    consume_header,
    write_header,
    read_digest,
    write_digest,
    read_bytes,
    write_bytes,
    read_string,
    write_string,
)
from ._hash import (
    Digest,
    Hasher,
    DIGEST_SIZE,
    EMPTY_DIGEST,
    NULL_DIGEST,
    parse_digest,
    Encodable,
    EncodableType,
)

__all__ = list(locals().keys())

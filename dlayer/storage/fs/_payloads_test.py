# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

import io

import py.path
import pytest

from ... import encoding, graph
from ._payloads import FSPayloadStorage, makedirs_with_perms


def test_makedirs_dont_change_existing(tmpdir: py.path.local) -> None:

    chkdir = tmpdir.join("my_dir")
    chkdir.ensure(dir=1)
    chkdir.chmod(0o755)
    original = chkdir.stat().mode
    makedirs_with_perms(chkdir + "/new", perms=0o777)
    assert chkdir.stat().mode == original, "existing dir should not change perms"


def test_payload_storage(tmpdir: py.path.local) -> None:

    storage = FSPayloadStorage(tmpdir.join("payloads").strpath)
    digest = storage.write_payload(io.BytesIO(b"hello, world"))

    assert digest == encoding.Hasher(b"hello, world").digest()
    assert storage.has_payload(digest)
    assert list(storage.iter_digests()) == [digest]
    with storage.open_payload(digest) as reader:
        assert reader.read() == b"hello, world"

    again = storage.write_payload(io.BytesIO(b"hello, world"))
    assert again == digest
    assert list(storage.iter_digests()) == [digest], "should not duplicate"


def test_payload_storage_unknown(tmpdir: py.path.local) -> None:

    storage = FSPayloadStorage(tmpdir.join("payloads").strpath)
    assert not storage.has_payload(encoding.EMPTY_DIGEST)
    with pytest.raises(graph.UnknownObjectError):
        storage.open_payload(encoding.EMPTY_DIGEST)


def test_payload_has_digest(tmpdir: py.path.local) -> None:

    storage = FSPayloadStorage(tmpdir.join("payloads").strpath)
    assert not storage.has_digest(encoding.EMPTY_DIGEST)
    digest = storage.write_payload(io.BytesIO(b""))
    assert digest == encoding.EMPTY_DIGEST
    assert storage.has_digest(digest)


def test_payload_move_to(tmpdir: py.path.local) -> None:

    staged = FSPayloadStorage(tmpdir.join("staged").strpath)
    target = FSPayloadStorage(tmpdir.join("target").strpath)

    existing = target.write_payload(io.BytesIO(b"existing"))
    staged.write_payload(io.BytesIO(b"existing"))
    new = staged.write_payload(io.BytesIO(b"new"))

    assert staged.move_to(target) == 1
    assert list(staged.iter_digests()) == []
    assert sorted(target.iter_digests()) == sorted([existing, new])

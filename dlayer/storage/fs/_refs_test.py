# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

import py.path
import pytest

from ... import encoding, graph
from .._errors import InvalidRefError
from ._refs import RefStorage, validate_ref_name


def test_ref_storage(tmpdir: py.path.local) -> None:

    storage = RefStorage(tmpdir.join("refs").strpath)

    h = encoding.Hasher()
    digest1 = h.digest()
    h.update(b"hello")
    digest2 = h.digest()

    assert not storage.has_ref("hello/world")
    storage.write_ref("hello/world", digest1)
    assert storage.resolve_ref("hello/world") == digest1

    storage.write_ref("hello/world", digest2)
    assert storage.resolve_ref("hello/world") == digest2, "last write should win"
    assert tmpdir.join("refs", "hello").listdir() == [
        tmpdir.join("refs", "hello", "world")
    ], "no working files should remain"


def test_resolve_unknown_ref(tmpdir: py.path.local) -> None:

    storage = RefStorage(tmpdir.join("refs").strpath)
    with pytest.raises(graph.UnknownReferenceError):
        storage.resolve_ref("missing")
    with pytest.raises(graph.UnknownReferenceError):
        storage.resolve_ref("../escape")


def test_iter_refs(tmpdir: py.path.local) -> None:

    storage = RefStorage(tmpdir.join("refs").strpath)
    for ref in ("dockerimg/b", "dockerimg/a", "tags/latest"):
        storage.write_ref(ref, encoding.EMPTY_DIGEST)

    assert [name for name, _ in storage.iter_refs()] == [
        "dockerimg/a",
        "dockerimg/b",
        "tags/latest",
    ]
    assert [name for name, _ in storage.iter_refs("dockerimg/")] == [
        "dockerimg/a",
        "dockerimg/b",
    ]


def test_remove_ref(tmpdir: py.path.local) -> None:

    storage = RefStorage(tmpdir.join("refs").strpath)
    storage.write_ref("nested/ref/name", encoding.EMPTY_DIGEST)
    storage.remove_ref("nested/ref/name")
    assert not storage.has_ref("nested/ref/name")
    assert not tmpdir.join("refs", "nested").exists(), "empty dirs should be removed"
    with pytest.raises(graph.UnknownReferenceError):
        storage.remove_ref("nested/ref/name")


def test_ref_namespace_conflict(tmpdir: py.path.local) -> None:

    storage = RefStorage(tmpdir.join("refs").strpath)
    storage.write_ref("a/b", encoding.EMPTY_DIGEST)
    with pytest.raises(InvalidRefError):
        storage.write_ref("a", encoding.EMPTY_DIGEST)
    with pytest.raises(InvalidRefError):
        storage.write_ref("a/b/c", encoding.EMPTY_DIGEST)


@pytest.mark.parametrize(
    "ref",
    [
        "dockerimg/0123abcd",
        "dockerimg/sha256:0123abcd",
        "my-image:1.0_rc+build",
        "a/b/c",
    ],
)
def test_validate_ref_name(ref: str) -> None:

    validate_ref_name(ref)


@pytest.mark.parametrize(
    "ref",
    ["", "/abs", "trailing/", "a//b", "../up", "a/./b", ".hidden", "has space", "tab\t"],
)
def test_validate_ref_name_invalid(ref: str) -> None:

    with pytest.raises(InvalidRefError):
        validate_ref_name(ref)

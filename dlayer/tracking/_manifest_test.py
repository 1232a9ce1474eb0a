# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

import io

import pytest

from .. import encoding
from ._entry import EntryKind
from ._manifest import Manifest


def test_manifest_paths() -> None:

    manifest = Manifest()
    assert manifest.is_empty()
    manifest.mkfile("a/b/file").size = 3
    manifest.mkdirs("/a/c")

    assert manifest.list_dir("/") == ("a",)
    assert manifest.list_dir("a") == ("b", "c")
    assert manifest.get_path("/a/b/file").size == 3
    assert [path for path, _ in manifest.walk()] == ["/a", "/a/b", "/a/b/file", "/a/c"]

    with pytest.raises(FileNotFoundError):
        manifest.get_path("a/missing")
    with pytest.raises(NotADirectoryError):
        manifest.get_path("a/b/file/deeper")
    with pytest.raises(NotADirectoryError):
        manifest.mkdirs("a/b/file")
    with pytest.raises(IsADirectoryError):
        manifest.mkfile("/")


def test_manifest_remove() -> None:

    manifest = Manifest()
    manifest.mkfile("a/file")
    removed = manifest.remove("a")
    assert removed.kind is EntryKind.TREE
    assert manifest.is_empty()
    with pytest.raises(FileNotFoundError):
        manifest.remove("a")
    with pytest.raises(PermissionError):
        manifest.remove("/")


def test_manifest_encoding() -> None:

    manifest = Manifest()
    entry = manifest.mkfile("etc/hosts")
    entry.object = encoding.Hasher(b"hosts").digest()
    entry.size = 5
    entry.xattrs = (("user.note", b"\x00\x01"),)
    manifest.mkfile("bin/sh").mode = 0o120777

    stream = io.BytesIO()
    manifest.encode(stream)
    stream.seek(0)
    decoded = Manifest.decode(stream)

    assert decoded.digest() == manifest.digest()
    assert decoded.root == manifest.root
    assert decoded.get_path("bin/sh").is_symlink
    assert decoded.get_path("etc/hosts").xattrs == (("user.note", b"\x00\x01"),)

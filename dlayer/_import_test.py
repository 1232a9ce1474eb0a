# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any
import datetime
import io
import stat

import py.path
import pytest

from . import graph, storage
from ._cancel import Cancellable
from ._descriptor import LayerDescriptor
from ._errors import (
    CancelledError,
    InvalidShapeError,
    LayerImportError,
    MissingFieldError,
)
from ._import import LAYER_METADATA_KEY, import_layer, import_layer_files
from ._naming import branch_name


def test_import_layer(tmprepo: storage.ObjectStore, make_archive: Any) -> None:

    descriptor = LayerDescriptor("abc", "def", {"comment": "hello"})
    revision = import_layer(tmprepo, descriptor, make_archive({"file": "data"}))

    assert tmprepo.resolve_ref(branch_name("abc")) == revision
    metadata = tmprepo.load_commit_metadata(revision)
    assert metadata == {
        LAYER_METADATA_KEY: {"id": "abc", "parent": "def", "comment": "hello"}
    }
    manifest = tmprepo.read_manifest(tmprepo.read_commit(revision).manifest)
    assert manifest.list_dir("/") == ("file",)


def test_import_synthesizes_root(
    tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    revision = import_layer(tmprepo, {"id": "abc"}, make_archive({"file": "data"}))
    manifest = tmprepo.read_manifest(tmprepo.read_commit(revision).manifest)
    assert manifest.has_root_metadata()
    assert manifest.root.mode == stat.S_IFDIR | 0o755
    assert manifest.root.uid == 0 and manifest.root.gid == 0


def test_import_keeps_archive_root(
    tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    archive = make_archive({"./": 0o700, "file": "data"})
    revision = import_layer(tmprepo, {"id": "abc"}, archive)
    manifest = tmprepo.read_manifest(tmprepo.read_commit(revision).manifest)
    assert manifest.root.mode == stat.S_IFDIR | 0o700


def test_import_extra_ref(tmprepo: storage.ObjectStore, make_archive: Any) -> None:

    revision = import_layer(
        tmprepo, {"id": "abc"}, make_archive({"file": "data"}), extra_ref="img:latest"
    )
    assert tmprepo.resolve_ref("img:latest") == revision
    assert tmprepo.resolve_ref(branch_name("abc")) == revision


def test_reimport_moves_branch(
    tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    first = import_layer(tmprepo, {"id": "abc"}, make_archive({"file": "one"}))
    second = import_layer(tmprepo, {"id": "abc"}, make_archive({"file": "two"}))

    assert first != second
    assert tmprepo.resolve_ref(branch_name("abc")) == second
    assert tmprepo.load_commit_metadata(first)[LAYER_METADATA_KEY]["id"] == "abc"


def test_import_invalid_descriptor(
    tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    with pytest.raises(LayerImportError) as info:
        import_layer(tmprepo, {"parent": "def"}, make_archive({"file": "data"}))
    assert isinstance(info.value.__cause__, MissingFieldError)
    assert list(tmprepo.iter_refs()) == []


def test_import_descriptor_not_json(
    tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    descriptor = {"id": "abc", "created": datetime.datetime.now()}
    with pytest.raises(LayerImportError) as info:
        import_layer(tmprepo, descriptor, make_archive({"file": "data"}))
    assert isinstance(info.value.__cause__, InvalidShapeError)
    assert list(tmprepo.iter_refs()) == []


def test_import_bad_archive_publishes_nothing(
    tmprepo: storage.ObjectStore,
) -> None:

    with pytest.raises(LayerImportError) as info:
        import_layer(tmprepo, {"id": "abc"}, io.BytesIO(b"this is not a tar archive"))
    assert "abc" in str(info.value)
    assert not tmprepo.has_ref(branch_name("abc"))
    assert list(tmprepo.iter_refs()) == []


def test_import_bad_extra_ref_publishes_nothing(
    tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    with pytest.raises(LayerImportError):
        import_layer(
            tmprepo, {"id": "abc"}, make_archive({"file": "data"}), extra_ref="../bad"
        )
    assert not tmprepo.has_ref(branch_name("abc"))


def test_import_cancelled(tmprepo: storage.ObjectStore, make_archive: Any) -> None:

    cancellable = Cancellable()
    cancellable.cancel()
    with pytest.raises(CancelledError):
        import_layer(
            tmprepo,
            {"id": "abc"},
            make_archive({"file": "data"}),
            cancellable=cancellable,
        )
    assert list(tmprepo.iter_refs()) == []
    with pytest.raises(graph.UnknownReferenceError):
        tmprepo.resolve_ref(branch_name("abc"))


def test_import_layer_files(
    tmpdir: py.path.local, tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    tmpdir.join("json").write('{"id": "abc"}')
    tmpdir.join("layer.tar").write_binary(make_archive({"file": "data"}).getvalue())
    revision = import_layer_files(
        tmprepo, tmpdir.join("json").strpath, tmpdir.join("layer.tar").strpath
    )
    assert tmprepo.resolve_ref(branch_name("abc")) == revision


def test_import_layer_files_missing(
    tmpdir: py.path.local, tmprepo: storage.ObjectStore
) -> None:

    with pytest.raises(LayerImportError):
        import_layer_files(tmprepo, tmpdir.join("missing").strpath, "-")

    tmpdir.join("json").write('{"id": "abc"}')
    with pytest.raises(LayerImportError) as info:
        import_layer_files(
            tmprepo, tmpdir.join("json").strpath, tmpdir.join("missing.tar").strpath
        )
    assert "abc" in str(info.value)

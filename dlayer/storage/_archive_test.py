# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any
import stat

import py.path
import pytest

from .. import tracking
from .._cancel import Cancellable
from .._errors import CancelledError
from .fs import FSDatabase, FSPayloadStorage
from ._archive import write_archive_to_manifest, is_whiteout


@pytest.fixture
def stores(tmpdir: py.path.local) -> Any:

    return (
        FSPayloadStorage(tmpdir.join("payloads").strpath),
        FSDatabase(tmpdir.join("objects").strpath),
    )


def test_archive_contents(stores: Any, make_archive: Any) -> None:

    payloads, objects = stores
    archive = make_archive(
        {
            "etc/": 0o750,
            "etc/hosts": "127.0.0.1 localhost\n",
            "bin/sh": ("symlink", "busybox"),
            "bin/busybox": b"\x7fELF",
            "bin/ash": ("hardlink", "bin/busybox"),
        }
    )
    manifest = write_archive_to_manifest(archive, payloads, objects)

    assert manifest.list_dir("/") == ("bin", "etc")
    etc = manifest.get_path("etc")
    assert etc.kind is tracking.EntryKind.TREE
    assert stat.S_IMODE(etc.mode) == 0o750
    assert objects.has_object(etc.object)

    hosts = manifest.get_path("etc/hosts")
    assert hosts.size == len("127.0.0.1 localhost\n")
    with payloads.open_payload(hosts.object) as reader:
        assert reader.read() == b"127.0.0.1 localhost\n"

    link = manifest.get_path("bin/sh")
    assert link.is_symlink
    with payloads.open_payload(link.object) as reader:
        assert reader.read() == b"busybox"

    assert manifest.get_path("bin/ash").object == manifest.get_path("bin/busybox").object


def test_archive_root_metadata(stores: Any, make_archive: Any) -> None:

    payloads, objects = stores
    manifest = write_archive_to_manifest(
        make_archive({"file": "data"}), payloads, objects
    )
    assert not manifest.has_root_metadata()

    manifest = write_archive_to_manifest(
        make_archive({"./": 0o700, "file": "data"}), payloads, objects
    )
    assert manifest.has_root_metadata()
    assert stat.S_IMODE(manifest.root.mode) == 0o700


def test_archive_compressed(stores: Any, make_archive: Any) -> None:

    payloads, objects = stores
    archive = make_archive({"a/b/c.txt": "compressed"}, mode="w:gz")
    manifest = write_archive_to_manifest(archive, payloads, objects)
    assert manifest.get_path("/a/b/c.txt").size == len("compressed")


def test_archive_keeps_whiteouts(stores: Any, make_archive: Any) -> None:

    payloads, objects = stores
    archive = make_archive(
        {
            "etc/.wh.motd": "",
            "var/.wh..wh..opq": "",
            "usr/lib": ("whiteout",),
        }
    )
    manifest = write_archive_to_manifest(archive, payloads, objects)

    assert manifest.list_dir("etc") == (".wh.motd",)
    assert manifest.list_dir("var") == (".wh..wh..opq",)
    assert manifest.list_dir("usr") == (".wh.lib",)


def test_archive_dir_replaces_file(stores: Any, make_archive: Any) -> None:

    payloads, objects = stores
    archive = make_archive({"thing": "file first", "thing/": 0o755})
    manifest = write_archive_to_manifest(archive, payloads, objects)
    assert manifest.get_path("thing").kind is tracking.EntryKind.TREE


@pytest.mark.parametrize("name", ["../escape", "a/../../escape"])
def test_archive_rejects_escaping_paths(
    name: str, stores: Any, make_archive: Any
) -> None:

    payloads, objects = stores
    with pytest.raises(ValueError):
        write_archive_to_manifest(make_archive({name: "data"}), payloads, objects)


def test_archive_hardlink_missing_target(stores: Any, make_archive: Any) -> None:

    payloads, objects = stores
    archive = make_archive({"link": ("hardlink", "nowhere")})
    with pytest.raises(ValueError):
        write_archive_to_manifest(archive, payloads, objects)


def test_archive_cancelled(stores: Any, make_archive: Any) -> None:

    payloads, objects = stores
    cancellable = Cancellable()
    cancellable.cancel()
    with pytest.raises(CancelledError):
        write_archive_to_manifest(
            make_archive({"file": "data"}), payloads, objects, cancellable
        )


@pytest.mark.parametrize(
    "name,expected",
    [(".wh.file", True), (".wh..wh..opq", True), (".whatever", False), ("file", False)],
)
def test_is_whiteout(name: str, expected: bool) -> None:

    assert is_whiteout(name) is expected

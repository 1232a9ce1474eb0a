# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any

import py.path
import pytest

from . import storage
from ._cancel import Cancellable
from ._checkout import checkout_layer, checkout_revisions
from ._errors import CheckoutError, UnknownLayerError
from ._import import import_layer


def test_checkout_layer_chain(
    tmpdir: py.path.local, tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    a = import_layer(
        tmprepo,
        {"id": "A"},
        make_archive({"etc/motd": "hello", "etc/hosts": "a", "bin/sh": "sh"}),
    )
    b = import_layer(
        tmprepo,
        {"id": "B", "parent": "A"},
        make_archive({"etc/.wh.motd": "", "etc/hosts": "b"}),
    )
    c = import_layer(
        tmprepo,
        {"id": "C", "parent": "B"},
        make_archive({"usr/bin/tool": "tool"}),
    )

    dest = tmpdir.join("rootfs")
    revisions = checkout_layer(tmprepo, "C", dest.strpath, user_mode=True)

    assert revisions == [a, b, c]
    assert not dest.join("etc", "motd").exists()
    assert dest.join("etc", "hosts").read() == "b"
    assert dest.join("bin", "sh").read() == "sh"
    assert dest.join("usr", "bin", "tool").read() == "tool"
    assert not dest.join("etc", ".wh.motd").exists()


def test_checkout_single_root_layer(
    tmpdir: py.path.local, tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    import_layer(tmprepo, {"id": "A"}, make_archive({"file": "data"}))
    dest = tmpdir.join("rootfs")
    checkout_layer(tmprepo, "A", dest.strpath, user_mode=True)
    assert [p.basename for p in dest.listdir()] == ["file"]


def test_checkout_unknown_layer(
    tmpdir: py.path.local, tmprepo: storage.ObjectStore
) -> None:

    with pytest.raises(CheckoutError) as info:
        checkout_layer(tmprepo, "missing", tmpdir.join("rootfs").strpath)
    assert isinstance(info.value.__cause__, UnknownLayerError)
    assert info.value.revision is None
    assert not tmpdir.join("rootfs").exists()


def test_checkout_is_not_rolled_back(
    tmpdir: py.path.local, tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    a = import_layer(tmprepo, {"id": "A"}, make_archive({"x/y": "nested"}))
    b = import_layer(
        tmprepo, {"id": "B", "parent": "A"}, make_archive({"x": "file"})
    )

    dest = tmpdir.join("rootfs")
    with pytest.raises(CheckoutError) as info:
        checkout_revisions(tmprepo, [a, b], dest.strpath, user_mode=True)
    assert info.value.revision == b
    assert str(b) in str(info.value)
    assert dest.join("x", "y").read() == "nested", "first layer should remain"


def test_checkout_no_revisions(tmpdir: py.path.local, tmprepo: Any) -> None:

    with pytest.raises(CheckoutError):
        checkout_revisions(tmprepo, [], tmpdir.join("rootfs").strpath)


def test_checkout_cancelled(
    tmpdir: py.path.local, tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    a = import_layer(tmprepo, {"id": "A"}, make_archive({"file": "data"}))
    cancellable = Cancellable()
    cancellable.cancel()
    with pytest.raises(CheckoutError) as info:
        checkout_revisions(
            tmprepo, [a], tmpdir.join("rootfs").strpath, cancellable=cancellable
        )
    assert info.value.revision == a


def test_checkout_layer_into_file(
    tmpdir: py.path.local, tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    a = import_layer(tmprepo, {"id": "A"}, make_archive({"file": "data"}))
    dest = tmpdir.join("precious.txt")
    dest.write("keep me")
    with pytest.raises(CheckoutError) as info:
        checkout_layer(tmprepo, "A", dest.strpath, user_mode=True)
    assert info.value.revision == a
    assert isinstance(info.value.__cause__, NotADirectoryError)
    assert dest.read() == "keep me"


def test_checkout_layer_through_symlink(
    tmpdir: py.path.local, tmprepo: storage.ObjectStore, make_archive: Any
) -> None:

    import_layer(tmprepo, {"id": "A"}, make_archive({"file": "a"}))
    import_layer(tmprepo, {"id": "B", "parent": "A"}, make_archive({"other": "b"}))
    real = tmpdir.join("real").ensure(dir=1)
    link = tmpdir.join("link")
    link.mksymlinkto(real)
    checkout_layer(tmprepo, "B", link.strpath, user_mode=True)

    assert link.islink()
    assert sorted(p.basename for p in real.listdir()) == ["file", "other"]

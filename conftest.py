# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any, Callable, Dict
import io
import logging
import tarfile

import py.path
import pytest
import structlog

import dlayer


logging.getLogger("").setLevel(logging.DEBUG)
structlog.configure(
    processors=[
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer(),
    ],
    logger_factory=structlog.stdlib.LoggerFactory(),
    wrapper_class=structlog.stdlib.BoundLogger,
)


@pytest.fixture
def tmprepo(tmpdir: py.path.local) -> dlayer.storage.fs.FSRepository:

    root = tmpdir.join("dlayer_repo").strpath
    return dlayer.storage.fs.FSRepository(root, create=True)


@pytest.fixture
def make_archive() -> Callable[..., io.BytesIO]:

    return build_archive


def build_archive(entries: Dict[str, Any], mode: str = "w") -> io.BytesIO:
    """Build an in-memory tar archive from a simple description.

    Names ending with a slash are directories, with an optional
    int value for their permissions. Other values may be:
        - str or bytes: a regular file with that content
        - ("symlink", target): a symbolic link
        - ("hardlink", target): a hard link to an earlier member
        - ("whiteout",): an overlayfs style whiteout device
    """

    stream = io.BytesIO()
    with tarfile.open(fileobj=stream, mode=mode, format=tarfile.PAX_FORMAT) as tar:
        for name, value in entries.items():
            info = tarfile.TarInfo(name.rstrip("/") or ".")
            info.uid = info.gid = 0
            if name.endswith("/"):
                info.type = tarfile.DIRTYPE
                info.mode = value if isinstance(value, int) else 0o755
                tar.addfile(info)
            elif isinstance(value, (str, bytes)):
                data = value.encode("utf-8") if isinstance(value, str) else value
                info.mode = 0o644
                info.size = len(data)
                tar.addfile(info, io.BytesIO(data))
            elif value[0] == "symlink":
                info.type = tarfile.SYMTYPE
                info.linkname = value[1]
                info.mode = 0o777
                tar.addfile(info)
            elif value[0] == "hardlink":
                info.type = tarfile.LNKTYPE
                info.linkname = value[1]
                info.mode = 0o644
                tar.addfile(info)
            elif value[0] == "whiteout":
                info.type = tarfile.CHRTYPE
                info.devmajor = info.devminor = 0
                info.mode = 0o600
                tar.addfile(info)
            else:
                raise ValueError(f"Unsupported archive entry: {value}")
    stream.seek(0)
    return stream


@pytest.fixture
def commit_archive() -> Callable[..., dlayer.encoding.Digest]:
    """Commit a described archive to a repository, returning the revision."""

    def commit(
        repo: dlayer.storage.ObjectStore, entries: Dict[str, Any]
    ) -> dlayer.encoding.Digest:

        with repo.transaction() as txn:
            manifest = txn.write_archive(build_archive(entries))
            if not manifest.has_root_metadata():
                meta = dlayer.storage.DEFAULT_ROOT_DIRMETA
                meta.apply_to(manifest.root, txn.write_dirmeta(meta))
            revision = txn.write_commit(txn.write_manifest(manifest), {})
        return revision

    return commit

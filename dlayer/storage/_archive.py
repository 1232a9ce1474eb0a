# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import BinaryIO, Optional
import io
import posixpath
import stat
import tarfile

import structlog

from .. import graph, tracking
from .._cancel import Cancellable
from ._dirmeta import DirMeta
from ._payload import PayloadStorage

_LOGGER = structlog.get_logger("dlayer.storage.archive")
_XATTR_PREFIX = "SCHILY.xattr."
WHITEOUT_PREFIX = ".wh."
OPAQUE_WHITEOUT = ".wh..wh..opq"


def write_archive_to_manifest(
    reader: BinaryIO,
    payloads: PayloadStorage,
    objects: graph.Database,
    cancellable: Cancellable = None,
) -> tracking.Manifest:
    """Ingest a (possibly compressed) tar stream into a new manifest.

    File data is written to the given payload storage, and directory
    attributes to the object database. Whiteout markers are kept as
    ordinary entries so that they can be interpreted at checkout time.
    Overlayfs style whiteouts (character devices numbered 0/0) are
    converted into marker files. The root directory of the manifest
    is only given metadata if the archive has an entry for it.

    Raises:
        ValueError: if the archive contains a path that escapes its root,
            or a hard link to a file that it has not yet defined
        tarfile.TarError: if the stream is not a readable archive
    """

    manifest = tracking.Manifest()
    with tarfile.open(fileobj=reader, mode="r|*") as tar:
        for member in tar:
            if cancellable is not None:
                cancellable.raise_if_cancelled()
            path = _normalize_member_name(member.name)
            if path is None:
                if member.isdir():
                    _write_dir(manifest.root, member, objects)
                continue

            if member.isdir():
                _remove_non_dir(manifest, path)
                _write_dir(manifest.mkdirs(path), member, objects)

            elif member.isreg():
                entry = manifest.mkfile(path)
                with tar.extractfile(member) as data:  # type: ignore
                    entry.object = payloads.write_payload(data)
                _set_attrs(entry, member, stat.S_IFREG)
                entry.size = member.size

            elif member.issym():
                target = member.linkname.encode("utf-8", "surrogateescape")
                entry = manifest.mkfile(path)
                entry.object = payloads.write_payload(io.BytesIO(target))
                _set_attrs(entry, member, stat.S_IFLNK)
                entry.mode = stat.S_IFLNK | 0o777
                entry.size = len(target)

            elif member.islnk():
                _write_hardlink(manifest, path, member)

            elif _is_overlay_whiteout(member):
                dirname, name = posixpath.split(path)
                marker = posixpath.join(dirname, WHITEOUT_PREFIX + name)
                entry = manifest.mkfile(marker)
                entry.object = payloads.write_payload(io.BytesIO(b""))
                _set_attrs(entry, member, stat.S_IFREG)
                entry.mode = stat.S_IFREG | 0o600

            else:
                _LOGGER.warning("ignoring special file in archive", path=path)

    return manifest


def is_whiteout(name: str) -> bool:
    """Return true if the given file name marks a removed entry."""

    return name.startswith(WHITEOUT_PREFIX)


def _normalize_member_name(name: str) -> Optional[str]:

    normalized = posixpath.normpath(name.lstrip("/"))
    if normalized in ("", "."):
        return None
    if normalized == ".." or normalized.startswith("../"):
        raise ValueError(f"Refusing archive member outside of the root: {name}")
    return normalized


def _write_dir(
    entry: tracking.Entry, member: tarfile.TarInfo, objects: graph.Database
) -> None:

    meta = DirMeta(
        mode=stat.S_IFDIR | stat.S_IMODE(member.mode),
        uid=member.uid,
        gid=member.gid,
        xattrs=_read_xattrs(member),
    )
    objects.write_object(meta)
    meta.apply_to(entry, meta.digest())


def _write_hardlink(
    manifest: tracking.Manifest, path: str, member: tarfile.TarInfo
) -> None:

    target_path = _normalize_member_name(member.linkname)
    try:
        if target_path is None:
            raise FileNotFoundError(member.linkname)
        target = manifest.get_path(target_path)
    except (FileNotFoundError, NotADirectoryError):
        raise ValueError(
            f"Hard link to a file not found in archive: {path} -> {member.linkname}"
        ) from None
    if target.kind is not tracking.EntryKind.BLOB:
        raise ValueError(f"Hard link to a directory is not allowed: {path}")

    entry = manifest.mkfile(path)
    entry.object = target.object
    entry.mode = target.mode
    entry.size = target.size
    entry.uid = target.uid
    entry.gid = target.gid
    entry.xattrs = target.xattrs


def _set_attrs(entry: tracking.Entry, member: tarfile.TarInfo, kind: int) -> None:

    entry.mode = kind | stat.S_IMODE(member.mode)
    entry.uid = member.uid
    entry.gid = member.gid
    entry.xattrs = _read_xattrs(member)


def _read_xattrs(member: tarfile.TarInfo) -> tracking.Xattrs:

    xattrs = []
    for key, value in member.pax_headers.items():
        if not key.startswith(_XATTR_PREFIX):
            continue
        name = key[len(_XATTR_PREFIX) :]
        xattrs.append((name, value.encode("utf-8", "surrogateescape")))
    return tuple(sorted(xattrs))


def _is_overlay_whiteout(member: tarfile.TarInfo) -> bool:

    # overlayfs uses character device files to denote
    # a file that was removed, using this special file
    # as a whiteout file of the same name.
    # - the device is always 0/0
    return member.ischr() and member.devmajor == 0 and member.devminor == 0


def _remove_non_dir(manifest: tracking.Manifest, path: str) -> None:
    """Make room for a directory entry at path."""

    try:
        existing = manifest.get_path(path)
    except (FileNotFoundError, NotADirectoryError):
        return
    if existing.kind is not tracking.EntryKind.TREE:
        manifest.remove(path)

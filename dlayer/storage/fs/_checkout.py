# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Tuple
import os
import stat
import uuid
import shutil

import structlog

from ... import encoding, tracking
from .._archive import WHITEOUT_PREFIX, OPAQUE_WHITEOUT, is_whiteout
from .._options import CheckoutOptions, OverwriteMode
from .._payload import PayloadStorage

_LOGGER = structlog.get_logger("dlayer.storage.fs")
_DIR_FLAGS = os.O_RDONLY | os.O_DIRECTORY | os.O_NOFOLLOW


def checkout_manifest(
    manifest: tracking.Manifest,
    payloads: PayloadStorage,
    options: CheckoutOptions,
    destination: str,
    dir_fd: int = None,
) -> None:
    """Write the contents of a manifest into the destination directory.

    The destination is resolved relative to dir_fd when given, and
    created when it does not exist. An existing destination is opened
    through any symlink and is never replaced. Within the tree, union
    mode merges existing directories and replaces any other entry. Directory
    attributes are applied to directories that are created, and to
    existing ones when the manifest recorded attributes for them.

    Raises:
        FileExistsError: if an entry exists and overwriting is disabled
        NotADirectoryError: if the destination exists and is not a directory
        IsADirectoryError: if a file would replace an existing directory
        graph.UnknownObjectError: if a payload of the manifest is missing
    """

    fd, created = _open_destination(dir_fd, destination, options)
    try:
        _checkout_tree(fd, manifest.root, payloads, options)
        if created or manifest.has_root_metadata():
            _set_dir_attrs(fd, manifest.root, options)
    finally:
        os.close(fd)


def _checkout_tree(
    dir_fd: int,
    tree: tracking.Entry,
    payloads: PayloadStorage,
    options: CheckoutOptions,
) -> None:

    names = sorted(tree)
    if options.process_whiteouts:
        if OPAQUE_WHITEOUT in tree:
            _clear_dir(dir_fd)
        for name in names:
            if name == OPAQUE_WHITEOUT or not is_whiteout(name):
                continue
            target = name[len(WHITEOUT_PREFIX) :]
            if target in ("", ".", ".."):
                _LOGGER.warning("ignoring invalid whiteout", name=name)
                continue
            _remove_at(dir_fd, target)

    for name in names:
        if options.process_whiteouts and is_whiteout(name):
            continue
        entry = tree[name]
        if entry.kind is tracking.EntryKind.TREE:
            created = _make_dir_at(dir_fd, name, options)
            child_fd = os.open(name, _DIR_FLAGS, dir_fd=dir_fd)
            try:
                _checkout_tree(child_fd, entry, payloads, options)
                if created or entry.object != encoding.NULL_DIGEST:
                    _set_dir_attrs(child_fd, entry, options)
            finally:
                os.close(child_fd)
        elif entry.is_symlink:
            _write_symlink(dir_fd, name, entry, payloads, options)
        else:
            _write_file(dir_fd, name, entry, payloads, options)


def _open_destination(
    dir_fd: int, destination: str, options: CheckoutOptions
) -> Tuple[int, bool]:

    try:
        os.mkdir(destination, 0o700, dir_fd=dir_fd)
        created = True
    except FileExistsError:
        if options.overwrite is not OverwriteMode.UNION_FILES:
            raise
        created = False
    fd = os.open(destination, os.O_RDONLY | os.O_DIRECTORY, dir_fd=dir_fd)
    return fd, created


def _make_dir_at(dir_fd: int, name: str, options: CheckoutOptions) -> bool:
    """Ensure a directory exists at name, returning true if it was created."""

    try:
        os.mkdir(name, 0o700, dir_fd=dir_fd)
        return True
    except FileExistsError:
        if options.overwrite is not OverwriteMode.UNION_FILES:
            raise
    existing = os.stat(name, dir_fd=dir_fd, follow_symlinks=False)
    if stat.S_ISDIR(existing.st_mode):
        return False
    os.unlink(name, dir_fd=dir_fd)
    os.mkdir(name, 0o700, dir_fd=dir_fd)
    return True


def _write_file(
    dir_fd: int,
    name: str,
    entry: tracking.Entry,
    payloads: PayloadStorage,
    options: CheckoutOptions,
) -> None:

    working_name = _working_name(name, options)
    fd = os.open(
        working_name,
        os.O_WRONLY | os.O_CREAT | os.O_EXCL | os.O_NOFOLLOW,
        0o600,
        dir_fd=dir_fd,
    )
    try:
        with os.fdopen(fd, "wb") as writer:
            with payloads.open_payload(entry.object) as reader:
                shutil.copyfileobj(reader, writer)
            _set_file_attrs(writer.fileno(), entry, options)
        _rename_into_place(dir_fd, working_name, name)
    except BaseException:
        if working_name != name:
            os.unlink(working_name, dir_fd=dir_fd)
        raise


def _write_symlink(
    dir_fd: int,
    name: str,
    entry: tracking.Entry,
    payloads: PayloadStorage,
    options: CheckoutOptions,
) -> None:

    with payloads.open_payload(entry.object) as reader:
        target = os.fsdecode(reader.read())

    working_name = _working_name(name, options)
    os.symlink(target, working_name, dir_fd=dir_fd)
    try:
        if not options.user_mode:
            os.chown(
                working_name,
                entry.uid,
                entry.gid,
                dir_fd=dir_fd,
                follow_symlinks=False,
            )
        _rename_into_place(dir_fd, working_name, name)
    except BaseException:
        if working_name != name:
            os.unlink(working_name, dir_fd=dir_fd)
        raise


def _working_name(name: str, options: CheckoutOptions) -> str:

    if options.overwrite is OverwriteMode.UNION_FILES:
        return f".dlayer-{uuid.uuid4().hex}"
    return name


def _rename_into_place(dir_fd: int, working_name: str, name: str) -> None:

    if working_name == name:
        return
    try:
        existing = os.stat(name, dir_fd=dir_fd, follow_symlinks=False)
    except FileNotFoundError:
        pass
    else:
        if stat.S_ISDIR(existing.st_mode):
            raise IsADirectoryError(
                f"Cannot replace existing directory with a file: {name}"
            )
    os.replace(working_name, name, src_dir_fd=dir_fd, dst_dir_fd=dir_fd)


def _set_file_attrs(fd: int, entry: tracking.Entry, options: CheckoutOptions) -> None:

    mode = stat.S_IMODE(entry.mode)
    if options.user_mode:
        mode &= ~(stat.S_ISUID | stat.S_ISGID)
    else:
        os.fchown(fd, entry.uid, entry.gid)
        for key, value in entry.xattrs:
            os.setxattr(fd, key, value)
    os.fchmod(fd, mode)


def _set_dir_attrs(fd: int, entry: tracking.Entry, options: CheckoutOptions) -> None:

    mode = stat.S_IMODE(entry.mode)
    if options.user_mode:
        # the owner must always be able to write into
        # checked out directories in order to apply later layers
        mode |= stat.S_IRWXU
    else:
        os.fchown(fd, entry.uid, entry.gid)
        for key, value in entry.xattrs:
            os.setxattr(fd, key, value)
    os.fchmod(fd, mode)


def _remove_at(dir_fd: int, name: str) -> None:

    try:
        existing = os.stat(name, dir_fd=dir_fd, follow_symlinks=False)
    except FileNotFoundError:
        return
    if not stat.S_ISDIR(existing.st_mode):
        os.unlink(name, dir_fd=dir_fd)
        return

    child_fd = os.open(name, _DIR_FLAGS, dir_fd=dir_fd)
    try:
        _clear_dir(child_fd)
    finally:
        os.close(child_fd)
    os.rmdir(name, dir_fd=dir_fd)


def _clear_dir(dir_fd: int) -> None:

    mode = os.fstat(dir_fd).st_mode
    if stat.S_IMODE(mode) & stat.S_IRWXU != stat.S_IRWXU:
        os.fchmod(dir_fd, stat.S_IMODE(mode) | stat.S_IRWXU)
    for name in os.listdir(dir_fd):
        _remove_at(dir_fd, name)

# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any
import argparse

from colorama import Fore

import dlayer


def register(
    sub_parsers: argparse._SubParsersAction, **parser_args: Any
) -> argparse.ArgumentParser:

    info_cmd = sub_parsers.add_parser(
        "info", help=_info.__doc__, description=_info.__doc__, **parser_args
    )
    info_cmd.add_argument("layer", metavar="LAYER", help="The id of the layer")
    info_cmd.add_argument(
        "--files", "-f", action="store_true", help="Also list the files of the layer"
    )
    info_cmd.set_defaults(func=_info)
    return info_cmd


def _info(args: argparse.Namespace, config: dlayer.Config, _: dlayer.Cancellable) -> None:
    """Display the stored metadata of a layer."""

    repo = config.get_repository()
    descriptor, revision = dlayer.read_layer(repo, args.layer)
    commit = repo.read_commit(revision)

    print(f"{Fore.GREEN}layer:{Fore.RESET} {descriptor.id}")
    print(f" {Fore.LIGHTBLUE_EX}revision:{Fore.RESET} {dlayer.io.format_digest(revision)}")
    print(f" {Fore.LIGHTBLUE_EX}parent:{Fore.RESET} {descriptor.parent or '-'}")
    print(f" {Fore.LIGHTBLUE_EX}imported:{Fore.RESET} {commit.time.isoformat()}")
    print(dlayer.io.format_document(dlayer.encode(descriptor)))

    if not args.files:
        return
    manifest = repo.read_manifest(commit.manifest)
    for path, entry in manifest.walk():
        print(dlayer.io.format_entry(path, entry))

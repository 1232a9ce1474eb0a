# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any
import sys
import argparse

import dlayer


def register(
    sub_parsers: argparse._SubParsersAction, **parser_args: Any
) -> argparse.ArgumentParser:

    resolve_cmd = sub_parsers.add_parser(
        "resolve", help=_resolve.__doc__, description=_resolve.__doc__, **parser_args
    )
    resolve_cmd.add_argument("layer", metavar="LAYER", help="The id of the layer")
    resolve_cmd.set_defaults(func=_resolve)
    return resolve_cmd


def _resolve(
    args: argparse.Namespace, config: dlayer.Config, cancellable: dlayer.Cancellable
) -> None:
    """Show the ancestry of a layer, root first."""

    repo = config.get_repository()
    chain = dlayer.resolve_descriptors(
        repo, args.layer, config.max_layers, cancellable=cancellable
    )
    print(dlayer.io.format_chain(chain, color=sys.stdout.isatty()))

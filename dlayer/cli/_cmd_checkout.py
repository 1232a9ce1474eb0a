# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any
import argparse

import dlayer


def register(
    sub_parsers: argparse._SubParsersAction, **parser_args: Any
) -> argparse.ArgumentParser:

    checkout_cmd = sub_parsers.add_parser(
        "checkout", help=_checkout.__doc__, description=_checkout.__doc__, **parser_args
    )
    checkout_cmd.add_argument("layer", metavar="LAYER", help="The id of the layer")
    checkout_cmd.add_argument(
        "destination", metavar="DESTINATION", help="The directory to check out into"
    )
    checkout_cmd.add_argument(
        "--user-mode",
        "-U",
        action="store_true",
        help="Do not change file ownership or set extended attributes",
    )
    checkout_cmd.set_defaults(func=_checkout)
    return checkout_cmd


def _checkout(
    args: argparse.Namespace, config: dlayer.Config, cancellable: dlayer.Cancellable
) -> None:
    """Check out a layer, with all of its parents, into a directory."""

    repo = config.get_repository()
    dlayer.checkout_layer(
        repo,
        args.layer,
        args.destination,
        user_mode=config.user_mode,
        max_layers=config.max_layers,
        cancellable=cancellable,
    )

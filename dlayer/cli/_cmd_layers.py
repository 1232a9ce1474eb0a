# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any
import argparse

import dlayer


def register(
    sub_parsers: argparse._SubParsersAction, **parser_args: Any
) -> argparse.ArgumentParser:

    layers_cmd = sub_parsers.add_parser(
        "layers", help=_layers.__doc__, description=_layers.__doc__, **parser_args
    )
    layers_cmd.set_defaults(func=_layers)
    return layers_cmd


def _layers(
    args: argparse.Namespace, config: dlayer.Config, _: dlayer.Cancellable
) -> None:
    """List the layers in the repository."""

    repo = config.get_repository()
    for ref, revision in repo.iter_refs(dlayer.BRANCH_PREFIX):
        layer_id = dlayer.layer_id_from_branch(ref)
        if layer_id is None:
            continue
        print(f"{layer_id} {dlayer.io.format_digest(revision, short=not args.verbose)}")

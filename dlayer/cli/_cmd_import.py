# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any
import argparse

import dlayer


def register(
    sub_parsers: argparse._SubParsersAction, **parser_args: Any
) -> argparse.ArgumentParser:

    import_cmd = sub_parsers.add_parser(
        "import",
        aliases=["importone"],
        help=_import.__doc__,
        description=_import.__doc__,
        **parser_args,
    )
    import_cmd.add_argument(
        "descriptor", metavar="DESCRIPTOR", help="The json metadata file of the layer"
    )
    import_cmd.add_argument(
        "archive",
        metavar="ARCHIVE",
        nargs="?",
        default="-",
        help="The layer tar archive, read from stdin if not given or '-'",
    )
    import_cmd.add_argument(
        "--tag", "-t", metavar="REF", help="Also point this ref at the new revision"
    )
    import_cmd.set_defaults(func=_import)
    return import_cmd


def _import(
    args: argparse.Namespace, config: dlayer.Config, cancellable: dlayer.Cancellable
) -> None:
    """Import a single layer archive and its metadata into the repository."""

    repo = config.get_repository(create=True)
    revision = dlayer.import_layer_files(
        repo,
        args.descriptor,
        args.archive,
        extra_ref=args.tag,
        cancellable=cancellable,
    )
    print(dlayer.io.format_digest(revision))

# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Sequence
import os
import sys
import getpass
import logging
import argparse

import sentry_sdk
import structlog
import colorama

import dlayer
from . import (
    _cmd_checkout,
    _cmd_import,
    _cmd_info,
    _cmd_layers,
    _cmd_resolve,
    _cmd_version,
)


def parse_args(argv: Sequence[str]) -> argparse.Namespace:

    parser = argparse.ArgumentParser(
        prog=dlayer.__name__,
        description=dlayer.__doc__,
        parents=[_global_flags(suppress=False)],
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {dlayer.__version__}"
    )

    sub_parsers = parser.add_subparsers(
        dest="command", title="commands", metavar="COMMAND"
    )

    # defaults of the subcommands must not replace global flags given before them
    command_flags = _global_flags(suppress=True)
    _cmd_import.register(sub_parsers, parents=[command_flags])
    _cmd_checkout.register(sub_parsers, parents=[command_flags])
    _cmd_layers.register(sub_parsers, parents=[command_flags])
    _cmd_resolve.register(sub_parsers, parents=[command_flags])
    _cmd_info.register(sub_parsers, parents=[command_flags])
    _cmd_version.register(sub_parsers, parents=[command_flags])

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help(sys.stderr)
        sys.exit(1)
    return args


def _global_flags(suppress: bool) -> argparse.ArgumentParser:

    flags = argparse.ArgumentParser(add_help=False)
    flags.add_argument(
        "--verbose",
        "-v",
        action="count",
        help="Enable verbose output (can be specified more than once)",
        default=argparse.SUPPRESS if suppress else int(os.getenv("DLAYER_VERBOSITY", 0)),
    )
    flags.add_argument(
        "--repo",
        metavar="PATH",
        help="The repository to work with (default: $DLAYER_STORAGE_ROOT)",
        default=argparse.SUPPRESS if suppress else None,
    )
    return flags


def configure_sentry(config: dlayer.Config) -> bool:
    """Initialize error reporting if a sentry dsn is configured."""

    dsn = config.sentry_dsn
    if dsn is None:
        return False

    from sentry_sdk.integrations.stdlib import StdlibIntegration
    from sentry_sdk.integrations.excepthook import ExcepthookIntegration
    from sentry_sdk.integrations.dedupe import DedupeIntegration
    from sentry_sdk.integrations.atexit import AtexitIntegration
    from sentry_sdk.integrations.logging import LoggingIntegration, ignore_logger
    from sentry_sdk.integrations.argv import ArgvIntegration
    from sentry_sdk.integrations.modules import ModulesIntegration

    sentry_sdk.init(
        dsn,
        environment=os.getenv("SENTRY_ENVIRONMENT", "production"),
        release=dlayer.__version__,
        default_integrations=False,
        integrations=[
            StdlibIntegration(),
            ExcepthookIntegration(),
            DedupeIntegration(),
            AtexitIntegration(),
            LoggingIntegration(),
            ArgvIntegration(),
            ModulesIntegration(),
        ],
    )
    # the cli uses the logger after capturing errors explicitly,
    # so in this case we'll ask sentry to ignore all logging errors
    ignore_logger("dlayer.cli")
    sentry_sdk.set_user({"username": getpass.getuser()})
    return True


def configure_logging(args: argparse.Namespace) -> None:

    colorama.init()

    level = logging.INFO
    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
    ]

    if args.verbose > 0:
        level = logging.DEBUG
        processors.extend(
            [
                structlog.stdlib.add_logger_name,
                structlog.processors.StackInfoRenderer(),
                structlog.processors.format_exc_info,
            ]
        )

    processors.append(structlog.dev.ConsoleRenderer())

    logging.basicConfig(stream=sys.stderr, format="%(message)s", level=level)
    logging.getLogger().setLevel(level)
    structlog.configure(
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        processors=processors,
    )

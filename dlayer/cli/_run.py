# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any, Iterator, Sequence
import sys
import signal
import traceback
import contextlib

import sentry_sdk
import structlog
from colorama import Fore

import dlayer

from ._args import parse_args, configure_logging, configure_sentry

_LOGGER = structlog.get_logger("dlayer.cli")


def main() -> None:

    code = run(sys.argv[1:])
    sentry_sdk.flush()
    sys.exit(code)


def run(argv: Sequence[str]) -> int:

    try:
        args = parse_args(argv)
    except SystemExit as e:
        return e.code  # type: ignore

    configure_logging(args)

    try:
        config = dlayer.load_config()
        if args.repo is not None:
            config["storage"]["root"] = args.repo
        if getattr(args, "user_mode", False):
            config["checkout"]["user_mode"] = "true"
    except Exception as e:
        print(_format_error(e), file=sys.stderr)
        return 1

    try:
        configure_sentry(config)
    except Exception as e:
        print(f"failed to initialize sentry: {e}", file=sys.stderr)

    sentry_sdk.set_extra("command", args.command)
    sentry_sdk.set_extra("argv", sys.argv)

    cancellable = dlayer.Cancellable()
    try:
        with _cancel_on_interrupt(cancellable):
            args.func(args, config, cancellable)

    except SystemExit as e:
        return e.code  # type: ignore

    except Exception as e:
        _capture_if_relevant(e)
        print(_format_error(e), file=sys.stderr)
        if args.verbose > 2:
            print(f"{Fore.RED}{traceback.format_exc()}{Fore.RESET}", file=sys.stderr)
        return 1

    return 0


def _format_error(err: BaseException) -> str:

    return dlayer.io.format_error(err, color=sys.stdout.isatty())


@contextlib.contextmanager
def _cancel_on_interrupt(cancellable: dlayer.Cancellable) -> Iterator[None]:
    """Turn a keyboard interrupt into a request to cancel the running operation."""

    def _handler(signum: int, _: Any) -> None:
        _LOGGER.warning("interrupted, stopping...")
        cancellable.cancel()

    try:
        previous = signal.signal(signal.SIGINT, _handler)
    except ValueError:
        # not the main thread, so interrupts cannot be handled here
        yield
        return
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


def _capture_if_relevant(err: Exception) -> None:

    if isinstance(err, dlayer.ConfigError):
        return
    if isinstance(err, dlayer.DecodeError):
        return
    if isinstance(err, dlayer.ResolveError):
        return
    if isinstance(err, (dlayer.LayerImportError, dlayer.CheckoutError)):
        # only failures of the repository itself are worth reporting
        if not isinstance(err.__cause__, (OSError, dlayer.storage.TransactionError)):
            return
    sentry_sdk.capture_exception(err)

# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Any, Dict, Iterable, Tuple
import stat

from colorama import Fore, Style
import simplejson

from . import encoding, tracking
from ._descriptor import LayerDescriptor


def format_error(err: BaseException, color: bool = True) -> str:
    """Return the single line message for an error, as shown to users."""

    message = str(err) or type(err).__name__
    message = " ".join(message.splitlines())
    if not color:
        return f"error: {message}"
    return f"{Fore.RED}{Style.BRIGHT}error:{Style.RESET_ALL} {message}"


def format_digest(digest: encoding.Digest, short: bool = False) -> str:
    """Return a string representation of the given revision."""

    digest_str = digest.str()
    if short:
        return digest_str[:10]
    return digest_str


def format_chain(
    chain: Iterable[Tuple[LayerDescriptor, encoding.Digest]], color: bool = True
) -> str:
    """Return a human readable rendering of a resolved layer chain."""

    lines = []
    for i, (descriptor, revision) in enumerate(chain):
        if color:
            lines.append(
                f"{Style.DIM}{i:>4}{Style.RESET_ALL} {Fore.GREEN}{descriptor.id}{Fore.RESET}"
                f" {Fore.LIGHTBLUE_EX}{format_digest(revision)}{Fore.RESET}"
            )
        else:
            lines.append(f"{i:>4} {descriptor.id} {format_digest(revision)}")
    return "\n".join(lines)


def format_document(document: Dict[str, Any]) -> str:
    """Return a stable, indented json rendering of a metadata document."""

    return simplejson.dumps(document, sort_keys=True, indent=2)


def format_entry(path: str, entry: tracking.Entry) -> str:
    """Return an ls-like rendering of a single manifest entry."""

    return f"{stat.filemode(entry.mode)} {entry.uid:>5} {entry.gid:>5} {entry.size:>10} {path}"

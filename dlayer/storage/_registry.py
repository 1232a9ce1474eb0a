# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Callable, Dict
import urllib.parse

from ._repository import ObjectStore

RepositoryFactory = Callable[..., ObjectStore]

_FACTORIES: Dict[str, RepositoryFactory] = {}


def register_scheme(scheme: str, factory: RepositoryFactory) -> None:
    """Register a factory for opening repositories with the given url scheme."""

    _FACTORIES[scheme] = factory


def open_repository(address: str, create: bool = False) -> ObjectStore:
    """Open the repository at the given address or local path.

    Raises:
        ValueError: if the address scheme is not supported, or the
            address does not identify a valid repository
    """

    scheme = urllib.parse.urlparse(address).scheme
    try:
        factory = _FACTORIES[scheme]
    except KeyError:
        raise ValueError(f"Unsupported repository address scheme: '{scheme}'")
    return factory(address, create=create)

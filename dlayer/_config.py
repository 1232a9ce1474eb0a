# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from typing import Mapping, Optional
import os
import errno
import configparser

import structlog

from . import storage
from ._resolve import DEFAULT_MAX_LAYERS

_DEFAULTS = {
    "storage": {"root": ""},
    "resolve": {"max_layers": str(DEFAULT_MAX_LAYERS)},
    "checkout": {"user_mode": "false"},
    "sentry": {"dsn": ""},
}
_ENV_PREFIX = "DLAYER_"
_LOGGER = structlog.get_logger("dlayer.config")

SYSTEM_CONFIG = "/etc/dlayer.conf"
USER_CONFIG = "~/.config/dlayer/dlayer.conf"


class ConfigError(ValueError):
    """Denotes missing or invalid configuration."""

    pass


class Config(configparser.ConfigParser):
    """The settings of one dlayer invocation."""

    def __init__(self) -> None:
        super(Config, self).__init__(interpolation=None)
        self.read_dict(_DEFAULTS)

    @property
    def storage_root(self) -> str:
        """Return the address of the repository to work with.

        Raises:
            ConfigError: if no repository was configured
        """

        root = self["storage"]["root"].strip()
        if not root:
            raise ConfigError(
                "No repository specified, use --repo or set DLAYER_STORAGE_ROOT"
            )
        return root

    @property
    def max_layers(self) -> int:
        """Return the maximum number of layers allowed in one ancestry chain."""

        try:
            value = self.getint("resolve", "max_layers")
        except ValueError as e:
            raise ConfigError(f"Invalid resolve.max_layers: {e}") from None
        if value < 1:
            raise ConfigError(f"Invalid resolve.max_layers: {value} (must be >= 1)")
        return value

    @property
    def user_mode(self) -> bool:
        """Return true if checkouts should not replicate ownership and xattrs."""

        try:
            return self.getboolean("checkout", "user_mode")
        except ValueError as e:
            raise ConfigError(f"Invalid checkout.user_mode: {e}") from None

    @property
    def sentry_dsn(self) -> Optional[str]:
        """Return the sentry dsn that errors are reported to, if any."""

        return self["sentry"]["dsn"].strip() or None

    def get_repository(self, create: bool = False) -> storage.ObjectStore:
        """Open the configured repository.

        Raises:
            ConfigError: if no repository was configured
            ValueError: if the repository cannot be opened
        """

        return storage.open_repository(self.storage_root, create=create)


def load_config(environ: Mapping[str, str] = None) -> Config:
    """Load the dlayer configuration.

    This includes the default, system and user configurations,
    if they exist, followed by any DLAYER_<SECTION>_<KEY>
    environment variables.
    """

    if environ is None:
        environ = os.environ
    config = Config()
    for filepath in (SYSTEM_CONFIG, os.path.expanduser(USER_CONFIG)):
        try:
            with open(filepath, "r", encoding="utf-8") as f:
                config.read_file(f, source=filepath)
        except OSError as e:
            if e.errno != errno.ENOENT:
                raise
        else:
            _LOGGER.debug("loaded config file", path=filepath)

    for name, value in environ.items():
        if not name.startswith(_ENV_PREFIX):
            continue
        section, _, key = name[len(_ENV_PREFIX) :].lower().partition("_")
        if not key or not config.has_section(section):
            continue
        config[section][key] = value
    return config

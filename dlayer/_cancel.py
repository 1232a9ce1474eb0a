# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

import threading

from ._errors import CancelledError


class Cancellable:
    """A cooperative cancellation token.

    Long running operations check the token between steps, and stop
    with a CancelledError once it has been cancelled. The token may be
    cancelled from another thread or from a signal handler.
    """

    def __init__(self) -> None:

        self._event = threading.Event()

    def cancel(self) -> None:
        """Request that any operation using this token stop."""

        self._event.set()

    def is_cancelled(self) -> bool:

        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        """Raise a CancelledError if this token has been cancelled."""

        if self._event.is_set():
            raise CancelledError()

# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

#!/usr/bin/env python3
"""Command-line entrypoint for dlayer."""
import dlayer.cli

if __name__ == "__main__":
    dlayer.cli.main()

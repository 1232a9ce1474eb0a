# Copyright (c) 2021 Sony Pictures Imageworks, et al.
# SPDX-License-Identifier: Apache-2.0
# https://github.com/imageworks/spk

from ._payloads import FSPayloadStorage, makedirs_with_perms
from ._database import FSDatabase
from ._refs import RefStorage, validate_ref_name
from ._transaction import FSTransaction
from ._checkout import checkout_manifest
from ._repository import (
    FSRepository,
    MigrationRequiredError,
    read_last_migration_version,
    set_last_migration,
)

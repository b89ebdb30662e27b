"""
kadmin - constants

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from typing import Final

NO_ERROR: Final = 0
NO_CONTROLLER_ID: Final = -1
NO_LEADER_ID: Final = -1

# ListOffsets sentinels understood by the brokers
EARLIEST_OFFSET: Final = -2
LATEST_OFFSET: Final = -1

DEFAULT_REQUEST_TIMEOUT_MS: Final = 5000
LEADER_WAIT_DELAY_MS: Final = 100
LEADER_WAIT_TIMEOUT_MS: Final = 10000
LEADER_WAIT_TIMEOUT_MESSAGE: Final = "Timed out while waiting for topic leaders"
OFFSET_COMMIT_TIMEOUT_MS: Final = 30000

"""
Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from kadmin.container import KadminContainer

import pytest


@pytest.fixture(name="kadmin_container")
def fixture_kadmin_container() -> KadminContainer:
    return KadminContainer()

"""
kadmin - administrative coordination layer for Kafka clusters

Copyright (c) 2024 Aiven Ltd
See LICENSE for details
"""
from __future__ import annotations

from kadmin.admin.client import KafkaAdmin
from kadmin.events import AdminEvents

__all__ = ("AdminEvents", "KafkaAdmin", "__version__")

__version__ = "0.1.0"

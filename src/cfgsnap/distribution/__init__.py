"""
Runtime distribution of ConfigSnapshot payloads.

Public API::

    from cfgsnap.distribution import (
        ConfigPublisher,
        SnapshotReceiver,
        SqlRowSource,
        SqlVersionStore,
        HttpTransmitter,
    )
"""

from cfgsnap.distribution.models import (
    Accepted,
    PublishResult,
    Rejected,
    SnapshotCounts,
    Verdict,
)
from cfgsnap.distribution.publisher import ConfigPublisher
from cfgsnap.distribution.receiver import SnapshotReceiver
from cfgsnap.distribution.sequencer import MemoryVersionStore, SqlVersionStore, VersionStore
from cfgsnap.distribution.sources import RowSource, SqlRowSource, StaticRowSource, make_engine
from cfgsnap.distribution.transport import HttpTransmitter, Transmitter

__all__ = [
    "ConfigPublisher",
    "SnapshotReceiver",
    "PublishResult",
    "SnapshotCounts",
    "Accepted",
    "Rejected",
    "Verdict",
    "VersionStore",
    "SqlVersionStore",
    "MemoryVersionStore",
    "RowSource",
    "SqlRowSource",
    "StaticRowSource",
    "make_engine",
    "Transmitter",
    "HttpTransmitter",
]

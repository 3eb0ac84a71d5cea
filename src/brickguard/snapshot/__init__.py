from .codec import JsonSnapshotCodec, SnapshotCodec
from .host_codec import HostSnapshotCodec
from .loader import load_codec
from .models import Brick, Owner, Snapshot, SnapshotHeader, is_prohibited

__all__ = [
    "Brick",
    "HostSnapshotCodec",
    "JsonSnapshotCodec",
    "Owner",
    "Snapshot",
    "SnapshotCodec",
    "SnapshotHeader",
    "is_prohibited",
    "load_codec",
]

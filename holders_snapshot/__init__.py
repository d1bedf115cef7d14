"""
Основной пакет приложения token-holders-snapshot
"""

from holders_snapshot.config.config import SnapshotConfig
from holders_snapshot.models import HolderRecord, SnapshotResult, SourceKind, TransferRecord
from holders_snapshot.services.snapshot_service import SnapshotService

__all__ = [
    'SnapshotConfig',
    'HolderRecord',
    'SnapshotResult',
    'SourceKind',
    'TransferRecord',
    'SnapshotService'
]

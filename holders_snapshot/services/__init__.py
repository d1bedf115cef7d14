"""
Сервисы получения трансферов, балансов и экспорта
"""

from holders_snapshot.services.snapshot_service import SnapshotService

__all__ = [
    'SnapshotService'
]

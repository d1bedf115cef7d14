"""
Пакет конфигурации
"""

from holders_snapshot.config.config import (
    ThetaConfig,
    BitqueryConfig,
    EnrichmentConfig,
    TokenConfig,
    ExportConfig,
    SnapshotConfig,
)

__all__ = [
    'ThetaConfig',
    'BitqueryConfig',
    'EnrichmentConfig',
    'TokenConfig',
    'ExportConfig',
    'SnapshotConfig',
]

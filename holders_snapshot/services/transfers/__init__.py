"""
Источники трансферов токена
"""

from holders_snapshot.services.transfers.base import TransferSource
from holders_snapshot.services.transfers.theta_source import ThetaTransferSource
from holders_snapshot.services.transfers.bitquery_source import BitqueryTransferSource

__all__ = [
    'TransferSource',
    'ThetaTransferSource',
    'BitqueryTransferSource'
]

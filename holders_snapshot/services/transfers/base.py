from abc import ABC, abstractmethod
from typing import AsyncIterator, List

from holders_snapshot.models import SourceKind, TransferRecord

class TransferSource(ABC):
    """Источник трансферов токена"""
    kind: SourceKind

    @abstractmethod
    def iter_transfers(self, token_address: str) -> AsyncIterator[List[TransferRecord]]:
        """
        Отдаёт трансферы порциями в порядке получения.

        Args:
            token_address: Адрес контракта в каноническом виде
        """

    async def fetch_transfers(self, token_address: str) -> List[TransferRecord]:
        """Собирает все трансферы токена в один список"""
        records: List[TransferRecord] = []
        async for chunk in self.iter_transfers(token_address):
            records.extend(chunk)
        return records

import logging
from typing import AsyncIterator, List, Optional

from holders_snapshot.models import SourceKind, TransferRecord
from holders_snapshot.services.bitquery.client import BitqueryClient
from holders_snapshot.services.transfers.base import TransferSource

logger = logging.getLogger(__name__)

class BitqueryTransferSource(TransferSource):
    """
    Последние N трансферов токена одним GraphQL запросом.

    Пагинации и повторов здесь нет: ошибка запроса сразу прерывает запуск.
    Повторы с backoff есть только у запросов баланса в BalanceEnricher.
    """
    kind = SourceKind.BITQUERY

    def __init__(self, client: BitqueryClient, limit: Optional[int] = None):
        self.client = client
        self.limit = limit

    async def iter_transfers(self, token_address: str) -> AsyncIterator[List[TransferRecord]]:
        logger.info(f"Запрос последних трансферов токена {token_address}")
        records = await self.client.fetch_recent_transfers(token_address, limit=self.limit)
        logger.info(f"Получено {len(records)} трансферов")
        if records:
            yield records

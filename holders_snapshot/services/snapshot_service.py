import asyncio
import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Iterator, List, Optional, Tuple

import aiohttp

from holders_snapshot.config.config import SnapshotConfig
from holders_snapshot.errors import MissingCredential, SnapshotTimeout
from holders_snapshot.models import HolderRecord, SnapshotResult, SourceKind
from holders_snapshot.services.balance.enricher import BalanceEnricher
from holders_snapshot.services.bitquery.client import BitqueryClient
from holders_snapshot.services.export.csv_exporter import HolderCsvExporter
from holders_snapshot.services.ledger.ledger import AddressCollector, BalanceLedger
from holders_snapshot.services.transfers.base import TransferSource
from holders_snapshot.services.transfers.bitquery_source import BitqueryTransferSource
from holders_snapshot.services.transfers.theta_source import ThetaTransferSource
from holders_snapshot.utils.address import validate_address

logger = logging.getLogger(__name__)

class SnapshotService:
    """Сервис для построения снапшота держателей токена"""

    def __init__(
        self,
        config: Optional[SnapshotConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.config = config or SnapshotConfig()
        self._sleep = sleep

    def build_source(self, session: aiohttp.ClientSession) -> TransferSource:
        """Создаёт источник трансферов, выбранный в конфигурации"""
        if self.config.SOURCE is SourceKind.THETA:
            return ThetaTransferSource(self.config.theta, session=session, sleep=self._sleep)
        client = BitqueryClient(self.config.bitquery, session=session)
        return BitqueryTransferSource(client, limit=self.config.bitquery.TRANSFERS_LIMIT)

    async def run(self, token_address: str) -> SnapshotResult:
        """
        Строит снапшот держателей и сохраняет его в CSV.

        Args:
            token_address: Адрес контракта токена

        Returns:
            SnapshotResult: Итог запуска

        Raises:
            InvalidAddressFormat: До любых сетевых запросов
            MissingCredential: До любых сетевых запросов, если выбран Bitquery
            ReportWriteFailed: CSV не удалось записать
            SnapshotError: Любая ошибка, прервавшая запуск
        """
        token = validate_address(token_address)

        if self.config.SOURCE is SourceKind.BITQUERY:
            try:
                self.config.bitquery.require_api_key()
            except MissingCredential as e:
                logger.error(str(e))
                raise

        try:
            if self.config.RUN_TIMEOUT:
                try:
                    return await asyncio.wait_for(self._run(token), timeout=self.config.RUN_TIMEOUT)
                except asyncio.TimeoutError as e:
                    raise SnapshotTimeout(
                        f"Снапшот не уложился в {self.config.RUN_TIMEOUT} с"
                    ) from e
            return await self._run(token)
        except Exception as e:
            logger.error(
                f"Ошибка при получении держателей токена {token}: {e} "
                f"(время: {datetime.now().isoformat()})"
            )
            raise

    async def _run(self, token: str) -> SnapshotResult:
        source_kind = self.config.SOURCE
        logger.info(f"Снапшот токена {token}, источник: {source_kind.value}")

        async with aiohttp.ClientSession() as session:
            source = self.build_source(session)
            if source_kind is SourceKind.THETA:
                unique_addresses, holders = await self._collect_from_ledger(source, token)
            else:
                unique_addresses, holders = await self._collect_from_enrichment(source, token)

        # Файл открывается только после того, как все данные собраны
        exporter = HolderCsvExporter(self.config.export.OUTPUT_FILE)
        holders_count = exporter.write(holders)

        return SnapshotResult(
            token_address=token,
            source=source_kind,
            output_file=str(exporter.output_file),
            unique_addresses=unique_addresses,
            holders_count=holders_count
        )

    async def _collect_from_ledger(
        self,
        source: TransferSource,
        token: str
    ) -> Tuple[List[str], Iterator[HolderRecord]]:
        ledger = BalanceLedger(decimals=self.config.token.DECIMALS)
        async for records in source.iter_transfers(token):
            ledger.add_many(records)

        logger.info(f"Всего уникальных адресов: {len(ledger)}")
        return ledger.unique_addresses, ledger.holders(self.config.export.EPSILON)

    async def _collect_from_enrichment(
        self,
        source: BitqueryTransferSource,
        token: str
    ) -> Tuple[List[str], List[HolderRecord]]:
        collector = AddressCollector()
        async for records in source.iter_transfers(token):
            collector.add_many(records)

        logger.info(f"Всего уникальных адресов: {len(collector)}")

        enricher = BalanceEnricher(source.client, self.config.enrichment, sleep=self._sleep)
        holders = await enricher.enrich(collector.addresses, token)
        logger.info(f"Держателей с балансом > 0: {len(holders)}")
        return collector.addresses, holders

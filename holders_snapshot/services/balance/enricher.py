import asyncio
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Awaitable, Callable, Iterable, List, Optional

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt, wait_exponential

from holders_snapshot.config.config import EnrichmentConfig
from holders_snapshot.errors import BalanceLookupFailed
from holders_snapshot.models import HolderRecord
from holders_snapshot.services.bitquery.client import BitqueryClient

logger = logging.getLogger(__name__)

def parse_balance(value: Any) -> Optional[Decimal]:
    """
    Разбирает баланс из ответа API.

    Returns:
        Optional[Decimal]: Баланс, если он есть и строго больше нуля, иначе None
    """
    if value is None or isinstance(value, bool):
        return None
    try:
        balance = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    if not balance.is_finite() or balance <= 0:
        return None
    return balance

class BalanceEnricher:
    """
    Запрашивает актуальный баланс для каждого адреса-кандидата.

    Адреса обрабатываются батчами по BATCH_SIZE: внутри батча запросы идут
    одновременно, следующий батч стартует только после завершения всего
    предыдущего и паузы BASE_DELAY. Каждый адрес получает до MAX_RETRIES
    попыток с задержкой BASE_DELAY * 2^(attempt-1); после этого адрес
    пропускается, запуск продолжается.
    """

    def __init__(
        self,
        client: BitqueryClient,
        config: Optional[EnrichmentConfig] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.client = client
        self.config = config or EnrichmentConfig()
        if self.config.BATCH_SIZE < 1:
            raise ValueError(f"BATCH_SIZE должен быть положительным, получено {self.config.BATCH_SIZE}")
        if self.config.MAX_RETRIES < 1:
            raise ValueError(f"MAX_RETRIES должен быть положительным, получено {self.config.MAX_RETRIES}")
        self._sleep = sleep

    def make_batches(self, addresses: Iterable[str]) -> List[List[str]]:
        unique = list(dict.fromkeys(addresses))
        size = self.config.BATCH_SIZE
        return [unique[i:i + size] for i in range(0, len(unique), size)]

    async def fetch_holder(self, address: str, token_address: str) -> Optional[HolderRecord]:
        """
        Получает баланс одного адреса с повторами.

        Args:
            address: Адрес держателя
            token_address: Адрес контракта токена

        Returns:
            Optional[HolderRecord]: Держатель, если баланс строго положительный
        """
        max_retries = self.config.MAX_RETRIES

        def log_retry(retry_state: RetryCallState) -> None:
            delay_ms = int(retry_state.next_action.sleep * 1000)
            logger.info(
                f"Повтор запроса баланса {address} через {delay_ms}мс "
                f"(попытка {retry_state.attempt_number + 1}/{max_retries})"
            )

        retrying = AsyncRetrying(
            stop=stop_after_attempt(max_retries),
            wait=wait_exponential(multiplier=self.config.BASE_DELAY, exp_base=2),
            retry=retry_if_exception_type(BalanceLookupFailed),
            sleep=self._sleep,
            before_sleep=log_retry,
            reraise=True
        )

        try:
            value = await retrying(self.client.fetch_balance, address, token_address)
        except BalanceLookupFailed as e:
            logger.error(f"Не удалось получить баланс {address} после {max_retries} попыток: {e}")
            return None

        balance = parse_balance(value)
        if balance is None:
            logger.debug(f"Адрес {address} не держит токен (значение: {value!r})")
            return None
        return HolderRecord(address=address, balance=balance)

    async def enrich(self, addresses: Iterable[str], token_address: str) -> List[HolderRecord]:
        """
        Получает балансы всех адресов батчами.

        Args:
            addresses: Адреса-кандидаты
            token_address: Адрес контракта токена

        Returns:
            List[HolderRecord]: Держатели с положительным балансом, в порядке батчей
        """
        batches = self.make_batches(addresses)
        holders: List[HolderRecord] = []

        for index, batch in enumerate(batches):
            logger.info(f"Обработка батча {index + 1}/{len(batches)}")

            results = await asyncio.gather(
                *(self.fetch_holder(address, token_address) for address in batch)
            )
            holders.extend(holder for holder in results if holder is not None)

            if index < len(batches) - 1:
                await self._sleep(self.config.BASE_DELAY)

        return holders

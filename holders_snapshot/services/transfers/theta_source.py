import asyncio
import logging
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional

import aiohttp

from holders_snapshot.config.config import ThetaConfig
from holders_snapshot.errors import RateLimitExceeded, TransferFetchFailed
from holders_snapshot.models import SourceKind, TransferRecord
from holders_snapshot.services.transfers.base import TransferSource

logger = logging.getLogger(__name__)

class ThetaTransferSource(TransferSource):
    """Постраничное получение транзакций токена из Theta explorer API"""
    kind = SourceKind.THETA

    def __init__(
        self,
        config: Optional[ThetaConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep
    ):
        self.config = config or ThetaConfig()
        self.session = session
        self._owns_session = session is None
        self._sleep = sleep

    async def __aenter__(self):
        """Создает сессию при входе в контекстный менеджер."""
        if self.session is None:
            self.session = aiohttp.ClientSession()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Закрывает сессию, если она была создана здесь."""
        if self._owns_session and self.session:
            await self.session.close()
            self.session = None

    async def fetch_page(self, token_address: str, page: int, limit: int) -> List[TransferRecord]:
        """
        Получает одну страницу транзакций токена.

        Args:
            token_address: Адрес контракта токена
            page: Номер страницы, начиная с 1
            limit: Размер страницы

        Returns:
            List[TransferRecord]: Трансферы страницы, пустой список если данных нет

        Raises:
            RateLimitExceeded: Если API ответил 429
            TransferFetchFailed: При любой другой ошибке запроса или разбора ответа
        """
        url = f"{self.config.BASE_URL}{self.config.TOKEN_ENDPOINT}/{token_address}"
        params = {
            "pageNumber": str(page),
            "limit": str(limit)
        }

        try:
            async with self.session.get(
                url,
                params=params,
                timeout=aiohttp.ClientTimeout(total=self.config.REQUEST_TIMEOUT)
            ) as response:
                if response.status == 429:
                    raise RateLimitExceeded("Превышен лимит запросов. Попробуйте позже.")
                if not 200 <= response.status < 300:
                    data = await response.text()
                    logger.error(
                        f"Ошибка API: status={response.status}, "
                        f"statusText={response.reason}, data={data[:500]}"
                    )
                    raise TransferFetchFailed(
                        f"Ошибка при получении страницы {page}",
                        status=response.status,
                        reason=response.reason,
                        data=data
                    )
                payload = await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransferFetchFailed(f"Ошибка сети при получении страницы {page}: {e!r}") from e
        except ValueError as e:
            raise TransferFetchFailed(f"Некорректный JSON на странице {page}: {e}") from e

        body = payload.get("body") if isinstance(payload, dict) else None
        if not body:
            return []

        try:
            return [TransferRecord.from_theta_item(item) for item in body]
        except (KeyError, TypeError, AttributeError, ValueError) as e:
            raise TransferFetchFailed(
                f"Неожиданный формат транзакции на странице {page}: {e!r}",
                data=body
            ) from e

    async def iter_transfers(self, token_address: str) -> AsyncIterator[List[TransferRecord]]:
        limit = self.config.PAGE_LIMIT
        page = 1

        while True:
            if page > self.config.MAX_PAGES:
                logger.warning(f"Достигнут предел в {self.config.MAX_PAGES} страниц для {token_address}")
                raise TransferFetchFailed(
                    f"Провайдер не сообщил о конце данных за {self.config.MAX_PAGES} страниц"
                )

            logger.info(f"Получение страницы {page}...")
            records = await self.fetch_page(token_address, page, limit)
            if records:
                yield records

            # Неполная страница означает конец данных
            if len(records) < limit:
                break

            page += 1
            await self._sleep(self.config.PAGE_DELAY)

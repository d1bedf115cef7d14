import asyncio
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import aiohttp

from holders_snapshot.config.config import BitqueryConfig
from holders_snapshot.errors import BalanceLookupFailed, TransferFetchFailed
from holders_snapshot.models import TransferRecord

logger = logging.getLogger(__name__)

TRANSFERS_QUERY = """
query ($network: EthereumNetwork!, $token: String!, $limit: Int!) {
  ethereum(network: $network) {
    transfers(
      options: {desc: "block.timestamp.time", limit: $limit}
      currency: {is: $token}
    ) {
      sender {
        address
      }
      receiver {
        address
      }
      block {
        timestamp {
          time
        }
      }
    }
  }
}
"""

BALANCE_QUERY = """
query ($network: EthereumNetwork!, $address: String!, $token: String!) {
  ethereum(network: $network) {
    address(address: {is: $address}) {
      balances(currency: {is: $token}) {
        value
      }
    }
  }
}
"""

@dataclass
class GraphQLResponse:
    """Обертка для ответа GraphQL API"""
    status_code: int
    reason: Optional[str]
    payload: Any = None

    @property
    def is_success(self) -> bool:
        """HTTP 2xx и отсутствие массива errors в теле"""
        return 200 <= self.status_code < 300 and not self.errors

    @property
    def errors(self) -> List[Any]:
        if isinstance(self.payload, dict):
            return self.payload.get("errors") or []
        return []

    @property
    def data(self) -> Dict[str, Any]:
        if isinstance(self.payload, dict):
            return self.payload.get("data") or {}
        return {}

    def describe(self) -> str:
        if self.errors:
            messages = [
                error.get("message", str(error)) if isinstance(error, dict) else str(error)
                for error in self.errors
            ]
            return "; ".join(messages)
        return f"HTTP {self.status_code} {self.reason or ''}".strip()

@dataclass
class BitqueryClient:
    """Клиент для работы с Bitquery GraphQL API."""
    config: BitqueryConfig
    session: Optional[aiohttp.ClientSession] = None
    _owns_session: bool = field(default=False, init=False)

    async def __aenter__(self):
        """Создает сессию при входе в контекстный менеджер."""
        if self.session is None:
            self.session = aiohttp.ClientSession()
            self._owns_session = True
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Закрывает сессию при выходе из контекстного менеджера."""
        if self._owns_session and self.session:
            await self.session.close()
            self.session = None
            self._owns_session = False

    async def execute(self, query: str, variables: Dict[str, Any]) -> GraphQLResponse:
        """
        Выполняет GraphQL запрос.

        Raises:
            aiohttp.ClientError: При ошибке запроса
            asyncio.TimeoutError: При превышении таймаута
            ValueError: Если тело ответа не является JSON
        """
        headers = {"X-API-KEY": self.config.require_api_key()}

        async with self.session.post(
            self.config.API_URL,
            json={"query": query, "variables": variables},
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=self.config.REQUEST_TIMEOUT)
        ) as response:
            if 200 <= response.status < 300:
                payload = await response.json(content_type=None)
            else:
                payload = await response.text()
            return GraphQLResponse(response.status, response.reason, payload)

    async def fetch_recent_transfers(self, token_address: str, limit: Optional[int] = None) -> List[TransferRecord]:
        """
        Получает последние трансферы токена одним запросом, от новых к старым.

        Args:
            token_address: Адрес контракта токена
            limit: Максимум трансферов, по умолчанию TRANSFERS_LIMIT

        Returns:
            List[TransferRecord]: Трансферы без сумм

        Raises:
            TransferFetchFailed: При любой ошибке запроса, без повторов
        """
        variables = {
            "network": self.config.NETWORK,
            "token": token_address,
            "limit": limit or self.config.TRANSFERS_LIMIT
        }

        try:
            response = await self.execute(TRANSFERS_QUERY, variables)
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransferFetchFailed(f"Ошибка сети при запросе трансферов: {e!r}") from e
        except ValueError as e:
            raise TransferFetchFailed(f"Некорректный JSON в ответе на запрос трансферов: {e}") from e

        if not response.is_success:
            raise TransferFetchFailed(
                f"Ошибка Bitquery при запросе трансферов: {response.describe()}",
                status=response.status_code,
                reason=response.reason,
                data=response.payload
            )

        ethereum = response.data.get("ethereum") or {}
        transfers = ethereum.get("transfers") or []
        logger.debug(f"Bitquery вернул {len(transfers)} трансферов для {token_address}")

        try:
            return [TransferRecord.from_bitquery_transfer(item) for item in transfers]
        except (KeyError, TypeError, AttributeError) as e:
            raise TransferFetchFailed(
                f"Неожиданный формат трансфера в ответе Bitquery: {e!r}",
                status=response.status_code,
                data=transfers
            ) from e

    async def fetch_balance(self, address: str, token_address: str) -> Optional[Any]:
        """
        Получает текущий баланс адреса по токену.

        Args:
            address: Адрес держателя
            token_address: Адрес контракта токена

        Returns:
            Значение баланса как его вернул API, либо None если данных по адресу нет

        Raises:
            BalanceLookupFailed: При ошибке запроса или ответа
        """
        variables = {
            "network": self.config.NETWORK,
            "address": address,
            "token": token_address
        }

        try:
            response = await self.execute(BALANCE_QUERY, variables)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise BalanceLookupFailed(address, f"Ошибка запроса баланса {address}: {e!r}") from e

        if not response.is_success:
            raise BalanceLookupFailed(
                address,
                f"Ошибка Bitquery при запросе баланса {address}: {response.describe()}",
                status=response.status_code
            )

        ethereum = response.data.get("ethereum")
        entries = ethereum.get("address") if isinstance(ethereum, dict) else None
        if not isinstance(entries, list) or not entries or not isinstance(entries[0], dict):
            logger.warning(f"Нет данных для адреса {address}")
            return None

        balances = entries[0].get("balances")
        if not isinstance(balances, list) or not balances or not isinstance(balances[0], dict):
            return None
        return balances[0].get("value")

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from dotenv import load_dotenv

from holders_snapshot.errors import ConfigError, MissingCredential
from holders_snapshot.models import SourceKind

@dataclass
class ThetaConfig:
    BASE_URL: str = "https://explorer-api.thetatoken.org/api"
    TOKEN_ENDPOINT: str = "/token"
    PAGE_LIMIT: int = 100
    PAGE_DELAY: float = 0.01  # Пауза между страницами в секундах
    MAX_PAGES: int = 10_000  # Предохранитель от бесконечной пагинации
    REQUEST_TIMEOUT: int = 30  # Таймаут для запросов в секундах

@dataclass
class BitqueryConfig:
    API_URL: str = "https://graphql.bitquery.io"
    API_KEY: Optional[str] = None
    NETWORK: str = "ethereum"
    TRANSFERS_LIMIT: int = 1000  # Сколько последних трансферов запрашивать
    REQUEST_TIMEOUT: int = 30

    def require_api_key(self) -> str:
        """
        Возвращает API ключ Bitquery или прерывает запуск до сетевых запросов.

        Raises:
            MissingCredential: Если ключ не задан
        """
        if not self.API_KEY:
            raise MissingCredential("Не задана переменная окружения BITQUERY_API_KEY")
        return self.API_KEY

@dataclass
class EnrichmentConfig:
    BATCH_SIZE: int = 10  # Одновременных запросов баланса в одном батче
    MAX_RETRIES: int = 3  # Количество попыток на один адрес
    BASE_DELAY: float = 0.3  # Базовая задержка backoff и пауза между батчами, сек

@dataclass
class TokenConfig:
    DECIMALS: int = 18

@dataclass
class ExportConfig:
    EPSILON: Decimal = Decimal("1e-10")  # Всё, что не больше, считается пылью
    OUTPUT_FILE: str = "token_holders.csv"

@dataclass
class SnapshotConfig:
    """Полная конфигурация одного запуска снапшота."""
    SOURCE: SourceKind = SourceKind.BITQUERY
    RUN_TIMEOUT: Optional[float] = None
    theta: ThetaConfig = field(default_factory=ThetaConfig)
    bitquery: BitqueryConfig = field(default_factory=BitqueryConfig)
    enrichment: EnrichmentConfig = field(default_factory=EnrichmentConfig)
    token: TokenConfig = field(default_factory=TokenConfig)
    export: ExportConfig = field(default_factory=ExportConfig)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None) -> 'SnapshotConfig':
        """
        Собирает конфигурацию из переменных окружения (и файла .env, если он есть).

        Args:
            env_file: Путь к .env файлу, по умолчанию ищется автоматически

        Returns:
            SnapshotConfig: Конфигурация с учётом переопределений
        """
        load_dotenv(env_file)
        config = cls()

        config.bitquery.API_URL = os.getenv("BITQUERY_API_URL", config.bitquery.API_URL)
        config.bitquery.API_KEY = os.getenv("BITQUERY_API_KEY") or None
        config.bitquery.NETWORK = os.getenv("BITQUERY_NETWORK", config.bitquery.NETWORK)
        config.export.OUTPUT_FILE = os.getenv("SNAPSHOT_OUTPUT_FILE", config.export.OUTPUT_FILE)

        source = os.getenv("SNAPSHOT_SOURCE")
        if source:
            config.SOURCE = parse_source(source)

        decimals = os.getenv("TOKEN_DECIMALS")
        if decimals:
            config.token.DECIMALS = parse_decimals(decimals)

        return config

def parse_source(value: str) -> SourceKind:
    try:
        return SourceKind(value.strip().lower())
    except ValueError:
        available = ", ".join(kind.value for kind in SourceKind)
        raise ConfigError(f"Неизвестный источник данных: {value} (доступные: {available})")

def parse_decimals(value: str) -> int:
    try:
        decimals = int(value)
    except ValueError:
        raise ConfigError(f"TOKEN_DECIMALS должно быть целым числом, получено: {value}")
    if decimals < 0:
        raise ConfigError(f"TOKEN_DECIMALS не может быть отрицательным: {decimals}")
    return decimals

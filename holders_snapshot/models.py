from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from holders_snapshot.utils.address import normalize_address

class SourceKind(Enum):
    """Источники трансферов"""
    THETA = "theta"  # REST, постраничный список транзакций с суммами
    BITQUERY = "bitquery"  # GraphQL, последние N трансферов без сумм

@dataclass
class TransferRecord:
    """Модель одного трансфера токена"""
    sender: str
    receiver: str
    value: Optional[str] = None  # Сумма в минимальных единицах, только в REST
    timestamp: Optional[str] = None

    @classmethod
    def from_theta_item(cls, item: dict) -> 'TransferRecord':
        """Фабричный метод для элемента `body` ответа Theta explorer"""
        return cls(
            sender=normalize_address(item["from"]),
            receiver=normalize_address(item["to"]),
            value=str(int(item["value"])),
            timestamp=item.get("timestamp")
        )

    @classmethod
    def from_bitquery_transfer(cls, item: dict) -> 'TransferRecord':
        """Фабричный метод для элемента `ethereum.transfers` ответа Bitquery"""
        block = item.get("block") or {}
        timestamp = (block.get("timestamp") or {}).get("time")
        return cls(
            sender=normalize_address(item["sender"]["address"]),
            receiver=normalize_address(item["receiver"]["address"]),
            timestamp=timestamp
        )

@dataclass
class HolderRecord:
    """Модель держателя токенов для отчёта"""
    address: str
    balance: Decimal

@dataclass
class SnapshotResult:
    """Итог одного запуска"""
    token_address: str
    source: SourceKind
    output_file: str
    unique_addresses: List[str] = field(default_factory=list)
    holders_count: int = 0

    @property
    def unique_addresses_count(self) -> int:
        return len(self.unique_addresses)

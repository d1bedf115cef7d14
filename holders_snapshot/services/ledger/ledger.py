import logging
from decimal import Decimal, localcontext
from typing import Dict, Iterable, Iterator, List

from holders_snapshot.models import HolderRecord, TransferRecord

logger = logging.getLogger(__name__)

# uint256 помещается в 78 знаков, берём с запасом
_PRECISION = 100

def to_token_amount(raw: int, decimals: int) -> Decimal:
    """Переводит сумму из минимальных единиц в токены без потери точности"""
    with localcontext() as ctx:
        ctx.prec = _PRECISION
        return Decimal(raw).scaleb(-decimals)

class BalanceLedger:
    """
    Баланс каждого адреса, посчитанный по трансферам.

    Суммы копятся в минимальных единицах токена (int), поэтому результат
    не зависит от порядка трансферов. Промежуточные отрицательные балансы
    нормальны: важен только итог.
    """

    def __init__(self, decimals: int = 18):
        self.decimals = decimals
        self._balances: Dict[str, int] = {}

    def add(self, record: TransferRecord) -> None:
        if record.value is None:
            raise ValueError(f"У трансфера {record.sender} -> {record.receiver} нет суммы")
        amount = int(record.value)
        self._balances[record.sender] = self._balances.get(record.sender, 0) - amount
        self._balances[record.receiver] = self._balances.get(record.receiver, 0) + amount

    def add_many(self, records: Iterable[TransferRecord]) -> None:
        for record in records:
            self.add(record)

    @property
    def unique_addresses(self) -> List[str]:
        return list(self._balances)

    def raw_balance(self, address: str) -> int:
        return self._balances.get(address, 0)

    def balance(self, address: str) -> Decimal:
        return to_token_amount(self.raw_balance(address), self.decimals)

    def balances(self) -> Dict[str, Decimal]:
        return {address: self.balance(address) for address in self._balances}

    def total(self) -> int:
        """Сумма всех балансов в минимальных единицах, для полной истории всегда 0"""
        return sum(self._balances.values())

    def holders(self, epsilon: Decimal) -> Iterator[HolderRecord]:
        """
        Отдаёт держателей с балансом строго больше epsilon, отбрасывая пыль
        и нулевые/отрицательные остатки.
        """
        for address in self._balances:
            balance = self.balance(address)
            if balance > epsilon:
                yield HolderRecord(address=address, balance=balance)

    def __len__(self) -> int:
        return len(self._balances)

class AddressCollector:
    """Уникальные отправители и получатели в порядке появления"""

    def __init__(self):
        self._addresses: Dict[str, None] = {}

    def add(self, record: TransferRecord) -> None:
        self._addresses.setdefault(record.sender, None)
        self._addresses.setdefault(record.receiver, None)

    def add_many(self, records: Iterable[TransferRecord]) -> None:
        for record in records:
            self.add(record)

    @property
    def addresses(self) -> List[str]:
        return list(self._addresses)

    def __contains__(self, address: str) -> bool:
        return address in self._addresses

    def __len__(self) -> int:
        return len(self._addresses)

import csv
import logging
from decimal import Decimal, localcontext
from pathlib import Path
from typing import Iterable, Union

from holders_snapshot.errors import ReportWriteFailed
from holders_snapshot.models import HolderRecord

logger = logging.getLogger(__name__)

CSV_HEADER = ("Address", "Balance")

def format_balance(balance: Decimal) -> str:
    """Десятичная запись без экспоненты и хвостовых нулей: 1, 0.5, 5000000000000000000"""
    with localcontext() as ctx:
        ctx.prec = 100
        return format(balance.normalize(), "f")

class HolderCsvExporter:
    """Пишет держателей в CSV, каждый запуск перезаписывает файл"""

    def __init__(self, output_file: Union[str, Path]):
        self.output_file = Path(output_file)

    def write(self, holders: Iterable[HolderRecord]) -> int:
        """
        Построчно записывает держателей в файл.

        Args:
            holders: Держатели, могут отдаваться генератором

        Returns:
            int: Количество записанных строк без заголовка

        Raises:
            ReportWriteFailed: Файл не удалось открыть или записать
        """
        count = 0
        try:
            with open(self.output_file, "w", encoding="utf-8", newline="") as file:
                writer = csv.writer(file, lineterminator="\n", quoting=csv.QUOTE_NONE)
                writer.writerow(CSV_HEADER)
                for holder in holders:
                    writer.writerow((holder.address, format_balance(holder.balance)))
                    count += 1
        except OSError as e:
            raise ReportWriteFailed(
                str(self.output_file),
                f"Не удалось записать отчёт в {self.output_file}: {e}"
            ) from e

        logger.info(f"Количество держателей: {count}")
        logger.info(f"Балансы сохранены в {self.output_file}")
        return count

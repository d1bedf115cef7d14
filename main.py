import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from holders_snapshot.config.config import SnapshotConfig, parse_decimals, parse_source
from holders_snapshot.errors import SnapshotError
from holders_snapshot.models import SnapshotResult
from holders_snapshot.services.snapshot_service import SnapshotService

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_ADDRESS = "0x3da3d8cde7b12cd2cbb688e2655bcacd8946399d"

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="holders-snapshot",
        description="Снапшот держателей ERC-20 токена в CSV"
    )
    parser.add_argument(
        "token_address",
        nargs="?",
        default=DEFAULT_TOKEN_ADDRESS,
        help="Адрес контракта токена (0x + 40 hex символов)"
    )
    parser.add_argument("--source", choices=["theta", "bitquery"], help="Источник трансферов")
    parser.add_argument("--output", help="Путь к CSV файлу")
    parser.add_argument("--decimals", help="Количество знаков токена (для источника theta)")
    parser.add_argument("--limit", type=int, help="Сколько последних трансферов брать из Bitquery")
    parser.add_argument("--verbose", action="store_true", help="Подробные логи")
    return parser

def build_config(args: argparse.Namespace) -> SnapshotConfig:
    config = SnapshotConfig.from_env()
    if args.source:
        config.SOURCE = parse_source(args.source)
    if args.output:
        config.export.OUTPUT_FILE = args.output
    if args.decimals is not None:
        config.token.DECIMALS = parse_decimals(args.decimals)
    if args.limit:
        config.bitquery.TRANSFERS_LIMIT = args.limit
    return config

def print_result(result: SnapshotResult) -> None:
    print(f"\nТокен: {result.token_address}")
    print(f"Источник: {result.source.value}")
    print(f"Уникальных адресов: {result.unique_addresses_count}")
    print(f"Держателей: {result.holders_count}")
    print(f"Файл: {result.output_file}")

def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO)

    try:
        config = build_config(args)
        result = asyncio.run(SnapshotService(config).run(args.token_address))
    except SnapshotError as e:
        logger.error(f"Произошла ошибка: {str(e)}")
        return 1

    print_result(result)
    return 0

if __name__ == "__main__":
    sys.exit(main())

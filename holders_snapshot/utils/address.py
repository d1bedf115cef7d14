import re
import logging
from typing import Optional

from holders_snapshot.errors import InvalidAddressFormat

logger = logging.getLogger(__name__)

ADDRESS_PATTERN = re.compile(r"0x[a-fA-F0-9]{40}")

def is_valid_address(address: Optional[str]) -> bool:
    return bool(address) and isinstance(address, str) and ADDRESS_PATTERN.fullmatch(address) is not None

def normalize_address(address: str) -> str:
    """Приводит адрес к каноническому виду: нижний регистр, без пробелов по краям."""
    return address.strip().lower()

def validate_address(address: Optional[str]) -> str:
    """
    Проверяет адрес контракта токена и возвращает его в каноническом виде.

    Args:
        address: Адрес в формате 0x + 40 hex символов (регистр не важен)

    Returns:
        str: Адрес в нижнем регистре

    Raises:
        InvalidAddressFormat: Если адрес пустой или не соответствует формату
    """
    if not is_valid_address(address):
        logger.error(f"Неверный формат адреса токена: {address!r}")
        raise InvalidAddressFormat(f"Неверный формат адреса токена: {address!r}")
    return address.lower()

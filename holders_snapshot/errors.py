from typing import Any, Optional


class SnapshotError(Exception):
    """Базовая ошибка построения снапшота держателей"""


class ConfigError(SnapshotError):
    """Некорректное значение в конфигурации или окружении"""


class InvalidAddressFormat(SnapshotError, ValueError):
    """Адрес не соответствует формату 0x + 40 hex символов"""


class MissingCredential(SnapshotError):
    """Не задан обязательный API ключ"""


class RateLimitExceeded(SnapshotError):
    """Провайдер ответил 429"""


class TransferFetchFailed(SnapshotError):
    """Не удалось получить трансферы токена"""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        reason: Optional[str] = None,
        data: Any = None
    ):
        super().__init__(message)
        self.status = status
        self.reason = reason
        self.data = data

    def to_dict(self) -> dict:
        return {
            "message": str(self),
            "status": self.status,
            "reason": self.reason,
            "data": self.data
        }


class BalanceLookupFailed(SnapshotError):
    """Не удалось получить баланс одного адреса"""

    def __init__(self, address: str, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.address = address
        self.status = status


class SnapshotTimeout(SnapshotError):
    """Запуск не уложился в RUN_TIMEOUT"""


class ReportWriteFailed(SnapshotError):
    """Не удалось записать CSV отчёт"""

    def __init__(self, path: str, message: str):
        super().__init__(message)
        self.path = path

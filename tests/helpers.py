from contextlib import asynccontextmanager
from typing import AsyncIterator, List

from aiohttp import web
from aiohttp.test_utils import TestServer

A = "0x" + "a" * 40
B = "0x" + "b" * 40
C = "0x" + "c" * 40
D = "0x" + "d" * 40
TOKEN = "0x3da3d8cde7b12cd2cbb688e2655bcacd8946399d"

ONE_TOKEN = "1000000000000000000"


class RecordingSleep:
    """Подменяет asyncio.sleep и запоминает задержки"""

    def __init__(self):
        self.calls: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.calls.append(delay)


@asynccontextmanager
async def serve(app: web.Application, path: str = "/api") -> AsyncIterator[str]:
    """Поднимает aiohttp приложение на локальном порту и отдаёт базовый URL"""
    async with TestServer(app) as server:
        yield str(server.make_url(path))

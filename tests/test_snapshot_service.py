import asyncio
import logging

import pytest
from aiohttp import web

from holders_snapshot.config.config import BitqueryConfig, ExportConfig, SnapshotConfig, ThetaConfig
from holders_snapshot.errors import (
    InvalidAddressFormat,
    MissingCredential,
    RateLimitExceeded,
    ReportWriteFailed,
    SnapshotTimeout,
    TransferFetchFailed,
)
from holders_snapshot.models import SourceKind
from holders_snapshot.services.snapshot_service import SnapshotService
from tests.fake_bitquery import FakeBitqueryApi, transfer
from tests.helpers import A, B, C, D, ONE_TOKEN, TOKEN, serve


def theta_app(pages, status=200):
    requests = []

    async def handle(request):
        requests.append(int(request.query["pageNumber"]))
        if status != 200:
            return web.Response(status=status)
        page = int(request.query["pageNumber"])
        return web.json_response({"body": pages[page - 1] if page <= len(pages) else []})

    app = web.Application()
    app.router.add_get("/api/token/{token}", handle)
    return app, requests


def theta_config(base_url, output):
    return SnapshotConfig(
        SOURCE=SourceKind.THETA,
        theta=ThetaConfig(BASE_URL=base_url),
        export=ExportConfig(OUTPUT_FILE=str(output)),
    )


def bitquery_config(base_url, output, api_key="test-key"):
    return SnapshotConfig(
        SOURCE=SourceKind.BITQUERY,
        bitquery=BitqueryConfig(API_URL=base_url, API_KEY=api_key),
        export=ExportConfig(OUTPUT_FILE=str(output)),
    )


@pytest.mark.asyncio
async def test_theta_single_transfer_snapshot(tmp_path, recording_sleep):
    output = tmp_path / "token_balances.csv"
    app, requests = theta_app([[{"from": A, "to": B, "value": ONE_TOKEN}]])

    async with serve(app) as base_url:
        service = SnapshotService(theta_config(base_url, output), sleep=recording_sleep)
        result = await service.run(TOKEN.upper().replace("0X", "0x"))

    assert output.read_text(encoding="utf-8") == f"Address,Balance\n{B},1\n"
    assert result.token_address == TOKEN
    assert result.source is SourceKind.THETA
    assert result.unique_addresses == [A, B]
    assert result.unique_addresses_count == 2
    assert result.holders_count == 1
    assert requests == [1]


@pytest.mark.asyncio
async def test_theta_filters_dust_and_spent_balances(tmp_path, recording_sleep):
    output = tmp_path / "token_balances.csv"
    app, _ = theta_app([[
        {"from": A, "to": B, "value": ONE_TOKEN},
        {"from": B, "to": C, "value": ONE_TOKEN},
        {"from": A, "to": D, "value": "100"},
    ]])

    async with serve(app) as base_url:
        result = await SnapshotService(theta_config(base_url, output), sleep=recording_sleep).run(TOKEN)

    assert result.holders_count == 1
    assert output.read_text(encoding="utf-8") == f"Address,Balance\n{C},1\n"


@pytest.mark.asyncio
async def test_theta_rate_limit_aborts_without_report(tmp_path, recording_sleep):
    output = tmp_path / "token_balances.csv"
    app, _ = theta_app([], status=429)

    async with serve(app) as base_url:
        with pytest.raises(RateLimitExceeded):
            await SnapshotService(theta_config(base_url, output), sleep=recording_sleep).run(TOKEN)

    assert not output.exists()


@pytest.mark.asyncio
async def test_bitquery_snapshot_keeps_only_positive_balances(tmp_path, recording_sleep):
    output = tmp_path / "token_holders.csv"
    api = FakeBitqueryApi(
        transfers=[transfer(C, D), transfer(D, C)],
        balances={C: "0", D: "5000000000000000000"},
    )

    async with serve(api.app(), "/graphql") as base_url:
        service = SnapshotService(bitquery_config(base_url, output), sleep=recording_sleep)
        result = await service.run(TOKEN)

    assert result.holders_count == 1
    assert result.unique_addresses == [C, D]
    assert output.read_text(encoding="utf-8") == f"Address,Balance\n{D},5000000000000000000\n"
    assert sorted(api.balance_calls) == [C, D]


@pytest.mark.asyncio
async def test_bitquery_balance_lookup_retried(tmp_path, recording_sleep):
    output = tmp_path / "token_holders.csv"
    api = FakeBitqueryApi(
        transfers=[transfer(A, B)],
        balances={A: "3", B: "4"},
        balance_failures={A: 2, B: 5},
    )

    async with serve(api.app(), "/graphql") as base_url:
        result = await SnapshotService(bitquery_config(base_url, output), sleep=recording_sleep).run(TOKEN)

    assert result.holders_count == 1
    assert output.read_text(encoding="utf-8") == f"Address,Balance\n{A},3\n"
    assert api.balance_calls[A] == 3
    assert api.balance_calls[B] == 3
    assert sorted(recording_sleep.calls) == pytest.approx([0.3, 0.3, 0.6, 0.6])


@pytest.mark.asyncio
async def test_bitquery_transfer_failure_aborts(tmp_path, recording_sleep):
    output = tmp_path / "token_holders.csv"
    api = FakeBitqueryApi(status=500)

    async with serve(api.app(), "/graphql") as base_url:
        with pytest.raises(TransferFetchFailed):
            await SnapshotService(bitquery_config(base_url, output), sleep=recording_sleep).run(TOKEN)

    assert len(api.requests) == 1
    assert not output.exists()


@pytest.mark.asyncio
async def test_missing_credential_before_network(tmp_path):
    output = tmp_path / "token_holders.csv"
    api = FakeBitqueryApi(transfers=[transfer(A, B)])

    async with serve(api.app(), "/graphql") as base_url:
        with pytest.raises(MissingCredential):
            await SnapshotService(bitquery_config(base_url, output, api_key=None)).run(TOKEN)

    assert api.requests == []


@pytest.mark.asyncio
async def test_invalid_address_before_network(tmp_path):
    output = tmp_path / "token_balances.csv"
    app, requests = theta_app([[{"from": A, "to": B, "value": ONE_TOKEN}]])

    async with serve(app) as base_url:
        with pytest.raises(InvalidAddressFormat):
            await SnapshotService(theta_config(base_url, output)).run("0x1234")

    assert requests == []
    assert not output.exists()


@pytest.mark.asyncio
async def test_run_timeout(tmp_path):
    output = tmp_path / "token_balances.csv"
    app, _ = theta_app([[{"from": A, "to": B, "value": "1"}] * 100] * 1000)

    async def slow_sleep(delay):
        await asyncio.sleep(1)

    async with serve(app) as base_url:
        config = theta_config(base_url, output)
        config.RUN_TIMEOUT = 0.2
        with pytest.raises(SnapshotTimeout):
            await SnapshotService(config, sleep=slow_sleep).run(TOKEN)

    assert not output.exists()


@pytest.mark.asyncio
async def test_unwritable_output_is_reported(tmp_path, recording_sleep, caplog):
    output = tmp_path / "missing" / "token_balances.csv"
    app, _ = theta_app([[{"from": A, "to": B, "value": ONE_TOKEN}]])

    async with serve(app) as base_url:
        with caplog.at_level(logging.ERROR, logger="holders_snapshot.services.snapshot_service"):
            with pytest.raises(ReportWriteFailed) as exc_info:
                await SnapshotService(theta_config(base_url, output), sleep=recording_sleep).run(TOKEN)

    assert exc_info.value.path == str(output)
    assert isinstance(exc_info.value.__cause__, FileNotFoundError)
    assert any(TOKEN in record.getMessage() for record in caplog.records)
    assert not output.parent.exists()


@pytest.mark.asyncio
async def test_unexpected_error_is_logged_and_reraised(tmp_path, monkeypatch, caplog):
    output = tmp_path / "token_balances.csv"

    async def broken_run(self, token):
        raise RuntimeError("boom")

    monkeypatch.setattr(SnapshotService, "_run", broken_run)

    with caplog.at_level(logging.ERROR, logger="holders_snapshot.services.snapshot_service"):
        with pytest.raises(RuntimeError, match="boom"):
            await SnapshotService(theta_config("http://127.0.0.1:1", output)).run(TOKEN)

    assert any("boom" in record.getMessage() for record in caplog.records)

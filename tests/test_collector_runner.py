"""
Unit tests for the collector daemon entry point (shutdown and cleanup)
"""

import asyncio
import signal

import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from src.tasks.collector_runner import run_collector, run_until_stopped

RUNNER_MODULE = "src.tasks.collector_runner"


def _blocking_service():
    """Service whose start() polls until cancelled"""
    service = MagicMock()
    service.started = asyncio.Event()
    service.cancelled = False

    async def start():
        service.started.set()
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            service.cancelled = True
            raise

    service.start = start
    return service


@pytest.mark.asyncio
async def test_sigterm_cancels_poll_loop():
    service = _blocking_service()
    task = asyncio.create_task(run_until_stopped(service))

    await asyncio.wait_for(service.started.wait(), timeout=1)
    signal.raise_signal(signal.SIGTERM)
    await asyncio.wait_for(task, timeout=1)

    assert service.cancelled


@pytest.mark.asyncio
async def test_completed_backfill_returns():
    service = MagicMock()
    service.start = AsyncMock(return_value=None)

    await run_until_stopped(service)

    service.start.assert_awaited_once()


@pytest.mark.asyncio
async def test_start_error_propagates():
    service = MagicMock()
    service.start = AsyncMock(side_effect=RuntimeError("bad config"))

    with pytest.raises(RuntimeError, match="bad config"):
        await run_until_stopped(service)


@pytest.mark.asyncio
async def test_shutdown_signal_closes_clients_and_engine():
    service = _blocking_service()
    l1_client = AsyncMock()
    l2_client = AsyncMock()
    config = MagicMock()

    with patch(f"{RUNNER_MODULE}.L1Client", return_value=l1_client), \
            patch(f"{RUNNER_MODULE}.AztecNodeClient", return_value=l2_client), \
            patch(f"{RUNNER_MODULE}.get_collector_config", new_callable=AsyncMock, return_value=config), \
            patch(f"{RUNNER_MODULE}.check_connection", new_callable=AsyncMock, return_value=True), \
            patch(f"{RUNNER_MODULE}.DATABASE_URL", "postgresql+asyncpg://collector@db/turnstile"), \
            patch(f"{RUNNER_MODULE}.get_session_maker"), \
            patch(f"{RUNNER_MODULE}.build_collector_service", return_value=service), \
            patch(f"{RUNNER_MODULE}.dispose_engine", new_callable=AsyncMock) as mock_dispose:
        task = asyncio.create_task(run_collector())

        await asyncio.wait_for(service.started.wait(), timeout=1)
        signal.raise_signal(signal.SIGTERM)
        await asyncio.wait_for(task, timeout=1)

    assert service.cancelled
    l1_client.verify_chain_id.assert_awaited_once()
    l1_client.close.assert_awaited_once()
    l2_client.close.assert_awaited_once()
    mock_dispose.assert_awaited_once()


@pytest.mark.asyncio
async def test_unreachable_database_still_cleans_up():
    l1_client = AsyncMock()
    l2_client = AsyncMock()

    with patch(f"{RUNNER_MODULE}.L1Client", return_value=l1_client), \
            patch(f"{RUNNER_MODULE}.AztecNodeClient", return_value=l2_client), \
            patch(f"{RUNNER_MODULE}.get_collector_config", new_callable=AsyncMock), \
            patch(f"{RUNNER_MODULE}.check_connection", new_callable=AsyncMock, return_value=False), \
            patch(f"{RUNNER_MODULE}.dispose_engine", new_callable=AsyncMock) as mock_dispose:
        with pytest.raises(RuntimeError, match="Database is not reachable"):
            await run_collector()

    l1_client.close.assert_awaited_once()
    l2_client.close.assert_awaited_once()
    mock_dispose.assert_awaited_once()

# coding: utf-8
"""
Collector daemon entry point

    python -m src.tasks.collector_runner

Runs CollectorService.start() until SIGINT/SIGTERM. Exits 0 after a completed
backfill or a shutdown signal, 1 on a fatal startup error.
"""

import asyncio
import contextlib
import signal
import sys

from loguru import logger

from config.config import (
    DATABASE_URL,
    L1_RPC_URL,
    L2_NODE_URL,
    NETWORK,
    POLLING_INTERVAL_MS,
    RPC_TIMEOUT_SECONDS,
)
from config.logging import setup_logging
from config.sentry import init_sentry
from src.chains.l1_client import L1Client
from src.chains.l2_client import AztecNodeClient
from src.collectors.config import get_collector_config
from src.collectors.l1_collector import L1Collector
from src.collectors.l2_collector import L2Collector
from src.database.engine import check_connection, dispose_engine, get_session_maker, init_db
from src.services.block_progress import BlockProgressService
from src.services.collector_service import CollectorService
from src.services.contract_registry import ContractRegistryService
from src.services.metadata_service import MetadataService

SHUTDOWN_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def build_collector_service(config, l1_client: L1Client, l2_client: AztecNodeClient, session_maker) -> CollectorService:
    """Wire collectors and services around shared clients"""
    metadata_service = MetadataService(l1_client, session_maker)
    contract_registry = ContractRegistryService(
        session_maker,
        artifacts_api_url=config.l2.artifacts_api_url,
        timeout=config.rpc_timeout_seconds,
    )

    return CollectorService(
        config=config,
        l1_collector=L1Collector(config.l1, l1_client, metadata_service),
        l2_collector=L2Collector(config.l2, l2_client, metadata_service, contract_registry),
        block_progress=BlockProgressService(session_maker),
        session_maker=session_maker,
    )


async def run_until_stopped(service: CollectorService) -> None:
    """
    Run service.start() until it returns or a shutdown signal arrives

    The poll loop is cancelled on SIGINT/SIGTERM so the caller's cleanup
    still runs. Errors raised by start() propagate.
    """
    loop = asyncio.get_running_loop()
    stop_event = asyncio.Event()

    def _on_stop() -> None:
        stop_event.set()

    for sig in SHUTDOWN_SIGNALS:
        with contextlib.suppress(NotImplementedError):
            loop.add_signal_handler(sig, _on_stop)

    run_task = asyncio.create_task(service.start())
    wait_task = asyncio.create_task(stop_event.wait())

    try:
        done, pending = await asyncio.wait(
            {run_task, wait_task},
            return_when=asyncio.FIRST_COMPLETED,
        )
        for task in pending:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task

        if run_task in done:
            run_task.result()
        else:
            logger.info("Shutdown signal received, collector stopped")

    finally:
        for sig in SHUTDOWN_SIGNALS:
            with contextlib.suppress(NotImplementedError):
                loop.remove_signal_handler(sig)


async def run_collector() -> None:
    l1_client = L1Client(L1_RPC_URL, network=NETWORK, timeout=RPC_TIMEOUT_SECONDS)
    l2_client = AztecNodeClient(L2_NODE_URL, timeout=RPC_TIMEOUT_SECONDS)

    try:
        config = await get_collector_config(l1_client, l2_client)
        await l1_client.verify_chain_id()

        if not await check_connection():
            raise RuntimeError("Database is not reachable")

        if DATABASE_URL.startswith("sqlite"):
            # Local runs without migrations
            await init_db()

        service = build_collector_service(config, l1_client, l2_client, get_session_maker())
        logger.info(
            f"Collector configured: network={config.l1.network or 'n/a'}, "
            f"L1 chunk={config.l1.chunk_size}, L2 chunk={config.l2.chunk_size}, "
            f"polling={POLLING_INTERVAL_MS}ms"
        )
        await run_until_stopped(service)

    finally:
        await l1_client.close()
        await l2_client.close()
        await dispose_engine()
        logger.info("Database connections closed")


def main() -> None:
    setup_logging()
    init_sentry()

    try:
        asyncio.run(run_collector())
    except KeyboardInterrupt:
        logger.info("Collector stopped by user (KeyboardInterrupt)")
    except Exception as e:
        logger.exception(f"Fatal error: {e}")
        sys.exit(1)

    sys.exit(0)


if __name__ == "__main__":
    main()

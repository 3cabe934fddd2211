"""
Run the L1/L2 collectors over a block range without touching scan progress

    python scripts/collector_cli.py --l1-dry-run --from-block 100 --to-block 200
    python scripts/collector_cli.py --l2-dry-run --network sepolia -v

Records are printed as JSON. Token metadata and contract instances are
still backfilled, as in a normal run.
"""
import argparse
import asyncio
import json
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from loguru import logger


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="collector-cli",
        description="Run L1/L2 collectors in dry-run mode",
    )
    parser.add_argument("--l1-dry-run", action="store_true", help="Run L1 collector in dry-run mode")
    parser.add_argument("--l2-dry-run", action="store_true", help="Run L2 collector in dry-run mode")
    parser.add_argument("--from-block", type=int, help="Starting block number")
    parser.add_argument("--to-block", type=int, help="Ending block number")
    parser.add_argument("--network", help="Network to use (e.g., sepolia)")
    parser.add_argument("--force-l1-start-block", type=int, help="Force L1 start block (backfill mode)")
    parser.add_argument("--force-l2-start-block", type=int, help="Force L2 start block (backfill mode)")
    parser.add_argument("-u", "--url", dest="artifacts_api_url", help="Contract artifacts API URL")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    return parser.parse_args(argv)


def _print_records(label: str, records) -> None:
    if records:
        print(f"\nFound {len(records)} {label}:")
        print(json.dumps([record.to_dict() for record in records], indent=2))
    else:
        print(f"\nNo {label} found in the specified block range")


async def run_dry_run(args: argparse.Namespace) -> None:
    # Imported late: config.config reads the environment at import time
    from src.chains.l1_client import L1Client
    from src.chains.l2_client import AztecNodeClient
    from src.collectors.config import get_collector_config
    from src.collectors.l1_collector import L1Collector
    from src.collectors.l2_collector import L2Collector
    from src.database.engine import dispose_engine, get_session_maker
    from src.services.contract_registry import ContractRegistryService
    from src.services.metadata_service import MetadataService
    from config import config as settings

    # After import: load_dotenv(override=True) would replace an environment value
    if args.network:
        settings.NETWORK = args.network

    l1_client = L1Client(settings.L1_RPC_URL, network=settings.NETWORK, timeout=settings.RPC_TIMEOUT_SECONDS)
    l2_client = AztecNodeClient(settings.L2_NODE_URL, timeout=settings.RPC_TIMEOUT_SECONDS)

    try:
        config = await get_collector_config(l1_client, l2_client)
        if args.artifacts_api_url:
            config.l2.artifacts_api_url = args.artifacts_api_url

        if args.verbose:
            print("\nConfiguration:")
            print(json.dumps({"l1": vars(config.l1), "l2": vars(config.l2)}, indent=2))

        session_maker = get_session_maker()
        metadata_service = MetadataService(l1_client, session_maker)
        from_block = args.from_block
        if from_block is None:
            from_block = args.force_l1_start_block if args.force_l1_start_block is not None else args.force_l2_start_block

        if args.l1_dry_run:
            print(f"\nRunning L1 Collector Dry-Run (network: {config.l1.network or 'n/a'})")
            print(f"Portal: {config.l1.portal_address} | Allow list: {config.l1.allow_list_address}")

            collector = L1Collector(config.l1, l1_client, metadata_service)
            start = from_block if from_block is not None else config.l1.start_block
            end = args.to_block if args.to_block is not None else start + 100

            print(f"Scanning blocks {start} to {end}...")
            started = time.monotonic()
            result = await collector.scan(start, end)
            print(f"L1 dry-run scan completed in {(time.monotonic() - started) * 1000:.0f}ms")

            _print_records("L1 token registration(s)", result.registrations)
            _print_records("L1 allowlist event(s)", result.allow_list_events)

        if args.l2_dry_run:
            print(f"\nRunning L2 Collector Dry-Run (node: {config.l2.node_url})")
            print(f"Portal: {config.l2.portal_address}")

            registry = ContractRegistryService(
                session_maker, config.l2.artifacts_api_url, timeout=config.rpc_timeout_seconds
            )
            collector = L2Collector(config.l2, l2_client, metadata_service, registry)
            start = from_block if from_block is not None else config.l2.start_block
            # Smaller default range for L2
            end = args.to_block if args.to_block is not None else start + 10

            print(f"Scanning blocks {start} to {end}...")
            started = time.monotonic()
            registrations = await collector.scan(start, end)
            print(f"L2 dry-run scan completed in {(time.monotonic() - started) * 1000:.0f}ms")

            _print_records("L2 token registration(s)", registrations)

    finally:
        await l1_client.close()
        await l2_client.close()
        await dispose_engine()


def main(argv=None) -> int:
    args = parse_args(argv)

    if not args.l1_dry_run and not args.l2_dry_run:
        print("No dry-run options specified. Use --l1-dry-run and/or --l2-dry-run.")
        return 2

    from config.logging import setup_logging
    setup_logging()

    try:
        asyncio.run(run_dry_run(args))
    except KeyboardInterrupt:
        print("\nInterrupted, shutting down...")
        return 0
    except Exception as e:
        logger.exception(f"Fatal error in CLI: {e}")
        return 1

    print("\nDry-run completed successfully!")
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""Entry point for the Wormhole Keeper.

Runs a single keeper operation (flush, finalize, or both) against the
configured network and exits. Schedule it externally (cron, systemd timer)
for periodic operation, one instance per domain.
"""

import argparse
import asyncio
import json
import logging
import os
import sys

# Configure logging before any other imports create loggers
def setup_logging(level: str = "INFO") -> None:
    """Configure logging for the application.

    Args:
        level: Logging level as string (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    log_level: int = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

# Get logger for this module
logger = logging.getLogger(__name__)

from src.wormhole_keeper.attestations import AttestationFetcher
from src.wormhole_keeper.errors import KeeperError
from src.wormhole_keeper.keeper import WormholeKeeper


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        description="Wormhole Keeper - flush StarkNet wormhole debt and finalize it on L1",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""Environment Variables:
  NETWORK                                   - MAINNET, GOERLI or LOCALHOST
  DOMAIN                                    - Domain to flush (e.g. GOERLI-SLAVE-STARKNET-1)
  {NETWORK}_L1_DAI_WORMHOLE_GATEWAY_ADDRESS - L1 gateway
  {NETWORK}_L2_DAI_WORMHOLE_GATEWAY_ADDRESS - L2 gateway
  {NETWORK}_WORMHOLE_JOIN_ADDRESS           - L1 join (DELAY_GATED policy)
  {NETWORK}_STARKNET_CORE_ADDRESS           - L1 StarkNet core (delivery check)
  {NETWORK}_L1_PRIVATE_KEY                  - Key for finalizeFlush
  FLUSH_POLICY                              - UNCONDITIONAL (default) or DELAY_GATED
  FLUSH_DELAY_BLOCKS                        - Delay horizon (default: 0)
  REQUIRE_MESSAGE_DELIVERED                 - Check delivery before finalize (default: true)
  POLL_INTERVAL                             - L2 status poll interval (default: 1)
  FINALITY_TIMEOUT                          - Max seconds to wait for L1 acceptance (default: unbounded)
  LOOKBACK_BLOCKS                           - L1 log scan window (default: 0, from genesis)
  REQUEST_TIMEOUT                           - HTTP/RPC timeout in seconds (default: 30)
  {NETWORK}_L1_RPC_URL                      - L1 RPC endpoint (default: per network)
  {NETWORK}_L2_GATEWAY_URL                  - StarkNet gateway (default: per network)
  ORACLE_API_URL                            - Attestation oracle (default: http://localhost:8080)
  LOG_LEVEL                                - Logging level (can be overridden with --log-level)
        """
    )
    parser.add_argument(
        "command",
        choices=["flush", "finalize", "run", "attestations"],
        help="flush: flush pending debt; finalize: finalize a flushed batch; "
             "run: flush then finalize; attestations: fetch oracle signatures"
    )
    parser.add_argument(
        "tx_hash",
        nargs="?",
        help="Wormhole initiation transaction hash (attestations only)"
    )
    parser.add_argument(
        "--log-level",
        default=os.environ.get("LOG_LEVEL", "INFO"),
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )
    args = parser.parse_args(argv)
    if args.command == "attestations" and not args.tx_hash:
        parser.error("Add transaction hash to arguments")
    return args


async def run_command(args: argparse.Namespace) -> None:
    if args.command == "attestations":
        fetcher = AttestationFetcher(os.environ.get("ORACLE_API_URL", "http://localhost:8080"))
        attestations = await fetcher.fetch(args.tx_hash)
        print(json.dumps({
            "signatures": attestations.signatures,
            "wormholeGUID": attestations.guid.to_dict() if attestations.guid else None,
        }, indent=2))
        return

    keeper = WormholeKeeper.from_env()
    match args.command:
        case "flush":
            await keeper.flush()
        case "finalize":
            await keeper.finalize_flush()
        case "run":
            await keeper.run_once()


async def main() -> None:
    """Main entry point for the Wormhole Keeper."""
    args = parse_args()
    setup_logging(args.log_level)

    logger.info(f"=== Wormhole Keeper: {args.command} ===")

    try:
        await run_command(args)

    except ValueError as e:
        logger.error(f"Configuration Error: {e}")
        logger.error("Please check your environment variables (see --help)")
        sys.exit(1)

    except KeeperError as e:
        logger.error(f"Keeper Error: {e}")
        sys.exit(1)

    except KeyboardInterrupt:
        logger.info("\nReceived interrupt signal, shutting down...")
        sys.exit(0)

    except Exception as e:
        logger.error(f"Fatal Error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    asyncio.run(main())

#!/usr/bin/env python3
"""
run_prover.py - CLI entrypoint for the block-triggered prover.

Usage:
    python run_prover.py --ws-rpc-url wss://... --http-rpc-url https://... --block-interval 100
    BLOCK_INTERVAL=10 STRATEGY=command STRATEGY_COMMAND="./prove" python run_prover.py
"""

import asyncio
import signal
import sys
from pathlib import Path
from typing import Optional

import click
from dotenv import load_dotenv

from chains.block import fetch_latest_block, next_on_cadence
from chains.providers import RPCProvider
from chains.subscription import ChainHeadMonitor, HeaderSubscription
from config import ProverConfig, build_prover_config
from core.constants import StrategyKind
from core.exceptions import ConfigError, NodeConnectionError
from core.logging import get_logger, setup_logging
from execution.executor import BlockTaskExecutor
from execution.orchestrator import BlockOrchestrator, RunStats
from execution.registry import build_registry
from execution.strategy import build_strategy
from monitoring.alerts import FailureAlertDispatcher

logger = get_logger("prover.run")


class GracefulStop:
    """
    Signal handler: stop the loop after the in-flight block and close the
    subscription so a loop waiting on the next header wakes up.
    """

    def __init__(self, orchestrator: BlockOrchestrator, subscription: HeaderSubscription):
        self.orchestrator = orchestrator
        self.subscription = subscription
        self.close_task: Optional[asyncio.Task] = None

    def __call__(self) -> None:
        logger.info("Shutdown requested, finishing in-flight block")
        self.orchestrator.stop()
        if self.close_task is None:
            self.close_task = asyncio.get_running_loop().create_task(self.subscription.close())

    async def drain(self) -> None:
        """Wait for the close started by the signal, if any."""
        if self.close_task is None:
            return
        try:
            await self.close_task
        except Exception as e:
            logger.warning(
                f"Closing the head subscription failed: {e!r}",
                extra={"context": {"url": self.subscription.url}},
            )


async def run(config: ProverConfig) -> RunStats:
    """
    Start-up preconditions, then the orchestration loop.

    Raises:
        NodeConnectionError: If the subscription or the head check fails
    """
    strategy = build_strategy(config)
    registry = build_registry(config.registry)
    dispatcher = FailureAlertDispatcher(config.alert)
    provider = RPCProvider(
        url=config.http_rpc_url,
        retry_policy=config.retry,
        timeout_seconds=config.rpc_timeout_seconds,
    )
    subscription = HeaderSubscription(config.ws_rpc_url)
    stopper: Optional[GracefulStop] = None

    try:
        await subscription.connect()
        head = await fetch_latest_block(provider)
        logger.info(
            f"First ready block: {next_on_cadence(head.block_number + 1, config.block_interval)}",
            extra={"context": {"interval": config.block_interval}},
        )

        monitor = ChainHeadMonitor(
            subscription,
            interval=config.block_interval,
            settle_delay_seconds=config.settle_delay_seconds,
        )
        executor = BlockTaskExecutor(provider, strategy, registry)
        orchestrator = BlockOrchestrator(monitor, executor, dispatcher)

        stopper = GracefulStop(orchestrator, subscription)
        loop = asyncio.get_running_loop()
        for sig in (signal.SIGINT, signal.SIGTERM):
            loop.add_signal_handler(sig, stopper)

        return await orchestrator.run()
    finally:
        if stopper is not None:
            await stopper.drain()
        logger.info("RPC stats", extra={"context": provider.get_stats_summary()})
        await subscription.close()
        await provider.close()
        await registry.close()
        await dispatcher.close()


@click.command()
@click.option("--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path),
              default=None, help="YAML settings file (default: config/prover.yaml)")
@click.option("--ws-rpc-url", envvar="WS_RPC_URL", default=None, help="Node websocket URL (new heads)")
@click.option("--http-rpc-url", envvar="HTTP_RPC_URL", default=None, help="Node HTTP URL (block queries)")
@click.option("--block-interval", envvar="BLOCK_INTERVAL", type=int, default=None,
              help="Process blocks whose number is a multiple of this")
@click.option("--settle-delay", "settle_delay_seconds", envvar="SETTLE_DELAY_SECONDS", type=float, default=None,
              help="Seconds to wait before reading an on-cadence block over HTTP")
@click.option("--rpc-max-attempts", envvar="RPC_MAX_ATTEMPTS", type=int, default=None,
              help="Attempts per RPC call for transient failures")
@click.option("--rpc-initial-backoff-ms", envvar="RPC_INITIAL_BACKOFF_MS", type=int, default=None,
              help="Backoff before the first retry")
@click.option("--rpc-backoff-growth", envvar="RPC_BACKOFF_GROWTH", type=float, default=None,
              help="Backoff multiplier per retry")
@click.option("--pager-duty-integration-key", envvar="PAGER_DUTY_INTEGRATION_KEY", default=None,
              help="PagerDuty routing key; alerting is off without it")
@click.option("--eth-proofs-endpoint", envvar="ETH_PROOFS_ENDPOINT", default=None, help="eth-proofs API base URL")
@click.option("--eth-proofs-api-token", envvar="ETH_PROOFS_API_TOKEN", default=None, help="eth-proofs API token")
@click.option("--eth-proofs-cluster-id", envvar="ETH_PROOFS_CLUSTER_ID", type=int, default=None,
              help="eth-proofs cluster id")
@click.option("--strategy", envvar="STRATEGY", type=click.Choice([k.value for k in StrategyKind]), default=None,
              help="Block execution strategy")
@click.option("--strategy-command", envvar="STRATEGY_COMMAND", default=None,
              help="Prover command line for the 'command' strategy")
@click.option("--log-level", "-l", envvar="LOG_LEVEL", default=None, help="Log level (default INFO)")
@click.option("--json-logs/--no-json-logs", "log_json", envvar="LOG_JSON", default=None, help="Use JSON log format")
def main(config_path: Optional[Path], **options) -> None:
    """
    Block-triggered prover.

    Watches new heads and processes every block whose number is a multiple
    of the block interval, one at a time.
    """
    try:
        config = build_prover_config(options, config_path)
    except ConfigError as e:
        raise click.ClickException(str(e))

    setup_logging(level=config.log_level, json_format=config.log_json)
    logger.info("Starting prover", extra={"context": config.summary()})

    try:
        stats = asyncio.run(run(config))
    except NodeConnectionError as e:
        logger.error(f"Startup failed: {e}", extra={"context": e.details})
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Prover interrupted")
        return

    click.echo(
        f"Processed {stats.blocks_processed} blocks "
        f"({stats.blocks_succeeded} ok, {stats.blocks_failed} failed)"
    )


def cli() -> None:
    """Console entrypoint: .env is loaded before click reads the environment."""
    load_dotenv()
    main()


if __name__ == "__main__":
    cli()

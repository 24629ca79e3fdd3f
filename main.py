"""Command line entry point for the memecoin launch trading system."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
from typing import Optional

from memecoin_trading_system.api import serve_status_api
from memecoin_trading_system.config import CoinGeckoConfig, PipelineConfig, Settings, load_settings
from memecoin_trading_system.database import DatabaseManager, LaunchStore
from memecoin_trading_system.monitoring import configure_logging
from memecoin_trading_system.pipeline import LaunchPipeline
from memecoin_trading_system.strategies import StrategyExperimenter


logger = logging.getLogger(__name__)

DEMO_STRATEGY = 'Early Momentum'
DEMO_OWNERS = ('demo-alice', 'demo-bob')


async def run_pipeline(
    settings: Settings,
    duration: int,
    api_host: Optional[str] = None,
    api_port: Optional[int] = None,
) -> None:
    configure_logging(settings.log_level)
    pipeline = LaunchPipeline(
        settings,
        PipelineConfig.from_env(),
        CoinGeckoConfig.from_env(),
    )

    server = thread = None
    port = api_port if api_port is not None else settings.status_port
    if port is not None:
        host = api_host or settings.status_host
        server, thread = serve_status_api(
            pipeline.status,
            pipeline.status_board.recent_notifications,
            host=host,
            port=port,
        )
        logger.info('Status API available at http://%s:%s/api/status', host, port)

    try:
        await pipeline.run_for(duration)
    finally:
        if server:
            server.shutdown()
            if thread:
                thread.join(timeout=1)
            logger.info('Status API stopped')
        pipeline.close()


async def seed_demo(settings: Settings) -> None:
    configure_logging(settings.log_level)
    database = DatabaseManager(settings.database_url)
    store = LaunchStore(database)
    try:
        strategies = {strategy.name: strategy for strategy in await store.list_strategies()}
        strategy = strategies.get(DEMO_STRATEGY)
        if strategy is None:
            strategy = await store.create_strategy(
                name=DEMO_STRATEGY,
                description='Small caps with early volume',
                min_market_cap=50_000,
                max_market_cap=5_000_000,
                min_volume=2_000,
                min_momentum=None,
                entry_percent=2.0,
                max_position_size=500,
                is_active=True,
            )
        else:
            await store.activate_strategy(strategy.id)
        await store.upsert_strategy_performance(
            strategy.id,
            total_trades=25,
            successful_trades=18,
            failed_trades=7,
            win_rate=72.0,
            avg_profit_per_trade=58.0,
            meets_win_rate_threshold=True,
            meets_profit_threshold=True,
            is_ready_for_live=True,
        )
        for owner in DEMO_OWNERS:
            await store.create_portfolio(
                owner=owner,
                cash_balance=10_000,
                auto_trading_enabled=True,
                launch_trading_enabled=True,
            )
        logger.info('Seeded strategy %s and %d portfolios', strategy.name, len(DEMO_OWNERS))
    finally:
        database.close()


async def show_strategies(settings: Settings, create_variants: bool = False) -> None:
    configure_logging(settings.log_level)
    database = DatabaseManager(settings.database_url)
    try:
        experimenter = StrategyExperimenter(LaunchStore(database), PipelineConfig.from_env().experimenter)
        if create_variants:
            await experimenter.create_variants()
        comparison = await experimenter.strategy_comparison()
        print(json.dumps(comparison, indent=2))
    finally:
        database.close()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description='Memecoin launch paper-trading CLI')
    sub = parser.add_subparsers(dest='command', required=True)

    run = sub.add_parser('run', help='Run the launch detection and trading pipeline')
    run.add_argument('--duration', type=int, default=3600, help='Runtime in seconds')
    run.add_argument('--api-port', type=int, help='Expose status data on the given port')
    run.add_argument('--api-host', default=None)

    sub.add_parser('seed-demo', help='Create a ready demo strategy and two launch-trading portfolios')
    strategies = sub.add_parser('strategies', help='Print the strategy comparison report')
    strategies.add_argument(
        '--create-variants',
        action='store_true',
        help='Derive inactive variants of the active strategy first',
    )

    return parser


async def async_main(args: argparse.Namespace) -> None:
    settings = load_settings()
    if args.command == 'run':
        await run_pipeline(settings, args.duration, args.api_host, args.api_port)
    elif args.command == 'seed-demo':
        await seed_demo(settings)
    elif args.command == 'strategies':
        await show_strategies(settings, args.create_variants)
    else:  # pragma: no cover
        raise ValueError(f'Unknown command {args.command}')


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    asyncio.run(async_main(args))


if __name__ == '__main__':
    main()

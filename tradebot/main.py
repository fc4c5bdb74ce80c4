"""
Main entry point for the trading bot.

Supports:
- Run mode: load config, start the engine, trade until stopped
- Check mode: validate config and show market bindings
- Logs mode: print the tail of the bot log file

Usage:
    python -m tradebot.main --config-dir config --mode run

Exit codes:
    0  stopped by operator (Ctrl+C, SIGTERM, or --cycles reached)
    1  stopped on a fatal failure
    2  emergency stop triggered, or invalid configuration
"""

import argparse
import logging
import signal
import sys
from typing import List, Optional

from .engine.alerts import EmailAlerter
from .engine.config import load_bot_config
from .engine.engine import ShutdownReason, TradingEngine
from .engine.enums import EngineState
from .engine.errors import ConfigurationError, TradingFailure
from .engine.logfile import BotLogfileService
from .engine.logger import DEFAULT_LOG_FILE, setup_logging
from .engine.registry import MarketRegistry
from .exchange import create_trading_api
from .utils import console, print_log_lines, print_markets_table

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FATAL = 1
EXIT_CRITICAL = 2


def exit_code_for(reason: ShutdownReason) -> int:
    if reason.state is EngineState.CRITICAL_ERROR or isinstance(reason.cause, ConfigurationError):
        return EXIT_CRITICAL
    if reason.is_operator_stop:
        return EXIT_OK
    return EXIT_FATAL


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="tradebot - automated exchange trading bot",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Validate config and list markets
  python -m tradebot.main --config-dir config --mode check

  # Trade until Ctrl+C
  python -m tradebot.main --config-dir config

  # Run 3 cycles then stop
  python -m tradebot.main --config-dir config --cycles 3

  # Last 50 log lines
  python -m tradebot.main --mode logs --lines 50
        """
    )

    parser.add_argument(
        '--config-dir',
        type=str,
        default='config',
        help='Directory holding engine.yaml, markets.yaml, ... (default: config)'
    )

    parser.add_argument(
        '--mode',
        type=str,
        choices=['run', 'check', 'logs'],
        default='run',
        help='Execution mode (default: run)'
    )

    parser.add_argument(
        '--cycles',
        type=int,
        help='Stop after this many trade cycles (default: run forever)'
    )

    parser.add_argument(
        '--lines',
        type=int,
        default=100,
        help='Log lines to show in logs mode (default: 100)'
    )

    parser.add_argument(
        '--log-file',
        type=str,
        default=DEFAULT_LOG_FILE,
        help=f'Log file path (default: {DEFAULT_LOG_FILE})'
    )

    parser.add_argument(
        '--log-level',
        type=str,
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default='INFO',
        help='Logging level (default: INFO)'
    )

    return parser


def run_check(config_dir: str) -> int:
    config = load_bot_config(config_dir)
    bindings = MarketRegistry(config.markets, config.strategies).build_bindings()
    console.print(f"[bold green]Config OK[/bold green] {config.engine.bot_name} ({config.engine.bot_id})")
    console.print(f"Exchange: {config.exchange.name} via {config.exchange.adapter} ({config.exchange.exchange_id})")
    print_markets_table(bindings, title=f"{len(bindings)} enabled market(s)")
    return EXIT_OK


def run_logs(log_file: str, lines: int) -> int:
    service = BotLogfileService(log_file)
    try:
        text = service.get_logfile_tail(lines)
    except FileNotFoundError:
        console.print(f"[yellow]No log file at {log_file}[/yellow]")
        return EXIT_FATAL
    print_log_lines(text, source=f"{log_file} (last {lines} lines)")
    return EXIT_OK


def run_engine(config_dir: str, cycles: Optional[int]) -> int:
    config = load_bot_config(config_dir)
    bindings = MarketRegistry(config.markets, config.strategies).build_bindings()
    trading_api = create_trading_api(config.exchange)
    alerter = EmailAlerter(config.email_alerts, bot_name=config.engine.bot_name)

    engine = TradingEngine(config.engine, trading_api, bindings, alerter=alerter)

    def signal_handler(sig, frame):
        """Handle Ctrl+C / SIGTERM: finish the current cycle, then stop."""
        logger.warning(f"Received signal {signal.Signals(sig).name}, stopping after this cycle")
        engine.stop()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    reason = engine.run(max_cycles=cycles)
    return exit_code_for(reason)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    if args.mode == 'logs':
        return run_logs(args.log_file, args.lines)

    setup_logging(args.log_file, args.log_level)

    try:
        if args.mode == 'check':
            return run_check(args.config_dir)
        return run_engine(args.config_dir, args.cycles)
    except ConfigurationError as e:
        logger.error(f"Invalid configuration: {e}")
        return EXIT_CRITICAL
    except TradingFailure as e:
        logger.error(f"Failed to start: {e}")
        return EXIT_FATAL


if __name__ == '__main__':
    sys.exit(main())

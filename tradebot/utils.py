"""
Utility functions for the trading bot and its CLI.

Includes:
- Decimal rounding and formatting (8 decimal places, exchange precision)
- Rich table output for the CLI
"""

from decimal import Decimal, ROUND_DOWN, ROUND_UP
from typing import Iterable, Optional

from rich.console import Console
from rich.table import Table

console = Console()

EIGHT_PLACES = Decimal("0.00000001")


def round_amount_down(amount: Decimal) -> Decimal:
    """Round an order amount down to 8 decimal places (never overspend)."""
    return amount.quantize(EIGHT_PLACES, rounding=ROUND_DOWN)


def round_price_up(price: Decimal) -> Decimal:
    """Round a price up to 8 decimal places (never undercut the margin)."""
    return price.quantize(EIGHT_PLACES, rounding=ROUND_UP)


def format_decimal(value: Optional[Decimal]) -> str:
    """Format with up to 8 decimals, trailing zeros stripped."""
    if value is None:
        return "N/A"
    text = f"{value:.8f}"
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def print_markets_table(bindings: Iterable, title: str = "Markets") -> None:
    """Display market -> strategy bindings."""
    table = Table(title=title, show_header=True, header_style="bold magenta")
    table.add_column("Market", style="cyan")
    table.add_column("Id", style="white")
    table.add_column("Base / Counter", style="white")
    table.add_column("Strategy", style="green")

    for binding in bindings:
        market = binding.market
        table.add_row(
            market.name,
            market.id,
            f"{market.base_currency} / {market.counter_currency}",
            binding.strategy_id,
        )

    console.print(table)


def print_log_lines(text: str, source: str) -> None:
    console.rule(f"[bold]{source}[/bold]")
    console.print(text, end="", markup=False, highlight=False)

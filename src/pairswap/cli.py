"""Command line entry point.

Usage: pairswap [amount] [direction]

direction 1 sells token A for token B, 2 sells token B for token A.
Missing arguments are prompted for.
"""

import argparse
import asyncio
import logging
import sys
from decimal import Decimal, InvalidOperation
from typing import Callable, Optional

from dotenv import load_dotenv

from pairswap.config import Settings, get_settings
from pairswap.exceptions import SwapError
from pairswap.routing.base import SwapIntent, SwapResult
from pairswap.swap.executor import SwapOrchestrator

logger = logging.getLogger(__name__)

BANNER = "=============================================="

TROUBLESHOOTING_TIPS = [
    "Check your token balance",
    "Ensure you have enough native token for gas fees",
    "Try with a smaller amount",
    "Verify your API keys are valid",
    "Check your network connection",
]


def parse_direction(raw: Optional[str]) -> int:
    """Parse the swap direction, defaulting to 1 for anything invalid."""
    if raw is not None and raw.strip() in ("1", "2"):
        return int(raw.strip())
    print("Invalid choice. Using default: 1")
    return 1


def parse_amount(raw: Optional[str]) -> Optional[Decimal]:
    """Parse a positive decimal amount, None if invalid."""
    if raw is None:
        return None
    try:
        amount = Decimal(raw.strip())
    except InvalidOperation:
        return None
    if not amount.is_finite() or amount <= 0:
        return None
    return amount


def build_intent(settings: Settings, direction: int, amount: Decimal, wallet_address: str) -> SwapIntent:
    token_a, token_b = settings.token_a(), settings.token_b()
    sell, buy = (token_a, token_b) if direction == 1 else (token_b, token_a)
    return SwapIntent(
        sell_token=sell.address,
        buy_token=buy.address,
        amount=amount,
        wallet_address=wallet_address,
        chain_id=settings.chain_id,
    )


def print_result(result: SwapResult, sell_symbol: str, buy_symbol: str) -> None:
    print(BANNER)
    print(f"Status: {result.status}")
    print(f"Aggregator: {result.provider}")
    print(f"Sold: {result.sell_amount} {sell_symbol}")
    if result.buy_amount is not None and result.success:
        print(f"Received (expected): {result.buy_amount} {buy_symbol}")
    if result.tx_hash:
        print(f"Transaction: {result.tx_hash}")
    if result.gas_used is not None:
        print(f"Gas used: {result.gas_used}")
    if result.explorer_url:
        print(f"Explorer: {result.explorer_url}")
    if result.error:
        print(f"Error: {result.error}")
    print(BANNER)


def print_error(error: BaseException) -> None:
    print(BANNER)
    print(f"Error: {error}")
    if error.__cause__ is not None:
        print(f"Inner Error: {error.__cause__}")
    print("\nTroubleshooting tips:")
    for i, tip in enumerate(TROUBLESHOOTING_TIPS, 1):
        print(f"{i}. {tip}")
    print(BANNER)


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pairswap",
        description="Swap between two tokens through 1inch or 0x",
    )
    parser.add_argument("amount", nargs="?", help="Amount of the sell token")
    parser.add_argument("direction", nargs="?", help="1 = token A to token B, 2 = token B to token A")
    return parser


async def run(
    settings: Settings,
    amount_arg: Optional[str],
    direction_arg: Optional[str],
    prompt: Callable[[str], str] = input,
) -> int:
    """Resolve arguments, run one swap and print the outcome."""
    token_a, token_b = settings.token_a(), settings.token_b()

    print("Token Swap Options:")
    print(f"1. Swap {token_a.symbol} to {token_b.symbol}")
    print(f"2. Swap {token_b.symbol} to {token_a.symbol}")

    direction = parse_direction(direction_arg if direction_arg is not None else prompt("Enter your choice (1 or 2): "))
    sell, buy = (token_a, token_b) if direction == 1 else (token_b, token_a)

    amount = parse_amount(amount_arg if amount_arg is not None else prompt(f"Enter amount of {sell.symbol} to swap: "))
    if amount is None:
        print("Invalid amount. Please enter a valid number.")
        return 1

    orchestrator = SwapOrchestrator.from_settings(settings)
    intent = build_intent(settings, direction, amount, orchestrator.wallet_address)

    result = await orchestrator.swap(intent)
    print_result(result, sell.symbol, buy.symbol)
    return 0 if result.success else 1


def main(argv: Optional[list[str]] = None) -> int:
    load_dotenv()
    args = create_parser().parse_args(argv)

    settings = get_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    print(BANNER)
    print("   Two-token DEX aggregator swap")
    print(BANNER)
    logger.debug(f"Settings: {settings.get_safe_dict()}")

    try:
        return asyncio.run(run(settings, args.amount, args.direction))
    except SwapError as e:
        logger.error(f"Swap aborted: {e}")
        print_error(e)
        return 1
    except KeyboardInterrupt:
        print("\nCancelled")
        return 130


if __name__ == "__main__":
    sys.exit(main())

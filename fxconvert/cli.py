"""Command-line entry point.

One-shot mode converts (``--source --target --amount``) or lists rates
(``--exrate --source`` or ``--source`` alone). ``--interactive`` runs the menu
loop; ``--serve`` runs the HTTP service. Every mode shares one converter, so
the response cache lives for the whole run.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import math
import sys
from typing import Callable, List, Optional

import httpx
import uvicorn

from fxconvert.core.config import Settings, get_settings
from fxconvert.core.errors import FxConvertError, InvalidAmount
from fxconvert.core.logging import init_logging, new_operation_id, request_id_ctx
from fxconvert.main import build_converter, create_app
from fxconvert.services.money import format_amount, format_input_amount, format_rate
from fxconvert.services.rates.conversion import CurrencyConverter

logger = logging.getLogger("fxconvert.cli")

Output = Callable[[str], None]
Reader = Callable[[], str]

EXIT_OK = 0
EXIT_ERROR = 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fxconvert",
        description="Converts amounts between different currencies using real-time exchange rate data.",
    )
    parser.add_argument("--source", help="Source currency code")
    parser.add_argument("--target", help="Target currency code")
    parser.add_argument("--amount", default="1", help="Amount to be converted (default 1)")
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument("--interactive", action="store_true", help="Activates interactive mode")
    mode.add_argument("--exrate", action="store_true", help="List exchange rates for --source")
    mode.add_argument("--serve", action="store_true", help="Run the HTTP service")
    parser.add_argument("--host", default="127.0.0.1", help="Bind address for --serve")
    parser.add_argument("--port", type=int, default=8000, help="Port for --serve")
    parser.add_argument("--debug", action="store_true", help="Verbose logging to stderr")
    return parser


def parse_amount(raw: str) -> float:
    try:
        amount = float(raw.strip())
    except (AttributeError, ValueError) as e:
        raise InvalidAmount(f"Invalid amount: {raw!r}") from e
    if not math.isfinite(amount) or amount < 0:
        raise InvalidAmount(f"Amount must be a non-negative number, got {raw!r}")
    return amount


async def show_rates(converter: CurrencyConverter, base: str, out: Output) -> None:
    rates = await converter.list_rates(base)
    out(f"Exchange rates for {base.strip().upper()}:")
    for code, rate in rates:
        out(f"{code}: {format_rate(rate)}")


async def show_conversion(
    converter: CurrencyConverter, base: str, target: str, amount: float, out: Output
) -> None:
    result = await converter.convert(base, target, amount)
    shown = format_input_amount(result.amount)
    out(
        f"{shown} {result.base} = {format_amount(result.converted_amount)} "
        f"{result.target} at an exchange rate of {format_rate(result.rate)}"
    )


async def run_one_shot(
    converter: CurrencyConverter, args: argparse.Namespace, out: Output
) -> None:
    if args.exrate or not args.target:
        await show_rates(converter, args.source, out)
        return
    amount = parse_amount(args.amount)
    await show_conversion(converter, args.source, args.target, amount, out)


async def _prompt(read: Reader, out: Output, message: str) -> str:
    out(message)
    line = await asyncio.to_thread(read)
    return line.strip()


async def run_interactive(converter: CurrencyConverter, read: Reader, out: Output) -> None:
    """Menu loop; errors are reported and the loop carries on.

    ``read`` blocks on the console, so it runs in a worker thread; nothing in
    here holds the cache lock while waiting for input. EOF ends the session.
    """
    out("Welcome to the interactive currency converter!")
    try:
        while True:
            option = await _prompt(
                read,
                out,
                "Select an option:\n"
                "1 - Check available currencies and their current rates\n"
                "2 - Exchange of two given currencies",
            )
            token = request_id_ctx.set(new_operation_id())
            try:
                if option == "1":
                    base = await _prompt(read, out, "Enter your base currency (e.g., USD):")
                    await show_rates(converter, base, out)
                elif option == "2":
                    base = await _prompt(read, out, "Enter your base currency (e.g., USD):")
                    target = await _prompt(read, out, "Enter the target currency (e.g., EUR):")
                    raw = await _prompt(read, out, "Enter the amount to convert:")
                    await show_conversion(converter, base, target, parse_amount(raw), out)
                else:
                    out("Invalid option.")
            except FxConvertError as e:
                logger.info("interactive operation failed: %s", e.code)
                out(f"Error: {e}")
            finally:
                request_id_ctx.reset(token)

            answer = await _prompt(read, out, "Is that all? (yes/no)")
            if answer.lower() == "yes":
                break
    except EOFError:
        out("")


async def _run(
    args: argparse.Namespace,
    settings: Settings,
    converter: Optional[CurrencyConverter],
    read: Reader,
    out: Output,
) -> None:
    async with httpx.AsyncClient() as http_client:
        if converter is None:
            converter = build_converter(settings, http_client)
        if args.interactive:
            await run_interactive(converter, read, out)
        else:
            token = request_id_ctx.set(new_operation_id())
            try:
                await run_one_shot(converter, args, out)
            finally:
                request_id_ctx.reset(token)


def main(
    argv: Optional[List[str]] = None,
    *,
    settings: Optional[Settings] = None,
    converter: Optional[CurrencyConverter] = None,
    read: Reader = input,
    out: Output = print,
) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    settings = settings or get_settings()
    if args.debug:
        settings = settings.model_copy(update={"debug": True})

    if not args.serve:
        init_logging(debug=settings.debug, stream=sys.stderr, default_level=logging.WARNING)
        if not args.interactive and not args.source:
            parser.error("--source is required unless --interactive or --serve is given")

    try:
        if args.serve:
            app = create_app(settings, converter=converter)
            uvicorn.run(app, host=args.host, port=args.port)
        else:
            asyncio.run(_run(args, settings, converter, read, out))
    except FxConvertError as e:
        logger.debug("run failed", exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_ERROR
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

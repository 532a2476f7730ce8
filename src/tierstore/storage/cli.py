# src/tierstore/storage/cli.py
"""
Command-line interface for TierStore.

Provides one command per storage operation plus tier inspection and the
HTTP server:

    tierstore get ID
    tierstore put VALUE
    tierstore update ID VALUE
    tierstore delete ID
    tierstore tiers
    tierstore serve [--host HOST] [--port PORT]

Exit codes: 0 on success, 1 when the record is missing or an operation
fails, 2 on invalid input.

Note that the cache tier lives in process memory, so each invocation starts
with an empty cache and reads are served from the file or database tier.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, Awaitable, Callable, Dict, List, Optional

from ..api import TierStore
from ..exceptions import TierStoreError
from ..models import OperationResult, OperationStatus, Record

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID = 2


# =============================================================================
# OUTPUT FORMATTING
# =============================================================================

class OutputFormatter:
    """Formats CLI output in various styles."""

    def __init__(self, use_color: bool = True, json_output: bool = False):
        self.use_color = use_color and sys.stdout.isatty()
        self.json_output = json_output

    def _color(self, text: str, color: str) -> str:
        """Apply ANSI color to text."""
        if not self.use_color:
            return text

        colors = {
            'green': '\033[92m',
            'red': '\033[91m',
            'yellow': '\033[93m',
            'blue': '\033[94m',
            'bold': '\033[1m',
            'reset': '\033[0m'
        }
        return f"{colors.get(color, '')}{text}{colors['reset']}"

    def success(self, text: str) -> str:
        return self._color(f"✓ {text}", 'green')

    def error(self, text: str) -> str:
        return self._color(f"✗ {text}", 'red')

    def warning(self, text: str) -> str:
        return self._color(f"⚠ {text}", 'yellow')

    def header(self, text: str) -> str:
        return self._color(text, 'bold')

    def tier_flag(self, ok: bool) -> str:
        return self._color("ok", 'green') if ok else self._color("failed", 'red')


def _exit_code(result: OperationResult) -> int:
    if result.status is OperationStatus.SUCCESS:
        return EXIT_OK
    if result.status is OperationStatus.INVALID_ARGUMENT:
        return EXIT_INVALID
    return EXIT_FAILURE


def _report(result: OperationResult, formatter: OutputFormatter, success_text: str) -> int:
    """Print an operation result and return the matching exit code."""
    if formatter.json_output:
        print(json.dumps(result.to_dict(), indent=2))
        return _exit_code(result)

    if result.ok:
        print(formatter.success(success_text))
        if isinstance(result.value, Record):
            record = result.value
            print(f"  id:         {record.id}")
            print(f"  value:      {record.value}")
            print(f"  created_at: {record.created_at.isoformat()}")
    elif result.not_found:
        print(formatter.warning(result.error or "Record not found."))
    else:
        print(formatter.error(result.error or "Operation failed."))

    for tier, ok in result.tier_results.items():
        print(f"  {tier:<10} {formatter.tier_flag(ok)}")
    return _exit_code(result)


async def _with_store(
    config_path: Optional[str],
    action: Callable[[TierStore], Awaitable[int]],
    formatter: OutputFormatter,
) -> int:
    try:
        store = await TierStore.create(config_file_path=config_path, configure_logs=True)
    except TierStoreError as e:
        print(formatter.error(f"Could not initialize storage: {e}"))
        return EXIT_FAILURE
    async with store:
        return await action(store)


# =============================================================================
# CLI COMMANDS
# =============================================================================

def cmd_get(record_id: str, config_path: Optional[str] = None,
            formatter: OutputFormatter = None) -> int:
    """
    Read a record by id.

    Returns:
        Exit code (0 = found, 1 = not found or failed, 2 = invalid id)
    """
    formatter = formatter or OutputFormatter()

    async def action(store: TierStore) -> int:
        result = await store.get(record_id)
        return _report(result, formatter, f"Record '{record_id}'")

    return asyncio.run(_with_store(config_path, action, formatter))


def cmd_put(value: str, config_path: Optional[str] = None,
            formatter: OutputFormatter = None) -> int:
    """Save a new record and print its id."""
    formatter = formatter or OutputFormatter()

    async def action(store: TierStore) -> int:
        result = await store.save(value)
        return _report(result, formatter, f"Saved record '{result.value}'")

    return asyncio.run(_with_store(config_path, action, formatter))


def cmd_update(record_id: str, value: str, config_path: Optional[str] = None,
               formatter: OutputFormatter = None) -> int:
    formatter = formatter or OutputFormatter()

    async def action(store: TierStore) -> int:
        result = await store.update(record_id, value)
        return _report(result, formatter, f"Updated record '{record_id}'")

    return asyncio.run(_with_store(config_path, action, formatter))


def cmd_delete(record_id: str, config_path: Optional[str] = None,
               formatter: OutputFormatter = None) -> int:
    formatter = formatter or OutputFormatter()

    async def action(store: TierStore) -> int:
        result = await store.delete(record_id)
        return _report(result, formatter, f"Deleted record '{record_id}'")

    return asyncio.run(_with_store(config_path, action, formatter))


def cmd_tiers(config_path: Optional[str] = None,
              formatter: OutputFormatter = None) -> int:
    """Show the registered tiers, fastest first, with provider statistics."""
    formatter = formatter or OutputFormatter()

    async def action(store: TierStore) -> int:
        description: Dict[str, Any] = store.describe()
        if formatter.json_output:
            print(json.dumps(description, indent=2, default=str))
            return EXIT_OK

        print(formatter.header("Storage Tiers"))
        print("=" * 45)
        for rank, tier in enumerate(description["tiers"]):
            print(f"\n{rank}. {formatter.header(tier)}")
            for key, value in description["providers"].get(tier, {}).items():
                print(f"     {key}: {value}")
        timeout = description.get("provider_timeout_seconds")
        print(f"\nProvider timeout: {f'{timeout}s' if timeout else 'none'}")
        return EXIT_OK

    return asyncio.run(_with_store(config_path, action, formatter))


def cmd_serve(config_path: Optional[str] = None, host: Optional[str] = None,
              port: Optional[int] = None) -> int:
    """Run the HTTP API server until interrupted."""
    from ..api_server.main import run_server

    run_server(config_file_path=config_path, host=host, port=port)
    return EXIT_OK


# =============================================================================
# MAIN CLI ENTRY POINT
# =============================================================================

def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the TierStore CLI."""
    parser = argparse.ArgumentParser(
        prog="tierstore",
        description="TierStore tiered record storage CLI"
    )
    parser.add_argument(
        "--config", "-c",
        help="Path to configuration file",
        default=None
    )
    parser.add_argument(
        "--json",
        help="Output in JSON format",
        action="store_true"
    )
    parser.add_argument(
        "--no-color",
        help="Disable colored output",
        action="store_true"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    get_parser = subparsers.add_parser("get", help="Read a record by id")
    get_parser.add_argument("id", help="Record id")

    put_parser = subparsers.add_parser("put", help="Save a new record")
    put_parser.add_argument("value", help="Value to store")

    update_parser = subparsers.add_parser("update", help="Replace the value of a record")
    update_parser.add_argument("id", help="Record id")
    update_parser.add_argument("value", help="New value")

    delete_parser = subparsers.add_parser("delete", help="Delete a record from every tier")
    delete_parser.add_argument("id", help="Record id")

    subparsers.add_parser("tiers", help="Show tier order and statistics")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API server")
    serve_parser.add_argument("--host", default=None, help="Bind address (default: from config)")
    serve_parser.add_argument("--port", type=int, default=None, help="Bind port (default: from config)")

    return parser


def main(args: Optional[List[str]] = None) -> int:
    """
    Main entry point for the TierStore CLI.

    Args:
        args: Command line arguments (defaults to sys.argv)

    Returns:
        Exit code
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    formatter = OutputFormatter(
        use_color=not parsed.no_color,
        json_output=parsed.json
    )

    if parsed.command == "get":
        return cmd_get(parsed.id, config_path=parsed.config, formatter=formatter)
    elif parsed.command == "put":
        return cmd_put(parsed.value, config_path=parsed.config, formatter=formatter)
    elif parsed.command == "update":
        return cmd_update(parsed.id, parsed.value, config_path=parsed.config, formatter=formatter)
    elif parsed.command == "delete":
        return cmd_delete(parsed.id, config_path=parsed.config, formatter=formatter)
    elif parsed.command == "tiers":
        return cmd_tiers(config_path=parsed.config, formatter=formatter)
    elif parsed.command == "serve":
        return cmd_serve(config_path=parsed.config, host=parsed.host, port=parsed.port)
    else:
        parser.print_help()
        return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())

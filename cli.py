#!/usr/bin/env python3
"""
CLI Mode for mcp-healthcheck

Standalone command-line interface for testing the MCP servers configured in
opencode.jsonc without an MCP host. Useful for CI/CD pipelines and cron jobs.

Usage:
  python cli.py                                  # Test all configured servers
  python cli.py --server chroma                  # Test one server
  python cli.py --verbose                        # Include result payloads in report
  python cli.py --list                           # List discovered servers only
  python cli.py --format json                    # JSON output
  python cli.py --format yaml                    # YAML output
  python cli.py --format summary                 # Summary only
  python cli.py --config ~/.config/opencode/opencode.jsonc --output mcpTest.md
  python cli.py --save-history                   # Save to Supabase
  python cli.py --notify                         # Desktop notification when done
"""

import argparse
import asyncio
import json
import logging
import sys
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

import yaml

# Add src directory to path
src_path = Path(__file__).parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

# Configure logging
logging.basicConfig(
    level=logging.WARNING,  # Only show warnings/errors in CLI mode
    format='%(levelname)s: %(message)s'
)
logger = logging.getLogger("mcp-healthcheck-cli")

STATUS_SYMBOLS = {
    "success": "✅",
    "warning": "⚠️ ",
    "error": "❌",
    "skipped": "⏭️ ",
}


class HealthcheckCLI:
    """CLI interface for mcp-healthcheck."""

    def __init__(self, args):
        self.args = args
        self.result: Dict[str, Any] = {}

    async def run(self) -> int:
        """Run the health check based on CLI arguments."""
        from mcp_healthcheck.command import mcp_test_standalone

        start_time = time.time()

        if self.args.format == "text":
            print("🔍 MCP Health Check & Troubleshoot Tool\n")

        self.result = await mcp_test_standalone(
            server=self.args.server,
            verbose=self.args.verbose,
            config_path=self.args.config,
            output_path=self.args.output
        )

        execution_time_ms = int((time.time() - start_time) * 1000)

        if self.args.save_history and self.result["ok"]:
            await self.save_history(execution_time_ms)

        self.output_results()

        if self.args.notify:
            await self.notify()

        return self.get_exit_code()

    async def save_history(self, execution_time_ms: int):
        """Save the run summary to Supabase."""
        try:
            from mcp_healthcheck.history import save_health_run, initialize_supabase
            from mcp_healthcheck.env_config import require_env

            initialize_supabase(require_env("SUPABASE_URL"), require_env("SUPABASE_KEY"))

            record_id = await save_health_run(
                self.result["data"],
                triggered_by="cli",
                execution_time_ms=execution_time_ms
            )

            if record_id:
                logger.info(f"Health check history saved to Supabase: {record_id}")
            else:
                logger.warning("Failed to save health check history (no record ID returned)")
        except Exception as e:
            logger.error(f"Failed to save history: {e}")

    async def notify(self):
        """Send a desktop notification for the finished run."""
        from mcp_healthcheck.errors import NotificationError
        from mcp_healthcheck.notifications import handle_event

        event_type = "session.complete" if self.get_exit_code() == 0 else "session.error"
        try:
            await handle_event({"type": event_type})
        except NotificationError as e:
            logger.warning(f"Notification failed: {e}")

    def output_results(self):
        """Output results in the requested format."""
        if not self.result["ok"]:
            self.output_error()
        elif self.args.format == "json":
            self.output_json()
        elif self.args.format == "yaml":
            self.output_yaml()
        elif self.args.format == "summary":
            self.output_summary()
        else:  # text
            self.output_text()

    def output_error(self):
        """Output a failed run."""
        if self.args.format in ("json", "yaml"):
            payload = {"timestamp": datetime.now().isoformat(), **self.result}
            if self.args.format == "json":
                print(json.dumps(payload, indent=2, ensure_ascii=False))
            else:
                print(yaml.safe_dump(payload, sort_keys=False, allow_unicode=True))
            return

        print(f"❌ {self.result['message']}")
        available = self.result.get("data", {}).get("available_servers")
        if available:
            print(f"Available servers: {', '.join(available)}")

    def output_json(self):
        """Output results as JSON."""
        output = {
            "timestamp": datetime.now().isoformat(),
            **self.result["data"]
        }
        print(json.dumps(output, indent=2, ensure_ascii=False, default=str))

    def output_yaml(self):
        """Output results as YAML."""
        output = {
            "timestamp": datetime.now().isoformat(),
            **json.loads(json.dumps(self.result["data"], default=str))
        }
        print(yaml.safe_dump(output, default_flow_style=False, sort_keys=False, allow_unicode=True))

    def output_summary(self):
        """Output summary only."""
        summary = self.result["data"]["summary"]
        print(f"Total MCP Servers: {summary['total']}")
        print(f"Success: {summary['success']}")
        print(f"Warning: {summary['warning']}")
        print(f"Error: {summary['error']}")
        print(f"Skipped: {summary['skipped']}")

    def output_text(self):
        """Output human-readable text format."""
        data = self.result["data"]

        for server in data["results"]:
            symbol = STATUS_SYMBOLS.get(server["status"], "?")
            print(f"{symbol} {server['display_name']} ({server['server']})")

            for test in server["tests"]:
                if test["error"] or (not test["success"] and not test["warning"]):
                    print(f"    ❌ {test['name']}: {test['error'] or 'Failed'}")
                elif test["warning"]:
                    print(f"    ⚠️  {test['name']}: {test['warning']}")
                else:
                    print(f"    ✅ {test['name']}: Success")

            if server["troubleshooting"]:
                print("  Troubleshooting Tips:")
                for tip in server["troubleshooting"]:
                    print(f"    - {tip}")
            print()

        print("=" * 80)
        print("SUMMARY")
        print("=" * 80)
        self.output_summary()
        print(f"\n📄 Report saved to: {data['report_path']}")

    def get_exit_code(self) -> int:
        """Get appropriate exit code based on results."""
        if not self.result.get("ok"):
            return 1

        summary = self.result["data"]["summary"]
        if summary["error"] > 0:
            return 2  # At least one server failing
        elif summary["warning"] > 0:
            return 1  # Warning
        else:
            return 0  # Success


def list_servers(config_path) -> int:
    """Print discovered servers and their categories."""
    from mcp_healthcheck.config_loader import load_services
    from mcp_healthcheck.env_config import get_config_path
    from mcp_healthcheck.errors import ConfigParseError, ConfigReadError

    path = Path(config_path) if config_path else get_config_path()
    try:
        services = load_services(path)
    except (ConfigReadError, ConfigParseError) as e:
        print(f"❌ {e}")
        return 1

    if not services:
        print("❌ No MCP servers found in configuration")
        return 1

    print(f"Found {len(services)} MCP servers:")
    for service in services:
        print(f"  - {service.name} ({service.category.value})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Test and troubleshoot the MCP servers configured in opencode.jsonc",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python cli.py                          # Test all servers
  python cli.py --server sqlite          # Test one server
  python cli.py --format json            # JSON output
  python cli.py --save-history           # Save results to Supabase
        """
    )

    parser.add_argument(
        "--server", "-s",
        default="all",
        help="Name of one configured server to test (default: all)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Include full result payloads in the report and show debug logs"
    )

    parser.add_argument(
        "--config", "-c",
        metavar="PATH",
        help="Path to opencode.jsonc (default: $MCP_HEALTHCHECK_CONFIG or ./opencode.jsonc)"
    )

    parser.add_argument(
        "--output", "-o",
        metavar="PATH",
        help="Report path (default: $MCP_HEALTHCHECK_REPORT or ./mcpTest.md)"
    )

    parser.add_argument(
        "--format",
        choices=["text", "json", "yaml", "summary"],
        default="text",
        help="Output format (default: text)"
    )

    parser.add_argument(
        "--list",
        action="store_true",
        help="List discovered servers without testing them"
    )

    parser.add_argument(
        "--save-history",
        action="store_true",
        help="Save the run summary to Supabase"
    )

    parser.add_argument(
        "--notify",
        action="store_true",
        help="Send a desktop notification when the run finishes"
    )

    return parser


async def main_async(argv=None) -> int:
    """Async main function."""
    args = build_parser().parse_args(argv)

    # Adjust logging level if verbose
    if args.verbose:
        logging.getLogger().setLevel(logging.INFO)
        logger.setLevel(logging.INFO)

    if args.list:
        return list_servers(args.config)

    cli = HealthcheckCLI(args)
    return await cli.run()


def main():
    """Main entry point."""
    try:
        exit_code = asyncio.run(main_async())
        sys.exit(exit_code)
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()

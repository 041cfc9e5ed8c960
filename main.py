# =============================================================================
# main.py  —  Entry Point for the Brinqa MCP server
# =============================================================================
#
# HOW TO RUN:
#   python main.py              # serve the tools over stdio
#   python main.py --list-tools # print the tool catalogue and exit
#
# WHAT HAPPENS:
#   1. .env is loaded into the environment (BRINQA_API_URL, credentials, ...)
#   2. Settings are read; a missing BRINQA_API_URL stops the process here
#   3. One BrinqaClient is built and installed into the tool server
#   4. FastMCP serves the tools over stdio until the client disconnects
#
# Missing credentials do NOT stop startup.  Each tool call then fails with
# "Error: Authentication credentials not configured..." instead.
# =============================================================================

import argparse
import json
import sys

from dotenv import load_dotenv

# Load .env BEFORE anything reads the environment.
load_dotenv()

from core.client import BrinqaClient
from core.config import Settings
from core.errors import ConfigurationError
from core.operations import list_operations


def _print_tools() -> None:
    for op in list_operations():
        print(op.name)
        print(f"  {op.description}")
        print(f"  parameters: {json.dumps(op.input_schema['properties'], sort_keys=True)}")


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Brinqa MCP server")
    parser.add_argument(
        "--list-tools", action="store_true", help="Print the available tools and exit"
    )
    args = parser.parse_args(argv)

    if args.list_tools:
        _print_tools()
        return 0

    try:
        settings = Settings.from_env()
        settings.require_api_url()
    except ConfigurationError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # Imported late: the tool module configures logging on import.
    from tools import mcp_server

    client = BrinqaClient(settings)
    mcp_server.configure_client(client)
    print("Brinqa MCP server started", file=sys.stderr)
    try:
        mcp_server.mcp.run()
    finally:
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())

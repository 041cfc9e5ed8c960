# =============================================================================
# tools/mcp_server.py  —  FastMCP Tool Server (ALL Brinqa tools in one place)
# =============================================================================
#
# WHAT THIS FILE DOES:
#   Exposes the ten Brinqa operations as MCP tools.  Each tool is a thin
#   wrapper: it logs the call, hands the arguments to core.operations.invoke,
#   and either returns the payload or raises ToolError with the
#   "Error: ..." text.
#
# HOW IT WORKS (the flow):
#   1. The MCP client calls a tool by name (e.g., "query_assets")
#   2. FastMCP validates the arguments against the typed signature
#   3. _run() passes them to invoke(), which builds the GraphQL document,
#      authenticates and executes it
#   4. The tool returns Brinqa's data untouched, or an isError result
#
# TOOL NAMING CONVENTIONS:
#   - query_*  → filtered, paged list queries (read-only)
#   - get_*    → lookups and summaries (read-only)
#   - execute_graphql → caller-written GraphQL, read-only (guarded)
#   - connect_ingest_data → the ONLY write: pushes records to Brinqa Connect
#
# Descriptions and JSON schemas live in core/operations.py; the signatures
# here mirror them so FastMCP can validate arguments before invoke().
#
# RUNNING THIS SERVER:
#   a) python main.py                (loads .env, checks config, runs stdio)
#   b) python -m tools.mcp_server    (loads .env too, but skips the URL check)
# =============================================================================

import json
import logging
import os
import sys
from typing import Any, Literal, Optional

from dotenv import load_dotenv
from fastmcp import FastMCP
from fastmcp.exceptions import ToolError

from core.client import BrinqaClient
from core.errors import BrinqaError
from core.models import Result
from core.operations import DESCRIPTORS, invoke

# =============================================================================
# Logging Setup
# =============================================================================
# .env is loaded here as well, so BRINQA_LOG_LEVEL from it applies when the
# module is run directly.  STDOUT is the MCP transport, so every log line
# goes to STDERR.
#
#   CYAN    incoming tool calls (name + parameters)
#   GREEN   responses
#   YELLOW  status / errors
# =============================================================================
_CYAN = "\033[36m"
_GREEN = "\033[32m"
_YELLOW = "\033[33m"
_RESET = "\033[0m"

_MAX_LOGGED_CHARS = 500

load_dotenv()


def _log_level() -> int:
    """BRINQA_LOG_LEVEL as a logging level; unknown names fall back to INFO."""
    level = logging.getLevelName(os.environ.get("BRINQA_LOG_LEVEL", "INFO").strip().upper())
    return level if isinstance(level, int) else logging.INFO


logging.basicConfig(
    level=_log_level(),
    format="%(asctime)s [MCP] %(message)s",
    datefmt="%H:%M:%S",
    stream=sys.stderr,
)


def _shorten(text: str) -> str:
    if len(text) <= _MAX_LOGGED_CHARS:
        return text
    return text[:_MAX_LOGGED_CHARS] + f"... ({len(text)} chars)"


def _log_request(tool_name: str, **params) -> None:
    """Log an incoming tool call with the parameters that were supplied."""
    param_str = ", ".join(f"{k}={v!r}" for k, v in params.items() if v is not None)
    logging.info(f"{_CYAN}{tool_name} called with: {_shorten(param_str)}{_RESET}")


def _log_status(message: str) -> None:
    logging.info(f"{_YELLOW}  → {message}{_RESET}")


def _log_response(tool_name: str, result: Any) -> Any:
    """Log the payload as compact JSON, then return it."""
    body = json.dumps(result, separators=(",", ":"), default=str)
    logging.info(f"{_GREEN}  ← {tool_name} response: {_shorten(body)}{_RESET}")
    return result


# =============================================================================
# Server and client
# =============================================================================
mcp = FastMCP("brinqa-mcp")

_client: Optional[BrinqaClient] = None


def configure_client(client: Optional[BrinqaClient]) -> None:
    """Install the client the tools use (main.py and tests call this)."""
    global _client
    _client = client


def _get_client() -> BrinqaClient:
    global _client
    if _client is None:
        _client = BrinqaClient.from_env()
    return _client


def _run(tool_name: str, **params) -> Any:
    _log_request(tool_name, **params)
    try:
        client = _get_client()
    except BrinqaError as exc:
        result = Result.failure(exc)
    else:
        result = invoke(client, tool_name, params)

    if not result.ok:
        _log_status(result.text)
        raise ToolError(result.text)
    return _log_response(tool_name, result.payload)


def _describe(name: str) -> str:
    return DESCRIPTORS[name].description


# =============================================================================
# Read tools: structured queries
# =============================================================================
# Every parameter defaults to None, which means "not supplied".  Filters are
# added for any other value, including 0 and False.
# =============================================================================
@mcp.tool(description=_describe("query_assets"))
def query_assets(
    asset_type: Optional[str] = None,
    status: Optional[Literal["ACTIVE", "INACTIVE", "DELETED"]] = None,
    limit: Optional[int] = None,
    filter: Optional[str] = None,
    fields: Optional[list[str]] = None,
) -> dict:
    return _run(
        "query_assets",
        asset_type=asset_type, status=status, limit=limit, filter=filter, fields=fields,
    )


@mcp.tool(description=_describe("query_vulnerabilities"))
def query_vulnerabilities(
    severity: Optional[Literal["CRITICAL", "HIGH", "MEDIUM", "LOW", "INFO"]] = None,
    status: Optional[Literal["OPEN", "CLOSED", "REMEDIATED", "ACCEPTED"]] = None,
    cve_id: Optional[str] = None,
    limit: Optional[int] = None,
    filter: Optional[str] = None,
    include_affected_assets: Optional[bool] = None,
) -> dict:
    return _run(
        "query_vulnerabilities",
        severity=severity, status=status, cve_id=cve_id, limit=limit, filter=filter,
        include_affected_assets=include_affected_assets,
    )


@mcp.tool(description=_describe("query_findings"))
def query_findings(
    finding_type: Optional[str] = None,
    status: Optional[Literal["NEW", "OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED"]] = None,
    risk_score_min: Optional[float] = None,
    risk_score_max: Optional[float] = None,
    limit: Optional[int] = None,
    age_days: Optional[int] = None,
) -> dict:
    return _run(
        "query_findings",
        finding_type=finding_type, status=status, risk_score_min=risk_score_min,
        risk_score_max=risk_score_max, limit=limit, age_days=age_days,
    )


# Two document shapes behind one tool: scope=ASSET plus entity_id reads a
# single asset, anything else reads the organization-wide riskSummary.
@mcp.tool(description=_describe("get_risk_scores"))
def get_risk_scores(
    scope: Optional[Literal["ORGANIZATION", "ASSET", "APPLICATION", "BUSINESS_UNIT"]] = None,
    entity_id: Optional[str] = None,
    include_factors: Optional[bool] = None,
    include_trends: Optional[bool] = None,
) -> dict:
    return _run(
        "get_risk_scores",
        scope=scope, entity_id=entity_id, include_factors=include_factors,
        include_trends=include_trends,
    )


@mcp.tool(description=_describe("query_tickets"))
def query_tickets(
    status: Optional[Literal["OPEN", "IN_PROGRESS", "PENDING", "RESOLVED", "CLOSED"]] = None,
    priority: Optional[Literal["CRITICAL", "HIGH", "MEDIUM", "LOW"]] = None,
    assignee: Optional[str] = None,
    sla_status: Optional[Literal["WITHIN_SLA", "AT_RISK", "BREACHED"]] = None,
    limit: Optional[int] = None,
) -> dict:
    return _run(
        "query_tickets",
        status=status, priority=priority, assignee=assignee, sla_status=sla_status,
        limit=limit,
    )


@mcp.tool(description=_describe("get_connectors"))
def get_connectors(
    connector_type: Optional[str] = None,
    status: Optional[Literal["ACTIVE", "INACTIVE", "ERROR", "SYNCING"]] = None,
    include_sync_history: Optional[bool] = None,
) -> dict:
    return _run(
        "get_connectors",
        connector_type=connector_type, status=status,
        include_sync_history=include_sync_history,
    )


@mcp.tool(description=_describe("get_clusters"))
def get_clusters(
    cluster_type: Optional[str] = None,
    limit: Optional[int] = None,
) -> dict:
    return _run("get_clusters", cluster_type=cluster_type, limit=limit)


@mcp.tool(description=_describe("get_data_models"))
def get_data_models(
    model_name: Optional[str] = None,
    include_attributes: Optional[bool] = None,
    include_relationships: Optional[bool] = None,
) -> dict:
    return _run(
        "get_data_models",
        model_name=model_name, include_attributes=include_attributes,
        include_relationships=include_relationships,
    )


# =============================================================================
# Raw GraphQL passthrough
# =============================================================================
@mcp.tool(description=_describe("execute_graphql"))
def execute_graphql(query: str, variables: Optional[dict] = None) -> dict:
    return _run("execute_graphql", query=query, variables=variables)


# =============================================================================
# Write tool: Brinqa Connect ingestion
# =============================================================================
# The response body is whatever Connect returns, so the return type is Any.
# =============================================================================
@mcp.tool(description=_describe("connect_ingest_data"))
def connect_ingest_data(namespace: str, data_type: str, records: list[dict]) -> Any:
    _log_status(f"{len(records)} record(s) for {namespace}/{data_type}")
    return _run("connect_ingest_data", namespace=namespace, data_type=data_type, records=records)


# =============================================================================
# Server entry point
# =============================================================================
if __name__ == "__main__":
    mcp.run()

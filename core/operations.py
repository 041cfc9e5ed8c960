# =============================================================================
# core/operations.py  —  The operation catalogue and the invoke() boundary
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   list_operations()            → the ten OperationDescriptors (name,
#                                  description, JSON parameter schema)
#   invoke(client, name, args)   → Result
#
#   invoke() is the error boundary: every BrinqaError raised while building
#   or running a document becomes a failed Result.  Nothing a caller sends
#   can crash the process.
#
# PER-CALL PIPELINE:
#   args ──from_args──▶ spec ──builder──▶ document ──client──▶ payload
# =============================================================================

import logging
from dataclasses import dataclass
from typing import Any, Callable, Optional

from core.client import BrinqaClient
from core.errors import BrinqaError, ValidationError
from core.models import (
    AssetQuery,
    ClusterQuery,
    ConnectorQuery,
    DataModelQuery,
    FindingQuery,
    IngestRequest,
    OperationDescriptor,
    RawQuery,
    RequestMode,
    Result,
    RiskScoreQuery,
    TicketQuery,
    VulnerabilityQuery,
)
from core.queries import (
    ASSET_STATUSES,
    CONNECTOR_STATUSES,
    FINDING_STATUSES,
    RISK_SCOPES,
    SEVERITIES,
    SLA_STATUSES,
    TICKET_PRIORITIES,
    TICKET_STATUSES,
    VULNERABILITY_STATUSES,
    build_assets_query,
    build_clusters_query,
    build_connectors_query,
    build_data_models_query,
    build_findings_query,
    build_ingest_document,
    build_raw_document,
    build_risk_scores_query,
    build_tickets_query,
    build_vulnerabilities_query,
)

logger = logging.getLogger(__name__)


def _string(description: str, enum: Optional[tuple] = None) -> dict:
    schema: dict[str, Any] = {"type": "string", "description": description}
    if enum:
        schema["enum"] = list(enum)
    return schema


def _number(description: str) -> dict:
    return {"type": "number", "description": description}


def _boolean(description: str) -> dict:
    return {"type": "boolean", "description": description}


def _object(properties: dict, required: tuple = ()) -> dict:
    return {"type": "object", "properties": properties, "required": list(required)}


_LIMIT = _number(
    "Maximum number of results to return (default: 100, max: 1000). "
    "Omit for the default; 0 and negative values are rejected."
)


# -----------------------------------------------------------------------------
# Descriptors
# -----------------------------------------------------------------------------
OPERATIONS: tuple[OperationDescriptor, ...] = (
    OperationDescriptor(
        name="query_assets",
        description=(
            "Query assets from Brinqa using GraphQL. Retrieve information about hosts, "
            "applications, containers, cloud resources, and other asset types. Supports "
            "filtering by asset type, status, criticality, and custom attributes."
        ),
        input_schema=_object({
            "asset_type": _string(
                "Type of assets to query (e.g., Host, Application, Container, "
                "CloudResource). Leave empty for all types."
            ),
            "status": _string("Filter by asset status. Omit for all statuses.", ASSET_STATUSES),
            "limit": _LIMIT,
            "filter": _string(
                "Additional filter expression in Brinqa query syntax "
                "(e.g., 'criticality = \"HIGH\"')"
            ),
            "fields": {
                "type": "array",
                "items": {"type": "string"},
                "description": "Specific fields to return (e.g., ['name', 'ipAddress', 'criticality'])",
            },
        }),
    ),
    OperationDescriptor(
        name="query_vulnerabilities",
        description=(
            "Query vulnerabilities and findings from Brinqa. Retrieve CVEs, security "
            "findings, and vulnerability details with risk scores, affected assets, and "
            "remediation status."
        ),
        input_schema=_object({
            "severity": _string("Filter by vulnerability severity", SEVERITIES),
            "status": _string("Filter by vulnerability status", VULNERABILITY_STATUSES),
            "cve_id": _string("Search for a specific CVE ID (e.g., CVE-2023-12345)"),
            "limit": _LIMIT,
            "filter": _string("Additional filter expression in Brinqa query syntax"),
            "include_affected_assets": _boolean("Include affected asset information in results"),
        }),
    ),
    OperationDescriptor(
        name="query_findings",
        description=(
            "Query security findings from Brinqa. Findings represent specific instances "
            "of vulnerabilities or security issues discovered on assets."
        ),
        input_schema=_object({
            "finding_type": _string(
                "Type of finding (e.g., VulnerabilityFinding, ComplianceFinding, "
                "ConfigurationFinding)"
            ),
            "status": _string("Filter by finding status", FINDING_STATUSES),
            "risk_score_min": _number("Minimum risk score (0-100)"),
            "risk_score_max": _number("Maximum risk score (0-100)"),
            "limit": _LIMIT,
            "age_days": _number("Filter findings discovered within the last N days"),
        }),
    ),
    OperationDescriptor(
        name="get_risk_scores",
        description=(
            "Get risk scores and risk analytics from Brinqa. Retrieve overall risk "
            "posture, asset risk scores, and risk trends."
        ),
        input_schema=_object({
            "scope": _string("Scope of risk scores to retrieve", RISK_SCOPES),
            "entity_id": _string(
                "Specific entity ID to get risk score for (used with the ASSET scope)"
            ),
            "include_factors": _boolean("Include risk factor breakdown in results"),
            "include_trends": _boolean("Include historical risk trend data"),
        }),
    ),
    OperationDescriptor(
        name="query_tickets",
        description=(
            "Query remediation tickets from Brinqa. Tickets track the remediation "
            "workflow for vulnerabilities and findings."
        ),
        input_schema=_object({
            "status": _string("Filter by ticket status", TICKET_STATUSES),
            "priority": _string("Filter by ticket priority", TICKET_PRIORITIES),
            "assignee": _string("Filter by assignee username or ID"),
            "sla_status": _string("Filter by SLA status", SLA_STATUSES),
            "limit": _LIMIT,
        }),
    ),
    OperationDescriptor(
        name="get_connectors",
        description=(
            "Get information about data connectors configured in Brinqa. View connector "
            "status, last sync times, and data source configurations."
        ),
        input_schema=_object({
            "connector_type": _string("Filter by connector type (e.g., Qualys, Tenable, Rapid7)"),
            "status": _string("Filter by connector status", CONNECTOR_STATUSES),
            "include_sync_history": _boolean("Include recent sync history"),
        }),
    ),
    OperationDescriptor(
        name="execute_graphql",
        description=(
            "Execute a custom GraphQL query against the Brinqa Platform API. Use this for "
            "advanced queries not covered by other tools. Mutations, subscriptions and "
            "introspection are rejected."
        ),
        input_schema=_object(
            {
                "query": _string("The GraphQL query to execute"),
                "variables": {
                    "type": "object",
                    "description": "Variables to pass to the GraphQL query",
                },
            },
            required=("query",),
        ),
    ),
    OperationDescriptor(
        name="get_clusters",
        description=(
            "Get cluster information from Brinqa. Clusters are automated groupings of "
            "data based on attributes such as asset type, vulnerability type, operating "
            "system, or compliance status."
        ),
        input_schema=_object({
            "cluster_type": _string("Type of cluster (e.g., AssetCluster, VulnerabilityCluster)"),
            "limit": _number(
                "Maximum number of results to return (default: 50, max: 500). "
                "Omit for the default; 0 and negative values are rejected."
            ),
        }),
    ),
    OperationDescriptor(
        name="connect_ingest_data",
        description=(
            "Ingest custom data into Brinqa using the Brinqa Connect API. Use this to send "
            "custom, unstructured data to the Brinqa Platform when standard connectors "
            "are not available."
        ),
        input_schema=_object(
            {
                "namespace": _string(
                    "Namespace qualifier for the data (e.g., 'development', 'production', 'global')"
                ),
                "data_type": _string("Type of data being ingested (e.g., 'asset', 'finding')"),
                "records": {
                    "type": "array",
                    "items": {"type": "object"},
                    "description": "Array of records to ingest",
                },
            },
            required=("namespace", "data_type", "records"),
        ),
    ),
    OperationDescriptor(
        name="get_data_models",
        description=(
            "Get information about Brinqa data models. View available entity types, "
            "attributes, and relationships in the Brinqa knowledge graph."
        ),
        input_schema=_object({
            "model_name": _string(
                "Specific model name to retrieve (e.g., 'Host', 'Vulnerability', 'Finding')"
            ),
            "include_attributes": _boolean("Include attribute definitions"),
            "include_relationships": _boolean("Include relationship definitions"),
        }),
    ),
)

DESCRIPTORS: dict[str, OperationDescriptor] = {op.name: op for op in OPERATIONS}


# -----------------------------------------------------------------------------
# Handlers
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class _Handler:
    spec: type
    build: Callable
    mode: RequestMode = RequestMode.QUERY


_HANDLERS: dict[str, _Handler] = {
    "query_assets": _Handler(AssetQuery, build_assets_query),
    "query_vulnerabilities": _Handler(VulnerabilityQuery, build_vulnerabilities_query),
    "query_findings": _Handler(FindingQuery, build_findings_query),
    "get_risk_scores": _Handler(RiskScoreQuery, build_risk_scores_query),
    "query_tickets": _Handler(TicketQuery, build_tickets_query),
    "get_connectors": _Handler(ConnectorQuery, build_connectors_query),
    "execute_graphql": _Handler(RawQuery, build_raw_document),
    "get_clusters": _Handler(ClusterQuery, build_clusters_query),
    "connect_ingest_data": _Handler(IngestRequest, build_ingest_document, RequestMode.INGEST),
    "get_data_models": _Handler(DataModelQuery, build_data_models_query),
}


def list_operations() -> list[OperationDescriptor]:
    return list(OPERATIONS)


def invoke(client: BrinqaClient, name: str, args: Optional[dict] = None) -> Result:
    """Run one named operation.  Classified failures come back as a Result."""
    try:
        handler = _HANDLERS.get(name)
        if handler is None:
            raise ValidationError(f"Unknown tool: {name}")
        if args is not None and not isinstance(args, dict):
            raise ValidationError("Tool arguments must be an object")

        spec = handler.spec.from_args(args)
        document = handler.build(spec)
        if handler.mode is RequestMode.INGEST:
            payload = client.ingest(document)
        else:
            payload = client.query(document)
    except BrinqaError as exc:
        logger.warning("%s failed [%s]: %s", name, type(exc).__name__, exc)
        return Result.failure(exc)

    return Result.success(payload)

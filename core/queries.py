# =============================================================================
# core/queries.py  —  Query spec → GraphQL document translators
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   One pure function per logical resource.  Each takes a frozen *Query spec
#   (core/models.py) and returns a QueryDocument.  No I/O, no hidden state:
#   the same spec always yields the same text.
#
# THE RULES EVERY BUILDER FOLLOWS:
#   1. Validate first (core/validation.py).  Bad input never reaches text.
#   2. A filter clause is present iff its spec field is not None.  Zero,
#      False and "" are real values and still produce a clause.
#   3. Result counts are clamped: 100 default / 1000 ceiling, except
#      clusters at 50 / 500.
#   4. Optional nested blocks (affectedAssets, syncHistory, riskFactors, ...)
#      appear only when their flag is True.  Otherwise the block is absent
#      from the text, not rendered empty.
#   5. Risk scores and data models have two document SHAPES, picked by a
#      guard (see DocumentShape below).  Every other resource is a single
#      template.
#
# Selections are described as data (Field trees) and rendered by one
# function, so every document is indented the same way.
# =============================================================================

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union

from core.errors import ValidationError
from core.models import (
    AssetQuery,
    ClusterQuery,
    ConnectorQuery,
    DataModelQuery,
    FindingQuery,
    IngestDocument,
    IngestRequest,
    QueryDocument,
    RawQuery,
    RiskScoreQuery,
    TicketQuery,
    VulnerabilityQuery,
)
from core.validation import (
    check_bool,
    check_enum,
    check_field_names,
    check_integer,
    check_number,
    check_raw_query,
    check_text,
    clamp_limit,
    string_literal,
)


# -----------------------------------------------------------------------------
# Limits and enumerations
# -----------------------------------------------------------------------------
DEFAULT_LIMIT = 100
MAX_LIMIT = 1000
CLUSTER_DEFAULT_LIMIT = 50
CLUSTER_MAX_LIMIT = 500

ASSET_STATUSES = ("ACTIVE", "INACTIVE", "DELETED")
SEVERITIES = ("CRITICAL", "HIGH", "MEDIUM", "LOW", "INFO")
VULNERABILITY_STATUSES = ("OPEN", "CLOSED", "REMEDIATED", "ACCEPTED")
FINDING_STATUSES = ("NEW", "OPEN", "IN_PROGRESS", "RESOLVED", "CLOSED")
RISK_SCOPES = ("ORGANIZATION", "ASSET", "APPLICATION", "BUSINESS_UNIT")
TICKET_STATUSES = ("OPEN", "IN_PROGRESS", "PENDING", "RESOLVED", "CLOSED")
TICKET_PRIORITIES = ("CRITICAL", "HIGH", "MEDIUM", "LOW")
SLA_STATUSES = ("WITHIN_SLA", "AT_RISK", "BREACHED")
CONNECTOR_STATUSES = ("ACTIVE", "INACTIVE", "ERROR", "SYNCING")


# -----------------------------------------------------------------------------
# Selection trees
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Field:
    name: str
    args: str = ""
    children: tuple = ()


Selection = tuple[Union[str, Field], ...]


def _arguments(clauses: list[str]) -> str:
    return f"({', '.join(clauses)})" if clauses else ""


def _render(selection: Selection, depth: int) -> list[str]:
    pad = "  " * depth
    lines = []
    for item in selection:
        if isinstance(item, str):
            lines.append(pad + item)
            continue
        head = f"{pad}{item.name}{item.args}"
        if item.children:
            lines.append(head + " {")
            lines.extend(_render(item.children, depth + 1))
            lines.append(pad + "}")
        else:
            lines.append(head)
    return lines


def _document(operation: str, root: Field) -> QueryDocument:
    lines = [f"query {operation} {{", *_render((root,), 1), "}"]
    return QueryDocument(query="\n".join(lines) + "\n")


def _optional(flag: Optional[bool], name: str, block: Field) -> tuple:
    """``(block,)`` when the flag is True, otherwise an empty tuple."""
    if flag is None:
        return ()
    return (block,) if check_bool(name, flag) else ()


PAGE_INFO = Field("pageInfo", children=("hasNextPage", "endCursor"))


def _paged(resource: str, clauses: list[str], limit: int, nodes: Selection) -> Field:
    return Field(
        resource,
        _arguments(clauses),
        ("totalCount", PAGE_INFO, Field("nodes", f"(first: {limit})", nodes)),
    )


# -----------------------------------------------------------------------------
# Assets
# -----------------------------------------------------------------------------
DEFAULT_ASSET_FIELDS = (
    "id",
    "name",
    "assetType",
    "status",
    "criticality",
    "riskScore",
    "ipAddress",
    "hostname",
    "operatingSystem",
    "lastSeen",
    "discoveredAt",
    "owner",
    "businessUnit",
    "environment",
    "tags",
)


def build_assets_query(spec: AssetQuery) -> QueryDocument:
    limit = clamp_limit(spec.limit, DEFAULT_LIMIT, MAX_LIMIT)
    fields = DEFAULT_ASSET_FIELDS
    if spec.fields is not None:
        # An empty override falls back to the default projection.
        fields = tuple(check_field_names(spec.fields)) or DEFAULT_ASSET_FIELDS

    clauses = []
    if spec.asset_type is not None:
        clauses.append(f"assetType: {string_literal('asset_type', spec.asset_type)}")
    if spec.status is not None:
        clauses.append(f"status: {check_enum('status', spec.status, ASSET_STATUSES)}")
    if spec.filter is not None:
        clauses.append(f"filter: {string_literal('filter', spec.filter)}")

    return _document("GetAssets", _paged("assets", clauses, limit, fields))


# -----------------------------------------------------------------------------
# Vulnerabilities
# -----------------------------------------------------------------------------
AFFECTED_ASSETS = Field("affectedAssets", children=("id", "name", "assetType"))


def build_vulnerabilities_query(spec: VulnerabilityQuery) -> QueryDocument:
    limit = clamp_limit(spec.limit, DEFAULT_LIMIT, MAX_LIMIT)

    clauses = []
    if spec.severity is not None:
        clauses.append(f"severity: {check_enum('severity', spec.severity, SEVERITIES)}")
    if spec.status is not None:
        clauses.append(f"status: {check_enum('status', spec.status, VULNERABILITY_STATUSES)}")
    if spec.cve_id is not None:
        clauses.append(f"cveId: {string_literal('cve_id', spec.cve_id)}")
    if spec.filter is not None:
        clauses.append(f"filter: {string_literal('filter', spec.filter)}")

    nodes = (
        "id",
        "cveId",
        "title",
        "description",
        "severity",
        "cvssScore",
        "cvssVector",
        "status",
        "riskScore",
        "exploitAvailable",
        "exploitMaturity",
        "patchAvailable",
        "publishedDate",
        "lastModifiedDate",
        "firstDiscoveredDate",
        "affectedAssetCount",
        *_optional(spec.include_affected_assets, "include_affected_assets", AFFECTED_ASSETS),
        "references",
        "remediation",
    )
    return _document("GetVulnerabilities", _paged("vulnerabilities", clauses, limit, nodes))


# -----------------------------------------------------------------------------
# Findings
# -----------------------------------------------------------------------------
FINDING_FIELDS = (
    "id",
    "findingType",
    "title",
    "description",
    "status",
    "severity",
    "riskScore",
    "baseRiskScore",
    "overallRiskScore",
    "discoveredAt",
    "lastSeenAt",
    "resolvedAt",
    Field("asset", children=("id", "name", "assetType")),
    Field("vulnerability", children=("id", "cveId", "title")),
    "assignee",
    "dueDate",
    "slaStatus",
)


def build_findings_query(spec: FindingQuery) -> QueryDocument:
    limit = clamp_limit(spec.limit, DEFAULT_LIMIT, MAX_LIMIT)

    clauses = []
    if spec.finding_type is not None:
        clauses.append(f"findingType: {string_literal('finding_type', spec.finding_type)}")
    if spec.status is not None:
        clauses.append(f"status: {check_enum('status', spec.status, FINDING_STATUSES)}")
    if spec.risk_score_min is not None:
        clauses.append(f"riskScoreMin: {check_number('risk_score_min', spec.risk_score_min)}")
    if spec.risk_score_max is not None:
        clauses.append(f"riskScoreMax: {check_number('risk_score_max', spec.risk_score_max)}")
    if spec.age_days is not None:
        age_days = check_integer("age_days", spec.age_days)
        if age_days < 0:
            raise ValidationError(f"age_days must not be negative, got {age_days}")
        clauses.append(f'discoveredAfter: "-{age_days}d"')

    return _document("GetFindings", _paged("findings", clauses, limit, FINDING_FIELDS))


# -----------------------------------------------------------------------------
# Tickets
# -----------------------------------------------------------------------------
TICKET_FIELDS = (
    "id",
    "ticketId",
    "title",
    "description",
    "status",
    "priority",
    "severity",
    "assignee",
    "reporter",
    "createdAt",
    "updatedAt",
    "dueDate",
    "slaStatus",
    "slaDueDate",
    "findingsCount",
    "affectedAssetsCount",
    "externalTicketId",
    "externalTicketUrl",
)


def build_tickets_query(spec: TicketQuery) -> QueryDocument:
    limit = clamp_limit(spec.limit, DEFAULT_LIMIT, MAX_LIMIT)

    clauses = []
    if spec.status is not None:
        clauses.append(f"status: {check_enum('status', spec.status, TICKET_STATUSES)}")
    if spec.priority is not None:
        clauses.append(f"priority: {check_enum('priority', spec.priority, TICKET_PRIORITIES)}")
    if spec.assignee is not None:
        clauses.append(f"assignee: {string_literal('assignee', spec.assignee)}")
    if spec.sla_status is not None:
        clauses.append(f"slaStatus: {check_enum('sla_status', spec.sla_status, SLA_STATUSES)}")

    return _document("GetTickets", _paged("tickets", clauses, limit, TICKET_FIELDS))


# -----------------------------------------------------------------------------
# Connectors
# -----------------------------------------------------------------------------
SYNC_HISTORY = Field(
    "syncHistory",
    children=("syncId", "startTime", "endTime", "status", "recordsProcessed", "errorsCount"),
)


def build_connectors_query(spec: ConnectorQuery) -> QueryDocument:
    """Connectors are not paged; the service returns the full list."""
    clauses = []
    if spec.connector_type is not None:
        clauses.append(f"connectorType: {string_literal('connector_type', spec.connector_type)}")
    if spec.status is not None:
        clauses.append(f"status: {check_enum('status', spec.status, CONNECTOR_STATUSES)}")

    selection = (
        "id",
        "name",
        "connectorType",
        "status",
        "lastSyncTime",
        "lastSyncStatus",
        "recordsCount",
        Field("configuration", children=("enabled", "syncSchedule")),
        *_optional(spec.include_sync_history, "include_sync_history", SYNC_HISTORY),
    )
    return _document("GetConnectors", Field("connectors", _arguments(clauses), selection))


# -----------------------------------------------------------------------------
# Clusters
# -----------------------------------------------------------------------------
CLUSTER_FIELDS = (
    "id",
    "name",
    "clusterType",
    "description",
    "entityCount",
    "riskScore",
    Field("criteria", children=("attribute", "operator", "value")),
    "createdAt",
    "updatedAt",
)


def build_clusters_query(spec: ClusterQuery) -> QueryDocument:
    limit = clamp_limit(spec.limit, CLUSTER_DEFAULT_LIMIT, CLUSTER_MAX_LIMIT)

    clauses = []
    if spec.cluster_type is not None:
        clauses.append(f"clusterType: {string_literal('cluster_type', spec.cluster_type)}")

    root = Field(
        "clusters",
        _arguments(clauses),
        (Field("nodes", f"(first: {limit})", CLUSTER_FIELDS),),
    )
    return _document("GetClusters", root)


# -----------------------------------------------------------------------------
# Two-shape resources
# -----------------------------------------------------------------------------
# Risk scores and data models each have a single-entity document and a
# collection document.  The shape is chosen once by a guard function; the
# builder then looks up the matching template.  Both templates take the same
# (spec, extras) arguments, so they are interchangeable.
# -----------------------------------------------------------------------------
class DocumentShape(Enum):
    SINGLE = "single"
    COLLECTION = "collection"


RISK_FACTORS = Field("riskFactors", children=("name", "weight", "score", "description"))
RISK_TRENDS = Field("riskTrends", children=("date", "score", "changePercent"))


def risk_score_shape(spec: RiskScoreQuery) -> DocumentShape:
    """Asset scope with an entity id targets one asset; anything else is org-wide."""
    if spec.scope == "ASSET" and spec.entity_id is not None:
        return DocumentShape.SINGLE
    return DocumentShape.COLLECTION


def _asset_risk_document(spec: RiskScoreQuery, extras: tuple) -> QueryDocument:
    if not check_text("entity_id", spec.entity_id).strip():
        raise ValidationError("entity_id must not be empty")
    root = Field(
        "asset",
        f"(id: {string_literal('entity_id', spec.entity_id)})",
        ("id", "name", "riskScore", "baseRiskScore", "overallRiskScore", *extras),
    )
    return _document("GetAssetRiskScore", root)


def _risk_summary_document(spec: RiskScoreQuery, extras: tuple) -> QueryDocument:
    root = Field(
        "riskSummary",
        children=(
            "overallRiskScore",
            "criticalAssetCount",
            "highRiskAssetCount",
            "mediumRiskAssetCount",
            "lowRiskAssetCount",
            "totalAssetCount",
            "openFindingsCount",
            "criticalFindingsCount",
            "averageRemediationTime",
            *extras,
        ),
    )
    return _document("GetRiskScores", root)


_RISK_TEMPLATES = {
    DocumentShape.SINGLE: _asset_risk_document,
    DocumentShape.COLLECTION: _risk_summary_document,
}


def build_risk_scores_query(spec: RiskScoreQuery) -> QueryDocument:
    if spec.scope is not None:
        check_enum("scope", spec.scope, RISK_SCOPES)
    if spec.entity_id is not None:
        check_text("entity_id", spec.entity_id)
    extras = (
        *_optional(spec.include_factors, "include_factors", RISK_FACTORS),
        *_optional(spec.include_trends, "include_trends", RISK_TRENDS),
    )
    return _RISK_TEMPLATES[risk_score_shape(spec)](spec, extras)


MODEL_ATTRIBUTES = Field(
    "attributes", children=("name", "type", "description", "required", "indexed")
)
MODEL_RELATIONSHIPS = Field(
    "relationships", children=("name", "targetModel", "cardinality", "description")
)


def data_model_shape(spec: DataModelQuery) -> DocumentShape:
    return DocumentShape.SINGLE if spec.model_name is not None else DocumentShape.COLLECTION


def _data_model_document(spec: DataModelQuery, extras: tuple) -> QueryDocument:
    root = Field(
        "dataModel",
        f"(name: {string_literal('model_name', spec.model_name)})",
        ("name", "description", "category", *extras),
    )
    return _document("GetDataModel", root)


def _data_models_document(spec: DataModelQuery, extras: tuple) -> QueryDocument:
    root = Field("dataModels", children=("name", "description", "category", *extras))
    return _document("GetDataModels", root)


_DATA_MODEL_TEMPLATES = {
    DocumentShape.SINGLE: _data_model_document,
    DocumentShape.COLLECTION: _data_models_document,
}


def build_data_models_query(spec: DataModelQuery) -> QueryDocument:
    extras = (
        *_optional(spec.include_attributes, "include_attributes", MODEL_ATTRIBUTES),
        *_optional(spec.include_relationships, "include_relationships", MODEL_RELATIONSHIPS),
    )
    return _DATA_MODEL_TEMPLATES[data_model_shape(spec)](spec, extras)


# -----------------------------------------------------------------------------
# Passthrough documents
# -----------------------------------------------------------------------------
def build_raw_document(spec: RawQuery) -> QueryDocument:
    """Use caller GraphQL as-is after the safety guard.  No field selection."""
    query = check_raw_query(spec.query)
    if spec.variables is not None and not isinstance(spec.variables, dict):
        raise ValidationError("variables must be an object")
    return QueryDocument(query=query, variables=spec.variables)


def build_ingest_document(spec: IngestRequest) -> IngestDocument:
    """Records go through unchanged; an empty list is a valid request."""
    for name in ("namespace", "data_type"):
        value = getattr(spec, name)
        if value is None or not isinstance(value, str) or not value.strip():
            raise ValidationError(f"{name} is required and must be a non-empty string")
    if spec.records is None:
        raise ValidationError("records is required")
    if not isinstance(spec.records, list):
        raise ValidationError("records must be an array of objects")
    if any(not isinstance(record, dict) for record in spec.records):
        raise ValidationError("every record must be an object")
    return IngestDocument(namespace=spec.namespace, data_type=spec.data_type, records=spec.records)

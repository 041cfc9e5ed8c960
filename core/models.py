# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the shape of everything that flows through one
# tool call:
#
#   args dict ──▶ *Query spec ──▶ QueryDocument ──▶ executor ──▶ Result
#                                                       ▲
#                                   Session (owned by SessionManager)
#
# Specs and documents are frozen: a spec lives for one call, a document is a
# pure function of its spec.  Session is frozen too; SessionManager replaces
# it wholesale on refresh instead of mutating fields.
#
# Every field of a query spec is Optional.  None means "not supplied".  Any
# other value, including 0, False and "", counts as supplied.
# =============================================================================

import json
from dataclasses import dataclass, field, fields
from enum import Enum
from typing import Any, Optional

from core.errors import BrinqaError, ValidationError


# -----------------------------------------------------------------------------
# Auth and request modes
# -----------------------------------------------------------------------------
class AuthMode(str, Enum):
    API_KEY = "ApiKey"
    PASSWORD = "Password"


class RequestMode(str, Enum):
    """Which remote surface a document is sent to."""

    QUERY = "query"      # GraphQL endpoint, bearer token only
    INGEST = "ingest"    # Connect ingestion endpoint, bearer + X-API-KEY


# -----------------------------------------------------------------------------
# Session — the current authentication state
# -----------------------------------------------------------------------------
# Absent (no object), valid (now < expires_at) or stale (now >= expires_at).
# expires_at is an absolute epoch timestamp in seconds and already has the
# safety margin subtracted.
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Session:
    credential: str
    expires_at: float
    mode: AuthMode

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at

    def __repr__(self) -> str:
        # Keep the bearer value out of logs and tracebacks.
        return f"Session(mode={self.mode.value}, expires_at={self.expires_at})"


# -----------------------------------------------------------------------------
# Documents — fully formed request bodies
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class QueryDocument:
    """A GraphQL request body: query text plus optional variables."""

    query: str
    variables: Optional[dict] = None

    def to_payload(self) -> dict:
        payload: dict[str, Any] = {"query": self.query}
        if self.variables is not None:
            payload["variables"] = self.variables
        return payload


@dataclass(frozen=True)
class IngestDocument:
    """A Connect ingestion body.  Records are passed through untouched."""

    namespace: str
    data_type: str
    records: list = field(default_factory=list)

    def to_payload(self) -> dict:
        return {
            "namespace": self.namespace,
            "dataType": self.data_type,
            "records": self.records,
        }


# -----------------------------------------------------------------------------
# Query specs — one per logical resource
# -----------------------------------------------------------------------------
class _Spec:
    """Mixin: build a spec from a tool-call argument dict."""

    @classmethod
    def from_args(cls, args: Optional[dict] = None):
        args = dict(args or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(args) - known)
        if unknown:
            raise ValidationError(
                f"Unknown argument(s) for {cls.__name__}: {', '.join(unknown)}"
            )
        return cls(**args)


@dataclass(frozen=True)
class AssetQuery(_Spec):
    asset_type: Optional[str] = None
    status: Optional[str] = None
    limit: Optional[int] = None
    filter: Optional[str] = None
    fields: Optional[list] = None      # overrides the default field set


@dataclass(frozen=True)
class VulnerabilityQuery(_Spec):
    severity: Optional[str] = None
    status: Optional[str] = None
    cve_id: Optional[str] = None
    limit: Optional[int] = None
    filter: Optional[str] = None
    include_affected_assets: Optional[bool] = None


@dataclass(frozen=True)
class FindingQuery(_Spec):
    finding_type: Optional[str] = None
    status: Optional[str] = None
    risk_score_min: Optional[float] = None
    risk_score_max: Optional[float] = None
    limit: Optional[int] = None
    age_days: Optional[int] = None


@dataclass(frozen=True)
class RiskScoreQuery(_Spec):
    scope: Optional[str] = None
    entity_id: Optional[str] = None
    include_factors: Optional[bool] = None
    include_trends: Optional[bool] = None


@dataclass(frozen=True)
class TicketQuery(_Spec):
    status: Optional[str] = None
    priority: Optional[str] = None
    assignee: Optional[str] = None
    sla_status: Optional[str] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class ConnectorQuery(_Spec):
    connector_type: Optional[str] = None
    status: Optional[str] = None
    include_sync_history: Optional[bool] = None


@dataclass(frozen=True)
class ClusterQuery(_Spec):
    cluster_type: Optional[str] = None
    limit: Optional[int] = None


@dataclass(frozen=True)
class DataModelQuery(_Spec):
    model_name: Optional[str] = None
    include_attributes: Optional[bool] = None
    include_relationships: Optional[bool] = None


@dataclass(frozen=True)
class RawQuery(_Spec):
    """Caller-supplied GraphQL; bypasses field selection entirely."""

    query: Optional[str] = None
    variables: Optional[dict] = None


@dataclass(frozen=True)
class IngestRequest(_Spec):
    namespace: Optional[str] = None
    data_type: Optional[str] = None
    records: Optional[list] = None


# -----------------------------------------------------------------------------
# Result — what one invoke() call hands back
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class Result:
    """Either a success payload or a classified failure, never both."""

    payload: Any = None
    error: Optional[BrinqaError] = None

    @classmethod
    def success(cls, payload: Any) -> "Result":
        return cls(payload=payload)

    @classmethod
    def failure(cls, error: BrinqaError) -> "Result":
        return cls(error=error)

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def error_type(self) -> Optional[str]:
        return type(self.error).__name__ if self.error is not None else None

    @property
    def text(self) -> str:
        """Display form: pretty JSON on success, ``Error: ...`` on failure."""
        if self.error is not None:
            return f"Error: {self.error}"
        return json.dumps(self.payload, indent=2)


# -----------------------------------------------------------------------------
# OperationDescriptor — declarative metadata for one tool
# -----------------------------------------------------------------------------
@dataclass(frozen=True)
class OperationDescriptor:
    name: str
    description: str
    input_schema: dict

# =============================================================================
# core/client.py  —  BrinqaClient: one session manager + one executor
# =============================================================================
#
# Wires Settings, a shared requests.Session (connection reuse), the
# SessionManager and the RequestExecutor together.  The session manager is
# owned here and handed to the executor by reference; nothing else holds
# authentication state.
# =============================================================================

import logging
import time
from typing import Any, Callable, Optional

import requests

from core.config import Settings
from core.executor import RequestExecutor
from core.models import IngestDocument, QueryDocument, RequestMode
from core.session import SessionManager

logger = logging.getLogger(__name__)


class BrinqaClient:
    def __init__(
        self,
        settings: Settings,
        http: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.settings = settings
        self.http = http or requests.Session()
        self.sessions = SessionManager(settings, self.http, clock=clock)
        self.executor = RequestExecutor(settings, self.sessions, self.http)

    @classmethod
    def from_env(cls) -> "BrinqaClient":
        return cls(Settings.from_env())

    def query(self, document: QueryDocument) -> Any:
        """Run a GraphQL document and return its ``data``."""
        self.settings.require_api_url()
        return self.executor.execute(document, RequestMode.QUERY)

    def ingest(self, document: IngestDocument) -> Any:
        """Send records to the Connect ingestion endpoint."""
        self.settings.require_api_url()
        logger.info(
            "Ingesting %d %s record(s) into namespace %s",
            len(document.records), document.data_type, document.namespace,
        )
        return self.executor.execute(document, RequestMode.INGEST)

    def close(self) -> None:
        self.http.close()

"""
Unit tests for core/executor.py (driven through BrinqaClient).

Covers payload passthrough, inline GraphQL errors, empty payloads, the
single 401 re-authentication retry, HTTP / transport failure wrapping and
the ingestion path's extra X-API-KEY header.
"""

from __future__ import annotations

import pytest
import requests

from conftest import graphql_ok, login_ok, make_response, unauthorized
from core.config import GRAPHQL_PATH, INGEST_PATH, LOGIN_PATH
from core.errors import (
    AuthenticationError,
    EmptyResultError,
    NetworkError,
    RemoteQueryError,
)
from core.models import IngestDocument, QueryDocument

DOC = QueryDocument(query="query Q { assets { totalCount } }")


class TestQueryResponses:

    def test_data_is_returned_unchanged(self, api_key_client, brinqa):
        data = {"assets": {"totalCount": 3, "unexpectedNewField": [1, 2]}}
        brinqa.queue(GRAPHQL_PATH, graphql_ok(data))

        assert api_key_client.query(DOC) == data
        (call,) = brinqa.graphql_calls()
        assert call.kwargs["json"] == {"query": DOC.query}
        assert call.kwargs["headers"]["Authorization"] == "Bearer key-123"
        assert call.kwargs["timeout"] == (10.0, 60.0)

    def test_inline_errors_are_joined(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, make_response(200, {
            "data": None,
            "errors": [
                {"message": "Unknown field 'foo'", "path": ["assets"]},
                {"message": "Bad filter"},
            ],
        }))
        with pytest.raises(RemoteQueryError, match="GraphQL errors: Unknown field 'foo'; Bad filter"):
            api_key_client.query(DOC)

    def test_null_error_message_is_still_classified(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, make_response(200, {
            "errors": [{"message": None, "path": ["assets"]}, {"message": "Bad filter"}],
        }))
        with pytest.raises(RemoteQueryError) as excinfo:
            api_key_client.query(DOC)
        message = str(excinfo.value)
        assert message.startswith("GraphQL errors: {")
        assert message.endswith("; Bad filter")

    def test_non_list_errors_is_one_message(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, make_response(200, {"errors": "Bad token"}))
        with pytest.raises(RemoteQueryError) as excinfo:
            api_key_client.query(DOC)
        assert str(excinfo.value) == "GraphQL errors: Bad token"

    def test_missing_data_is_an_empty_result(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, make_response(200, {"errors": []}))
        with pytest.raises(EmptyResultError, match="No data returned"):
            api_key_client.query(DOC)

    def test_empty_body_is_an_empty_result(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, make_response(200))
        with pytest.raises(EmptyResultError):
            api_key_client.query(DOC)

    def test_empty_data_object_is_still_a_payload(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, graphql_ok({}))
        assert api_key_client.query(DOC) == {}

    def test_variables_are_sent(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, graphql_ok())
        api_key_client.query(QueryDocument(query="query Q($id: ID) { a }", variables={"id": "1"}))
        (call,) = brinqa.graphql_calls()
        assert call.kwargs["json"]["variables"] == {"id": "1"}


class TestUnauthorizedRetry:

    def test_single_401_triggers_one_relogin_and_retry(self, password_client, brinqa):
        brinqa.queue(LOGIN_PATH, login_ok("old"), login_ok("new"))
        brinqa.queue(GRAPHQL_PATH, unauthorized(), graphql_ok({"ok": 1}))

        assert password_client.query(DOC) == {"ok": 1}

        assert len(brinqa.login_calls()) == 2
        first, second = brinqa.graphql_calls()
        assert first.kwargs["headers"]["Authorization"] == "Bearer old"
        assert second.kwargs["headers"]["Authorization"] == "Bearer new"

    def test_second_401_is_an_authentication_error(self, password_client, brinqa):
        brinqa.queue(LOGIN_PATH, login_ok("old"), login_ok("new"))
        brinqa.queue(GRAPHQL_PATH, unauthorized(), unauthorized())

        with pytest.raises(AuthenticationError, match="Token expired"):
            password_client.query(DOC)

        assert len(brinqa.graphql_calls()) == 2
        assert len(brinqa.login_calls()) == 2

    def test_api_key_mode_retries_once_then_fails(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, unauthorized(), unauthorized())
        with pytest.raises(AuthenticationError):
            api_key_client.query(DOC)
        assert len(brinqa.graphql_calls()) == 2

    def test_relogin_failure_propagates(self, password_client, brinqa):
        brinqa.queue(
            LOGIN_PATH,
            login_ok("old"),
            make_response(401, {"message": "Account locked"}, path=LOGIN_PATH),
        )
        brinqa.queue(GRAPHQL_PATH, unauthorized())
        with pytest.raises(AuthenticationError, match="Account locked"):
            password_client.query(DOC)
        assert len(brinqa.graphql_calls()) == 1


class TestTransportFailures:

    def test_http_error_prefers_remote_message(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, make_response(500, {"message": "Query too complex"}))
        with pytest.raises(NetworkError, match="GraphQL request failed: Query too complex"):
            api_key_client.query(DOC)

    def test_http_error_without_body_uses_status_text(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, make_response(502))
        with pytest.raises(NetworkError, match="502 Server Error"):
            api_key_client.query(DOC)

    def test_403_is_not_retried(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, make_response(403, {"message": "Forbidden"}))
        with pytest.raises(NetworkError):
            api_key_client.query(DOC)
        assert len(brinqa.graphql_calls()) == 1

    def test_timeout_is_a_network_error(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, requests.Timeout("read timed out"))
        with pytest.raises(NetworkError, match="read timed out"):
            api_key_client.query(DOC)

    def test_invalid_json_is_a_network_error(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, make_response(200, text="<html>oops</html>"))
        with pytest.raises(NetworkError, match="not valid JSON"):
            api_key_client.query(DOC)


class TestIngestion:

    def test_ingest_adds_api_key_header(self, api_key_client, brinqa):
        brinqa.queue(INGEST_PATH, make_response(200, {"accepted": 0}, path=INGEST_PATH))
        doc = IngestDocument(namespace="dev", data_type="asset", records=[])

        assert api_key_client.ingest(doc) == {"accepted": 0}

        (call,) = brinqa.ingest_calls()
        assert call.kwargs["json"] == {"namespace": "dev", "dataType": "asset", "records": []}
        assert call.kwargs["headers"]["X-API-KEY"] == "key-123"
        assert call.kwargs["headers"]["Authorization"] == "Bearer key-123"

    def test_password_mode_sends_bearer_only(self, password_client, brinqa):
        brinqa.queue(LOGIN_PATH, login_ok("tok"))
        brinqa.queue(INGEST_PATH, make_response(200, [{"id": 1}], path=INGEST_PATH))

        assert password_client.ingest(IngestDocument("dev", "asset", [{"id": 1}])) == [{"id": 1}]

        (call,) = brinqa.ingest_calls()
        assert "X-API-KEY" not in call.kwargs["headers"]
        assert call.kwargs["headers"]["Authorization"] == "Bearer tok"

    def test_query_mode_never_sends_api_key_header(self, api_key_client, brinqa):
        brinqa.queue(GRAPHQL_PATH, graphql_ok())
        api_key_client.query(DOC)
        (call,) = brinqa.graphql_calls()
        assert "X-API-KEY" not in call.kwargs["headers"]

    def test_ingest_failure_uses_connect_prefix(self, api_key_client, brinqa):
        brinqa.queue(INGEST_PATH, make_response(400, {"message": "Unknown dataType"}, path=INGEST_PATH))
        with pytest.raises(NetworkError, match="Brinqa Connect API request failed: Unknown dataType"):
            api_key_client.ingest(IngestDocument("dev", "nope", []))

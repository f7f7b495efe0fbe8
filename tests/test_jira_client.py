"""Tests for the Jira search client, against a mocked transport."""

import httpx
import pytest
from conftest import make_issue

from flowmetrics.core.exceptions.domain import (
    JiraAuthenticationError,
    JiraConnectionError,
    JiraRateLimitError,
    TransientSourceError,
)
from flowmetrics.services.jira_client import BASE_FIELDS, JiraClient


def make_client(handler, **kwargs) -> JiraClient:
    return JiraClient(
        "https://acme.atlassian.net/",
        "me@example.com",
        "secret-token",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


class TestSearch:
    async def test_page_request(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(
                200,
                json={"startAt": 0, "maxResults": 2, "total": 7, "issues": [make_issue("APP-1"), make_issue("APP-2")]},
            )

        client = make_client(handler, custom_fields=["customfield_10004", ""])
        page = await client.search("project = APP", 0, 2)
        await client.close()

        assert page.total == 7
        assert [i.key for i in page.issues] == ["APP-1", "APP-2"]

        request = seen[0]
        assert request.url.path == "/rest/api/3/search"
        assert request.url.params["jql"] == "project = APP"
        assert request.url.params["startAt"] == "0"
        assert request.url.params["maxResults"] == "2"
        assert request.url.params["expand"] == "changelog"
        assert request.url.params["fields"] == ",".join(BASE_FIELDS + ["customfield_10004"])
        assert request.headers["Authorization"].startswith("Basic ")

    async def test_probe_asks_only_for_total(self):
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"startAt": 0, "maxResults": 0, "total": 42, "issues": []})

        client = make_client(handler, api_version="2")
        page = await client.search("project = APP", 0, 0)
        await client.close()

        assert page.total == 42
        assert seen[0].url.path == "/rest/api/2/search"
        assert "expand" not in seen[0].url.params
        assert "fields" not in seen[0].url.params


class TestErrors:
    async def test_rate_limit_is_retried(self):
        responses = iter(
            [
                httpx.Response(429, headers={"Retry-After": "0"}),
                httpx.Response(200, json={"total": 1, "issues": [make_issue("APP-1")]}),
            ]
        )

        client = make_client(lambda request: next(responses))
        page = await client.search("project = APP", 0, 1)
        await client.close()

        assert page.issues[0].key == "APP-1"

    async def test_rate_limit_exhausted(self):
        client = make_client(lambda request: httpx.Response(429, headers={"Retry-After": "0"}))

        with pytest.raises(JiraRateLimitError) as exc_info:
            await client.search("project = APP", 0, 1)
        await client.close()

        assert isinstance(exc_info.value, TransientSourceError)

    @pytest.mark.parametrize("status", [401, 403])
    async def test_auth_errors(self, status):
        client = make_client(lambda request: httpx.Response(status, text="nope"))

        with pytest.raises(JiraAuthenticationError):
            await client.search("project = APP", 0, 1)
        await client.close()

    async def test_server_error_carries_jira_messages(self):
        client = make_client(
            lambda request: httpx.Response(400, json={"errorMessages": ["Field 'sprint' does not exist"]})
        )

        with pytest.raises(JiraConnectionError, match="does not exist"):
            await client.search("sprint = 1", 0, 1)
        await client.close()

    async def test_connection_failure(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = make_client(handler)

        with pytest.raises(JiraConnectionError):
            await client.search("project = APP", 0, 1)
        await client.close()

    async def test_non_json_body(self):
        client = make_client(lambda request: httpx.Response(200, text="<html>login</html>"))

        with pytest.raises(JiraConnectionError):
            await client.search("project = APP", 0, 1)
        await client.close()

    async def test_unexpected_payload(self):
        client = make_client(lambda request: httpx.Response(200, json={"total": "many"}))

        with pytest.raises(JiraConnectionError):
            await client.search("project = APP", 0, 1)
        await client.close()

import asyncio
from base64 import b64encode

import httpx
from loguru import logger
from pydantic import ValidationError

from flowmetrics.core.exceptions.domain import (
    JiraAuthenticationError,
    JiraConnectionError,
    JiraRateLimitError,
)
from flowmetrics.core.logger import sanitize_dict
from flowmetrics.schemas.jira.issue import JiraSearchResponse

BASE_FIELDS = [
    "project",
    "issuetype",
    "key",
    "created",
    "labels",
    "priority",
    "reporter",
    "assignee",
    "components",
    "parent",
    "timeoriginalestimate",
]


class JiraClient:
    """Async Jira Cloud API client using httpx. Implements the ``IssueSource`` protocol."""

    def __init__(
        self,
        base_url: str,
        email: str,
        api_token: str,
        *,
        api_version: str = "3",
        custom_fields: list[str] | None = None,
        proxy_url: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.fields = BASE_FIELDS + [f for f in (custom_fields or []) if f]
        self._auth_header = self._build_auth_header(email, api_token)
        self._proxy_url = proxy_url
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        logger.debug(
            f"JiraClient initialized: base_url={self.base_url}, email={email}, proxy={proxy_url or 'None'}"
        )

    @staticmethod
    def _build_auth_header(email: str, api_token: str) -> str:
        credentials = b64encode(f"{email}:{api_token}".encode()).decode()
        return f"Basic {credentials}"

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": self._auth_header,
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            client_kwargs: dict = {
                "base_url": self.base_url,
                "headers": self._headers,
                "timeout": httpx.Timeout(30.0),
            }

            if self._proxy_url:
                client_kwargs["proxy"] = self._proxy_url
                logger.debug(f"Using proxy: {self._proxy_url}")
            if self._transport is not None:
                client_kwargs["transport"] = self._transport

            self._client = httpx.AsyncClient(**client_kwargs)
        return self._client

    async def close(self) -> None:
        if self._client and not self._client.is_closed:
            await self._client.aclose()

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict | None = None,
        max_retries: int = 3,
    ) -> dict:
        """Make an authenticated request with rate limit handling and retries."""
        client = await self._get_client()
        logger.debug(f"Jira {method} {path} params={sanitize_dict(params or {})}")

        for attempt in range(max_retries):
            try:
                response = await client.request(method, path, params=params)

                if response.status_code == 200:
                    try:
                        return response.json()
                    except ValueError as e:
                        raise JiraConnectionError("Jira returned a non-JSON response") from e

                if response.status_code == 401:
                    logger.error(f"Jira auth error response: {response.text}")
                    raise JiraAuthenticationError()

                if response.status_code == 429:
                    retry_after = int(response.headers.get("Retry-After", "10"))
                    if attempt < max_retries - 1:
                        wait = retry_after * (2**attempt)
                        logger.warning(
                            f"Jira rate limit hit, retrying in {wait}s (attempt {attempt + 1})"
                        )
                        await asyncio.sleep(wait)
                        continue
                    raise JiraRateLimitError(retry_after=retry_after)

                if response.status_code == 403:
                    raise JiraAuthenticationError("Insufficient permissions for this Jira resource")

                error_msg = f"Jira API error: {response.status_code}"
                try:
                    error_body = response.json()
                    if "errorMessages" in error_body:
                        error_msg += f" - {', '.join(error_body['errorMessages'])}"
                except ValueError:
                    error_msg += f" - {response.text[:200]}"

                raise JiraConnectionError(error_msg)

            except httpx.ConnectError as e:
                raise JiraConnectionError(f"Cannot connect to Jira at {self.base_url}: {e}") from e
            except httpx.TimeoutException as e:
                if attempt < max_retries - 1:
                    wait = 2 ** (attempt + 1)
                    logger.warning(
                        f"Jira request timed out, retrying in {wait}s (attempt {attempt + 1})"
                    )
                    await asyncio.sleep(wait)
                    continue
                raise JiraConnectionError(
                    f"Jira request timed out after {max_retries} attempts"
                ) from e
            except httpx.TransportError as e:
                raise JiraConnectionError(f"Jira transport error: {e}") from e

        raise JiraConnectionError("Max retries exceeded")

    # ─── Search ───────────────────────────────────────────────────────

    async def search(self, query: str, offset: int, page_size: int) -> JiraSearchResponse:
        """Fetch one page of issues (with changelog) starting at ``offset``.

        ``page_size=0`` only asks Jira for the total number of matching issues.
        """
        params: dict = {"jql": query, "startAt": offset, "maxResults": page_size}
        if page_size > 0:
            params["fields"] = ",".join(self.fields)
            params["expand"] = "changelog"

        data = await self._request("GET", f"/rest/api/{self.api_version}/search", params=params)
        try:
            return JiraSearchResponse.model_validate(data)
        except ValidationError as e:
            raise JiraConnectionError(f"Unexpected search response from Jira: {e}") from e

"""
HTTP caller for job endpoints.

One request per attempt, built from the job's method/endpoint/headers/body
template. Redirects are followed (up to MAX_REDIRECTS); anything other than
a final 2xx response is a TransportFailure, as are timeouts and connection
errors.
"""

import json
import logging
from dataclasses import dataclass
from typing import Optional

import httpx

from .entities import BODY_METHODS, Job
from .errors import TransportFailure


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 30.0
USER_AGENT = "JobScheduler/1.0"
MAX_REDIRECTS = 5


@dataclass
class HttpResult:
    """Successful response from a job endpoint."""

    status_code: int
    body: Optional[str]


def _response_text(response: httpx.Response) -> Optional[str]:
    """Body as text; JSON bodies are re-serialized compactly."""
    if not response.content:
        return None
    content_type = response.headers.get("content-type", "")
    if "json" in content_type:
        try:
            return json.dumps(response.json(), separators=(",", ":"))
        except ValueError:
            pass
    return response.text


class HttpCaller:
    """
    Issues job HTTP calls over a shared httpx.AsyncClient.

    The client is created lazily on first use and must be released with
    aclose(). Pass transport to substitute httpx.MockTransport in tests.
    """

    def __init__(
        self,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.timeout = timeout
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._transport,
                headers={"User-Agent": USER_AGENT},
                follow_redirects=True,
                max_redirects=MAX_REDIRECTS,
            )
        return self._client

    async def call(self, job: Job) -> HttpResult:
        """
        Perform the job's HTTP request.

        Returns:
            HttpResult for any 2xx response

        Raises:
            TransportFailure: timeout, connection error or non-2xx status
        """
        method = (job.method or "POST").upper()
        request_kwargs = {"headers": job.headers or {}}
        if method in BODY_METHODS:
            request_kwargs["json"] = job.body

        try:
            response = await self._get_client().request(
                method, job.endpoint, **request_kwargs
            )
        except httpx.TimeoutException:
            raise TransportFailure(f"Timeout after {self.timeout}s")
        except httpx.RequestError as e:
            raise TransportFailure(f"Request error: {e}")
        except httpx.InvalidURL as e:
            raise TransportFailure(f"Invalid URL: {e}")

        if not response.is_success:
            raise TransportFailure(
                f"Request failed with status code {response.status_code}",
                status_code=response.status_code,
            )

        return HttpResult(
            status_code=response.status_code,
            body=_response_text(response),
        )

    async def aclose(self) -> None:
        """Close the underlying client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

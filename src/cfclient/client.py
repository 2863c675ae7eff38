"""Cloudflare API client.

A CloudflareClient owns one ``httpx.AsyncClient`` and one
ResiliencePipeline. Every resource API it exposes shares that pipeline,
so the breaker and limiter see all traffic sent through the client.

Example:
    async with CloudflareClient(load_client_options()) as client:
        async for record in client.dns.list_all(zone_id):
            print(record.name, record.content)
"""

import logging
from typing import Optional

import httpx

from cfclient.audit_logs.api import AuditLogsApi
from cfclient.config.options import ClientOptions
from cfclient.core.http.auth import BearerTokenAuth
from cfclient.core.observability import redact_headers
from cfclient.core.resilience.models import PipelineStatus
from cfclient.core.resilience.pipeline import ResiliencePipeline
from cfclient.dns.api import DnsApi

logger = logging.getLogger(__name__)

DEFAULT_CLIENT_NAME = "default"
USER_AGENT = "cfclient-python"


async def _log_request(request: httpx.Request) -> None:
    logger.debug(
        "Sending %s %s headers=%s",
        request.method,
        request.url,
        redact_headers(request.headers),
    )


class CloudflareClient:
    """Entry point for the Cloudflare API.

    A client belongs to the event loop it is first used on. The breaker
    and quota throttle are thread-safe, but the limiter and the underlying
    ``httpx.AsyncClient`` are not; share one client between tasks of the
    same loop and create one client per loop (for example per thread
    running its own loop) otherwise.

    Args:
        options: Validated client options.
        name: Client name used for the pipeline, logs and audit events.
        transport: Custom httpx transport (``httpx.MockTransport`` in tests).
        pipeline: Pre-built pipeline; one is created from ``options`` if omitted.
    """

    def __init__(
        self,
        options: ClientOptions,
        *,
        name: str = DEFAULT_CLIENT_NAME,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        pipeline: Optional[ResiliencePipeline] = None,
    ):
        options.raise_if_invalid(None if name == DEFAULT_CLIENT_NAME else name)
        self.name = name
        self.options = options
        self.pipeline = pipeline or ResiliencePipeline(options.resilience, name=name)
        self._http = httpx.AsyncClient(
            base_url=options.api_base_url,
            auth=BearerTokenAuth(options.api_token),
            transport=transport,
            timeout=httpx.Timeout(options.resilience.attempt_timeout),
            headers={"User-Agent": USER_AGENT},
            event_hooks={"request": [_log_request]},
        )
        self.dns = DnsApi(self._http, self.pipeline)
        self.audit_logs = AuditLogsApi(self._http, self.pipeline)
        logger.debug("Created Cloudflare client '%s' for %s", name, options.api_base_url)

    def status(self) -> PipelineStatus:
        return self.pipeline.status()

    @property
    def closed(self) -> bool:
        return self._http.is_closed

    async def aclose(self) -> None:
        await self._http.aclose()

    async def __aenter__(self) -> "CloudflareClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

"""Bearer credential attacher."""

from typing import Generator

import httpx


class BearerTokenAuth(httpx.Auth):
    """Adds ``Authorization: Bearer <token>`` to every outgoing request."""

    def __init__(self, token: str):
        self._token = token

    def auth_flow(self, request: httpx.Request) -> Generator[httpx.Request, httpx.Response, None]:
        request.headers["Authorization"] = f"Bearer {self._token}"
        yield request

    def __repr__(self) -> str:
        return "BearerTokenAuth(token='****')"

"""miniappruntime.integrations.http_proxy

Outbound HTTP for `httpRequest` nodes.

Mini-apps never talk to the network directly; they go through an `HttpProxy`:
- `HttpxProxy` performs the request in process (same guards as the dashboard
  backend: http(s) only, no loopback/private hosts, 10s timeout, optional
  JSON path extraction).
- `RemoteHttpProxy` forwards the request to a backend `/api/proxy` endpoint.

Failures raise `ProxyError`. A non-2xx status from the *target* site is not a
failure: it is reported in `ProxyResponse.status`.
"""

from __future__ import annotations

import json
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional
from urllib.parse import urlsplit

import httpx

from ..core.errors import ProxyError
from ..core.logging import get_logger

logger = get_logger(__name__)

USER_AGENT = "EssentialBoardOS/1.0"
DEFAULT_TIMEOUT_S = 10.0
BLOCKED_HOSTS = frozenset({"localhost", "127.0.0.1", "0.0.0.0"})


@dataclass(frozen=True)
class ProxyRequest:
    url: str
    method: str = "GET"
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    json_path: str = ""

    def to_payload(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "url": self.url,
            "method": self.method,
            "headers": dict(self.headers),
            "jsonPath": self.json_path,
        }
        if self.body is not None:
            payload["body"] = self.body
        return payload


@dataclass(frozen=True)
class ProxyResponse:
    status: int
    status_text: str = ""
    data: Any = None
    is_json: bool = False

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "ProxyResponse":
        status = raw.get("status")
        return cls(
            status=int(status) if isinstance(status, (int, float)) and not isinstance(status, bool) else 0,
            status_text=str(raw.get("statusText") or ""),
            data=raw.get("data"),
            is_json=bool(raw.get("isJson")),
        )


class HttpProxy(ABC):
    @abstractmethod
    async def request(self, req: ProxyRequest) -> ProxyResponse: ...


def is_blocked_url(url: str) -> bool:
    """True for non-http(s) URLs and loopback/private-network hosts."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return True
    if parts.scheme not in ("http", "https"):
        return True
    hostname = (parts.hostname or "").lower()
    if not hostname:
        return True
    if hostname in BLOCKED_HOSTS:
        return True
    if hostname.startswith(("10.", "192.168.", "127.")):
        return True
    octets = hostname.split(".")
    if len(octets) == 4 and octets[0] == "172":
        try:
            second = int(octets[1])
        except ValueError:
            return False
        if 16 <= second <= 31:
            return True
    return False


_INDEXED_KEY = re.compile(r"^(.+)\[(\d+)\]$")


def extract_json_path(data: Any, path: str) -> Any:
    """Dot-path lookup with `name[i]` segments, e.g. `data.items[0].name`.

    Missing segments yield None.
    """
    current = data
    for key in path.split("."):
        if current is None:
            return None
        m = _INDEXED_KEY.match(key)
        if m:
            container = current.get(m.group(1)) if isinstance(current, dict) else None
            idx = int(m.group(2))
            if isinstance(container, list) and idx < len(container):
                current = container[idx]
            else:
                current = None
            continue
        if isinstance(current, dict):
            current = current.get(key)
        elif isinstance(current, list) and key.isdigit() and int(key) < len(current):
            current = current[int(key)]
        else:
            current = None
    return current


class HttpxProxy(HttpProxy):
    """In-process proxy based on httpx (async)."""

    def __init__(self, *, client: Optional[httpx.AsyncClient] = None, timeout_s: float = DEFAULT_TIMEOUT_S):
        self._client = client
        self._timeout_s = timeout_s

    async def request(self, req: ProxyRequest) -> ProxyResponse:
        if not req.url:
            raise ProxyError("url is required", status=400)
        if is_blocked_url(req.url):
            raise ProxyError("Internal network requests are not allowed", status=403)

        method = (req.method or "GET").upper()
        headers: Dict[str, str] = {"User-Agent": USER_AGENT, **req.headers}
        content: Optional[str] = None
        if req.body not in (None, "") and method != "GET":
            if isinstance(req.body, (dict, list)):
                content = json.dumps(req.body, ensure_ascii=False)
                if not any(k.lower() == "content-type" for k in headers):
                    headers["Content-Type"] = "application/json"
            else:
                content = str(req.body)

        try:
            if self._client is not None:
                resp = await self._client.request(
                    method, req.url, headers=headers, content=content, timeout=self._timeout_s
                )
            else:
                async with httpx.AsyncClient() as client:
                    resp = await client.request(method, req.url, headers=headers, content=content, timeout=self._timeout_s)
        except httpx.TimeoutException as e:
            raise ProxyError(f"Request timed out ({self._timeout_s:g}s)", status=408) from e
        except httpx.HTTPError as e:
            raise ProxyError(str(e) or type(e).__name__) from e

        content_type = resp.headers.get("content-type", "")
        is_json = "application/json" in content_type
        data: Any
        if is_json:
            try:
                data = resp.json()
            except ValueError:
                logger.warning("Response declared JSON but did not parse", url=req.url)
                data = resp.text
        else:
            data = resp.text

        if req.json_path and isinstance(data, (dict, list)):
            data = extract_json_path(data, req.json_path)

        return ProxyResponse(status=resp.status_code, status_text=resp.reason_phrase, data=data, is_json=is_json)


class RemoteHttpProxy(HttpProxy):
    """Forward requests to a dashboard backend exposing `POST /api/proxy`."""

    def __init__(
        self,
        *,
        endpoint_url: str,
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S + 2.0,
    ):
        self._endpoint_url = endpoint_url
        self._api_key = api_key
        self._client = client
        self._timeout_s = timeout_s

    async def _post(self, client: httpx.AsyncClient, payload: Dict[str, Any]) -> httpx.Response:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["x-api-key"] = self._api_key
        return await client.post(self._endpoint_url, headers=headers, json=payload, timeout=self._timeout_s)

    async def request(self, req: ProxyRequest) -> ProxyResponse:
        payload = req.to_payload()
        try:
            if self._client is not None:
                resp = await self._post(self._client, payload)
            else:
                async with httpx.AsyncClient() as client:
                    resp = await self._post(client, payload)
        except httpx.HTTPError as e:
            raise ProxyError(str(e) or type(e).__name__) from e

        try:
            body = resp.json()
        except ValueError as e:
            raise ProxyError(f"Proxy returned non-JSON response ({resp.status_code})", status=resp.status_code) from e

        if resp.status_code >= 400:
            message = body.get("error") if isinstance(body, dict) else None
            raise ProxyError(str(message or f"Proxy error {resp.status_code}"), status=resp.status_code)
        if not isinstance(body, dict):
            raise ProxyError("Proxy returned an unexpected payload", status=resp.status_code)
        return ProxyResponse.from_dict(body)

from __future__ import annotations

import json as jsonlib
from collections.abc import Mapping
from typing import Any

import httpx

from rt_connector.adapters.rt.classify import raise_for_response
from rt_connector.adapters.rt.errors import HttpError
from rt_connector.config.redact import REDACTED_VALUE, scrub_secrets_in_text
from rt_connector.host import HttpMethod, RTCredentials
from rt_connector.observability.logger import null_logger

REST_PATH = "REST/2.0/"
_DEBUG_BODY_LIMIT = 1000


def _timeouts(seconds: float) -> httpx.Timeout:
    # Unreachable instances should fail on connect, not after the full read timeout.
    connect = min(5.0, seconds)
    return httpx.Timeout(connect=connect, read=seconds, write=seconds, pool=connect)


def _truncate(text: str, limit: int = _DEBUG_BODY_LIMIT) -> str:
    if len(text) <= limit:
        return text
    return text[:limit] + f"... ({len(text) - limit} more chars)"


def _debug_dump(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        text = value
    else:
        try:
            text = jsonlib.dumps(value, ensure_ascii=False, default=str)
        except (TypeError, ValueError):
            text = str(value)
    return _truncate(scrub_secrets_in_text(text))


def _decode_body(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


class AsyncRTClient:
    """Authenticated client for the RT REST 2.0 API.

    Every response goes through the error classifier; failures surface once, there is
    no retry. Request/response bodies are logged (redacted, truncated) when
    ``debug_http`` is enabled.
    """

    def __init__(
        self,
        *,
        base_url: str,
        api_token: str,
        timeout_seconds: float = 30.0,
        verify_tls: bool = True,
        trust_env: bool = False,
        debug_http: bool = False,
        logger: Any | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        url = httpx.URL(base_url)
        if not url.scheme or not url.host:
            raise ValueError("base_url must include scheme and host, e.g. https://rt.example")

        # Instance URLs may carry a path prefix (https://host/rt); the REST root hangs off it.
        base_path = url.path.rstrip("/") + "/" + REST_PATH
        self._base_url = url.copy_with(path=base_path)
        self._debug_http = debug_http
        self._log = logger or null_logger()

        self._owns_http_client = http_client is None
        self._http = http_client or httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "Authorization": f"token {api_token}",
                "Accept": "application/json",
            },
            timeout=_timeouts(timeout_seconds),
            limits=httpx.Limits(
                max_connections=20,
                max_keepalive_connections=12,
                keepalive_expiry=30.0,
            ),
            verify=verify_tls,
            trust_env=trust_env,
            follow_redirects=False,
        )

    @property
    def base_url(self) -> httpx.URL:
        return self._base_url

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self._http.aclose()

    async def __aenter__(self) -> AsyncRTClient:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: Any,
    ) -> None:
        await self.aclose()

    async def check_connection(self) -> Any:
        """GET /REST/2.0/rt, which answers with the RT version and plugin list."""
        return await self.request("GET", "rt")

    async def request(
        self,
        method: HttpMethod,
        path: str,
        *,
        params: Mapping[str, Any] | None = None,
        json: Any | None = None,
        data: Mapping[str, Any] | None = None,
    ) -> Any:
        """Send a request and return the classified body (parsed JSON or text)."""
        path = path.lstrip("/")
        if self._debug_http:
            self._log.info(
                "rt_client.request",
                method=method,
                url=str(self._base_url.join(path)),
                params=dict(params or {}),
                headers={"Authorization": REDACTED_VALUE, "Accept": "application/json"},
                body=_debug_dump(json if json is not None else data),
            )

        try:
            response = await self._http.request(
                method,
                path,
                params=dict(params) if params else None,
                json=json,
                data=dict(data) if data is not None else None,
            )
        except httpx.TimeoutException as exc:
            raise HttpError(f"RT API timeout at {path}") from exc
        except httpx.TransportError as exc:
            raise HttpError(f"Network error talking to RT at {path}: {exc!s}") from exc

        body = _decode_body(response)
        if self._debug_http:
            self._log.info(
                "rt_client.response",
                method=method,
                url=str(response.request.url),
                status_code=response.status_code,
                body=_debug_dump(body),
            )
        return raise_for_response(body, response.status_code)


def client_from_credentials(
    credentials: RTCredentials,
    *,
    timeout_seconds: float = 30.0,
    trust_env: bool = False,
    debug_http: bool = False,
    logger: Any | None = None,
) -> AsyncRTClient:
    return AsyncRTClient(
        base_url=credentials.rt_instance_url,
        api_token=credentials.api_token.get_secret_value(),
        verify_tls=not credentials.allow_unauthorized_certs,
        timeout_seconds=timeout_seconds,
        trust_env=trust_env,
        debug_http=debug_http,
        logger=logger,
    )


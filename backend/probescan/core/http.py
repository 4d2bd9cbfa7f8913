import asyncio
import json
import re
from contextlib import asynccontextmanager
from dataclasses import dataclass
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any, Callable, Dict, Mapping, Optional

import httpx

from probescan.core.config import ScanSettings

UrlResolver = Callable[[str], str]

PREVIEW_LIMIT = 220
MAX_REDIRECTS = 20

# Every httpx phase limit equals the scan timeout, so the phase names the cause.
TIMEOUT_PHASES = [
    (httpx.ConnectTimeout, "connect"),
    (httpx.ReadTimeout, "read"),
    (httpx.WriteTimeout, "write"),
    (httpx.PoolTimeout, "pool"),
]


class _RejectTargetCookies(DefaultCookiePolicy):
    """Never store Set-Cookie from the target; only operator-seeded cookies are sent."""

    def set_ok(self, cookie, request):
        return False


@dataclass(frozen=True)
class FetchResult:
    status_code: int
    headers: httpx.Headers
    text: str


@dataclass(frozen=True)
class ScanClients:
    anonymous: httpx.AsyncClient
    credentialed: httpx.AsyncClient

    def for_mode(self, credential_mode: str) -> httpx.AsyncClient:
        if credential_mode == "anonymous":
            return self.anonymous
        return self.credentialed


def base_url_resolver(base_url: str) -> UrlResolver:
    """Map an API path ("/api/health?x=1") onto the target's base URL."""
    base = str(base_url).rstrip("/")

    def resolve(path: str) -> str:
        return f"{base}/{path.lstrip('/')}"

    return resolve


def normalize_preview(text: str, limit: int = PREVIEW_LIMIT) -> str:
    return re.sub(r"\s+", " ", text or "").strip()[:limit]


def admin_headers(admin_token: str) -> Dict[str, str]:
    # The marketplace backend reads the admin credential from any of these.
    if not admin_token or not admin_token.strip():
        return {}
    return {
        "Authorization": f"Bearer {admin_token}",
        "X-Admin-Token": admin_token,
        "X-Admin-Auth": admin_token,
    }


def cookie_domain(target_url: str) -> str:
    """The domain http.cookiejar matches requests to ``target_url`` against."""
    host = httpx.URL(target_url).host
    if ":" in host:
        host = f"[{host}]"
    if "." not in host:
        host += ".local"
    return host


def _cookie_jar(cookies: Optional[Mapping[str, str]], domain: str) -> CookieJar:
    jar = CookieJar(policy=_RejectTargetCookies())
    seeded = httpx.Cookies(jar)
    for name, value in (cookies or {}).items():
        seeded.set(name, value, domain=domain)
    return jar


def _client(settings: ScanSettings, cookies: CookieJar,
            transport: Optional[httpx.AsyncBaseTransport]) -> httpx.AsyncClient:
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.request_timeout),
        headers={"User-Agent": settings.user_agent, "Accept": "*/*"},
        cookies=cookies,
        # Redirects are followed in _send so they never leave the target host.
        follow_redirects=False,
        http2=True,
        verify=settings.verify_tls,
        transport=transport,
    )


@asynccontextmanager
async def clients_for(settings: ScanSettings, target_url: str,
                      session_cookies: Optional[Mapping[str, str]] = None,
                      transport: Optional[httpx.AsyncBaseTransport] = None):
    """
    Anonymous and credentialed clients for one scan. Session cookies are
    scoped to the host of ``target_url``.
    """
    domain = cookie_domain(target_url)
    async with _client(settings, _cookie_jar(None, domain), transport) as anonymous, \
            _client(settings, _cookie_jar(session_cookies, domain), transport) as credentialed:
        yield ScanClients(anonymous=anonymous, credentialed=credentialed)


async def _send(client: httpx.AsyncClient, method: str, url: str,
                headers: Optional[Dict[str, str]], content: Optional[bytes]) -> FetchResult:
    request = client.build_request(method, url, headers=headers, content=content)
    response = await client.send(request, stream=True)
    hops = 0
    # A redirect to another host is reported as-is; credentials stay on the target.
    while response.next_request is not None and response.next_request.url.host == request.url.host:
        hops += 1
        if hops > MAX_REDIRECTS:
            await response.aclose()
            raise httpx.TooManyRedirects(f"exceeded {MAX_REDIRECTS} redirects", request=response.next_request)
        next_request = response.next_request
        await response.aclose()
        response = await client.send(next_request, stream=True)
    try:
        try:
            await response.aread()
            text = response.text
        except httpx.HTTPError:
            text = ""
        return FetchResult(response.status_code, response.headers, text)
    finally:
        await response.aclose()


async def fetch(client: httpx.AsyncClient, method: str, url: str, *,
                timeout: float,
                headers: Optional[Dict[str, str]] = None,
                content: Optional[bytes] = None) -> FetchResult:
    """
    One request with a hard deadline over send + body read.
    The body is read as raw text and never parsed; a failed body read yields "".
    Raises asyncio.TimeoutError past the deadline and httpx errors on transport failure.
    """
    return await asyncio.wait_for(_send(client, method, url, headers, content), timeout)


def describe_error(exc: BaseException, timeout: Optional[float] = None) -> str:
    if isinstance(exc, (asyncio.TimeoutError, httpx.TimeoutException)):
        phase = next((name for kind, name in TIMEOUT_PHASES if isinstance(exc, kind)), "request")
        if timeout is not None:
            return f"{phase} timed out after {timeout:g}s"
        return f"{phase} timed out"
    message = str(exc).strip()
    return f"{type(exc).__name__}: {message}" if message else type(exc).__name__


def json_bytes(body: Any) -> bytes:
    return json.dumps(body, ensure_ascii=False).encode("utf-8")

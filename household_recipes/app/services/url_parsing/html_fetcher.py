"""HTML fetching and URL safety validation."""

import asyncio
import ipaddress
import logging
import socket
from typing import List, Optional, Tuple
from urllib.parse import ParseResult, urljoin, urlparse

import httpx

from household_recipes.app.core.config import get_settings

logger = logging.getLogger(__name__)

BLOCKED_HOSTNAMES = {"localhost", "0.0.0.0"}

BLOCKED_NETWORKS = [
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("127.0.0.0/8"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("0.0.0.0/8"),
    ipaddress.ip_network("::1/128"),
    ipaddress.ip_network("fc00::/7"),
    ipaddress.ip_network("fe80::/10"),
]


class FetchError(Exception):
    """Fetching a page failed; ``status_code`` is set when the site answered with an error."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class UnsafeUrlError(FetchError, ValueError):
    pass


class FetchStatusError(FetchError):
    def __init__(self, status_code: int):
        super().__init__(f"HTTP {status_code}", status_code=status_code)


class FetchLimitError(FetchError):
    pass


def is_blocked_ip(value: str) -> bool:
    """True when an IP literal falls inside a private, loopback or link-local range."""
    ip = ipaddress.ip_address(value.split("%", 1)[0])
    if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped:
        ip = ip.ipv4_mapped
    return any(ip.version == net.version and ip in net for net in BLOCKED_NETWORKS)


def is_private_host(host: str) -> bool:
    """Check a hostname without DNS: blocked names, .local names and private IP literals."""
    hostname = (host or "").strip().lower().rstrip(".").strip("[]")
    if not hostname:
        return True
    if hostname in BLOCKED_HOSTNAMES or hostname.endswith(".local") or hostname.endswith(".localhost"):
        return True
    try:
        return is_blocked_ip(hostname)
    except ValueError:
        return False


def validate_url(url: str) -> ParseResult:
    """Synchronous URL checks that need no network access."""
    settings = get_settings()
    candidate = (url or "").strip()
    if not candidate:
        raise UnsafeUrlError("URL is required")
    if len(candidate) > settings.scraper_max_url_length:
        raise UnsafeUrlError("URL is too long")
    parsed = urlparse(candidate)
    if parsed.scheme not in {"http", "https"}:
        raise UnsafeUrlError("Only http and https URLs are allowed")
    if not parsed.hostname:
        raise UnsafeUrlError("Invalid URL")
    if is_private_host(parsed.hostname):
        raise UnsafeUrlError("URL points to a private or disallowed host")
    return parsed


async def resolve_host(hostname: str) -> List[str]:
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(hostname, None, type=socket.SOCK_STREAM)
    return [info[4][0] for info in infos]


async def assert_safe_url(url: str) -> ParseResult:
    """Validate a URL and every address its host resolves to."""
    parsed = validate_url(url)
    hostname = parsed.hostname or ""
    try:
        ipaddress.ip_address(hostname)
        return parsed
    except ValueError:
        pass

    try:
        addresses = await resolve_host(hostname)
    except OSError as exc:
        raise UnsafeUrlError(f"Unable to resolve host {hostname}") from exc
    if not addresses:
        raise UnsafeUrlError(f"Unable to resolve host {hostname}")
    for address in addresses:
        try:
            blocked = is_blocked_ip(address)
        except ValueError:
            continue
        if blocked:
            logger.warning("Blocked fetch of %s: %s resolves to %s", url, hostname, address)
            raise UnsafeUrlError("URL points to a private or disallowed host")
    return parsed


def _decode_body(content: bytes, content_type: str) -> str:
    encoding = None
    if "charset=" in content_type.lower():
        try:
            encoding = content_type.lower().split("charset=")[1].split(";")[0].strip().strip("\"'")
        except IndexError:
            encoding = None
    try:
        return content.decode(encoding or "utf-8")
    except (UnicodeDecodeError, LookupError):
        return content.decode("utf-8", errors="replace")


async def _read_capped(response: httpx.Response, max_bytes: int) -> bytes:
    declared = response.headers.get("content-length")
    if declared and declared.isdigit() and int(declared) > max_bytes:
        raise FetchLimitError("Response too large")
    chunks: List[bytes] = []
    total = 0
    async for chunk in response.aiter_bytes():
        total += len(chunk)
        if total > max_bytes:
            raise FetchLimitError("Response too large")
        chunks.append(chunk)
    return b"".join(chunks)


async def _fetch(url: str, transport: Optional[httpx.AsyncBaseTransport]) -> Tuple[str, str]:
    settings = get_settings()
    headers = {
        "User-Agent": settings.scraper_user_agent,
        "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "Accept-Language": "en-US,en;q=0.9",
    }
    timeout = httpx.Timeout(settings.scraper_timeout_seconds, connect=5.0)

    async with httpx.AsyncClient(
        timeout=timeout, follow_redirects=False, headers=headers, transport=transport
    ) as client:
        current = url
        for _ in range(settings.scraper_max_redirects + 1):
            await assert_safe_url(current)
            try:
                async with client.stream("GET", current) as response:
                    if 300 <= response.status_code < 400:
                        location = response.headers.get("location")
                        if not location:
                            raise FetchError("Redirect without location", status_code=response.status_code)
                        current = urljoin(str(response.url), location)
                        logger.debug("Following redirect to %s", current)
                        continue
                    if not response.is_success:
                        raise FetchStatusError(response.status_code)
                    body = await _read_capped(response, settings.scraper_max_bytes)
                    return _decode_body(body, response.headers.get("content-type", "")), current
            except httpx.TimeoutException as exc:
                raise FetchError("Request timed out") from exc
            except httpx.HTTPError as exc:
                raise FetchError(f"Network error: {exc}") from exc
    raise FetchLimitError("Too many redirects")


async def fetch_html(url: str, transport: Optional[httpx.AsyncBaseTransport] = None) -> Tuple[str, str]:
    """Fetch a page as text, re-validating host safety on every redirect hop.

    Returns the decoded body and the URL it was served from after redirects.
    """
    settings = get_settings()
    try:
        return await asyncio.wait_for(_fetch(url, transport), timeout=settings.scraper_timeout_seconds)
    except asyncio.TimeoutError as exc:
        raise FetchError("Request timed out") from exc

import httpx
import pytest

from household_recipes.app.services.url_parsing import html_fetcher
from household_recipes.app.services.url_parsing.html_fetcher import (
    FetchError,
    FetchLimitError,
    FetchStatusError,
    UnsafeUrlError,
    fetch_html,
    is_private_host,
    validate_url,
)


@pytest.fixture
def public_dns(monkeypatch):
    async def fake_resolve(hostname):
        return ["93.184.216.34"]

    monkeypatch.setattr(html_fetcher, "resolve_host", fake_resolve)


@pytest.mark.parametrize(
    "url",
    ["http://127.0.0.1/x", "http://localhost/x", "ftp://example.com/x", "http://10.1.2.3/", "http://printer.local/"],
)
def test_validate_url_rejects_unsafe_urls(url):
    with pytest.raises(UnsafeUrlError):
        validate_url(url)


def test_validate_url_rejects_empty_and_overlong():
    with pytest.raises(UnsafeUrlError):
        validate_url("   ")
    with pytest.raises(UnsafeUrlError):
        validate_url("https://example.com/" + "a" * 3000)


def test_is_private_host_handles_ipv6_and_names():
    assert is_private_host("[::1]")
    assert is_private_host("169.254.10.10")
    assert not is_private_host("example.com")


@pytest.mark.asyncio
async def test_fetch_rejects_host_resolving_to_private_address(monkeypatch):
    async def fake_resolve(hostname):
        return ["192.168.1.5"]

    monkeypatch.setattr(html_fetcher, "resolve_host", fake_resolve)
    with pytest.raises(UnsafeUrlError):
        await fetch_html("https://sneaky.example.com/recipe")


@pytest.mark.asyncio
async def test_fetch_returns_page_text(public_dns):
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.headers["user-agent"].startswith("Mozilla/5.0")
        return httpx.Response(200, text="<html><title>Soup</title></html>", headers={"content-type": "text/html"})

    html, final_url = await fetch_html("https://example.com/recipe", transport=httpx.MockTransport(handler))

    assert "<title>Soup</title>" in html
    assert final_url == "https://example.com/recipe"


@pytest.mark.asyncio
async def test_fetch_revalidates_redirect_targets(public_dns):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(302, headers={"location": "http://127.0.0.1/admin"})

    with pytest.raises(UnsafeUrlError):
        await fetch_html("https://example.com/recipe", transport=httpx.MockTransport(handler))


@pytest.mark.asyncio
async def test_fetch_follows_safe_redirects(public_dns):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path == "/old":
            return httpx.Response(301, headers={"location": "/new"})
        return httpx.Response(200, text="moved here")

    html, final_url = await fetch_html("https://example.com/old", transport=httpx.MockTransport(handler))

    assert html == "moved here"
    assert final_url == "https://example.com/new"


@pytest.mark.asyncio
async def test_fetch_reports_http_status(public_dns):
    transport = httpx.MockTransport(lambda request: httpx.Response(403, text="nope"))

    with pytest.raises(FetchStatusError) as excinfo:
        await fetch_html("https://example.com/recipe", transport=transport)

    assert excinfo.value.status_code == 403
    assert str(excinfo.value) == "HTTP 403"


@pytest.mark.asyncio
async def test_fetch_enforces_size_limit(public_dns, monkeypatch):
    settings = html_fetcher.get_settings()
    monkeypatch.setattr(settings, "scraper_max_bytes", 10)
    transport = httpx.MockTransport(lambda request: httpx.Response(200, text="x" * 100))

    with pytest.raises(FetchLimitError):
        await fetch_html("https://example.com/recipe", transport=transport)


@pytest.mark.asyncio
async def test_fetch_wraps_network_errors(public_dns):
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(FetchError) as excinfo:
        await fetch_html("https://example.com/recipe", transport=httpx.MockTransport(handler))

    assert "Network error" in str(excinfo.value)

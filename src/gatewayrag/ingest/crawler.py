"""Breadth-first documentation crawler scoped to the base URL's host.

Fetch rules (per page):
- Allowed URL schemes: https:// and http:// only.
- Content-Type whitelist: text/html and text/plain only.
- Max response body: 5 MB.
- Timeout: 30 seconds (connect + read).
- Max redirects: 3.
- Non-2xx responses and transport errors are logged and the page is skipped.

The base URL's host is checked against private/loopback/link-local ranges
before the first request (SSRF guard). Discovered links must share the base
host, and redirects to another host are refused; a same-host redirect target
is re-checked unless private addresses are allowed.
"""

from __future__ import annotations

import http.client
import ipaddress
import logging
import socket
import urllib.error
import urllib.parse
import urllib.request
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass, field

from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from gatewayrag.ingest.sanitize import sanitize

logger = logging.getLogger(__name__)

_USER_AGENT = "gatewayrag/0.1 (documentation importer)"
_MAX_BYTES = 5 * 1024 * 1024  # 5 MB
_TIMEOUT = 30  # seconds
_MAX_REDIRECTS = 3
_ALLOWED_SCHEMES = {"https", "http"}
_ALLOWED_CONTENT_TYPES = {"text/html", "text/plain"}
_ASSET_SUFFIXES = (".css", ".js", ".png", ".jpg", ".svg")
_ROOT_TITLE = "Overview"


class SsrfError(ValueError):
    """Raised when a URL resolves to a private or reserved address."""


class FetchError(RuntimeError):
    """Raised when a single page cannot be fetched; the crawl continues."""


@dataclass
class CrawledPage:
    url: str
    html: str


@dataclass
class CrawlState:
    """Mutable state of one crawl: visited URLs and the FIFO frontier.

    Owned by a single ``Crawler.crawl()`` call. ``attempts`` counts every
    dequeued URL that was fetched, successfully or not.
    """

    visited: set[str] = field(default_factory=set)
    queue: deque[str] = field(default_factory=deque)
    attempts: int = 0


class Crawler:
    """Fetch a documentation site breadth-first, one page at a time.

    Args:
        timeout: Per-request timeout in seconds.
        max_bytes: Response size cap; larger pages are skipped.
        allow_private: Skip the SSRF guard (for crawling internal mirrors).
    """

    def __init__(
        self,
        timeout: int = _TIMEOUT,
        max_bytes: int = _MAX_BYTES,
        allow_private: bool = False,
    ) -> None:
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.allow_private = allow_private

    def crawl(
        self,
        base_url: str,
        max_pages: int,
        state: CrawlState | None = None,
    ) -> Iterator[CrawledPage]:
        """Yield ``CrawledPage(url, html)`` for each successfully fetched page.

        Stops when the frontier is empty or *max_pages* fetches were
        attempted. A URL is never fetched twice within one *state*.

        Raises:
            ValueError: If *base_url* has an unsupported scheme or no host.
            SsrfError: If *base_url* resolves to a private address.
        """
        validate_scheme(base_url)
        if not self.allow_private:
            check_ssrf(base_url)

        base = urllib.parse.urlparse(base_url)
        state = state if state is not None else CrawlState()
        state.queue.append(base_url)

        while state.queue and state.attempts < max_pages:
            current = state.queue.popleft()
            if current in state.visited:
                continue
            state.visited.add(current)
            state.attempts += 1

            logger.info("Fetching %s", current)
            try:
                html = self.fetch(current)
            except FetchError as exc:
                logger.warning("Skipping %s: %s", current, exc)
                continue

            yield CrawledPage(url=current, html=html)

            for link in extract_links(html, current, base.netloc):
                if link not in state.visited:
                    state.queue.append(link)

    # ------------------------------------------------------------------
    # Fetch
    # ------------------------------------------------------------------

    def fetch(self, url: str) -> str:
        """Fetch *url* with timeout, redirect limit, size cap, and Content-Type check.

        Raises:
            FetchError: On transport errors, non-2xx status, disallowed
                content type, an oversized body, or a redirect off the host.
        """
        request = urllib.request.Request(url, headers={"User-Agent": _USER_AGENT})
        opener = urllib.request.build_opener(
            _LimitedRedirectHandler(
                _MAX_REDIRECTS,
                host=urllib.parse.urlparse(url).netloc,
                allow_private=self.allow_private,
            )
        )

        try:
            with opener.open(request, timeout=self.timeout) as response:
                raw_ct = response.headers.get("Content-Type", "text/html")
                ct = raw_ct.split(";")[0].strip().lower()
                if ct not in _ALLOWED_CONTENT_TYPES:
                    raise FetchError(f"unsupported Content-Type '{ct}'")
                body = response.read(self.max_bytes + 1)
        except urllib.error.HTTPError as exc:
            raise FetchError(f"status {exc.code}") from exc
        except (urllib.error.URLError, http.client.HTTPException, OSError) as exc:
            raise FetchError(f"request failed: {exc}") from exc

        if len(body) > self.max_bytes:
            raise FetchError(
                f"response body exceeds {self.max_bytes // (1024 * 1024)} MB limit"
            )
        return sanitize(body)


# ------------------------------------------------------------------
# URL helpers
# ------------------------------------------------------------------


def validate_scheme(url: str) -> None:
    parsed = urllib.parse.urlparse(url)
    if parsed.scheme not in _ALLOWED_SCHEMES:
        raise ValueError(
            f"Unsupported URL scheme '{parsed.scheme}'. Only https:// and http:// are allowed."
        )
    if not parsed.hostname:
        raise ValueError(f"URL has no hostname: {url}")


def check_ssrf(url: str) -> None:
    """Resolve the hostname and block private/reserved IP ranges.

    Raises SsrfError if any resolved address is private, loopback,
    link-local, or otherwise reserved.
    """
    hostname = urllib.parse.urlparse(url).hostname
    if not hostname:
        raise ValueError(f"URL has no hostname: {url}")

    try:
        addrinfos = socket.getaddrinfo(hostname, None)
    except socket.gaierror as exc:
        raise ValueError(f"DNS resolution failed for '{hostname}': {exc}") from exc

    for addrinfo in addrinfos:
        try:
            ip = ipaddress.ip_address(addrinfo[4][0])
        except ValueError:
            continue
        if (
            ip.is_private
            or ip.is_loopback
            or ip.is_link_local
            or ip.is_reserved
            or ip.is_multicast
            or ip.is_unspecified
        ):
            raise SsrfError(
                f"URL resolves to private address ({ip}). "
                "Access to internal network addresses is not allowed."
            )


def extract_links(html: str, page_url: str, base_host: str) -> list[str]:
    """Return crawlable links of *html*, deduplicated in document order.

    Each ``href`` is resolved against *page_url*; fragment-only links,
    other hosts and static assets are dropped; query and fragment are
    stripped from the result.
    """
    try:
        soup = BeautifulSoup(html, "html.parser")
    except ParserRejectedMarkup:
        return []

    links: list[str] = []
    seen: set[str] = set()
    for anchor in soup.find_all("a", href=True):
        href = anchor["href"].strip()
        if not href or href.startswith("#"):
            continue
        resolved = urllib.parse.urlparse(urllib.parse.urljoin(page_url, href))
        if resolved.netloc != base_host:
            continue
        if resolved.path.endswith(_ASSET_SUFFIXES):
            continue
        link = f"{resolved.scheme}://{resolved.netloc}{resolved.path}"
        if link not in seen:
            seen.add(link)
            links.append(link)
    return links


def url_to_title(url: str, base_url: str) -> str:
    """Derive a page title from its URL path.

    The base page is titled "Overview"; other pages use their last path
    segment without extension, hyphens turned into spaces.
    """
    path = urllib.parse.urlparse(url).path
    base_path = urllib.parse.urlparse(base_url).path
    if path in (base_path, base_path + "/"):
        return _ROOT_TITLE

    segments = [s for s in path.split("/") if s]
    if not segments:
        return _ROOT_TITLE
    title = segments[-1].split(".", 1)[0].replace("-", " ").strip()
    return title or _ROOT_TITLE


class _LimitedRedirectHandler(urllib.request.HTTPRedirectHandler):
    """Follow at most *max_redirects* redirects, all within *host*.

    A redirect to another host or scheme raises ``FetchError``. Same-host
    targets pass through the SSRF guard again unless *allow_private* is set,
    since the host may resolve differently by now.
    """

    def __init__(self, max_redirects: int, host: str, allow_private: bool = False) -> None:
        self._max_redirects = max_redirects
        self._host = host
        self._allow_private = allow_private
        self._count = 0

    def redirect_request(self, req, fp, code, msg, headers, newurl):
        self._count += 1
        if self._count > self._max_redirects:
            raise FetchError(
                f"Too many redirects (>{self._max_redirects}) for URL '{req.full_url}'."
            )

        target = urllib.parse.urlparse(newurl)
        if target.scheme not in _ALLOWED_SCHEMES or target.netloc != self._host:
            raise FetchError(f"redirect to '{newurl}' leaves host '{self._host}'")
        if not self._allow_private:
            try:
                check_ssrf(newurl)
            except (SsrfError, ValueError) as exc:
                raise FetchError(f"redirect to '{newurl}' blocked: {exc}") from exc
        return super().redirect_request(req, fp, code, msg, headers, newurl)

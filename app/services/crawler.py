"""Link crawler: bounded BFS over same-host links, starting at a root URL."""

import asyncio
import logging
from collections import deque
from typing import Awaitable, Callable, Deque, List, NamedTuple, Optional, Set
from urllib.parse import urljoin, urlparse

import httpx
from bs4 import BeautifulSoup

from app.services.cancellation import raise_if_cancelled
from app.services.normalizer import canonicalize_url, normalize_url, strip_trailing_slash

logger = logging.getLogger(__name__)

# New children enqueued per page; keeps link-dense pages from exploding the crawl
MAX_CHILDREN_PER_PAGE = 4

_PSEUDO_LINK_PREFIXES = ("#", "mailto:", "tel:", "javascript:")

FetchHtml = Callable[[str], Awaitable[str]]
ProgressCallback = Callable[[str], None]


class CrawlNode(NamedTuple):
    url: str
    level: int


class CrawledPage(NamedTuple):
    url: str
    level: int
    children_fetched: bool


def _candidate_links(html: str, page_url: str) -> List[str]:
    """Return canonical http(s) URLs for every usable ``<a href>`` on the page, in order."""
    soup = BeautifulSoup(html, "lxml")
    links: List[str] = []
    for a in soup.find_all("a", href=True):
        href = str(a["href"]).strip()
        if not href or href.startswith(_PSEUDO_LINK_PREFIXES):
            continue
        try:
            resolved = urljoin(page_url, href)
            if urlparse(resolved).scheme not in ("http", "https"):
                continue
            links.append(canonicalize_url(resolved))
        except ValueError:
            continue
    return links


async def crawl(
    root_url: str,
    max_depth: int = 1,
    *,
    fetch_html: FetchHtml,
    max_children: int = MAX_CHILDREN_PER_PAGE,
    on_progress: Optional[ProgressCallback] = None,
    cancel: Optional[asyncio.Event] = None,
) -> List[CrawledPage]:
    """Breadth-first crawl of pages on the same host as *root_url*.

    The root is level 1; only pages at ``level < max_depth`` are fetched for
    child links, so ``max_depth=1`` returns the root without any network
    activity.  Each page contributes at most *max_children* new queue
    entries.  A page whose HTML cannot be fetched is still returned (with
    ``children_fetched=False``); the crawl carries on with the rest of the
    queue.

    Returns:
        The visited pages in BFS order.  Never empty: the root is always first.
    """
    root_url = normalize_url(root_url)
    root_host = urlparse(root_url).hostname

    visited: Set[str] = set()
    queue: Deque[CrawlNode] = deque([CrawlNode(root_url, 1)])
    results: List[CrawledPage] = []

    while queue:
        node = queue.popleft()
        key = strip_trailing_slash(node.url)
        if key in visited:
            continue
        visited.add(key)

        if node.level >= max_depth:
            results.append(CrawledPage(node.url, node.level, children_fetched=False))
            continue

        if on_progress is not None:
            on_progress(f"Crawling level {node.level}: analyzing {node.url}...")
        raise_if_cancelled(cancel)

        try:
            html = await fetch_html(node.url)
        except (ValueError, httpx.HTTPError, RuntimeError) as exc:
            logger.warning("Crawler: cannot discover links on %s – %s", node.url, exc)
            results.append(CrawledPage(node.url, node.level, children_fetched=False))
            continue

        results.append(CrawledPage(node.url, node.level, children_fetched=True))

        enqueued = 0
        for link in _candidate_links(html, node.url):
            if enqueued >= max_children:
                break
            if urlparse(link).hostname != root_host:
                continue
            if strip_trailing_slash(link) in visited:
                continue
            queue.append(CrawlNode(link, node.level + 1))
            enqueued += 1

        logger.debug("Crawler: %s queued %d child link(s)", node.url, enqueued)

    return results


async def crawl_urls(root_url: str, max_depth: int = 1, **kwargs) -> List[str]:
    """Like :func:`crawl` but return only the page URLs."""
    return [page.url for page in await crawl(root_url, max_depth, **kwargs)]

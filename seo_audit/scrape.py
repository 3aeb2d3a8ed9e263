"""Page fetching and SEO tag extraction utilities."""
from __future__ import annotations

import datetime as dt
import logging
import re
import time

import requests
import urllib3
from bs4 import BeautifulSoup
from bs4.builder import ParserRejectedMarkup

from .config import AuditSettings
from .errors import FetchError
from .schemas import ExtractedTags, FetchedPage

logger = logging.getLogger(__name__)

_ROBOTS_NAME = re.compile(r"^\s*robots\s*$", re.IGNORECASE)
_CANONICAL_REL = re.compile(r"^canonical$", re.IGNORECASE)


def fetch_page(url: str, settings: AuditSettings) -> FetchedPage:
    """Fetch a page, following at most ``settings.max_redirects`` redirects.

    Any network failure, malformed URL, timeout or non-2xx response is raised as
    :class:`FetchError` so the engine can attribute it to the URL.
    """

    start = time.perf_counter()
    with requests.Session() as session:
        session.max_redirects = settings.max_redirects
        try:
            response = session.get(
                url,
                headers={"User-Agent": settings.user_agent},
                timeout=settings.http_timeout,
                allow_redirects=True,
            )
            response.raise_for_status()
        except (requests.RequestException, urllib3.exceptions.HTTPError, ValueError) as exc:
            logger.warning("Failed to fetch %s: %s", url, exc)
            raise FetchError(url, str(exc)) from exc

    logger.debug(
        "Fetched %s (status %s) in %.2fs",
        url,
        response.status_code,
        time.perf_counter() - start,
    )
    return FetchedPage(
        url=url,
        html=response.text,
        fetched_at=dt.datetime.now(dt.timezone.utc),
        final_url=str(response.url),
        status_code=response.status_code,
    )


def extract_tags(html: str) -> ExtractedTags:
    """Parse HTML and pull out the tags the baseline is compared against."""
    soup = BeautifulSoup(html, "html.parser")

    robots = None
    robots_tag = soup.find("meta", attrs={"name": _ROBOTS_NAME})
    if robots_tag is not None:
        robots = robots_tag.get("content")

    canonical = None
    canonical_tag = soup.find("link", attrs={"rel": _CANONICAL_REL})
    if canonical_tag is not None:
        canonical = canonical_tag.get("href")

    title_tag = soup.find("title")
    title = title_tag.get_text(strip=True) if title_tag else None

    h1s = tuple(tag.get_text().strip() for tag in soup.find_all("h1"))

    return ExtractedTags(robots=robots, canonical=canonical, title=title, h1s=h1s)


def extract_page_tags(page: FetchedPage) -> ExtractedTags:
    """Extract tags from a fetched page, attributing parse failures to its URL."""
    try:
        return extract_tags(page.html)
    except ParserRejectedMarkup as exc:
        raise FetchError(page.url, f"unparseable HTML: {exc}") from exc

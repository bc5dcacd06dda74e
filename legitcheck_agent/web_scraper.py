from __future__ import annotations

import logging
import re
from urllib.parse import urlparse, urlunparse

import httpx
from bs4 import BeautifulSoup

from .models import ScrapedSite

logger = logging.getLogger(__name__)


DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

MAX_BODY_CHARS = 5000
MAX_LINKS = 20

_JUNK_TAGS = ("script", "style", "noscript", "iframe", "footer", "nav", "aside")


def normalize_target_url(raw: str) -> str | None:
    """Turn a free-text query into a fetchable URL, or None if it doesn't look like a domain."""
    value = (raw or "").strip()
    if not value:
        return None

    if not re.match(r"^[a-zA-Z][a-zA-Z\d+.-]*://", value):
        value = "https://" + value

    try:
        parsed = urlparse(value)
    except ValueError:
        return None
    if parsed.scheme not in ("http", "https"):
        return None
    if not parsed.hostname or "." not in parsed.hostname or " " in parsed.netloc:
        return None

    return urlunparse(parsed._replace(fragment=""))


def _meta_content(soup: BeautifulSoup, **attrs: str) -> str:
    tag = soup.find("meta", attrs=attrs)
    if tag is None:
        return ""
    return str(tag.get("content") or "").strip()


def parse_company_page(html: str, url: str, status_code: int) -> ScrapedSite:
    soup = BeautifulSoup(html, "html.parser")

    # Meta tags live in <head>; read them before stripping anything.
    og_title = _meta_content(soup, property="og:title")
    og_site_name = _meta_content(soup, property="og:site_name")
    meta_description = _meta_content(soup, name="description") or _meta_content(soup, property="og:description")

    title = soup.title.get_text().strip() if soup.title else ""
    name = og_site_name or og_title or title.split("|")[0].split("-")[0].strip()

    for tag in soup(list(_JUNK_TAGS)):
        tag.decompose()

    body = soup.body or soup
    body_text = re.sub(r"\s+", " ", body.get_text(" ")).strip()[:MAX_BODY_CHARS]

    links: list[str] = []
    for a in soup.find_all("a", href=True):
        href = str(a["href"]).strip()
        if href.startswith("http"):
            links.append(href)

    return ScrapedSite(
        url=url,
        title=title,
        name=name,
        meta_description=meta_description,
        body_text=body_text,
        links=links[:MAX_LINKS],
        status_code=status_code,
    )


async def scrape_company_website(
    url: str,
    *,
    timeout_s: float = 15.0,
    user_agent: str = DEFAULT_USER_AGENT,
    client: httpx.AsyncClient | None = None,
) -> ScrapedSite | None:
    """Fetch the company homepage and extract title, description, body text and links.

    Returns None when the query isn't a plausible URL or the page can't be fetched.
    """
    target = normalize_target_url(url)
    if target is None:
        logger.info("Skipping scrape, query is not a website: %r", url)
        return None

    headers = {
        "user-agent": user_agent,
        "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
        "accept-language": "en-US,en;q=0.5",
    }

    try:
        if client is None:
            async with httpx.AsyncClient(timeout=timeout_s, follow_redirects=True) as own_client:
                res = await own_client.get(target, headers=headers)
        else:
            res = await client.get(target, headers=headers, timeout=timeout_s)
        res.raise_for_status()

        if not res.text:
            logger.info("Empty response body from %s", target)
            return None

        site = parse_company_page(res.text, target, res.status_code)
    except Exception as e:
        logger.warning("Scrape failed for %s: %s", target, e)
        return None

    logger.info(
        "Scraped %s: name=%r, %d chars, %d links",
        target,
        site.name,
        len(site.body_text),
        len(site.links),
    )
    return site

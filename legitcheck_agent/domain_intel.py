from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timezone
from functools import partial
from typing import Any, Callable

import tldextract
import whois

from .models import DomainIntel

logger = logging.getLogger(__name__)

# Bundled public suffix snapshot only; never fetch the list over the network mid-request.
_extract = tldextract.TLDExtract(suffix_list_urls=())

WhoisLookup = Callable[[str], Any]


def registrable_domain(url: str) -> str | None:
    ext = _extract((url or "").strip())
    if not ext.domain or not ext.suffix or any(c.isspace() for c in ext.domain):
        return None
    return f"{ext.domain}.{ext.suffix}".lower()


def _first(value: Any) -> Any:
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _field(record: Any, *names: str) -> Any:
    for name in names:
        value = None
        if isinstance(record, dict):
            value = record.get(name)
        if value is None:
            value = getattr(record, name, None)
        value = _first(value)
        if value:
            return value
    return None


def _as_datetime(value: Any) -> datetime | None:
    if isinstance(value, datetime):
        created = value
    elif isinstance(value, str) and value.strip():
        try:
            created = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return created


def age_in_days(created: datetime, now: datetime | None = None) -> int:
    now = now or datetime.now(timezone.utc)
    return math.ceil(abs((now - created).total_seconds()) / 86400)


def _fallback(domain: str) -> DomainIntel:
    return DomainIntel(domain=domain)


def _lookup(domain: str, lookup: WhoisLookup) -> DomainIntel:
    record = lookup(domain)

    created = _as_datetime(_field(record, "creation_date", "created"))
    registrar = _field(record, "registrar", "registrar_name")
    country = _field(record, "country", "registrant_country", "admin_country")

    return DomainIntel(
        domain=domain,
        registrar=registrar if isinstance(registrar, str) else None,
        creation_date=created.isoformat() if created else None,
        age_days=age_in_days(created) if created else None,
        country=country if isinstance(country, str) else None,
    )


async def analyze_domain(
    url: str,
    *,
    timeout_s: float = 10.0,
    lookup: WhoisLookup | None = None,
) -> DomainIntel:
    """WHOIS registrar / creation date / age for the query's registrable domain.

    Never raises: a failed or slow lookup (raced against ``timeout_s``) degrades to null fields.
    The default python-whois lookup also gets ``timeout_s`` as its socket timeout so the worker
    thread ends even after the race is lost.
    """
    domain = registrable_domain(url)
    if domain is None:
        logger.info("No registrable domain in %r, skipping WHOIS", url)
        return _fallback((url or "").strip())

    if lookup is None:
        lookup = partial(whois.whois, timeout=timeout_s)

    try:
        intel = await asyncio.wait_for(asyncio.to_thread(_lookup, domain, lookup), timeout=timeout_s)
    except asyncio.TimeoutError:
        logger.warning("WHOIS lookup for %s timed out after %.1fs", domain, timeout_s)
        return _fallback(domain)
    except Exception as e:
        logger.warning("WHOIS lookup for %s failed: %s", domain, e)
        return _fallback(domain)

    logger.info(
        "Domain %s: age_days=%s registrar=%s country=%s",
        domain,
        intel.age_days,
        intel.registrar,
        intel.country,
    )
    return intel

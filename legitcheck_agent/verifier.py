from __future__ import annotations

import asyncio
import json
import logging
import time
from datetime import datetime, timezone
from functools import partial
from typing import Any, Awaitable, Callable, TypeVar

from .config import Settings
from .content_analyzer import analyze_content
from .domain_intel import analyze_domain, registrable_domain
from .judge import DecisionEngine
from .llm import GeminiClient
from .models import (
    DomainIntel,
    ReputationResult,
    ScrapedSite,
    ScrapedSummary,
    VerificationDetails,
    VerificationResponse,
)
from .reputation import check_reputation, neutral_reputation
from .web_scraper import scrape_company_website

logger = logging.getLogger(__name__)

T = TypeVar("T")

Scraper = Callable[[str], Awaitable[ScrapedSite | None]]
DomainLookup = Callable[[str], Awaitable[DomainIntel]]
ReputationLookup = Callable[[str], Awaitable[ReputationResult]]


class InvalidQueryError(ValueError):
    pass


def _log(phase: str, message: str, data: dict[str, Any] | None = None) -> None:
    if data is None:
        logger.info("[Verification:%s] %s", phase, message)
    else:
        logger.info("[Verification:%s] %s %s", phase, message, json.dumps(data, default=str))


class Verifier:
    """Detective -> Analyst -> Judge pipeline for one company query at a time.

    Collaborators are injected so each one can be swapped or mocked independently.
    """

    def __init__(
        self,
        scrape: Scraper,
        analyze_domain: DomainLookup,
        check_reputation: ReputationLookup,
        engine: DecisionEngine,
        collaborator_timeout_s: float | None = 20.0,
    ):
        self.scrape = scrape
        self.analyze_domain = analyze_domain
        self.check_reputation = check_reputation
        self.engine = engine
        self.collaborator_timeout_s = collaborator_timeout_s

    async def _guarded(
        self,
        name: str,
        fn: Callable[[str], Awaitable[T]],
        query: str,
        default: T,
        timings: dict[str, int],
    ) -> T:
        # Each collaborator settles to a value; a failure here must not take down its siblings.
        start = time.perf_counter()
        try:
            if self.collaborator_timeout_s is None:
                return await fn(query)
            return await asyncio.wait_for(fn(query), timeout=self.collaborator_timeout_s)
        except asyncio.TimeoutError:
            _log("Detective", f"{name} timed out (continuing)", {"timeout_s": self.collaborator_timeout_s})
            return default
        except Exception as e:
            _log("Detective", f"{name} failed (continuing)", {"error": str(e)})
            return default
        finally:
            timings[name] = int((time.perf_counter() - start) * 1000)

    async def verify(self, query: Any) -> VerificationResponse:
        if not isinstance(query, str) or not query.strip():
            _log("Error", "Invalid query parameter", {"query": query})
            raise InvalidQueryError("Query is required and must be a string")

        query = query.strip()
        t0 = time.perf_counter()
        timings: dict[str, int] = {}

        _log("Start", f"Starting verification for: {query}")

        _log("Detective", "Starting parallel detective work (scraper, domain, reputation)")
        domain_default = DomainIntel(domain=registrable_domain(query) or query)
        scraped, domain, reputation = await asyncio.gather(
            self._guarded("scrape", self.scrape, query, None, timings),
            self._guarded("domain", self.analyze_domain, query, domain_default, timings),
            self._guarded("reputation", self.check_reputation, query, neutral_reputation(), timings),
        )
        _log(
            "Detective",
            "Detective phase complete",
            {
                "scraper_success": scraped is not None,
                "scraper_title": scraped.title if scraped else "N/A",
                "domain_age_days": domain.age_days,
                "domain_registrar": domain.registrar,
                "reputation_sentiment": reputation.sentiment,
                "reputation_scam_hits": reputation.scam_results,
            },
        )

        _log("Analyst", "Starting content analysis")
        start = time.perf_counter()
        analysis = analyze_content(scraped.body_text if scraped else "")
        timings["analyst"] = int((time.perf_counter() - start) * 1000)
        _log("Analyst", "Content analysis complete", analysis.model_dump())

        _log("Judge", "Starting decision engine")
        start = time.perf_counter()
        judgment = await self.engine.make_decision(scraped, domain, reputation, analysis)
        timings["judge"] = int((time.perf_counter() - start) * 1000)
        verdict = judgment.verdict
        _log("Judge", "Final verdict rendered", {"source": judgment.source, **verdict.model_dump()})

        timings["total"] = int((time.perf_counter() - t0) * 1000)

        response = VerificationResponse(
            is_scam=verdict.verdict == "DANGER",
            risk_score=verdict.risk_score,
            verdict=verdict.verdict,
            explanation=verdict.explanation,
            recommendation=verdict.recommendation,
            details=VerificationDetails(
                domain_age_days=domain.age_days,
                domain_registrar=domain.registrar,
                scam_hits=reputation.scam_results,
                sentiment=reputation.sentiment,
                red_flags=analysis.red_flags,
                green_flags=analysis.green_flags,
            ),
            scraped_data=ScrapedSummary(
                title=scraped.title if scraped else None,
                description=scraped.meta_description if scraped else None,
            ),
            verdict_source=judgment.source,
            analyzed_at=datetime.now(timezone.utc).isoformat(),
            timings_ms=timings,
        )

        _log(
            "Complete",
            f"Verification completed in {timings['total']}ms",
            {
                "query": query,
                "verdict": verdict.verdict,
                "risk_score": verdict.risk_score,
                "trust_score": 100 - verdict.risk_score,
                "timings_ms": timings,
            },
        )
        return response


def build_verifier(settings: Settings) -> Verifier:
    """Wire the real scraper, WHOIS, SerpApi and (when a key is set) Gemini collaborators."""
    llm = None
    if settings.gemini_api_key:
        llm = GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            timeout_s=settings.llm_timeout_s,
        )

    return Verifier(
        scrape=partial(scrape_company_website, timeout_s=settings.scrape_timeout_s),
        analyze_domain=partial(analyze_domain, timeout_s=settings.domain_timeout_s),
        check_reputation=partial(
            check_reputation,
            api_key=settings.serpapi_key,
            num_results=settings.reputation_results,
            negative_above=settings.reputation_negative_above,
            positive_at_most=settings.reputation_positive_at_most,
            timeout_s=settings.reputation_timeout_s,
        ),
        engine=DecisionEngine(llm=llm),
        collaborator_timeout_s=max(
            settings.scrape_timeout_s,
            settings.domain_timeout_s,
            settings.reputation_timeout_s,
        )
        + 5.0,
    )

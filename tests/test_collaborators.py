"""
Scraper, WHOIS and reputation collaborator tests.

All network I/O goes through httpx.MockTransport or an injected WHOIS lookup.
"""

import asyncio
import time
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace
from unittest.mock import patch

import httpx
import pytest

from legitcheck_agent.domain_intel import age_in_days, analyze_domain, registrable_domain
from legitcheck_agent.reputation import check_reputation, classify_sentiment, count_scam_hits
from legitcheck_agent.web_scraper import normalize_target_url, parse_company_page, scrape_company_website


SAMPLE_HTML = """
<html>
<head>
  <title>Acme Careers | Internships</title>
  <meta property="og:site_name" content="Acme Labs">
  <meta name="description" content="Paid internships at Acme.">
  <style>.x { color: red }</style>
</head>
<body>
  <nav>Home Jobs Login</nav>
  <h1>Join   our team</h1>
  <p>Every intern gets a monthly stipend.</p>
  <script>var trap = "registration fee";</script>
  <a href="https://linkedin.com/company/acme">LinkedIn</a>
  <a href="/about">About</a>
  <footer>Copyright Acme</footer>
</body>
</html>
"""


def _run(coro):
    return asyncio.run(coro)


class TestUrlNormalization:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("acme.com", "https://acme.com"),
            ("  http://acme.com/jobs#top ", "http://acme.com/jobs"),
            ("Acme Corp", None),
            ("acme", None),
            ("ftp://acme.com", None),
            ("", None),
        ],
    )
    def test_normalize_target_url(self, raw, expected):
        assert normalize_target_url(raw) == expected


class TestPageParsing:
    def test_extracts_fields_and_drops_junk(self):
        site = parse_company_page(SAMPLE_HTML, "https://acme.com", 200)

        assert site.title == "Acme Careers | Internships"
        assert site.name == "Acme Labs"
        assert site.meta_description == "Paid internships at Acme."
        assert "Join our team" in site.body_text
        assert "stipend" in site.body_text
        assert "registration fee" not in site.body_text
        assert "Home Jobs Login" not in site.body_text
        assert "Copyright" not in site.body_text
        assert site.links == ["https://linkedin.com/company/acme"]
        assert site.status_code == 200

    def test_name_falls_back_to_title_prefix(self):
        site = parse_company_page("<title>Acme Corp - Careers</title><body>hi</body>", "https://acme.com", 200)

        assert site.name == "Acme Corp"

    def test_limits_body_and_links(self):
        links = "".join(f'<a href="https://site{i}.com">x</a>' for i in range(40))
        html = f"<html><body><p>{'word ' * 3000}</p>{links}</body></html>"

        site = parse_company_page(html, "https://acme.com", 200)

        assert len(site.body_text) == 5000
        assert len(site.links) == 20


class TestScraper:
    def test_successful_scrape(self):
        seen = []

        def handler(request):
            seen.append((request.url.scheme, request.url.host))
            return httpx.Response(200, text=SAMPLE_HTML, headers={"content-type": "text/html"})

        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await scrape_company_website("acme.com", client=client)

        site = _run(scenario())

        assert site is not None
        assert site.url == "https://acme.com"
        assert site.name == "Acme Labs"
        assert seen == [("https", "acme.com")]

    @pytest.mark.parametrize("status", [403, 404, 500])
    def test_error_status_returns_none(self, status):
        async def scenario():
            transport = httpx.MockTransport(lambda request: httpx.Response(status, text="nope"))
            async with httpx.AsyncClient(transport=transport) as client:
                return await scrape_company_website("acme.com", client=client)

        assert _run(scenario()) is None

    def test_network_error_returns_none(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await scrape_company_website("acme.com", client=client)

        assert _run(scenario()) is None

    def test_plain_company_name_skips_network(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, text=SAMPLE_HTML)

        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await scrape_company_website("Acme Corp", client=client)

        assert _run(scenario()) is None
        assert calls == []


class TestDomainIntel:
    def test_registrable_domain(self):
        assert registrable_domain("https://careers.acme.co.uk/jobs") == "acme.co.uk"
        assert registrable_domain("acme.com") == "acme.com"
        assert registrable_domain("Acme Corp") is None
        assert registrable_domain("https://exa mple.com") is None

    def test_age_rounds_up_partial_days(self):
        now = datetime(2026, 1, 31, 12, tzinfo=timezone.utc)

        assert age_in_days(now - timedelta(days=30), now) == 30
        assert age_in_days(now - timedelta(days=29, hours=12), now) == 30

    def test_lookup_with_list_valued_fields(self):
        created = datetime.now(timezone.utc) - timedelta(days=100, hours=1)

        def lookup(domain):
            assert domain == "acme.com"
            return {
                "creation_date": [created.replace(tzinfo=None), created],
                "registrar": "GoDaddy.com, LLC",
                "country": "US",
            }

        intel = _run(analyze_domain("https://www.acme.com/careers", lookup=lookup))

        assert intel.domain == "acme.com"
        assert intel.registrar == "GoDaddy.com, LLC"
        assert intel.country == "US"
        assert intel.age_days == 101
        assert intel.creation_date.endswith("+00:00")

    def test_lookup_with_attribute_record_and_string_date(self):
        record = SimpleNamespace(creation_date="2020-01-01T00:00:00Z", registrar=None, registrar_name="Namecheap")

        intel = _run(analyze_domain("acme.io", lookup=lambda domain: record))

        assert intel.creation_date == "2020-01-01T00:00:00+00:00"
        assert intel.age_days > 2000
        assert intel.registrar == "Namecheap"
        assert intel.country is None

    def test_lookup_failure_degrades_to_nulls(self):
        def lookup(domain):
            raise ConnectionResetError("whois server hung up")

        intel = _run(analyze_domain("acme.com", lookup=lookup))

        assert intel.model_dump() == {
            "domain": "acme.com",
            "registrar": None,
            "creation_date": None,
            "age_days": None,
            "country": None,
        }

    def test_slow_lookup_resolves_to_fallback(self):
        def lookup(domain):
            time.sleep(0.5)
            return {"creation_date": datetime(2001, 1, 1)}

        intel = _run(analyze_domain("acme.com", timeout_s=0.05, lookup=lookup))

        assert intel.domain == "acme.com"
        assert intel.age_days is None

    def test_not_a_domain_skips_lookup(self):
        def lookup(domain):
            raise AssertionError("lookup should not run")

        intel = _run(analyze_domain("Acme Corp", lookup=lookup))

        assert intel.domain == "Acme Corp"
        assert intel.age_days is None

    def test_host_with_space_skips_lookup(self):
        def lookup(domain):
            raise AssertionError("lookup should not run")

        intel = _run(analyze_domain("https://exa mple.com", lookup=lookup))

        assert intel.age_days is None
        assert intel.registrar is None

    def test_default_lookup_gets_socket_timeout(self):
        with patch("legitcheck_agent.domain_intel.whois.whois", return_value={"registrar": "Gandi"}) as lookup:
            intel = _run(analyze_domain("acme.com", timeout_s=3.0))

        lookup.assert_called_once_with("acme.com", timeout=3.0)
        assert intel.registrar == "Gandi"


class TestReputation:
    @pytest.mark.parametrize(
        "hits,expected",
        [(0, "positive"), (3, "positive"), (4, "neutral"), (12, "neutral"), (13, "negative"), (50, "negative")],
    )
    def test_default_thresholds(self, hits, expected):
        assert classify_sentiment(hits) == expected

    def test_custom_thresholds(self):
        assert classify_sentiment(1, negative_above=5, positive_at_most=0) == "neutral"
        assert classify_sentiment(6, negative_above=5, positive_at_most=0) == "negative"
        assert classify_sentiment(0, negative_above=5, positive_at_most=0) == "positive"

    def test_count_scam_hits(self):
        results = [
            {"title": "Acme SCAM alert", "snippet": "They asked for money."},
            {"title": "Acme reviews", "snippet": "Lots of complaints about fees"},
            {"title": "Acme careers", "snippet": "Great place to work"},
            {"title": "Is Acme fake?", "snippet": ""},
            "garbage",
        ]

        hits, snippets = count_scam_hits(results)

        assert hits == 3
        assert snippets == ["They asked for money.", "Lots of complaints about fees"]

    def test_without_api_key_is_neutral(self):
        result = _run(check_reputation("Acme", api_key=None))

        assert result.model_dump() == {"sentiment": "neutral", "scam_results": 0, "snippet_signals": []}

    def test_search_results_are_scored(self):
        captured = {}

        def handler(request):
            captured.update(dict(request.url.params))
            organic = [{"title": f"Acme fraud report {i}", "snippet": f"snippet {i}"} for i in range(5)]
            organic += [{"title": "Acme jobs", "snippet": "Apply now"} for _ in range(10)]
            return httpx.Response(200, json={"organic_results": organic})

        async def scenario():
            async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
                return await check_reputation("Acme", api_key="k", num_results=15, client=client)

        result = _run(scenario())

        assert captured["q"] == "Acme reviews fake legit"
        assert captured["engine"] == "google"
        assert captured["num"] == "15"
        assert result.scam_results == 5
        assert result.sentiment == "neutral"
        assert result.snippet_signals == ["snippet 0", "snippet 1", "snippet 2"]

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(500, text="upstream error"),
            httpx.Response(200, text="<html>not json</html>"),
        ],
    )
    def test_search_failure_is_neutral(self, response):
        async def scenario():
            transport = httpx.MockTransport(lambda request: response)
            async with httpx.AsyncClient(transport=transport) as client:
                return await check_reputation("Acme", api_key="k", client=client)

        result = _run(scenario())

        assert result.sentiment == "neutral"
        assert result.scam_results == 0

"""Tests for the exposure checks, end to end over a mock transport."""

import asyncio

import httpx

from conftest import FakeResolver, RoutedTransport, html_response, js_response
from exposcope.checks import CHECKS, get_check
from exposcope.checks.cdn_resources import CdnResourcesCheck, classify_domain, is_spa, performance_score
from exposcope.checks.exposed_files import ExposedFilesCheck
from exposcope.checks.link_audit import LinkAuditCheck
from exposcope.checks.secrets import SecretsCheck
from exposcope.checks.takeover import (
    STATUS_CLAIMED,
    STATUS_NO_CNAME,
    STATUS_UNKNOWN_SERVICE,
    STATUS_UNVERIFIED,
    STATUS_VULNERABLE,
    TakeoverCheck,
)
from exposcope.core.config import SecretsConfig, Settings, TakeoverConfig
from exposcope.models.finding import SourceKind
from exposcope.rules.exposed_files import SENSITIVE_FILES

SITE = "https://site.example"
GITHUB_TOKEN = "ghp_" + "A" * 32 + "wxyz"


def run(check, url=SITE, cancel=None):
    return asyncio.run(check.run(url, cancel))


class TestRegistry:
    """Tests for the check registry."""

    def test_names(self):
        assert list(CHECKS) == ["secrets", "exposed-files", "link-audit", "cdn-resources", "subdomain-takeover"]

    def test_unknown(self):
        try:
            get_check("port-scan")
        except KeyError as e:
            assert "Unknown check: port-scan" in str(e)
        else:
            raise AssertionError("expected KeyError")


class TestSecretsCheck:
    """Tests for the secrets and PII scanner."""

    def test_token_in_script_reported_once(self, settings):
        """Test a token repeated in one script yields a single masked finding."""
        transport = RoutedTransport({
            SITE: html_response('<html><body><script src="/static/app.js"></script></body></html>'),
            f"{SITE}/static/app.js": js_response(
                f'const first = "{GITHUB_TOKEN}";\nconst second = "{GITHUB_TOKEN}";\n'
            ),
        })
        report = run(SecretsCheck(settings=settings, transport=transport))

        assert report["totalFindings"] == 1
        finding = report["findings"][0]
        assert finding["type"] == "GitHub Token"
        assert finding["value"] == "ghp_...wxyz"
        assert finding["severity"] == "Critical"
        assert finding["sourceType"] == "JavaScript File"
        assert finding["sourceUrl"] == f"{SITE}/static/app.js"
        assert report["scannedFilesCount"] == 2
        assert report["summary"] == {"Critical": 1, "High": 0, "Medium": 0, "Low": 0}
        assert report["score"] == 85

    def test_placeholder_word_keeps_provider_key(self, settings):
        """Test a provider key survives a placeholder word in its context."""
        check = SecretsCheck(settings=settings)
        content = "Example key: sk-" + "Ab1" * 16 + " (dummy)"

        findings = check.analyze(content, SITE, SourceKind.HTML)
        assert [f.type for f in findings] == ["OpenAI API Key"]

    def test_placeholder_word_drops_generic_assignment(self, settings):
        check = SecretsCheck(settings=settings)
        assignment = 'password: "Qw7Er9Ty2Ui4Op6As8Df"'

        assert check.analyze(f"{assignment} // dummy value", SITE, SourceKind.HTML) == []
        kept = check.analyze(assignment, SITE, SourceKind.HTML)
        assert [f.type for f in kept] == ["Generic Secret Assignment"]
        assert kept[0].severity.value == "High"

    def test_url_token_parameter_suppressed(self, settings):
        """Test token= query parameters are treated as benign, oauth_token included."""
        check = SecretsCheck(settings=settings)
        assert check.analyze("/callback?oauth_token=Zx81Qa0mN4", SITE, SourceKind.HTML) == []

    def test_script_limit(self):
        settings = Settings(_env_file=None, secrets=SecretsConfig(max_scripts=2))
        scripts = "".join(f'<script src="/s{i}.js"></script>' for i in range(5))
        transport = RoutedTransport(
            {SITE: html_response(f"<html>{scripts}</html>")},
            default=js_response("var x = 1;"),
        )
        report = run(SecretsCheck(settings=settings, transport=transport))

        fetched = [url for _, url in transport.requests if url.endswith(".js")]
        assert sorted(fetched) == [f"{SITE}/s0.js", f"{SITE}/s1.js"]
        assert report["scannedFilesCount"] == 3

    def test_failed_scripts_are_skipped(self, settings):
        transport = RoutedTransport({
            SITE: html_response('<script src="/a.js"></script><script src="/b.js"></script>'),
            f"{SITE}/a.js": httpx.ConnectError("refused"),
            f"{SITE}/b.js": js_response("var ok = true;"),
        })
        report = run(SecretsCheck(settings=settings, transport=transport))

        assert [f["url"] for f in report["scannedFiles"]] == [SITE, f"{SITE}/b.js"]
        assert report["score"] == 100

    def test_missing_url(self, settings):
        assert run(SecretsCheck(settings=settings), url="") == {
            "error": "URL parameter is required",
            "statusCode": 400,
        }

    def test_unreachable_target(self, settings):
        transport = RoutedTransport({SITE: httpx.ConnectError("no route to host")})
        report = run(SecretsCheck(settings=settings, transport=transport))

        assert report["statusCode"] == 502
        assert "no route to host" in report["error"]
        assert report["partialResults"]["findings"] == []

    def test_binary_target(self, settings):
        transport = RoutedTransport({
            SITE: httpx.Response(200, content=b"\x89PNG", headers={"content-type": "image/png"}),
        })
        report = run(SecretsCheck(settings=settings, transport=transport))

        assert report["statusCode"] == 502
        assert report["error"] == "Invalid response content type"

    def test_late_failure_keeps_partial_results(self, settings):
        """Test findings collected before a crash are returned with the error."""

        class ExplodingScriptCheck(SecretsCheck):
            def analyze(self, content, source_url, source_kind):
                if source_kind == SourceKind.JAVASCRIPT:
                    raise RuntimeError("parser exploded")
                return super().analyze(content, source_url, source_kind)

        transport = RoutedTransport({
            SITE: html_response('<p>Write to ops@corp.site</p><script src="/app.js"></script>'),
            f"{SITE}/app.js": js_response("var a;"),
        })
        report = run(ExplodingScriptCheck(settings=settings, transport=transport))

        assert report["statusCode"] == 500
        assert report["error"] == "Failed to scan for secrets: parser exploded"
        partial = report["partialResults"]["findings"]
        assert [(f["type"], f["value"]) for f in partial] == [("Email Address", "ops@corp.site")]


class TestExposedFilesCheck:
    """Tests for the sensitive file prober."""

    def test_env_file(self, settings):
        transport = RoutedTransport({
            f"{SITE}/.env": httpx.Response(200, text="DB_HOST=localhost\nDB_PASS=secret"),
        })
        report = run(ExposedFilesCheck(settings=settings, transport=transport))

        assert report["exposedFiles"] == [{
            "file": ".env",
            "url": f"{SITE}/.env",
            "severity": "Critical",
            "type": "Config/System",
        }]
        assert report["scannedCount"] == len(SENSITIVE_FILES)
        assert report["summary"]["Critical"] == 1
        assert report["score"] == 60

    def test_every_path_probed_once(self, settings):
        transport = RoutedTransport({})
        run(ExposedFilesCheck(settings=settings, transport=transport))

        probed = [url for _, url in transport.requests]
        assert len(probed) == len(SENSITIVE_FILES)
        assert len(set(probed)) == len(probed)

    def test_soft_404_ignored(self, settings):
        """Test a 200 error page is not reported."""
        transport = RoutedTransport({}, default=html_response("<!DOCTYPE html><html><h1>Page Not Found</h1></html>"))
        report = run(ExposedFilesCheck(settings=settings, transport=transport))

        assert report["exposedFiles"] == []
        assert report["score"] == 100

    def test_content_check_required(self, settings):
        transport = RoutedTransport({
            f"{SITE}/.git/HEAD": httpx.Response(200, text="hello"),
            f"{SITE}/dump.sql": httpx.Response(200, text="CREATE TABLE users (id int);"),
            f"{SITE}/wp-config.php": httpx.Response(200, text=""),
        })
        report = run(ExposedFilesCheck(settings=settings, transport=transport))

        assert [f["file"] for f in report["exposedFiles"]] == ["dump.sql"]
        assert report["exposedFiles"][0]["severity"] == "High"
        assert report["exposedFiles"][0]["type"] == "Database"

    def test_oversized_body_not_evaluated(self, settings):
        transport = RoutedTransport({
            f"{SITE}/.env": httpx.Response(200, text="A=" + "x" * 200_000),
        })
        report = run(ExposedFilesCheck(settings=settings, transport=transport))
        assert report["exposedFiles"] == []

    def test_cancelled_scan_returns_partial(self, settings):
        transport = RoutedTransport({})
        cancel = asyncio.Event()
        cancel.set()
        report = run(ExposedFilesCheck(settings=settings, transport=transport), cancel=cancel)

        assert report["statusCode"] == 500
        assert report["partialResults"]["exposedFiles"] == []
        assert transport.requests == []


def link_page(count=30):
    anchors = "".join(f'<a href="/page-{i}">Page {i}</a>' for i in range(count))
    return f'<html><body>{anchors}<img src="http://insecure.example/banner.png"></body></html>'


class TestLinkAuditCheck:
    """Tests for the link and mixed content auditor."""

    def test_broken_link_and_mixed_content(self, settings):
        transport = RoutedTransport(
            {SITE: html_response(link_page()), f"{SITE}/page-3": httpx.Response(404)},
            default=httpx.Response(200, text="ok"),
        )
        report = run(LinkAuditCheck(settings=settings, transport=transport))

        assert report["totalLinks"] == 30
        assert report["checkedLinks"] == 25
        assert report["internalLinks"] == 30
        assert report["externalLinks"] == 0
        assert report["brokenLinks"] == [{"url": f"{SITE}/page-3", "status": 404, "reason": "Not Found"}]
        assert report["mixedContent"] == [
            {"url": "http://insecure.example/banner.png", "type": "img", "severity": "High"},
        ]
        assert report["score"] == 75

        heads = [url for method, url in transport.requests if method == "HEAD"]
        gets = [url for method, url in transport.requests if method == "GET" and "/page-" in url]
        assert len(heads) == 25
        assert f"{SITE}/page-29" not in heads
        assert gets == [f"{SITE}/page-3"]

    def test_head_rejected_get_ok(self, settings):
        """Test a link refusing HEAD but serving GET is not broken."""
        def no_head(request):
            return httpx.Response(405 if request.method == "HEAD" else 200)

        transport = RoutedTransport(
            {SITE: html_response('<a href="/only-get">x</a>'), f"{SITE}/only-get": no_head},
        )
        report = run(LinkAuditCheck(settings=settings, transport=transport))
        assert report["brokenLinks"] == []
        assert report["score"] == 100

    def test_connection_failure(self, settings):
        transport = RoutedTransport(
            {SITE: html_response('<a href="https://gone.example/">x</a>'), "https://gone.example/": httpx.ConnectError("dns")},
        )
        report = run(LinkAuditCheck(settings=settings, transport=transport))

        assert report["brokenLinks"] == [{"url": "https://gone.example/", "status": 0, "reason": "Connection Failed"}]
        assert report["externalLinks"] == 1
        assert report["score"] == 90

    def test_http_target_has_no_mixed_content(self, settings):
        transport = RoutedTransport(
            {"http://site.example": html_response(link_page(2))},
            default=httpx.Response(200),
        )
        report = run(LinkAuditCheck(settings=settings, transport=transport), url="http://site.example")
        assert report["mixedContent"] == []

    def test_error_status_page_still_audited(self, settings):
        transport = RoutedTransport({SITE: html_response(link_page(0), status=503)})
        report = run(LinkAuditCheck(settings=settings, transport=transport))

        assert report["totalLinks"] == 0
        assert report["score"] == 85


CDN_PAGE = """
<html><head>
<script src="https://code.jquery.com/jquery-3.4.1.min.js"></script>
<link rel="stylesheet" href="https://fonts.googleapis.com/css2?family=Inter">
<script src="https://www.googletagmanager.com/gtag/js?id=G-1"></script>
<script src="/local.js"></script>
</head><body><img src="http://insecure.example/pixel.gif"></body></html>
"""


class TestCdnResourcesCheck:
    """Tests for third-party resource analysis."""

    def test_report(self, settings):
        transport = RoutedTransport({SITE: html_response(CDN_PAGE)})
        report = run(CdnResourcesCheck(settings=settings, transport=transport))

        assert report["summary"] == {
            "cdnCount": 2,
            "externalDomains": 4,
            "insecureResources": 1,
            "trackingResources": 1,
            "performanceScore": 99,
        }
        assert report["score"] == 99
        assert report["totalResources"] == 4
        assert [p["domain"] for p in report["cdnProviders"]] == ["code.jquery.com", "fonts.googleapis.com"]
        assert all(p["resourceCount"] == 1 for p in report["cdnProviders"])

        security = {(i["type"], i["resource"]) for i in report["securityIssues"]}
        assert security == {
            ("vulnerable_library", "https://code.jquery.com/jquery-3.4.1.min.js"),
            ("missing_sri", "https://code.jquery.com/jquery-3.4.1.min.js"),
            ("missing_sri", "https://fonts.googleapis.com/css2?family=Inter"),
            ("mixed_content", "http://insecure.example/pixel.gif"),
        }
        mixed = [i for i in report["securityIssues"] if i["type"] == "mixed_content"]
        assert mixed[0]["severity"] == "Medium"

        privacy = {i["type"] for i in report["privacyIssues"]}
        assert privacy == {"tracking_resource", "google_fonts_privacy", "privacy_concern_cdn"}
        assert "spaWarning" not in report

    def test_spa_without_resources(self, settings):
        transport = RoutedTransport({SITE: html_response('<html><body><div id="root"></div></body></html>')})
        report = run(CdnResourcesCheck(settings=settings, transport=transport))

        assert report["isSPA"] is True
        assert report["spaWarning"]
        assert report["externalResources"] == []

    def test_classify_domain(self):
        provider, keys = classify_domain("static.xx.fbcdn.net")
        assert keys == ["fbcdn.net", "xx.fbcdn.net"]
        assert provider.name == "Facebook CDN"
        assert classify_domain("unknown.example") == (None, [])

    def test_performance_score(self):
        assert performance_score(25, 12, 0, 0) == 84
        assert performance_score(1, 1, 0, 20) == 100
        assert performance_score(1, 1, 30, 0) == 0

    def test_is_spa(self):
        assert is_spa('<script id="__NEXT_DATA__">')
        assert is_spa("<div id='app'></div>")
        assert not is_spa("<main>static</main>")


class TestTakeoverCheck:
    """Tests for dangling CNAME detection."""

    def _run(self, settings, cnames, routes=None):
        resolver = FakeResolver(cnames)
        transport = RoutedTransport(routes or {})
        check = TakeoverCheck(settings=settings, transport=transport, resolver=resolver)
        return run(check, url="shop.site.example"), transport

    def test_vulnerable(self, settings):
        report, _ = self._run(
            settings,
            {"shop.site.example": ["myapp.herokuapp.com"]},
            {"http://shop.site.example": html_response("<h1>No such app</h1>", status=404)},
        )

        assert report["vulnerable"] is True
        assert report["service"] == "Heroku"
        assert report["cname"] == "myapp.herokuapp.com"
        assert report["status"] == STATUS_VULNERABLE
        assert report["details"] == (
            "The domain points to Heroku (myapp.herokuapp.com) but the resource appears to be unclaimed."
        )

    def test_no_cname(self, settings):
        report, transport = self._run(settings, {})

        assert report["vulnerable"] is False
        assert report["status"] == STATUS_NO_CNAME
        assert report["cname"] is None
        assert transport.requests == []

    def test_unknown_service(self, settings):
        report, transport = self._run(settings, {"shop.site.example": ["origin.hosting.example"]})

        assert report["status"] == STATUS_UNKNOWN_SERVICE
        assert report["cname"] == "origin.hosting.example"
        assert transport.requests == []

    def test_claimed(self, settings):
        report, _ = self._run(
            settings,
            {"shop.site.example": ["shop.github.io"]},
            {"http://shop.site.example": html_response("<h1>Our shop</h1>")},
        )
        assert report["vulnerable"] is False
        assert report["service"] == "GitHub Pages"
        assert report["status"] == STATUS_CLAIMED

    def test_unverified(self, settings):
        report, _ = self._run(
            settings,
            {"shop.site.example": ["shop.github.io"]},
            {"http://shop.site.example": httpx.ConnectError("refused")},
        )
        assert report["vulnerable"] is False
        assert report["status"] == STATUS_UNVERIFIED

    def test_resolver_setup_failure_gives_envelope(self):
        """Test a resolver that cannot be built is reported, not raised."""
        settings = Settings(_env_file=None, takeover=TakeoverConfig(nameservers=["not-an-ip"]))
        check = TakeoverCheck(settings=settings, transport=RoutedTransport({}))
        report = run(check, url="shop.site.example")

        assert report["statusCode"] == 500
        assert report["error"].startswith("Failed to check for subdomain takeover:")
        assert report["partialResults"] == {}

import json
import unittest

import httpx

from probescan.checks.context import AuditContext
from probescan.checks.errors import UnknownRouteCheck
from probescan.checks.headers import BaselineHeadersCheck
from probescan.checks.monitoring import MonitoringProtectionCheck
from probescan.core.config import ScanSettings
from probescan.core.http import base_url_resolver, clients_for

from fakes import ADMIN_TOKEN, BASE_URL, HARDENED_HEADERS


class AuditTestCase(unittest.IsolatedAsyncioTestCase):

    async def run_check(self, check, handler):
        self.requests = []

        def recording(request):
            self.requests.append(request)
            return handler(request)

        settings = ScanSettings(request_timeout=1.0)
        async with clients_for(settings, BASE_URL, {"sid": "s"}, httpx.MockTransport(recording)) as clients:
            context = AuditContext(clients=clients, resolve_url=base_url_resolver(BASE_URL),
                                   admin_token=ADMIN_TOKEN, timeout=1.0)
            results = await check.run(context)
        return {r.id: r for r in results}


class TestBaselineHeadersCheck(AuditTestCase):

    async def test_hardened_response_passes(self):
        results = await self.run_check(BaselineHeadersCheck(),
                                       lambda r: httpx.Response(200, headers=HARDENED_HEADERS, json={"status": "ok"}))
        self.assertEqual(len(results), 10)
        self.assertTrue(all(r.status == "pass" for r in results.values()))
        request = self.requests[0]
        self.assertEqual(request.url.path, "/api/health")
        self.assertEqual(request.headers["x-admin-auth"], ADMIN_TOKEN)

    async def test_missing_csp_warns(self):
        headers = {k: v for k, v in HARDENED_HEADERS.items() if k != "content-security-policy"}
        results = await self.run_check(BaselineHeadersCheck(), lambda r: httpx.Response(200, headers=headers))
        finding = results["headers-required-content-security-policy"]
        self.assertEqual(finding.status, "warn")
        self.assertEqual(finding.category, "headers")
        self.assertIn("<absent>", finding.technical_evidence)
        self.assertEqual(results["headers-required-x-frame-options"].status, "pass")

    async def test_secret_in_body_fails(self):
        body = json.dumps({"status": "ok", "env": {"DATABASE_URL": "postgres://..."}})
        results = await self.run_check(BaselineHeadersCheck(),
                                       lambda r: httpx.Response(200, headers=HARDENED_HEADERS, text=body))
        finding = results["exposure-sensitive-health-body"]
        self.assertEqual(finding.status, "fail")
        self.assertIn("database_url", finding.details)

    async def test_unsafe_csp_tokens_warn(self):
        headers = dict(HARDENED_HEADERS)
        headers["content-security-policy"] = "script-src 'self' 'unsafe-inline' 'unsafe-eval'"
        results = await self.run_check(BaselineHeadersCheck(), lambda r: httpx.Response(200, headers=headers))
        self.assertEqual(results["headers-csp-unsafe-inline"].status, "warn")
        self.assertEqual(results["headers-csp-unsafe-eval"].status, "warn")
        self.assertEqual(results["headers-required-content-security-policy"].status, "pass")

    async def test_server_fingerprint_warns(self):
        for extra in ({"x-powered-by": "Express"}, {"server": "nginx/1.25.3"}):
            with self.subTest(extra=extra):
                headers = dict(HARDENED_HEADERS, **extra)
                results = await self.run_check(BaselineHeadersCheck(), lambda r: httpx.Response(200, headers=headers))
                self.assertEqual(results["exposure-server-fingerprint"].status, "warn")

        results = await self.run_check(BaselineHeadersCheck(),
                                       lambda r: httpx.Response(200, headers=dict(HARDENED_HEADERS, server="edge")))
        self.assertEqual(results["exposure-server-fingerprint"].status, "pass")

    async def test_unreachable_health_degrades_to_single_fail(self):
        def down(request):
            raise httpx.ConnectError("connection refused", request=request)

        results = await self.run_check(BaselineHeadersCheck(), down)
        self.assertEqual(list(results), ["headers-health-unreachable"])
        self.assertEqual(results["headers-health-unreachable"].status, "fail")
        self.assertIn("connection refused", results["headers-health-unreachable"].details)


class TestUnknownRouteCheck(AuditTestCase):

    async def status_for(self, code, body=""):
        results = await self.run_check(UnknownRouteCheck(), lambda r: httpx.Response(code, text=body))
        self.assertNotIn("cookie", self.requests[0].headers)
        return results["error-handling-unknown-route"]

    async def test_clean_404_passes(self):
        finding = await self.status_for(404, '{"error":"not found"}')
        self.assertEqual((finding.status, finding.category), ("pass", "error-handling"))
        self.assertEqual(finding.title, "Error handling on a nonexistent route")

    async def test_404_with_stack_trace_warns(self):
        finding = await self.status_for(404, "Error: Not Found\n    at Layer.handle (stack ...)")
        self.assertEqual(finding.status, "warn")

    async def test_other_status_classes(self):
        self.assertEqual((await self.status_for(200, "<html>app shell</html>")).status, "warn")
        self.assertEqual((await self.status_for(500, "boom")).status, "fail")


class TestMonitoringProtectionCheck(AuditTestCase):

    async def test_blocked_monitor_passes(self):
        results = await self.run_check(MonitoringProtectionCheck(), lambda r: httpx.Response(403))
        self.assertEqual(results["monitoring-admin-events-protection"].status, "pass")
        self.assertEqual(results["monitoring-admin-events-protection"].category, "monitoring")
        request = self.requests[0]
        self.assertEqual(request.url.params["limit"], "1")
        self.assertNotIn("authorization", request.headers)

    async def test_open_monitor_fails(self):
        results = await self.run_check(MonitoringProtectionCheck(), lambda r: httpx.Response(200, json={"events": []}))
        self.assertEqual(results["monitoring-admin-events-protection"].status, "fail")


if __name__ == "__main__":
    unittest.main()

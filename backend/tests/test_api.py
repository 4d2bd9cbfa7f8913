import unittest
from unittest.mock import AsyncMock, patch

from fastapi.testclient import TestClient

from probescan.main import app
from probescan.models.schemas import ScanReport, SecurityCheckResult


class TestScanApi(unittest.TestCase):

    def setUp(self):
        self.client = TestClient(app)

    def test_health(self):
        r = self.client.get("/health")
        self.assertEqual(r.status_code, 200)
        self.assertEqual(r.json(), {"status": "ok"})

    def test_scan_returns_report(self):
        report = ScanReport(
            checks=[SecurityCheckResult(id="monitoring-admin-events-protection", title="Monitor",
                                        category="monitoring", status="pass", details="ok",
                                        how_to_fix="none", technical_evidence="GET x -> 401")],
            total_probes=1,
        )
        with patch("probescan.main.run_scan", new=AsyncMock(return_value=report)) as run_scan:
            r = self.client.post("/scan", json={
                "url": "http://shop.example",
                "adminToken": "t0ken",
                "sessionCookies": {"sid": "abc"},
            })

        self.assertEqual(r.status_code, 200)
        body = r.json()
        self.assertEqual(body["totalProbes"], 1)
        self.assertEqual(body["checks"][0]["howToFix"], "none")

        args, kwargs = run_scan.call_args
        self.assertEqual(args[0]("/api/health"), "http://shop.example/api/health")
        self.assertEqual(args[1], "t0ken")
        self.assertEqual(kwargs["session_cookies"], {"sid": "abc"})

    def test_scan_rejects_invalid_url(self):
        r = self.client.post("/scan", json={"url": "not a url"})
        self.assertEqual(r.status_code, 422)


if __name__ == "__main__":
    unittest.main()

import os
import unittest
from unittest.mock import patch

from probescan.core.config import REQUEST_TIMEOUT_SECONDS, SCAN_CONCURRENCY, load_settings
from probescan.core.http import admin_headers, base_url_resolver, normalize_preview


@patch("probescan.core.config.load_dotenv", lambda: None)
class TestLoadSettings(unittest.TestCase):

    def test_defaults(self):
        with patch.dict(os.environ, {}, clear=True):
            settings = load_settings()
        self.assertEqual(settings.request_timeout, REQUEST_TIMEOUT_SECONDS)
        self.assertEqual(settings.request_timeout, 9.0)
        self.assertEqual(settings.concurrency, SCAN_CONCURRENCY)
        self.assertEqual(settings.concurrency, 14)
        self.assertTrue(settings.verify_tls)

    def test_environment_overrides(self):
        env = {
            "PROBESCAN_TIMEOUT": "3.5",
            "PROBESCAN_CONCURRENCY": "4",
            "PROBESCAN_VERIFY_TLS": "false",
            "PROBESCAN_CORS_ORIGINS": "https://admin.example, https://ops.example",
            "PROBESCAN_LOG_LEVEL": "debug",
        }
        with patch.dict(os.environ, env, clear=True):
            settings = load_settings()
        self.assertEqual(settings.request_timeout, 3.5)
        self.assertEqual(settings.concurrency, 4)
        self.assertFalse(settings.verify_tls)
        self.assertEqual(settings.cors_origins, ["https://admin.example", "https://ops.example"])
        self.assertEqual(settings.log_level, "DEBUG")

    def test_invalid_values_fail_fast(self):
        for env in ({"PROBESCAN_TIMEOUT": "soon"}, {"PROBESCAN_CONCURRENCY": "0"}):
            with self.subTest(env=env), patch.dict(os.environ, env, clear=True):
                with self.assertRaises(ValueError):
                    load_settings()


class TestHttpHelpers(unittest.TestCase):

    def test_base_url_resolver_keeps_base_path_and_query(self):
        resolve = base_url_resolver("https://shop.example/v2/")
        self.assertEqual(resolve("/api/health?probe=1"), "https://shop.example/v2/api/health?probe=1")

    def test_normalize_preview(self):
        self.assertEqual(normalize_preview("  a\n\n b\t c "), "a b c")
        self.assertEqual(len(normalize_preview("y" * 1000)), 220)
        self.assertEqual(normalize_preview(""), "")

    def test_admin_headers_forward_token_as_is(self):
        headers = admin_headers("not.a.jwt")
        self.assertEqual(headers["Authorization"], "Bearer not.a.jwt")
        self.assertEqual(admin_headers(""), {})


if __name__ == "__main__":
    unittest.main()

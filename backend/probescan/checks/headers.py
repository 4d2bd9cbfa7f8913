import logging
import re
from typing import List

from probescan.checks.context import AuditContext, finding
from probescan.core.http import admin_headers, describe_error, fetch, normalize_preview
from probescan.models.schemas import SecurityCheckResult

logger = logging.getLogger(__name__)

BASELINE_PATH = "/api/health"

REQUIRED_HEADERS = [
    "x-content-type-options",
    "x-frame-options",
    "referrer-policy",
    "content-security-policy",
    "permissions-policy",
    "strict-transport-security",
]

STACK_FINGERPRINT = re.compile(r"express|nginx|apache|vite|node", re.IGNORECASE)

EXPOSURE_KEYWORDS = ["password", "secret", "token", "apikey", "database_url", "private_key"]


class BaselineHeadersCheck:
    """
    One credentialed GET on the health endpoint, inspected for security
    headers, CSP weaknesses, stack fingerprinting and secrets in the body.
    """
    key = "headers-baseline"
    title = "Header and exposure validation"

    def _required_header(self, name: str, value: str, status_code: int) -> SecurityCheckResult:
        if value:
            return finding(f"headers-required-{name}", f"Required header: {name}", "headers", "pass",
                           "Header present with a configured value.",
                           "No urgent change for this header. Keep watching for regressions.",
                           f"GET {BASELINE_PATH} -> {status_code}; {name}={normalize_preview(value)}")
        return finding(f"headers-required-{name}", f"Required header: {name}", "headers", "warn",
                       f"Header missing from the {BASELINE_PATH} response.",
                       f"Set the {name} header in the backend or reverse proxy to harden the response.",
                       f"GET {BASELINE_PATH} -> {status_code}; {name}=<absent>")

    def _csp_token(self, csp: str, name: str, fix: str) -> SecurityCheckResult:
        evidence = f"Current CSP: {normalize_preview(csp) or '<empty>'}"
        if f"'{name}'" in csp:
            return finding(f"headers-csp-{name}", f"CSP without {name}", "headers", "warn",
                           f"The CSP allows '{name}', weakening protection against injected code.",
                           fix, evidence)
        return finding(f"headers-csp-{name}", f"CSP without {name}", "headers", "pass",
                       f"The CSP does not allow '{name}'.", "No critical change needed here.", evidence)

    def _fingerprint(self, server: str, powered_by: str) -> SecurityCheckResult:
        evidence = (f"server={normalize_preview(server) or '<absent>'}; "
                    f"x-powered-by={normalize_preview(powered_by) or '<absent>'}")
        if powered_by.strip() or STACK_FINGERPRINT.search(server):
            return finding("exposure-server-fingerprint", "Server fingerprint exposure", "exposure", "warn",
                           "The response exposes the stack signature (Server/X-Powered-By), "
                           "which helps an attacker fingerprint the target.",
                           "Remove X-Powered-By and minimize the Server header at the proxy/web server.",
                           evidence)
        return finding("exposure-server-fingerprint", "Server fingerprint exposure", "exposure", "pass",
                       "No direct stack fingerprint was found in common headers.",
                       "No critical change now. Keep edge headers hardened.", evidence)

    def _sensitive_body(self, body: str) -> SecurityCheckResult:
        lower = body.lower()
        leaked = next((k for k in EXPOSURE_KEYWORDS if k in lower), None)
        evidence = f"GET {BASELINE_PATH} body-preview={normalize_preview(body) or '<empty>'}"
        if leaked:
            return finding("exposure-sensitive-health-body", "Secret exposure in public response", "exposure",
                           "fail", f"The public response contains potentially sensitive data (keyword: {leaked}).",
                           "Remove every secret from public responses; keep sensitive diagnostics in internal logs.",
                           evidence)
        return finding("exposure-sensitive-health-body", "Secret exposure in public response", "exposure",
                       "pass", f"No explicit secret was found in the {BASELINE_PATH} body.",
                       "No critical change needed here.", evidence)

    async def run(self, context: AuditContext) -> List[SecurityCheckResult]:
        try:
            r = await fetch(context.clients.credentialed, "GET", context.resolve_url(BASELINE_PATH),
                            timeout=context.timeout, headers=admin_headers(context.admin_token))
        except Exception as e:
            message = describe_error(e, context.timeout)
            logger.warning("baseline header request failed: %s", message)
            return [finding("headers-health-unreachable", self.title, "headers", "fail",
                            f"Security headers could not be validated because {BASELINE_PATH} failed: {message}",
                            "Keep the health endpoint available and enforce header policy at the reverse proxy.",
                            f"Error requesting {BASELINE_PATH}: {message}")]

        checks = [self._required_header(name, r.headers.get(name, ""), r.status_code)
                  for name in REQUIRED_HEADERS]
        csp = r.headers.get("content-security-policy", "")
        checks.append(self._csp_token(csp, "unsafe-inline",
                                       "Remove 'unsafe-inline' from the CSP and move scripts/styles to nonces or hashes."))
        checks.append(self._csp_token(csp, "unsafe-eval",
                                       "Remove 'unsafe-eval' and stop relying on eval/new Function in bundled code."))
        checks.append(self._fingerprint(r.headers.get("server", ""), r.headers.get("x-powered-by", "")))
        checks.append(self._sensitive_body(r.text))
        return checks

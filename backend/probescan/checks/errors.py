import logging
from typing import List

from probescan.checks.context import AuditContext, finding
from probescan.core.http import describe_error, fetch, normalize_preview
from probescan.models.schemas import SecurityCheckResult

logger = logging.getLogger(__name__)

UNKNOWN_ROUTE_PATH = "/api/__security_scan_unknown_route__"

STACK_TRACE_MARKERS = ("stack", "trace", "exception")


class UnknownRouteCheck:
    key = "error-handling-unknown-route"
    title = "Error handling on a nonexistent route"
    category = "error-handling"

    async def run(self, context: AuditContext) -> List[SecurityCheckResult]:
        try:
            r = await fetch(context.clients.anonymous, "GET", context.resolve_url(UNKNOWN_ROUTE_PATH),
                            timeout=context.timeout)
        except Exception as e:
            message = describe_error(e, context.timeout)
            logger.warning("unknown-route request failed: %s", message)
            return [finding(self.key, self.title, self.category, "fail",
                            f"Could not test the nonexistent-route behaviour: {message}",
                            "Install a global 404 fallback with a controlled response and no stack trace.",
                            f"Error testing the nonexistent route: {message}")]

        lower = r.text.lower()
        leaks_stack = any(marker in lower for marker in STACK_TRACE_MARKERS)
        evidence = f"GET {UNKNOWN_ROUTE_PATH} -> {r.status_code}; body={normalize_preview(r.text)}"
        fix = "Standardize the nonexistent-route fallback to 404 and never expose a stack trace publicly."

        if r.status_code == 404 and not leaks_stack:
            return [finding(self.key, self.title, self.category, "pass",
                            "A nonexistent route returns 404 with no sign of internal leakage.",
                            "No critical change now. Keep the 404 response clean and consistent.",
                            evidence)]
        if r.status_code == 404:
            return [finding(self.key, self.title, self.category, "warn",
                            "A nonexistent route returns 404, but the body hints at leaked internal details.",
                            fix, evidence)]
        status = "fail" if r.status_code >= 500 else "warn"
        return [finding(self.key, self.title, self.category, status,
                        f"A nonexistent route answered {r.status_code} instead of the expected 404.",
                        fix, evidence)]

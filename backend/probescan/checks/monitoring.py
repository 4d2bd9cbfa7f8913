import logging
from typing import List

from probescan.checks.context import AuditContext, finding
from probescan.core.http import describe_error, fetch
from probescan.models.schemas import SecurityCheckResult

logger = logging.getLogger(__name__)

EVENTS_PATH = "/api/admin/security-test/events?limit=1"


class MonitoringProtectionCheck:
    """The security event monitor must refuse anonymous callers."""
    key = "monitoring-admin-events-protection"
    title = "Security monitor protection (anonymous access)"
    category = "monitoring"

    async def run(self, context: AuditContext) -> List[SecurityCheckResult]:
        try:
            r = await fetch(context.clients.anonymous, "GET", context.resolve_url(EVENTS_PATH),
                            timeout=context.timeout)
        except Exception as e:
            message = describe_error(e, context.timeout)
            logger.warning("monitor protection request failed: %s", message)
            return [finding(self.key, self.title, self.category, "fail",
                            f"Could not test the event monitor protection: {message}",
                            "Check that the route is available and guarded by the admin authorization middleware.",
                            f"Error on {EVENTS_PATH}: {message}")]

        evidence = f"GET {EVENTS_PATH} (anon) -> {r.status_code}"
        if r.status_code in (401, 403):
            return [finding(self.key, self.title, self.category, "pass",
                            "The admin event monitor is protected against anonymous access.",
                            "No critical change now.", evidence)]
        return [finding(self.key, self.title, self.category, "fail",
                        f"The event monitor answered {r.status_code} without explicitly blocking "
                        "anonymous callers.",
                        "Guard the admin monitor with admin authorization middleware (401/403).",
                        evidence)]

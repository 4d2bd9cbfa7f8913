import asyncio
import logging
from typing import List, Mapping, Optional

import httpx

from probescan.checks.context import AuditContext
from probescan.checks.errors import UnknownRouteCheck
from probescan.checks.headers import BaselineHeadersCheck
from probescan.checks.monitoring import MonitoringProtectionCheck
from probescan.core.catalog import build_probe_catalog
from probescan.core.config import ScanSettings
from probescan.core.executor import execute_probe
from probescan.core.http import UrlResolver, clients_for
from probescan.core.scheduler import ProgressCallback, run_probe_pool
from probescan.models.schemas import SEVERITY_ORDER, ScanReport, SecurityCheckResult

logger = logging.getLogger(__name__)

CHECKS = [
    BaselineHeadersCheck(),
    UnknownRouteCheck(),
    MonitoringProtectionCheck(),
]


def aggregate(catalog_results: List[SecurityCheckResult],
              audit_results: List[SecurityCheckResult]) -> ScanReport:
    ordered = sorted(
        catalog_results + audit_results,
        key=lambda c: (SEVERITY_ORDER[c.status], c.title.casefold()),
    )
    return ScanReport(checks=ordered, total_probes=len(catalog_results) + len(audit_results))


async def run_audit(context: AuditContext) -> List[SecurityCheckResult]:
    results: List[SecurityCheckResult] = []
    for check in CHECKS:
        results.extend(await check.run(context))
    return results


async def run_scan(resolve_url: UrlResolver, admin_token: str,
                   on_progress: Optional[ProgressCallback] = None, *,
                   settings: Optional[ScanSettings] = None,
                   session_cookies: Optional[Mapping[str, str]] = None,
                   transport: Optional[httpx.AsyncBaseTransport] = None,
                   abort: Optional[asyncio.Event] = None) -> ScanReport:
    settings = settings or ScanSettings()
    probes = build_probe_catalog()
    logger.info("starting scan: %d probes, concurrency %d", len(probes), settings.concurrency)

    async with clients_for(settings, resolve_url("/"), session_cookies, transport) as clients:
        async def run_one(probe):
            return await execute_probe(clients, probe, resolve_url, admin_token, settings.request_timeout)

        catalog_results = await run_probe_pool(probes, run_one, settings.concurrency,
                                               on_progress=on_progress, abort=abort)
        audit_results = await run_audit(AuditContext(
            clients=clients,
            resolve_url=resolve_url,
            admin_token=admin_token,
            timeout=settings.request_timeout,
        ))

    report = aggregate(catalog_results, audit_results)
    logger.info("scan finished: %d results (%s)", report.total_probes, report.summary())
    return report

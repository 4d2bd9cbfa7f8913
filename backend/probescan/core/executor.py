import logging
import time
from typing import Any, Dict, Optional

from probescan.core.evaluator import default_fix, evaluate_probe_result
from probescan.core.http import (
    ScanClients,
    UrlResolver,
    admin_headers,
    describe_error,
    fetch,
    json_bytes,
    normalize_preview,
)
from probescan.models.schemas import ProbeDefinition, SecurityCheckResult

logger = logging.getLogger(__name__)

BODYLESS_METHODS = ("GET", "HEAD", "OPTIONS")


def build_probe_body(probe: ProbeDefinition) -> Optional[Dict[str, Any]]:
    if probe.method in BODYLESS_METHODS:
        return None
    if probe.body is not None:
        return probe.body
    return {"probe": "security-scan", "timestamp": int(time.time() * 1000)}


def build_probe_headers(probe: ProbeDefinition, admin_token: str, has_body: bool) -> Dict[str, str]:
    headers: Dict[str, str] = {}
    if has_body:
        headers["Content-Type"] = "application/json"
    if probe.credential_mode == "admin":
        headers.update(admin_headers(admin_token))
    return headers


async def execute_probe(clients: ScanClients, probe: ProbeDefinition, resolve_url: UrlResolver,
                        admin_token: str, timeout: float) -> SecurityCheckResult:
    """
    Run one probe and classify it. Never raises: transport errors and
    timeouts become a ``fail`` result for this probe only.
    """
    body = build_probe_body(probe)
    headers = build_probe_headers(probe, admin_token, body is not None)
    client = clients.for_mode(probe.credential_mode)

    try:
        response = await fetch(
            client,
            probe.method,
            resolve_url(probe.path),
            timeout=timeout,
            headers=headers,
            content=json_bytes(body) if body is not None else None,
        )
    except Exception as e:
        message = describe_error(e, timeout)
        logger.debug("probe %s failed: %s", probe.id, message)
        return SecurityCheckResult(
            id=probe.id,
            title=probe.title,
            category=probe.category,
            status="fail",
            details=f"Technical failure while running the check: {message}",
            how_to_fix=default_fix(probe.expectation, probe.path),
            technical_evidence=f"{probe.method} {probe.path} -> execution error: {message}",
        )

    evidence = f"{probe.method} {probe.path} -> {response.status_code}"
    preview = normalize_preview(response.text)
    if preview:
        evidence += f" | body: {preview}"

    verdict = evaluate_probe_result(probe.expectation, response.status_code, probe.path)
    return SecurityCheckResult(
        id=probe.id,
        title=probe.title,
        category=probe.category,
        status=verdict.status,
        details=verdict.details,
        how_to_fix=verdict.how_to_fix,
        technical_evidence=evidence,
    )

from dataclasses import dataclass

from probescan.core.http import ScanClients, UrlResolver
from probescan.models.schemas import SecurityCheckResult


@dataclass(frozen=True)
class AuditContext:
    clients: ScanClients
    resolve_url: UrlResolver
    admin_token: str
    timeout: float


def finding(check_id: str, title: str, category: str, status: str, details: str,
            how_to_fix: str, evidence: str) -> SecurityCheckResult:
    return SecurityCheckResult(
        id=check_id,
        title=title,
        category=category,
        status=status,          # pass / warn / fail
        details=details,
        how_to_fix=how_to_fix,
        technical_evidence=evidence,
    )

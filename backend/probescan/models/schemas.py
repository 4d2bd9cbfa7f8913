from typing import Literal, List, Dict, Any, Optional
from pydantic import BaseModel, ConfigDict, HttpUrl, Field
from pydantic.alias_generators import to_camel

Status = Literal["pass", "warn", "fail"]

Category = Literal[
    "auth",
    "authorization",
    "headers",
    "api-public",
    "api-private",
    "api-admin",
    "input-validation",
    "error-handling",
    "monitoring",
    "exposure",
]

Method = Literal["GET", "HEAD", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"]

CredentialMode = Literal["anonymous", "session", "admin"]

Expectation = Literal[
    "no-5xx",
    "auth-blocked",
    "admin-blocked",
    "admin-accessible",
    "method-should-not-succeed",
    "reject-or-block",
]

# fail sorts first
SEVERITY_ORDER: Dict[str, int] = {"fail": 0, "warn": 1, "pass": 2}


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)


class ProbeDefinition(_CamelModel):
    id: str
    title: str
    category: Category
    path: str
    method: Method
    credential_mode: CredentialMode
    expectation: Expectation
    body: Optional[Dict[str, Any]] = None


class ProbeVerdict(_CamelModel):
    status: Status
    details: str
    how_to_fix: str


class SecurityCheckResult(_CamelModel):
    id: str
    title: str
    category: Category
    status: Status
    details: str
    how_to_fix: str
    technical_evidence: str


class ScanReport(_CamelModel):
    checks: List[SecurityCheckResult] = Field(default_factory=list)
    total_probes: int = 0

    def summary(self) -> Dict[str, int]:
        counts = {"fail": 0, "warn": 0, "pass": 0}
        for check in self.checks:
            counts[check.status] += 1
        return counts

    def by_category(self) -> Dict[str, List[SecurityCheckResult]]:
        grouped: Dict[str, List[SecurityCheckResult]] = {}
        for check in self.checks:
            grouped.setdefault(check.category, []).append(check)
        return grouped


class ScanRequest(_CamelModel):
    url: HttpUrl
    admin_token: str = ""
    session_cookies: Dict[str, str] = Field(default_factory=dict)

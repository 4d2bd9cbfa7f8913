from probescan.models.schemas import Expectation, ProbeVerdict

METHOD_RESTRICTED_CODES = frozenset({400, 401, 403, 404, 405, 415, 422})


def default_fix(expectation: str, path: str) -> str:
    if expectation == "auth-blocked":
        return (f"Require login on {path}: validate the session/token and answer 401/403 "
                "to any request without a valid credential.")
    if expectation == "admin-blocked":
        return (f"Restrict {path} to the admin role, validate the admin token and deny "
                "ordinary users with 403.")
    if expectation == "admin-accessible":
        return (f"Make sure an authenticated admin can reliably reach {path}. Review the session "
                "cookie, the admin token and the authorization middleware.")
    if expectation == "method-should-not-succeed":
        return (f"Block unexpected methods on {path} (ideally 405/403/401) and never allow "
                "a mutation from an anonymous request.")
    if expectation == "reject-or-block":
        return (f"Harden input validation on {path}: sanitize the payload and answer 4xx for "
                "invalid or malicious data, never 5xx.")
    if expectation == "no-5xx":
        return (f"Avoid 5xx on {path} with defensive validation, exception handling and "
                "controlled client-error responses.")
    return (f"Review the security policy of {path} and apply explicit per-method, "
            "authentication and error-handling rules.")


def _verdict(status: str, details: str, how_to_fix: str) -> ProbeVerdict:
    return ProbeVerdict(status=status, details=details, how_to_fix=how_to_fix)


def evaluate_probe_result(expectation: Expectation, status_code: int, path: str) -> ProbeVerdict:
    """
    Classify one observed status code against the probe's expectation.

    The status/expectation table is the contract; the wording is templated
    per expectation, not per route.
    """
    ok = 200 <= status_code < 400
    client_error = 400 <= status_code < 500
    server_error = status_code >= 500
    blocked = status_code in (401, 403)
    fix = default_fix(expectation, path)

    if expectation == "no-5xx":
        if ok:
            return _verdict("pass", f"The route answered steadily ({status_code}) with no server error.",
                            "No action needed now. Keep monitoring to preserve stability in production.")
        if client_error:
            return _verdict("warn", f"The route answered {status_code}. No 5xx, but the blocking/validation "
                                    "behaviour deserves a review.", fix)
        if server_error:
            return _verdict("fail", f"The route returned {status_code}, an internal server error (5xx).", fix)
        return _verdict("fail", f"The route returned an unexpected status ({status_code}).", fix)

    if expectation == "auth-blocked":
        if blocked:
            return _verdict("pass", f"Without login the route blocked correctly ({status_code}).",
                            "Anonymous access is correctly denied. Keep the authorization rule active.")
        if status_code in (404, 405):
            return _verdict("warn", f"The route answered {status_code}. Access was not opened, but the "
                                    "protection was not an explicit 401/403.", fix)
        return _verdict("fail", f"Without login the route answered {status_code} and did not block "
                                "as expected.", fix)

    if expectation == "admin-blocked":
        if blocked:
            return _verdict("pass", f"Access without admin was blocked correctly ({status_code}).",
                            "Admin protection is correct for unprivileged requests.")
        if status_code in (404, 405):
            return _verdict("warn", f"The route answered {status_code}. The surface stayed closed, but an "
                                    "explicit authorization response (401/403) is missing.", fix)
        return _verdict("fail", f"The admin route answered {status_code} without blocking "
                                "unprivileged access.", fix)

    if expectation == "admin-accessible":
        if ok:
            return _verdict("pass", f"With an admin session the route answered normally ({status_code}).",
                            "No urgent fix. Keep monitoring availability of the admin route.")
        if blocked:
            return _verdict("fail", f"Even with the admin session/token the route answered {status_code}.", fix)
        if client_error:
            return _verdict("warn", f"With an admin session the route answered {status_code}. There may be "
                                    "extra validation or a contract mismatch.", fix)
        return _verdict("fail", f"With an admin session the route returned {status_code} (internal error).", fix)

    if expectation == "method-should-not-succeed":
        if status_code in METHOD_RESTRICTED_CODES:
            return _verdict("pass", f"The unexpected method was blocked/rejected with {status_code}.",
                            "Expected behaviour. Keep the per-method restriction on this route.")
        if server_error:
            return _verdict("fail", f"The unexpected method caused an internal error ({status_code}).", fix)
        return _verdict("fail", f"The unexpected method answered {status_code} and may allow "
                                "unintended behaviour.", fix)

    if expectation == "reject-or-block":
        if blocked or client_error:
            return _verdict("pass", f"The malformed payload was blocked/rejected with {status_code}.",
                            "Adequate protection for this invalid input.")
        if server_error:
            return _verdict("fail", f"The malicious/bad payload caused an internal error ({status_code}).", fix)
        return _verdict("fail", f"The malformed payload answered {status_code}, a sign of insufficient "
                                "validation.", fix)

    return _verdict("warn", f"Unclassified result ({status_code}).", fix)

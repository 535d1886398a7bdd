"""
Error taxonomy for the token & session lifecycle.

Route handlers raise these; the exception handler in accessgate.main maps them
to HTTP responses. NotFound deliberately covers both "never existed" and
"expired": callers cannot tell the two apart.
"""


class AccessGateError(Exception):
    status_code = 500
    code = "error"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.code)
        self.message = message or self.code


class Unauthorized(AccessGateError):
    status_code = 401
    code = "unauthorized"


class NotFound(AccessGateError):
    status_code = 404
    code = "not_found"


class AlreadyConsumed(AccessGateError):
    status_code = 410
    code = "already_consumed"


class Malformed(AccessGateError):
    status_code = 400
    code = "malformed"


class UpstreamFailure(AccessGateError):
    status_code = 503
    code = "upstream_failure"

"""Auth error taxonomy.

Learn: every failure the auth core can produce is one of these classes.
Each carries the HTTP status and a stable machine-readable code; the
exception handler in main.py turns them into JSON responses. Anything
that is not an AuthError is an InternalError by the time it reaches
the client.
"""


class AuthError(Exception):
    """Base class. Subclasses set status_code, code and a default detail."""

    status_code = 500
    code = "auth_error"
    detail = "Authentication error"

    def __init__(self, detail: str | None = None):
        if detail is not None:
            self.detail = detail
        super().__init__(self.detail)


class InvalidCredentialFormat(AuthError):
    """Malformed username/password, rejected before any storage access."""

    status_code = 400
    code = "invalid_credential_format"
    detail = "Invalid credential format"


class InvalidUsernameOrPassword(AuthError):
    """Same error for unknown user and wrong password."""

    status_code = 401
    code = "invalid_username_or_password"
    detail = "Invalid username or password"


class IncompleteExternalProfile(AuthError):
    status_code = 403
    code = "incomplete_external_profile"
    detail = "External profile is missing a name or email"


class UserNotFound(AuthError):
    status_code = 404
    code = "user_not_found"
    detail = "User not found"


class Unauthorized(AuthError):
    status_code = 401
    code = "unauthorized"
    detail = "Unauthorized"


class InternalError(AuthError):
    status_code = 500
    code = "internal_error"
    detail = "Internal server error"

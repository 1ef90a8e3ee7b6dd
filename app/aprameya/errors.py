from __future__ import annotations


class AccessError(Exception):
    """
    Base class for request-level failures of the access layer.
    None of these are process-fatal; the HTTP layer maps them to JSON responses.
    """

    status_code = 400
    code = "access_error"
    default_message = "Request failed."

    def __init__(self, message: str | None = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code}


class ValidationError(AccessError):
    status_code = 400
    code = "validation_error"
    default_message = "Invalid payload."

    def __init__(self, errors: list[str] | str | None = None):
        if isinstance(errors, str):
            errors = [errors]
        self.errors = list(errors or [])
        super().__init__("; ".join(self.errors) or None)

    def to_dict(self) -> dict:
        d = super().to_dict()
        d["errors"] = self.errors
        return d


class InvalidCredentials(AccessError):
    status_code = 401
    code = "invalid_credentials"
    default_message = "Invalid credentials."


class Unauthenticated(AccessError):
    status_code = 401
    code = "unauthenticated"
    default_message = "Not authenticated."


class Forbidden(AccessError):
    status_code = 403
    code = "forbidden"
    default_message = "Not authorized."


class NotFound(AccessError):
    status_code = 404
    code = "not_found"
    default_message = "Not found."


class DuplicateUsername(AccessError):
    status_code = 409
    code = "duplicate_username"
    default_message = "Username already exists."


class DuplicateEmail(AccessError):
    status_code = 409
    code = "duplicate_email"
    default_message = "Email already exists."


class DuplicateRegistration(AccessError):
    status_code = 409
    code = "duplicate_registration"
    default_message = "Already registered for this event."

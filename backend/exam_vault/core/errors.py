"""
Error taxonomy shared by the workflow, the repository and the routers.

Every error carries the HTTP status it maps to; ``main`` registers a single
handler that renders them as ``{"success": false, "error": ...}``.
"""
from typing import Dict, List, Optional


class ExamVaultError(Exception):
    status_code = 500
    default_message = "Internal server error. Please try again later."

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.message}


class AuthenticationRequired(ExamVaultError):
    status_code = 401
    default_message = "Authentication required. Please sign in."


class SignInRejected(ExamVaultError):
    status_code = 401
    default_message = "Sign-in could not be completed. Please try again."


class AuthorizationDenied(ExamVaultError):
    status_code = 403
    default_message = "Admin privileges required."


class NotFound(ExamVaultError):
    status_code = 404
    default_message = "Paper not found."


class ValidationFailed(ExamVaultError):
    """Carries the offending field names, in request order"""
    status_code = 400

    def __init__(self, fields: List[str], errors: Optional[Dict[str, str]] = None,
                 message: Optional[str] = None):
        self.fields = list(fields)
        self.errors = dict(errors or {})
        if message is None:
            message = "Invalid or missing fields: " + ", ".join(self.fields)
        super().__init__(message)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["fields"] = self.fields
        if self.errors:
            data["details"] = self.errors
        return data


class UpstreamStorageFailure(ExamVaultError):
    """Repository or object store transport failure; detail stays in the logs"""
    status_code = 503
    default_message = "Storage service unavailable. Please try again later."

"""
Custom exceptions for registration, storage and backend error handling
"""

from typing import Optional


class AccountMachineError(Exception):
    """Base exception class for all account machine errors"""

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[dict] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or "ACCOUNT_MACHINE_ERROR"
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} (Code: {self.error_code}, Details: {self.details})"
        return f"{self.message} (Code: {self.error_code})"


class ConfigurationError(AccountMachineError):
    """Exception raised when configuration values are missing or invalid"""

    def __init__(self, message: str, setting: Optional[str] = None):
        details = {"setting": setting} if setting else None
        super().__init__(message, "CONFIGURATION_ERROR", details)
        self.setting = setting


class NetworkError(AccountMachineError):
    """Exception raised when network-related errors occur"""

    def __init__(self, message: str, url: Optional[str] = None, status_code: Optional[int] = None):
        error_details = {}
        if url:
            error_details["url"] = url
        if status_code:
            error_details["status_code"] = status_code

        super().__init__(message, "NETWORK_ERROR", error_details)
        self.url = url
        self.status_code = status_code


class RegistrationFailureError(AccountMachineError):
    """Exception raised when registration fails with specific reasons"""

    def __init__(self, reason: str, failure_type: str = "unknown", details: Optional[dict] = None):
        message = f"Registration failed: {reason}"
        error_details = {
            "reason": reason,
            "failure_type": failure_type
        }
        if details:
            error_details.update(details)

        super().__init__(message, "REGISTRATION_FAILURE", error_details)
        self.reason = reason
        self.failure_type = failure_type


class UnexpectedResponseCodeError(RegistrationFailureError):
    """Exception raised when the endpoint answers with a code other than 200 or 0"""

    def __init__(self, code, server_message: Optional[str] = None):
        reason = f"endpoint returned code {code}"
        if server_message:
            reason += f": {server_message}"

        super().__init__(reason, "unexpected_code", {"code": code, "server_message": server_message})
        self.code = code
        self.server_message = server_message


class StorageError(AccountMachineError):
    """Exception raised when the local store cannot be read or written"""

    def __init__(self, message: str, path: Optional[str] = None):
        details = {"path": path} if path else None
        super().__init__(message, "STORAGE_ERROR", details)
        self.path = path


class RemoteStoreError(AccountMachineError):
    """Exception raised when a hosted table operation fails"""

    def __init__(self, table: str, operation: str, reason: str, status_code: Optional[int] = None):
        message = f"Failed to {operation} on table '{table}': {reason}"
        details = {"table": table, "operation": operation}
        if status_code:
            details["status_code"] = status_code

        super().__init__(message, "REMOTE_STORE_ERROR", details)
        self.table = table
        self.operation = operation
        self.reason = reason
        self.status_code = status_code


class AuthenticationError(AccountMachineError):
    """Exception raised when sign-up, sign-in or sign-out fails"""

    # Substring of the backend message -> text shown to the user
    FRIENDLY_MESSAGES = {
        "Invalid login": "Invalid email or password",
        "Email not confirmed": (
            "Email address is not confirmed. Disable 'Confirm email' in the "
            "Supabase authentication settings or confirm the address first"
        ),
    }

    def __init__(self, message: str, status_code: Optional[int] = None):
        details = {"status_code": status_code} if status_code else None
        super().__init__(message or "Unexpected authentication error", "AUTH_ERROR", details)
        self.status_code = status_code

    @property
    def user_message(self) -> str:
        """Message suitable for displaying to the user"""
        for needle, friendly in self.FRIENDLY_MESSAGES.items():
            if needle in self.message:
                return friendly
        return self.message

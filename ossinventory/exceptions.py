"""Custom exceptions for ossinventory."""

from __future__ import annotations


class InventoryError(Exception):
    """Base exception for all inventory errors."""


class ScanError(InventoryError):
    """Raised when a single file cannot be read during fingerprinting."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"failed to fingerprint {path}: {reason}")


class ConfigurationError(InventoryError):
    """Raised for missing credentials or an unusable workspace."""


class ServiceError(InventoryError):
    """Raised when the inventory service call does not succeed."""

    def __init__(self, message: str, request_token: str | None = None):
        self.request_token = request_token
        super().__init__(message)


class TransientNetworkError(ServiceError):
    """Connection-level failure; safe to retry."""


class NonRetryableServiceError(ServiceError):
    """Server rejected the request for reasons unrelated to connectivity."""


class RetriesExhaustedError(ServiceError):
    """Every attempt allowed by the retry policy failed with a transient error."""

    def __init__(self, attempts: int, last_error: ServiceError):
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(
            f"connection failed after {attempts} attempt(s): {last_error}",
            request_token=last_error.request_token,
        )

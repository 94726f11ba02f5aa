"""Custom exceptions for the marketplace API"""

from typing import Dict, Optional


class MarketplaceException(Exception):
    """Base exception for the marketplace API"""

    status_code = 500

    def __init__(self, message: str = "", errors: Optional[Dict[str, str]] = None):
        super().__init__(message)
        self.message = message
        self.errors = errors or {}


class InvalidInput(MarketplaceException):
    """Raised when request input fails validation"""
    status_code = 400


class AuthenticationError(MarketplaceException):
    """Raised when the bearer token is missing or cannot be verified"""
    status_code = 401


class AuthorizationError(MarketplaceException):
    """Raised when a verified caller lacks the required role"""
    status_code = 403


class NotFound(MarketplaceException):
    """Raised when a referenced entity does not exist"""
    status_code = 404


class Conflict(MarketplaceException):
    """Raised when a unique identity already exists"""
    status_code = 409


class InternalError(MarketplaceException):
    """Raised for unexpected server-side failures"""
    status_code = 500


class StorageError(InternalError):
    """Raised when the document store fails"""
    pass


class ConfigurationError(InternalError):
    """Raised when configuration is invalid"""
    pass

"""
Error handling module for the Secret Mirror operator.

This module provides an error hierarchy that integrates with kopf
and provides clear categorization for different types of failures.
"""

from .operator_errors import (
    AlreadyOwnedError,
    ConfigurationError,
    ExternalServiceError,
    KubernetesAPIError,
    NotFoundError,
    OperatorError,
    PermanentError,
    TemporaryError,
    ValidationError,
)

__all__ = [
    "OperatorError",
    "ValidationError",
    "TemporaryError",
    "PermanentError",
    "ExternalServiceError",
    "KubernetesAPIError",
    "NotFoundError",
    "AlreadyOwnedError",
    "ConfigurationError",
]

"""
Error hierarchy of the Secret Mirror operator.

Each error knows whether retrying can help. Handlers turn that into kopf's
retry signals through ``as_kopf_error``.
"""

import kopf


class OperatorError(Exception):
    """
    Base class for all errors raised by the operator.

    Args:
        message: What went wrong
        category: Coarse classification used in logs and metrics
        retryable: Whether kopf should run the handler again
        delay: Seconds kopf waits before the retry
        user_action: Hint for the cluster operator, appended to the message
        cause: Exception this error was translated from
    """

    def __init__(
        self,
        message: str,
        category: str,
        retryable: bool = True,
        delay: int = 30,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.retryable = retryable
        self.delay = delay
        self.user_action = user_action
        self.cause = cause

    def as_kopf_error(self) -> kopf.TemporaryError | kopf.PermanentError:
        if self.retryable:
            return kopf.TemporaryError(str(self), delay=self.delay)
        return kopf.PermanentError(str(self))

    def __str__(self) -> str:
        message = super().__str__()
        if self.user_action:
            return f"{message}\nAction required: {self.user_action}"
        return message


class ValidationError(OperatorError):
    """A SecretMirror or Secret holds a value the operator cannot work with."""

    def __init__(
        self, message: str, field: str | None = None, user_action: str | None = None
    ):
        if field:
            message = f"Validation error in field '{field}': {message}"
        super().__init__(
            message,
            category="validation",
            retryable=False,
            user_action=user_action or "Fix the resource so it matches the schema",
        )


class TemporaryError(OperatorError):
    def __init__(self, message: str, delay: int = 30, user_action: str | None = None):
        super().__init__(
            message,
            category="temporary",
            retryable=True,
            delay=delay,
            user_action=user_action,
        )


class PermanentError(OperatorError):
    def __init__(self, message: str, user_action: str | None = None):
        super().__init__(
            message,
            category="permanent",
            retryable=False,
            user_action=user_action or "Manual intervention required",
        )


class ExternalServiceError(OperatorError):
    """A call to a service outside the operator failed."""

    def __init__(
        self,
        service: str,
        message: str,
        retryable: bool = True,
        delay: int = 60,
        user_action: str | None = None,
        cause: Exception | None = None,
    ):
        super().__init__(
            f"{service} error: {message}",
            category="external",
            retryable=retryable,
            delay=delay,
            user_action=user_action or f"Check connectivity to {service}",
            cause=cause,
        )


# Rejections that come back the same on every retry
NON_RETRYABLE_REASONS = frozenset({"Forbidden", "Unauthorized", "Invalid"})


class KubernetesAPIError(ExternalServiceError):
    """The Kubernetes API rejected or failed a request."""

    def __init__(
        self,
        message: str,
        reason: str | None = None,
        status: int | None = None,
        retryable: bool = True,
        cause: Exception | None = None,
    ):
        if reason:
            message = f"{message} (reason: {reason})"
        super().__init__(
            "Kubernetes API",
            message,
            retryable=retryable and reason not in NON_RETRYABLE_REASONS,
            delay=10,
            user_action="Check the operator's RBAC permissions and API server health",
            cause=cause,
        )
        self.reason = reason
        self.status = status


class NotFoundError(OperatorError):
    """The object does not exist. Callers branch on this instead of failing."""

    def __init__(self, kind: str, namespace: str, name: str):
        super().__init__(
            f"{kind} {namespace}/{name} not found",
            category="not_found",
            retryable=False,
        )
        self.kind = kind
        self.namespace = namespace
        self.name = name


class AlreadyOwnedError(OperatorError):
    """A Secret already has a controller other than the SecretMirror claiming it."""

    def __init__(self, namespace: str, name: str, controller: str):
        super().__init__(
            f"Secret {namespace}/{name} is already controlled by {controller}",
            category="ownership",
            retryable=False,
            user_action="Remove the existing controller reference or rename the SecretMirror",
        )


class ConfigurationError(OperatorError):
    """The operator itself is misconfigured."""

    def __init__(
        self, message: str, retryable: bool = False, user_action: str | None = None
    ):
        super().__init__(
            message,
            category="configuration",
            retryable=retryable,
            user_action=user_action or "Review the operator's environment settings",
        )

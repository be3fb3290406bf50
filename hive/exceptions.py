"""python-hive exceptions."""

from __future__ import annotations

from asyncio import TimeoutError as _asyncioTimeoutError
from enum import Enum
from functools import cache
from typing import Any


class HiveException(Exception):
    """Base exception for library errors."""


class TransportError(HiveException):
    """Base exception for failures reaching the identity provider.

    The whole login attempt may be retried from scratch.
    """


class TimeoutError(TransportError, _asyncioTimeoutError):
    """Timeout exception for identity provider requests."""

    def __repr__(self) -> str:
        return HiveException.__repr__(self)

    def __str__(self) -> str:
        return HiveException.__str__(self)


class _ConnectionError(TransportError):
    """Connection exception for identity provider requests."""


class CryptoError(HiveException):
    """Malformed or protocol-violating SRP challenge parameters."""


class InvalidDeviceDescriptorError(HiveException, ValueError):
    """Trusted device data supplied by the caller is incomplete."""


class AuthenticationError(HiveException):
    """Base exception for identity provider rejections."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.error_code: CognitoErrorCode | None = kwargs.get("error_code")
        super().__init__(*args)

    def __repr__(self) -> str:
        err_code = self.error_code.__repr__() if self.error_code else ""
        return f"{self.__class__.__name__}({err_code})"

    def __str__(self) -> str:
        err_code = f" (error_code={self.error_code.name})" if self.error_code else ""
        return super().__str__() + err_code


class InvalidCredentialError(AuthenticationError):
    """The username, password or verification code was rejected."""


class AccountDisabledError(AuthenticationError):
    """The account cannot currently be used to log in."""


class ThrottledError(AuthenticationError):
    """The identity provider is rate limiting this account or client."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        #: Suggested number of seconds to wait before trying again, if known
        self.retry_after: float | None = kwargs.pop("retry_after", None)
        super().__init__(*args, **kwargs)


class DeviceNotTrustedError(AuthenticationError):
    """The trusted device was rejected during the device rounds.

    Callers may decide to retry the login without a trusted device.
    """


class RefreshExpiredError(AuthenticationError):
    """The refresh token was rejected, a full login is required."""


class UnsupportedChallengeError(AuthenticationError):
    """The identity provider issued a challenge this library cannot answer."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.challenge_name: str | None = kwargs.pop("challenge_name", None)
        super().__init__(*args, **kwargs)


class MfaRequiredError(AuthenticationError):
    """A code sent to the user is required to continue the login."""

    def __init__(self, *args: Any, **kwargs: Any) -> None:
        self.challenge_name: str | None = kwargs.pop("challenge_name", None)
        super().__init__(*args, **kwargs)


class DeviceConfirmationError(AuthenticationError):
    """Confirming the current client as a trusted device failed."""


class CognitoErrorCode(Enum):
    """Enum for Cognito identity provider error types."""

    def __str__(self) -> str:
        return self.name

    @staticmethod
    @cache
    def from_type(value: str) -> CognitoErrorCode:
        """Convert a ``__type`` value to a CognitoErrorCode.

        The type may be namespaced, e.g.
        ``com.amazonaws.cognito.identity.idp.model#NotAuthorizedException``.
        """
        return CognitoErrorCode(value.rsplit("#", 1)[-1])

    NOT_AUTHORIZED = "NotAuthorizedException"
    USER_NOT_FOUND = "UserNotFoundException"
    USER_NOT_CONFIRMED = "UserNotConfirmedException"
    PASSWORD_RESET_REQUIRED = "PasswordResetRequiredException"
    CODE_MISMATCH = "CodeMismatchException"
    EXPIRED_CODE = "ExpiredCodeException"
    TOO_MANY_REQUESTS = "TooManyRequestsException"
    LIMIT_EXCEEDED = "LimitExceededException"
    TOO_MANY_FAILED_ATTEMPTS = "TooManyFailedAttemptsException"
    RESOURCE_NOT_FOUND = "ResourceNotFoundException"
    INVALID_PARAMETER = "InvalidParameterException"
    INVALID_PASSWORD = "InvalidPasswordException"
    INVALID_USER_POOL_CONFIGURATION = "InvalidUserPoolConfigurationException"
    INVALID_LAMBDA_RESPONSE = "InvalidLambdaResponseException"
    UNEXPECTED_LAMBDA = "UnexpectedLambdaException"
    USER_LAMBDA_VALIDATION = "UserLambdaValidationException"
    FORBIDDEN = "ForbiddenException"
    INTERNAL_ERROR = "InternalErrorException"

    # Library internal for unknown error types
    INTERNAL_UNKNOWN_ERROR = "InternalUnknownError"


COGNITO_CREDENTIAL_ERRORS = [
    CognitoErrorCode.USER_NOT_FOUND,
    CognitoErrorCode.CODE_MISMATCH,
    CognitoErrorCode.EXPIRED_CODE,
]

COGNITO_ACCOUNT_DISABLED_ERRORS = [
    CognitoErrorCode.USER_NOT_CONFIRMED,
    CognitoErrorCode.PASSWORD_RESET_REQUIRED,
]

COGNITO_THROTTLING_ERRORS = [
    CognitoErrorCode.TOO_MANY_REQUESTS,
    CognitoErrorCode.LIMIT_EXCEEDED,
    CognitoErrorCode.TOO_MANY_FAILED_ATTEMPTS,
]

COGNITO_TRANSPORT_ERRORS = [
    CognitoErrorCode.INTERNAL_ERROR,
]

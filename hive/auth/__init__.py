"""Package containing the SRP login and session handling."""

from .cognito import CognitoClient
from .login import (
    AuthenticationOutcome,
    AuthState,
    ChallengeName,
    ChallengeRequired,
    Failed,
    LoginAttempt,
    Success,
    authenticate,
)
from .session import Session
from .srp import (
    ChallengeParameters,
    DeviceClaim,
    PasswordClaim,
    SrpContext,
    generate_device_verifier,
)

__all__ = [
    "AuthState",
    "AuthenticationOutcome",
    "ChallengeName",
    "ChallengeParameters",
    "ChallengeRequired",
    "CognitoClient",
    "DeviceClaim",
    "Failed",
    "LoginAttempt",
    "PasswordClaim",
    "Session",
    "SrpContext",
    "Success",
    "authenticate",
    "generate_device_verifier",
]

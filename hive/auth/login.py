"""State machine driving the SRP login against the Hive user pool.

A login is a strict sequence of rounds::

    INIT -> PASSWORD_VERIFIER -> [DEVICE_SRP_AUTH -> DEVICE_PASSWORD_VERIFIER]
         -> tokens

The device rounds only happen when a trusted device is supplied and the user
pool recognises it. A pool may also ask for an SMS code after the verifier
rounds, which has to come from the user.

>>> attempt = LoginAttempt(cognito, Credentials("user@example.com", "secret"))
>>> session = await attempt.run()

Every round can also be driven by hand with :meth:`LoginAttempt.step`, which
returns one of :class:`Success`, :class:`ChallengeRequired` or :class:`Failed`.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

from ..credentials import Credentials, TrustedDevice
from ..exceptions import (
    AuthenticationError,
    CognitoErrorCode,
    DeviceNotTrustedError,
    HiveException,
    MfaRequiredError,
    ThrottledError,
    UnsupportedChallengeError,
)
from .cognito import CognitoClient
from .session import Session
from .srp import ChallengeParameters, SrpContext

_LOGGER = logging.getLogger(__name__)


class AuthState(Enum):
    """Enum for login attempt state."""

    INIT = auto()  # Nothing sent yet
    AWAITING_PASSWORD_CHALLENGE = auto()  # Password verifier to answer
    AWAITING_DEVICE_CHALLENGE = auto()  # Device SRP_A to send
    AWAITING_DEVICE_PASSWORD_CHALLENGE = auto()  # Device verifier to answer
    AWAITING_MFA_CODE = auto()  # SMS code needed from the user
    COMPLETE = auto()  # Session issued
    FAILED = auto()  # Attempt is over, start a new one


class ChallengeName(Enum):
    """Challenges issued by the user pool."""

    PASSWORD_VERIFIER = "PASSWORD_VERIFIER"
    DEVICE_SRP_AUTH = "DEVICE_SRP_AUTH"
    DEVICE_PASSWORD_VERIFIER = "DEVICE_PASSWORD_VERIFIER"
    SMS_MFA = "SMS_MFA"


@dataclass(frozen=True)
class Success:
    """The login completed and issued a session."""

    session: Session


@dataclass(frozen=True)
class ChallengeRequired:
    """The user pool asked for another round."""

    challenge: ChallengeName
    parameters: dict[str, str] = field(default_factory=dict, repr=False)


@dataclass(frozen=True)
class Failed:
    """The login failed, the error says why."""

    error: HiveException


AuthenticationOutcome = Success | ChallengeRequired | Failed

_NEXT_STATE = {
    ChallengeName.PASSWORD_VERIFIER: AuthState.AWAITING_PASSWORD_CHALLENGE,
    ChallengeName.DEVICE_SRP_AUTH: AuthState.AWAITING_DEVICE_CHALLENGE,
    ChallengeName.DEVICE_PASSWORD_VERIFIER: (
        AuthState.AWAITING_DEVICE_PASSWORD_CHALLENGE
    ),
    ChallengeName.SMS_MFA: AuthState.AWAITING_MFA_CODE,
}

# Challenges the user pool may issue in reply to the round sent from each state
_ALLOWED_CHALLENGES = {
    AuthState.INIT: {ChallengeName.PASSWORD_VERIFIER},
    AuthState.AWAITING_PASSWORD_CHALLENGE: {
        ChallengeName.DEVICE_SRP_AUTH,
        ChallengeName.SMS_MFA,
    },
    AuthState.AWAITING_DEVICE_CHALLENGE: {ChallengeName.DEVICE_PASSWORD_VERIFIER},
    AuthState.AWAITING_DEVICE_PASSWORD_CHALLENGE: {ChallengeName.SMS_MFA},
    AuthState.AWAITING_MFA_CODE: set(),
}

_DEVICE_STATES = {
    AuthState.AWAITING_DEVICE_CHALLENGE,
    AuthState.AWAITING_DEVICE_PASSWORD_CHALLENGE,
}


class LoginAttempt:
    """A single login attempt.

    Attempts are single use and not safe for concurrent use. Once complete or
    failed a new attempt is needed, which starts over with fresh SRP values.
    """

    def __init__(
        self,
        cognito: CognitoClient,
        credentials: Credentials,
        trusted_device: TrustedDevice | None = None,
    ) -> None:
        self._cognito = cognito
        self._pool_name = cognito.config.pool_name
        self._username = credentials.username
        self._credentials: Credentials | None = credentials
        self._trusted_device = trusted_device
        self._device_key = trusted_device.device_key if trusted_device else None

        self._state = AuthState.INIT
        self._in_flight = False
        self._session_token: str | None = None
        self._srp_context: SrpContext | None = None
        self._parameters: ChallengeParameters | None = None
        self._mfa_code: str | None = None

    @property
    def state(self) -> AuthState:
        """The current state of the attempt."""
        return self._state

    @property
    def username(self) -> str:
        """The username, or the internal user id once the pool has issued it."""
        return self._username

    def submit_mfa_code(self, code: str) -> None:
        """Provide the SMS code requested by the user pool."""
        if self._state is not AuthState.AWAITING_MFA_CODE:
            raise HiveException(f"No code was requested, attempt is {self._state}")
        self._mfa_code = code

    async def run(self) -> Session:
        """Run the rounds until a session is issued."""
        while True:
            match await self.step():
                case Success(session=session):
                    return session
                case Failed(error=error):
                    raise error
                case ChallengeRequired(challenge=challenge):
                    _LOGGER.debug("Continuing login with %s", challenge.value)

    async def step(self) -> AuthenticationOutcome:
        """Perform the next round of the login.

        Raises :class:`MfaRequiredError` without ending the attempt when the
        user pool is waiting for a code that has not been submitted.
        """
        if self._state in (AuthState.COMPLETE, AuthState.FAILED):
            raise HiveException(f"Login attempt has already finished: {self._state}")
        if self._in_flight:
            raise HiveException("Login attempt already has a round in flight")
        if self._state is AuthState.AWAITING_MFA_CODE and self._mfa_code is None:
            raise MfaRequiredError(
                "An SMS code is required to continue the login",
                challenge_name=ChallengeName.SMS_MFA.value,
            )

        self._in_flight = True
        try:
            resp = await self._send_round()
            return self._handle_response(resp)
        except HiveException as ex:
            _LOGGER.debug(
                "Login for %s failed in %s: %r", self._username, self._state, ex
            )
            self._fail()
            return Failed(ex)
        finally:
            self._in_flight = False

    def _fail(self) -> None:
        self._state = AuthState.FAILED
        self._credentials = None
        self._trusted_device = None
        self._srp_context = None
        self._parameters = None

    async def _send_round(self) -> dict[str, Any]:
        state = self._state
        try:
            if state is AuthState.INIT:
                return await self._initiate()
            if state is AuthState.AWAITING_PASSWORD_CHALLENGE:
                return await self._answer_password_verifier()
            if state is AuthState.AWAITING_DEVICE_CHALLENGE:
                return await self._answer_device_srp_auth()
            if state is AuthState.AWAITING_DEVICE_PASSWORD_CHALLENGE:
                return await self._answer_device_password_verifier()
            return await self._answer_sms_mfa()
        except ThrottledError:
            raise
        except AuthenticationError as ex:
            if state in _DEVICE_STATES or (
                self._device_key is not None
                and ex.error_code is CognitoErrorCode.RESOURCE_NOT_FOUND
            ):
                raise DeviceNotTrustedError(
                    f"Device {self._device_key} was rejected: {ex}",
                    error_code=ex.error_code,
                ) from ex
            raise

    def _with_device_key(self, parameters: dict[str, str]) -> dict[str, str]:
        if self._device_key:
            parameters["DEVICE_KEY"] = self._device_key
        return parameters

    async def _initiate(self) -> dict[str, Any]:
        self._srp_context = SrpContext(self._pool_name)
        _LOGGER.debug("Initiating login for %s", self._username)
        return await self._cognito.initiate_auth(
            "USER_SRP_AUTH",
            self._with_device_key(
                {"USERNAME": self._username, "SRP_A": self._srp_context.srp_a}
            ),
        )

    async def _answer_password_verifier(self) -> dict[str, Any]:
        context, parameters = self._take_round()
        if self._credentials is None:
            raise HiveException("Credentials have already been used")
        claim = context.compute_password_claim(self._credentials, parameters)
        self._credentials = None
        # The internal user id must be used from here on, device rounds and
        # confirming the device fail with it missing.
        self._username = claim.username
        return await self._cognito.respond_to_auth_challenge(
            ChallengeName.PASSWORD_VERIFIER.value,
            self._with_device_key(claim.to_challenge_responses()),
            self._session_token,
        )

    async def _answer_device_srp_auth(self) -> dict[str, Any]:
        self._srp_context = SrpContext(self._pool_name)
        _LOGGER.debug("Starting device rounds for %s", self._device_key)
        return await self._cognito.respond_to_auth_challenge(
            ChallengeName.DEVICE_SRP_AUTH.value,
            self._with_device_key(
                {"USERNAME": self._username, "SRP_A": self._srp_context.srp_a}
            ),
            self._session_token,
        )

    async def _answer_device_password_verifier(self) -> dict[str, Any]:
        context, parameters = self._take_round()
        if self._trusted_device is None:
            raise HiveException("Trusted device has already been used")
        claim = context.compute_device_claim(self._trusted_device, parameters)
        self._trusted_device = None
        return await self._cognito.respond_to_auth_challenge(
            ChallengeName.DEVICE_PASSWORD_VERIFIER.value,
            claim.to_challenge_responses(),
            self._session_token,
        )

    async def _answer_sms_mfa(self) -> dict[str, Any]:
        code, self._mfa_code = self._mfa_code or "", None
        return await self._cognito.respond_to_auth_challenge(
            ChallengeName.SMS_MFA.value,
            self._with_device_key({"USERNAME": self._username, "SMS_MFA_CODE": code}),
            self._session_token,
        )

    def _take_round(self) -> tuple[SrpContext, ChallengeParameters]:
        """Hand out the current round's SRP values, they can only be used once."""
        context, parameters = self._srp_context, self._parameters
        self._srp_context = None
        self._parameters = None
        if context is None or parameters is None:
            raise HiveException(f"No challenge to answer in {self._state}")
        return context, parameters

    def _handle_response(self, resp: dict[str, Any]) -> AuthenticationOutcome:
        self._session_token = resp.get("Session")

        if result := resp.get("AuthenticationResult"):
            session = Session.from_authentication_result(
                self._cognito, result, device_key=self._device_key
            )
            self._state = AuthState.COMPLETE
            self._credentials = None
            self._trusted_device = None
            self._srp_context = None
            _LOGGER.debug("Login for %s complete", self._username)
            return Success(session)

        if not (raw_challenge := resp.get("ChallengeName")):
            raise AuthenticationError(
                "The identity provider issued neither tokens nor a challenge"
            )
        try:
            challenge = ChallengeName(raw_challenge)
        except ValueError:
            challenge = None
        if challenge is None or challenge not in _ALLOWED_CHALLENGES[self._state]:
            raise UnsupportedChallengeError(
                f"Challenge {raw_challenge} is not supported in {self._state}",
                challenge_name=raw_challenge,
            )
        if challenge is ChallengeName.DEVICE_SRP_AUTH and self._device_key is None:
            raise UnsupportedChallengeError(
                "Device challenge issued but no trusted device was supplied",
                challenge_name=raw_challenge,
            )

        parameters: dict[str, str] = resp.get("ChallengeParameters") or {}
        if challenge in (
            ChallengeName.PASSWORD_VERIFIER,
            ChallengeName.DEVICE_PASSWORD_VERIFIER,
        ):
            self._parameters = ChallengeParameters.from_response(parameters)

        self._state = _NEXT_STATE[challenge]
        _LOGGER.debug("Received challenge %s, now %s", challenge.value, self._state)
        return ChallengeRequired(challenge, parameters)


async def authenticate(
    cognito: CognitoClient,
    credentials: Credentials,
    trusted_device: TrustedDevice | None = None,
) -> Session:
    """Log in with a fresh attempt and return the session.

    A rejected trusted device raises :class:`DeviceNotTrustedError`, retrying
    without the device is left to the caller.
    """
    return await LoginAttempt(cognito, credentials, trusted_device).run()

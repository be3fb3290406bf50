"""Client handle used to log in and authorize calls to the Hive API.

>>> from hive import Client, Credentials
>>> client = Client()
>>> await client.login(Credentials("user@example.com", "great_password"))
>>> headers = await client.authorization_headers()

Logging in without a trusted device usually makes Hive send an SMS code:

>>> try:
>>>     await client.login(Credentials("user@example.com", "great_password"))
>>> except MfaRequiredError:
>>>     await client.respond_to_mfa("123456")

Afterwards the client can be confirmed as a trusted device so later logins
need no code:

>>> trusted_device = await client.confirm_device("Living room tablet")
>>> await client.login(credentials, trusted_device)
"""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta

from .auth.cognito import CognitoClient
from .auth.login import LoginAttempt
from .auth.session import Session
from .auth.srp import generate_device_verifier
from .clientconfig import ClientConfig
from .credentials import Credentials, TrustedDevice
from .exceptions import (
    AuthenticationError,
    DeviceConfirmationError,
    HiveException,
    MfaRequiredError,
    RefreshExpiredError,
)

_LOGGER = logging.getLogger(__name__)


class Client:
    """Client used to authenticate with Hive."""

    #: Sessions expiring within this window are renewed before use
    REFRESH_BUFFER = timedelta(seconds=60)

    def __init__(self, config: ClientConfig | None = None) -> None:
        self._config = config or ClientConfig()
        self._cognito = CognitoClient(self._config)
        self._session: Session | None = None
        self._pending_attempt: LoginAttempt | None = None
        self._session_lock = asyncio.Lock()

    @property
    def config(self) -> ClientConfig:
        """The user pool configuration."""
        return self._config

    @property
    def session(self) -> Session | None:
        """The current session, if logged in."""
        return self._session

    async def login(
        self, credentials: Credentials, trusted_device: TrustedDevice | None = None
    ) -> Session:
        """Log in as a user, optionally presenting a trusted device.

        If the user pool asks for an SMS code :class:`MfaRequiredError` is raised
        and the login continues with :meth:`respond_to_mfa`.

        A rejected trusted device raises :class:`DeviceNotTrustedError`. Whether
        to retry without it is up to the caller.
        """
        self._pending_attempt = None
        attempt = LoginAttempt(self._cognito, credentials, trusted_device)
        return await self._run_attempt(attempt)

    async def respond_to_mfa(self, code: str) -> Session:
        """Continue a login waiting for an SMS code."""
        if (attempt := self._pending_attempt) is None:
            raise HiveException("There is no login waiting for a code")
        self._pending_attempt = None
        attempt.submit_mfa_code(code)
        return await self._run_attempt(attempt)

    async def _run_attempt(self, attempt: LoginAttempt) -> Session:
        try:
            session = await attempt.run()
        except MfaRequiredError:
            self._pending_attempt = attempt
            raise
        self._session = session
        _LOGGER.info("Logged in as %s", attempt.username)
        return session

    async def get_session(self) -> Session:
        """Return the session, renewing it first if it is about to expire.

        Raises :class:`RefreshExpiredError` when the session can no longer be
        renewed, a new login is required after that.
        """
        async with self._session_lock:
            if (session := self._session) is None:
                raise AuthenticationError("Not logged in")
            if session.is_expired(datetime.now(UTC) + self.REFRESH_BUFFER):
                try:
                    await session.renew()
                except RefreshExpiredError:
                    self._session = None
                    raise
                _LOGGER.info(
                    "Tokens have been refreshed, new expiration time: %s",
                    session.expires_at,
                )
            return session

    async def authorization_headers(self) -> dict[str, str]:
        """Return the headers authorizing a Hive API request."""
        session = await self.get_session()
        return {"Authorization": session.authorization_header()}

    async def confirm_device(self, device_name: str) -> TrustedDevice:
        """Confirm the device issued at login as a trusted device.

        The returned device can be passed to later logins to answer the device
        rounds instead of an SMS code.
        """
        session = await self.get_session()
        if (new_device := session.new_device) is None:
            raise DeviceConfirmationError(
                "The current session has no untrusted device to confirm"
            )

        device_password, verifier_config = generate_device_verifier(
            new_device.device_group_key, new_device.device_key
        )
        try:
            resp = await self._cognito.confirm_device(
                session.access_token,
                new_device.device_key,
                device_name,
                verifier_config,
            )
            # The device is not remembered unless the status is set explicitly
            if resp.get("UserConfirmationNecessary"):
                await self._cognito.update_device_status(
                    session.access_token, new_device.device_key, "remembered"
                )
        except AuthenticationError as ex:
            raise DeviceConfirmationError(
                f"Unable to confirm device {new_device.device_key}: {ex}",
                error_code=ex.error_code,
            ) from ex

        _LOGGER.info("Confirmed device %s as %s", new_device.device_key, device_name)
        return TrustedDevice(
            device_key=new_device.device_key,
            device_group_key=new_device.device_group_key,
            device_password=device_password,
        )

    async def logout(self) -> None:
        """Log out, invalidating all tokens issued to the user."""
        self._pending_attempt = None
        if (session := self._session) is None:
            return
        self._session = None
        await self._cognito.global_sign_out(session.access_token)
        _LOGGER.info("Logged out")

    async def close(self) -> None:
        """Close the underlying http session."""
        await self._cognito.close()

"""Session holding the tokens issued by a successful login."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

from ..credentials import NewDevice
from ..exceptions import (
    AuthenticationError,
    InvalidCredentialError,
    RefreshExpiredError,
)

if TYPE_CHECKING:
    from .cognito import CognitoClient

_LOGGER = logging.getLogger(__name__)


class Session:
    """Access, ID and refresh tokens with their expiry.

    Sessions are only created by a completed login. :meth:`renew` is the only
    way the tokens change, concurrent renewals of the same session are
    serialized so they cannot race on the refresh token.
    """

    def __init__(
        self,
        cognito: CognitoClient,
        *,
        access_token: str,
        id_token: str,
        refresh_token: str,
        expires_in: timedelta,
        issued_at: datetime | None = None,
        token_type: str = "Bearer",
        device_key: str | None = None,
        new_device: NewDevice | None = None,
    ) -> None:
        self._cognito = cognito
        self._access_token = access_token
        self._id_token = id_token
        self._refresh_token = refresh_token
        self._expires_in = expires_in
        self._issued_at = issued_at or datetime.now(UTC)
        self._token_type = token_type
        self._device_key = device_key
        self._new_device = new_device
        self._renew_lock = asyncio.Lock()

    @classmethod
    def from_authentication_result(
        cls,
        cognito: CognitoClient,
        result: dict[str, Any],
        *,
        device_key: str | None = None,
    ) -> Session:
        """Create a session from the AuthenticationResult of a login."""
        access_token = result.get("AccessToken")
        id_token = result.get("IdToken")
        refresh_token = result.get("RefreshToken")
        if not (access_token and id_token and refresh_token):
            raise AuthenticationError(
                "The identity provider did not issue a complete set of tokens"
            )

        new_device = None
        if (metadata := result.get("NewDeviceMetadata")) and (
            metadata.get("DeviceKey") and metadata.get("DeviceGroupKey")
        ):
            new_device = NewDevice(
                device_key=metadata["DeviceKey"],
                device_group_key=metadata["DeviceGroupKey"],
            )

        return cls(
            cognito,
            access_token=access_token,
            id_token=id_token,
            refresh_token=refresh_token,
            expires_in=timedelta(seconds=int(result.get("ExpiresIn", 0))),
            token_type=result.get("TokenType") or "Bearer",
            device_key=device_key or (new_device.device_key if new_device else None),
            new_device=new_device,
        )

    def __repr__(self) -> str:
        return (
            f"<{self.__class__.__name__} issued_at={self._issued_at.isoformat()}"
            f" expires_at={self.expires_at.isoformat()}>"
        )

    @property
    def access_token(self) -> str:
        """The access token."""
        return self._access_token

    @property
    def id_token(self) -> str:
        """The ID token."""
        return self._id_token

    @property
    def refresh_token(self) -> str:
        """The refresh token."""
        return self._refresh_token

    @property
    def token_type(self) -> str:
        """The token type issued with the access token."""
        return self._token_type

    @property
    def issued_at(self) -> datetime:
        """When the current tokens were issued."""
        return self._issued_at

    @property
    def expires_in(self) -> timedelta:
        """Lifetime of the current tokens."""
        return self._expires_in

    @property
    def expires_at(self) -> datetime:
        """When the current tokens expire."""
        return self._issued_at + self._expires_in

    @property
    def device_key(self) -> str | None:
        """Key of the device this session was issued to, if any."""
        return self._device_key

    @property
    def new_device(self) -> NewDevice | None:
        """Device metadata issued at login which can be confirmed as trusted."""
        return self._new_device

    def is_expired(self, now: datetime | None = None) -> bool:
        """Return True if the tokens have expired at the given time.

        A naive ``now`` is taken to be UTC.
        """
        now = now or datetime.now(UTC)
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        return now >= self.expires_at

    def authorization_header(self) -> str:
        """Return the value for the Authorization header of Hive API calls.

        The Hive API expects the bare ID token.
        """
        return self._id_token

    async def renew(self) -> None:
        """Renew the access and ID tokens using the refresh token.

        Raises :class:`RefreshExpiredError` if the refresh token is rejected, in
        which case the existing tokens are left untouched.
        """
        async with self._renew_lock:
            auth_parameters = {"REFRESH_TOKEN": self._refresh_token}
            if self._device_key:
                auth_parameters["DEVICE_KEY"] = self._device_key

            try:
                resp = await self._cognito.initiate_auth(
                    "REFRESH_TOKEN_AUTH", auth_parameters
                )
            except InvalidCredentialError as ex:
                raise RefreshExpiredError(
                    "The refresh token was rejected", error_code=ex.error_code
                ) from ex

            result = resp.get("AuthenticationResult") or {}
            access_token = result.get("AccessToken")
            id_token = result.get("IdToken")
            if not (access_token and id_token):
                _LOGGER.error("Refresh token request did not return new tokens")
                raise RefreshExpiredError(
                    "The identity provider did not issue new tokens"
                )

            self._access_token = access_token
            self._id_token = id_token
            if refresh_token := result.get("RefreshToken"):
                self._refresh_token = refresh_token
            self._expires_in = timedelta(seconds=int(result.get("ExpiresIn", 0)))
            self._token_type = result.get("TokenType") or self._token_type
            self._issued_at = datetime.now(UTC)

            _LOGGER.debug(
                "Tokens have been renewed, new expiration time: %s", self.expires_at
            )

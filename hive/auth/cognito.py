"""Client for the Cognito identity provider JSON API.

Only the unauthenticated user pool operations are used, they are called with
the app client id or the user's access token and need no AWS signature.
"""

from __future__ import annotations

import logging
from typing import Any

from ..clientconfig import ClientConfig
from ..exceptions import (
    COGNITO_ACCOUNT_DISABLED_ERRORS,
    COGNITO_CREDENTIAL_ERRORS,
    COGNITO_THROTTLING_ERRORS,
    COGNITO_TRANSPORT_ERRORS,
    AccountDisabledError,
    AuthenticationError,
    CognitoErrorCode,
    HiveException,
    InvalidCredentialError,
    RefreshExpiredError,
    ThrottledError,
    TransportError,
)
from ..httpclient import HttpClient

_LOGGER = logging.getLogger(__name__)


class CognitoClient:
    """Implementation of the user pool operations used to log in."""

    TARGET_PREFIX = "AWSCognitoIdentityProviderService."
    COMMON_HEADERS = {
        "Content-Type": "application/x-amz-json-1.1",
        "Accept": "application/json",
    }

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self._http_client = HttpClient(config)
        self._url = config.endpoint

    @property
    def config(self) -> ClientConfig:
        """The configuration of the user pool."""
        return self._config

    def _handle_response_error(
        self, status_code: int, resp_dict: dict[str, Any] | None, operation: str
    ) -> None:
        resp_dict = resp_dict or {}
        error_type = resp_dict.get("__type") or ""
        message = resp_dict.get("message") or resp_dict.get("Message") or ""
        try:
            error_code = CognitoErrorCode.from_type(error_type)
        except ValueError:
            _LOGGER.warning(
                "%s received unknown error type: %s", operation, error_type
            )
            error_code = CognitoErrorCode.INTERNAL_UNKNOWN_ERROR

        msg = f"{operation} failed with status {status_code}: {message}".rstrip(": ")
        if status_code >= 500 or error_code in COGNITO_TRANSPORT_ERRORS:
            raise TransportError(msg)
        if error_code in COGNITO_THROTTLING_ERRORS:
            raise ThrottledError(msg, error_code=error_code)
        if error_code in COGNITO_CREDENTIAL_ERRORS:
            raise InvalidCredentialError(msg, error_code=error_code)
        if error_code in COGNITO_ACCOUNT_DISABLED_ERRORS:
            raise AccountDisabledError(msg, error_code=error_code)
        if error_code is CognitoErrorCode.NOT_AUTHORIZED:
            lowered = message.lower()
            if "disabled" in lowered:
                raise AccountDisabledError(msg, error_code=error_code)
            if "attempts exceeded" in lowered:
                raise ThrottledError(msg, error_code=error_code)
            if "refresh token" in lowered:
                raise RefreshExpiredError(msg, error_code=error_code)
            raise InvalidCredentialError(msg, error_code=error_code)
        raise AuthenticationError(msg, error_code=error_code)

    async def call(self, operation: str, payload: dict[str, Any]) -> dict[str, Any]:
        """Call a user pool operation and return the decoded response."""
        headers = {
            **self.COMMON_HEADERS,
            "X-Amz-Target": self.TARGET_PREFIX + operation,
        }
        status_code, resp_dict = await self._http_client.post(
            self._url, json=payload, headers=headers
        )
        if status_code != 200:
            _LOGGER.debug("%s responded with status %s", operation, status_code)
            self._handle_response_error(status_code, resp_dict, operation)

        if resp_dict is None:
            raise HiveException(f"{operation} returned an empty response")
        return resp_dict

    async def initiate_auth(
        self, auth_flow: str, auth_parameters: dict[str, str]
    ) -> dict[str, Any]:
        """Start an authentication flow."""
        return await self.call(
            "InitiateAuth",
            {
                "AuthFlow": auth_flow,
                "ClientId": self._config.client_id,
                "AuthParameters": auth_parameters,
            },
        )

    async def respond_to_auth_challenge(
        self,
        challenge_name: str,
        challenge_responses: dict[str, str],
        session: str | None,
    ) -> dict[str, Any]:
        """Answer the challenge issued by the previous round."""
        payload: dict[str, Any] = {
            "ChallengeName": challenge_name,
            "ClientId": self._config.client_id,
            "ChallengeResponses": challenge_responses,
        }
        if session:
            payload["Session"] = session
        return await self.call("RespondToAuthChallenge", payload)

    async def global_sign_out(self, access_token: str) -> None:
        """Invalidate all tokens issued to the user."""
        await self.call("GlobalSignOut", {"AccessToken": access_token})

    async def confirm_device(
        self,
        access_token: str,
        device_key: str,
        device_name: str,
        verifier_config: dict[str, str],
    ) -> dict[str, Any]:
        """Register the verifier of a new device with the user pool."""
        return await self.call(
            "ConfirmDevice",
            {
                "AccessToken": access_token,
                "DeviceKey": device_key,
                "DeviceName": device_name,
                "DeviceSecretVerifierConfig": verifier_config,
            },
        )

    async def update_device_status(
        self, access_token: str, device_key: str, status: str = "remembered"
    ) -> None:
        """Set the remembered status of a device."""
        await self.call(
            "UpdateDeviceStatus",
            {
                "AccessToken": access_token,
                "DeviceKey": device_key,
                "DeviceRememberedStatus": status,
            },
        )

    async def close(self) -> None:
        """Close the http client."""
        await self._http_client.close()

"""In-process user pool used to test the login against real SRP proofs."""

from __future__ import annotations

import base64
import secrets
from json import dumps as json_dumps
from json import loads as json_loads
from typing import Any

from yarl import URL

from hive.auth.srp import (
    G,
    K,
    N,
    _compute_x,
    _derive_key,
    _hash,
    _pad,
    _sign,
    generate_device_verifier,
)
from hive.credentials import TrustedDevice

MOCK_USER = "mock@example.com"
MOCK_PWD = "correct_pwd"  # noqa: S105
MOCK_USER_ID = "2f6b1e1c-8f4e-4c1a-9d0e-3a5b7c9d1e2f"
MOCK_POOL_NAME = "SamNfoWtf"
MOCK_MFA_CODE = "123456"
MOCK_EXPIRES_IN = 3600


class MockCognito:
    """Fake Cognito identity provider.

    Verifies password and device claims the same way the user pool does and
    records every call so tests can assert on what was sent.
    """

    TARGET_PREFIX = "AWSCognitoIdentityProviderService."

    class _mock_response:
        def __init__(self, status, request: dict | bytes):
            self.status = status
            self._json = request

        async def __aenter__(self):
            return self

        async def __aexit__(self, exc_t, exc_v, exc_tb):
            pass

        async def read(self):
            if isinstance(self._json, dict):
                return json_dumps(self._json).encode()
            return self._json

    def __init__(
        self,
        *,
        username: str = MOCK_USER,
        password: str = MOCK_PWD,
        pool_name: str = MOCK_POOL_NAME,
        mfa_required: bool = False,
        issue_new_device: bool = True,
        user_confirmation_necessary: bool = True,
        rotate_refresh_token: bool = False,
        challenge_override: str | None = None,
    ):
        self.username = username
        self.password = password
        self.pool_name = pool_name
        self.salt = secrets.token_bytes(16).hex()

        # test behaviour attributes
        self.mfa_required = mfa_required
        self.issue_new_device = issue_new_device
        self.user_confirmation_necessary = user_confirmation_necessary
        self.rotate_refresh_token = rotate_refresh_token
        self.challenge_override = challenge_override

        self.calls: list[tuple[str, dict[str, Any]]] = []
        self.devices: dict[str, dict[str, Any]] = {}
        self.device_status: dict[str, str] = {}
        self.issued_devices: dict[str, str] = {}
        self.access_tokens: set[str] = set()
        self.refresh_tokens: set[str] = set()
        self._pending: dict[str, dict[str, Any]] = {}
        self._next_responses: list[tuple[int, dict | bytes]] = []
        self._token_counter = 0

    def queue_response(self, status: int, body: dict | bytes) -> None:
        """Return the given response for the next call, whatever it is."""
        self._next_responses.append((status, body))

    def register_device(
        self, device_key: str = "eu-west-1_device1", group_key: str = "group1"
    ) -> TrustedDevice:
        """Confirm a device out of band and return its descriptor."""
        device_password, verifier_config = generate_device_verifier(
            group_key, device_key
        )
        self._store_device(device_key, group_key, verifier_config)
        return TrustedDevice(device_key, group_key, device_password)

    def revoke_device(self, device_key: str) -> None:
        self.devices.pop(device_key, None)

    def revoke_refresh_tokens(self) -> None:
        self.refresh_tokens.clear()

    def operations(self) -> list[str]:
        return [operation for operation, _ in self.calls]

    def _store_device(
        self, device_key: str, group_key: str, verifier_config: dict[str, str]
    ) -> None:
        self.devices[device_key] = {
            "group_key": group_key,
            "salt": base64.standard_b64decode(verifier_config["Salt"]).hex(),
            "verifier": int.from_bytes(
                base64.standard_b64decode(verifier_config["PasswordVerifier"]), "big"
            ),
        }

    async def post(self, url: URL, *, data=None, json=None, headers=None, **__):
        if data:
            json = json_loads(data)
        assert str(url) == "https://cognito-idp.eu-west-1.amazonaws.com/"
        assert headers["Content-Type"] == "application/x-amz-json-1.1"
        target = headers["X-Amz-Target"]
        assert target.startswith(self.TARGET_PREFIX)
        operation = target.removeprefix(self.TARGET_PREFIX)
        self.calls.append((operation, json))

        if self._next_responses:
            return self._mock_response(*self._next_responses.pop(0))
        status, body = getattr(self, f"_{operation}")(json)
        return self._mock_response(status, body)

    @staticmethod
    def _error(error_type: str, message: str, status: int = 400):
        return status, {"__type": error_type, "message": message}

    def _new_session(self, **state: Any) -> str:
        token = secrets.token_urlsafe(16)
        self._pending[token] = state
        return token

    def _issue_tokens(self, new_device: bool = True) -> dict[str, Any]:
        self._token_counter += 1
        access_token = f"access-{self._token_counter}"
        refresh_token = f"refresh-{self._token_counter}"
        self.access_tokens.add(access_token)
        self.refresh_tokens.add(refresh_token)
        result: dict[str, Any] = {
            "AccessToken": access_token,
            "IdToken": f"id-{self._token_counter}",
            "RefreshToken": refresh_token,
            "ExpiresIn": MOCK_EXPIRES_IN,
            "TokenType": "Bearer",
        }
        if new_device and self.issue_new_device:
            device_key = f"eu-west-1_new{self._token_counter}"
            group_key = f"group-new{self._token_counter}"
            self.issued_devices[device_key] = group_key
            result["NewDeviceMetadata"] = {
                "DeviceKey": device_key,
                "DeviceGroupKey": group_key,
            }
        return {"AuthenticationResult": result}

    def _srp_challenge(self, challenge_name, srp_a, salt, verifier, **extra):
        big_a = int(srp_a, 16)
        if big_a % N == 0:
            return None, self._error("InvalidParameterException", "Invalid SRP_A")
        b = secrets.randbits(1024) % N
        big_b = (K * verifier + pow(G, b, N)) % N
        secret_block = base64.standard_b64encode(secrets.token_bytes(64)).decode()
        u = _hash(_pad(big_a), _pad(big_b))
        shared_secret = pow(big_a * pow(verifier, u, N), b, N)
        state = {
            "challenge": challenge_name,
            "key": _derive_key(shared_secret, u),
            "secret_block": secret_block,
            **extra,
        }
        parameters = {
            "SALT": salt,
            "SRP_B": format(big_b, "x"),
            "SECRET_BLOCK": secret_block,
        }
        return (state, parameters), None

    def _InitiateAuth(self, request):
        auth_parameters = request["AuthParameters"]
        if request["AuthFlow"] == "REFRESH_TOKEN_AUTH":
            return self._refresh(auth_parameters)
        assert request["AuthFlow"] == "USER_SRP_AUTH"

        if self.challenge_override:
            return 200, {
                "ChallengeName": self.challenge_override,
                "ChallengeParameters": {},
                "Session": self._new_session(challenge=self.challenge_override),
            }

        if auth_parameters["USERNAME"] != self.username:
            return self._error("UserNotFoundException", "User does not exist.")

        verifier = pow(
            G,
            _compute_x(self.salt, self.pool_name + MOCK_USER_ID, self.password),
            N,
        )
        res, error = self._srp_challenge(
            "PASSWORD_VERIFIER",
            auth_parameters["SRP_A"],
            self.salt,
            verifier,
            device_key=auth_parameters.get("DEVICE_KEY"),
        )
        if error:
            return error
        state, parameters = res
        return 200, {
            "ChallengeName": "PASSWORD_VERIFIER",
            "ChallengeParameters": {
                **parameters,
                "USERNAME": MOCK_USER_ID,
                "USER_ID_FOR_SRP": MOCK_USER_ID,
            },
            "Session": self._new_session(**state),
        }

    def _refresh(self, auth_parameters):
        if auth_parameters["REFRESH_TOKEN"] not in self.refresh_tokens:
            return self._error("NotAuthorizedException", "Refresh Token has expired")
        result = self._issue_tokens(new_device=False)["AuthenticationResult"]
        if self.rotate_refresh_token:
            self.refresh_tokens.discard(auth_parameters["REFRESH_TOKEN"])
        else:
            self.refresh_tokens.discard(result.pop("RefreshToken"))
        return 200, {"AuthenticationResult": result, "ChallengeParameters": {}}

    def _RespondToAuthChallenge(self, request):
        state = self._pending.pop(request.get("Session"), None)
        if state is None:
            return self._error("NotAuthorizedException", "Invalid session.")
        challenge = request["ChallengeName"]
        if state["challenge"] != challenge:
            return self._error(
                "InvalidParameterException", f"Unexpected challenge {challenge}"
            )
        responses = request["ChallengeResponses"]
        return getattr(self, f"_respond_{challenge.lower()}")(state, responses)

    def _check_claim(self, state, responses, prefix: bytes, user_id: str) -> bool:
        expected = _sign(
            state["key"],
            prefix,
            user_id.encode(),
            base64.standard_b64decode(state["secret_block"]),
            responses["TIMESTAMP"].encode(),
        )
        return (
            responses["PASSWORD_CLAIM_SECRET_BLOCK"] == state["secret_block"]
            and responses["PASSWORD_CLAIM_SIGNATURE"] == expected
        )

    def _respond_password_verifier(self, state, responses):
        if responses["USERNAME"] != MOCK_USER_ID or not self._check_claim(
            state, responses, self.pool_name.encode(), MOCK_USER_ID
        ):
            return self._error(
                "NotAuthorizedException", "Incorrect username or password."
            )
        if device_key := responses.get("DEVICE_KEY"):
            return 200, {
                "ChallengeName": "DEVICE_SRP_AUTH",
                "ChallengeParameters": {},
                "Session": self._new_session(
                    challenge="DEVICE_SRP_AUTH", device_key=device_key
                ),
            }
        if self.mfa_required:
            return 200, {
                "ChallengeName": "SMS_MFA",
                "ChallengeParameters": {
                    "CODE_DELIVERY_DELIVERY_MEDIUM": "SMS",
                    "CODE_DELIVERY_DESTINATION": "+*******1234",
                },
                "Session": self._new_session(challenge="SMS_MFA"),
            }
        return 200, self._issue_tokens()

    def _respond_device_srp_auth(self, state, responses):
        device_key = responses.get("DEVICE_KEY")
        if device_key != state["device_key"]:
            return self._error("InvalidParameterException", "Device key mismatch")
        if (device := self.devices.get(device_key)) is None:
            return self._error("ResourceNotFoundException", "Device does not exist.")
        res, error = self._srp_challenge(
            "DEVICE_PASSWORD_VERIFIER",
            responses["SRP_A"],
            device["salt"],
            device["verifier"],
            device_key=device_key,
        )
        if error:
            return error
        state, parameters = res
        return 200, {
            "ChallengeName": "DEVICE_PASSWORD_VERIFIER",
            "ChallengeParameters": {
                **parameters,
                "USERNAME": MOCK_USER_ID,
                "DEVICE_KEY": device_key,
            },
            "Session": self._new_session(**state),
        }

    def _respond_device_password_verifier(self, state, responses):
        device = self.devices.get(state["device_key"])
        if (
            device is None
            or responses.get("DEVICE_KEY") != state["device_key"]
            or not self._check_claim(
                state, responses, device["group_key"].encode(), state["device_key"]
            )
        ):
            return self._error(
                "NotAuthorizedException", "Incorrect username or password."
            )
        return 200, self._issue_tokens(new_device=False)

    def _respond_sms_mfa(self, state, responses):
        if responses.get("SMS_MFA_CODE") != MOCK_MFA_CODE:
            return self._error("CodeMismatchException", "Invalid code received.")
        return 200, self._issue_tokens()

    def _GlobalSignOut(self, request):
        if request["AccessToken"] not in self.access_tokens:
            return self._error("NotAuthorizedException", "Access Token revoked")
        self.access_tokens.clear()
        self.refresh_tokens.clear()
        return 200, {}

    def _ConfirmDevice(self, request):
        if request["AccessToken"] not in self.access_tokens:
            return self._error("NotAuthorizedException", "Access Token revoked")
        device_key = request["DeviceKey"]
        if (group_key := self.issued_devices.get(device_key)) is None:
            return self._error("ResourceNotFoundException", "Device does not exist.")
        self._store_device(
            device_key, group_key, request["DeviceSecretVerifierConfig"]
        )
        self.device_status[device_key] = "not_remembered"
        return 200, {"UserConfirmationNecessary": self.user_confirmation_necessary}

    def _UpdateDeviceStatus(self, request):
        if request["AccessToken"] not in self.access_tokens:
            return self._error("NotAuthorizedException", "Access Token revoked")
        self.device_status[request["DeviceKey"]] = request["DeviceRememberedStatus"]
        return 200, {}

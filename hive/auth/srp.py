"""Secure Remote Password computations for the Cognito user pool.

Cognito uses SRP-6a over the 3072-bit group from RFC 3526 with SHA-256, and
proves knowledge of the shared secret with an HMAC over the server's secret
block rather than the classic M1 evidence message.
"""

from __future__ import annotations

import base64
import binascii
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import ClassVar

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.hkdf import HKDF

from ..credentials import Credentials, TrustedDevice
from ..exceptions import CryptoError

_LOGGER = logging.getLogger(__name__)

N_HEX = (
    "FFFFFFFFFFFFFFFFC90FDAA22168C234C4C6628B80DC1CD129024E088A67CC74"
    "020BBEA63B139B22514A08798E3404DDEF9519B3CD3A431B302B0A6DF25F1437"
    "4FE1356D6D51C245E485B576625E7EC6F44C42E9A637ED6B0BFF5CB6F406B7ED"
    "EE386BFB5A899FA5AE9F24117C4B1FE649286651ECE45B3DC2007CB8A163BF05"
    "98DA48361C55D39A69163FA8FD24CF5F83655D23DCA3AD961C62F356208552BB"
    "9ED529077096966D670C354E4ABC9804F1746C08CA18217C32905E462E36CE3B"
    "E39E772C180E86039B2783A2EC07A28FB5C55DF06F4C52C9DE2BCBF695581718"
    "3995497CEA956AE515D2261898FA051015728E5A8AAAC42DAD33170D04507A33"
    "A85521ABDF1CBA64ECFB850458DBEF0A8AEA71575D060C7DB3970F85A6E1E4C7"
    "ABF5AE8CDB0933D71E8C94E04A25619DCEE3D2261AD2EE6BF12FFA06D98A0864"
    "D87602733EC86A64521F2B18177B200CBBE117577A615D6C770988C0BAD946E2"
    "08E24FA074E5AB3143DB5BFCE0FD108E4B82D120A93AD2CAFFFFFFFFFFFFFFFF"
)
N = int(N_HEX, 16)
G = 2
INFO_BITS = b"Caldera Derived Key"
DERIVED_KEY_LENGTH = 16

# Random bytes for the private ephemeral and verifier salt
EPHEMERAL_BYTES = 128
SALT_BYTES = 16
DEVICE_PASSWORD_BYTES = 40

# Claim timestamps use English names regardless of locale
WEEKDAYS = "Mon Tue Wed Thu Fri Sat Sun".split()
MONTHS = "Jan Feb Mar Apr May Jun Jul Aug Sep Oct Nov Dec".split()


def _pad(value: int | str) -> bytes:
    """Encode a number the way Cognito hashes it.

    Hex strings are taken as is, odd lengths get a leading zero nibble and a
    leading byte with the high bit set gets a zero byte so the value is never
    read back as negative.
    """
    hex_str = value if isinstance(value, str) else format(value, "x")
    if len(hex_str) % 2:
        hex_str = "0" + hex_str
    elif hex_str[0] in "89abcdefABCDEF":
        hex_str = "00" + hex_str
    return bytes.fromhex(hex_str)


def _hash(*parts: bytes) -> int:
    digest = hashlib.sha256()
    for part in parts:
        digest.update(part)
    return int.from_bytes(digest.digest(), "big")


def _sha256(data: bytes) -> bytes:
    return hashlib.sha256(data).digest()


K = _hash(_pad(N), _pad(G))


def _compute_x(salt: str, identity: str, secret: str) -> int:
    """Private key x = H(salt | H(identity | ":" | secret))."""
    return _hash(_pad(salt), _sha256(f"{identity}:{secret}".encode()))


def _derive_key(shared_secret: int, u: int) -> bytes:
    return HKDF(
        algorithm=hashes.SHA256(),
        length=DERIVED_KEY_LENGTH,
        salt=_pad(u),
        info=INFO_BITS,
    ).derive(_pad(shared_secret))


def _sign(key: bytes, *parts: bytes) -> str:
    return base64.standard_b64encode(
        hmac.new(key, b"".join(parts), hashlib.sha256).digest()
    ).decode()


def format_timestamp(now: datetime | None = None) -> str:
    """Return the claim timestamp, e.g. ``Tue Mar 5 08:05:09 UTC 2024``.

    Day and month names are always English, whatever the process locale.
    """
    now = (now or datetime.now(UTC)).astimezone(UTC)
    return (
        f"{WEEKDAYS[now.weekday()]} {MONTHS[now.month - 1]} {now.day} "
        f"{now:%H:%M:%S} UTC {now.year}"
    )


@dataclass(frozen=True)
class ChallengeParameters:
    """Server issued parameters for a single verifier round."""

    REQUIRED: ClassVar[tuple[str, ...]] = ("SALT", "SRP_B", "SECRET_BLOCK")

    #: Hex encoded salt of the verifier
    salt: str
    #: Server public value B
    srp_b: int = field(repr=False)
    #: Opaque base64 block which must be echoed back in the claim
    secret_block: str = field(repr=False)
    #: Internal user id used in the password derivation
    user_id_for_srp: str | None = None
    #: Username the server expects in the response
    username: str | None = None

    @classmethod
    def from_response(cls, parameters: dict[str, str]) -> ChallengeParameters:
        """Parse the ``ChallengeParameters`` map of a challenge response."""
        if missing := [name for name in cls.REQUIRED if not parameters.get(name)]:
            raise CryptoError(
                f"Challenge is missing required parameters: {', '.join(missing)}"
            )
        try:
            srp_b = int(parameters["SRP_B"], 16)
            bytes.fromhex(parameters["SALT"])
            base64.standard_b64decode(parameters["SECRET_BLOCK"])
        except (ValueError, binascii.Error) as ex:
            raise CryptoError(f"Challenge parameters are malformed: {ex}") from ex
        return cls(
            salt=parameters["SALT"],
            srp_b=srp_b,
            secret_block=parameters["SECRET_BLOCK"],
            user_id_for_srp=parameters.get("USER_ID_FOR_SRP"),
            username=parameters.get("USERNAME"),
        )


@dataclass(frozen=True)
class PasswordClaim:
    """Proof of the password for a PASSWORD_VERIFIER challenge."""

    username: str
    secret_block: str = field(repr=False)
    signature: str = field(repr=False)
    timestamp: str

    def to_challenge_responses(self) -> dict[str, str]:
        """Return the claim as challenge responses."""
        return {
            "USERNAME": self.username,
            "PASSWORD_CLAIM_SECRET_BLOCK": self.secret_block,
            "PASSWORD_CLAIM_SIGNATURE": self.signature,
            "TIMESTAMP": self.timestamp,
        }


@dataclass(frozen=True)
class DeviceClaim(PasswordClaim):
    """Proof of the device password for a DEVICE_PASSWORD_VERIFIER challenge."""

    device_key: str = ""

    def to_challenge_responses(self) -> dict[str, str]:
        """Return the claim as challenge responses."""
        return {**super().to_challenge_responses(), "DEVICE_KEY": self.device_key}


class SrpContext:
    """Client side of one SRP round.

    Every context draws its own private ephemeral, and may only be used to
    compute a single claim. A new context is required for every round and
    every login attempt.
    """

    def __init__(self, pool_name: str) -> None:
        self._pool_name = pool_name
        self._consumed = False
        while True:
            self._a = secrets.randbits(EPHEMERAL_BYTES * 8) % N
            self._big_a = pow(G, self._a, N)
            # A must not be zero mod N, retry with a new ephemeral
            if self._big_a % N != 0:
                break

    @property
    def srp_a(self) -> str:
        """The public value A as sent in the SRP_A parameter."""
        return format(self._big_a, "x")

    def _shared_key(self, parameters: ChallengeParameters, x: int) -> bytes:
        if self._consumed:
            raise CryptoError("SRP context has already been used for a claim")
        self._consumed = True

        big_b = parameters.srp_b
        if big_b % N == 0:
            raise CryptoError("Server public value B is zero mod N")
        u = _hash(_pad(self._big_a), _pad(big_b))
        if u == 0:
            raise CryptoError("Scrambling parameter u is zero")

        shared_secret = pow(big_b - K * pow(G, x, N), self._a + u * x, N)
        return _derive_key(shared_secret, u)

    def compute_password_claim(
        self,
        credentials: Credentials,
        parameters: ChallengeParameters,
        *,
        now: datetime | None = None,
    ) -> PasswordClaim:
        """Compute the password claim for a PASSWORD_VERIFIER challenge."""
        user_id = parameters.user_id_for_srp or credentials.username
        x = _compute_x(
            parameters.salt, f"{self._pool_name}{user_id}", credentials.password
        )
        key = self._shared_key(parameters, x)
        timestamp = format_timestamp(now)
        signature = _sign(
            key,
            self._pool_name.encode(),
            user_id.encode(),
            base64.standard_b64decode(parameters.secret_block),
            timestamp.encode(),
        )
        _LOGGER.debug("Computed password claim for %s", user_id)
        return PasswordClaim(
            username=user_id,
            secret_block=parameters.secret_block,
            signature=signature,
            timestamp=timestamp,
        )

    def compute_device_claim(
        self,
        device: TrustedDevice,
        parameters: ChallengeParameters,
        *,
        now: datetime | None = None,
    ) -> DeviceClaim:
        """Compute the device claim for a DEVICE_PASSWORD_VERIFIER challenge."""
        x = _compute_x(
            parameters.salt,
            f"{device.device_group_key}{device.device_key}",
            device.device_password,
        )
        key = self._shared_key(parameters, x)
        timestamp = format_timestamp(now)
        signature = _sign(
            key,
            device.device_group_key.encode(),
            device.device_key.encode(),
            base64.standard_b64decode(parameters.secret_block),
            timestamp.encode(),
        )
        _LOGGER.debug("Computed device claim for device %s", device.device_key)
        return DeviceClaim(
            username=parameters.username or "",
            secret_block=parameters.secret_block,
            signature=signature,
            timestamp=timestamp,
            device_key=device.device_key,
        )


def generate_device_verifier(
    device_group_key: str, device_key: str
) -> tuple[str, dict[str, str]]:
    """Generate a random device password and its verifier configuration.

    The configuration is what ConfirmDevice expects as
    ``DeviceSecretVerifierConfig``.
    """
    device_password = base64.standard_b64encode(
        secrets.token_bytes(DEVICE_PASSWORD_BYTES)
    ).decode()
    salt = _pad(secrets.randbits(SALT_BYTES * 8)).hex()
    x = _compute_x(salt, f"{device_group_key}{device_key}", device_password)
    verifier = pow(G, x, N)
    return device_password, {
        "PasswordVerifier": base64.standard_b64encode(_pad(verifier)).decode(),
        "Salt": base64.standard_b64encode(bytes.fromhex(salt)).decode(),
    }

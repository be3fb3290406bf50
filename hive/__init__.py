"""Python client for logging in to Hive home automation.

Logging in and authorizing Hive API calls is done through the `Client` class::

>>> from hive import Client, Credentials
>>> client = Client()
>>> await client.login(Credentials("user@example.com", "great_password"))
>>> headers = await client.authorization_headers()

Errors are raised as `HiveException` subclasses and are expected
to be handled by the user of the library.
"""

from hive.auth import (
    AuthenticationOutcome,
    AuthState,
    ChallengeRequired,
    Failed,
    LoginAttempt,
    Session,
    Success,
    authenticate,
)
from hive.client import Client
from hive.clientconfig import ClientConfig
from hive.credentials import Credentials, NewDevice, TrustedDevice
from hive.exceptions import (
    AccountDisabledError,
    AuthenticationError,
    CryptoError,
    DeviceConfirmationError,
    DeviceNotTrustedError,
    HiveException,
    InvalidCredentialError,
    InvalidDeviceDescriptorError,
    MfaRequiredError,
    RefreshExpiredError,
    ThrottledError,
    TimeoutError,
    TransportError,
    UnsupportedChallengeError,
)
from hive.version import __version__

__all__ = [
    "__version__",
    "Client",
    "ClientConfig",
    "Credentials",
    "TrustedDevice",
    "NewDevice",
    "Session",
    "LoginAttempt",
    "AuthState",
    "AuthenticationOutcome",
    "Success",
    "ChallengeRequired",
    "Failed",
    "authenticate",
    "HiveException",
    "TransportError",
    "TimeoutError",
    "CryptoError",
    "InvalidDeviceDescriptorError",
    "AuthenticationError",
    "InvalidCredentialError",
    "AccountDisabledError",
    "ThrottledError",
    "DeviceNotTrustedError",
    "RefreshExpiredError",
    "UnsupportedChallengeError",
    "MfaRequiredError",
    "DeviceConfirmationError",
]

"""Credentials and device descriptors used to log in to Hive."""

from __future__ import annotations

from dataclasses import dataclass, field

from .exceptions import InvalidDeviceDescriptorError


@dataclass(frozen=True)
class Credentials:
    """Credentials for authentication."""

    #: Username (email address) of the Hive account
    username: str
    #: Password of the Hive account
    password: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.username:
            raise ValueError("Username must not be empty")
        if not self.password:
            raise ValueError("Password must not be empty")


@dataclass(frozen=True)
class TrustedDevice:
    """A device previously confirmed with the Hive user pool.

    Hive uses AWS Cognito for authentication, and a trusted device in a Hive
    account is a remembered device in the Cognito user pool. Supplying one at
    login answers the device challenge rounds and avoids SMS codes.

    All three values are returned by :meth:`hive.Client.confirm_device`.
    """

    device_key: str
    device_group_key: str
    device_password: str = field(repr=False)

    def __post_init__(self) -> None:
        missing = [
            name
            for name in ("device_key", "device_group_key", "device_password")
            if not getattr(self, name)
        ]
        if missing:
            raise InvalidDeviceDescriptorError(
                f"Trusted device is missing {', '.join(missing)}"
            )


@dataclass(frozen=True)
class NewDevice:
    """Device metadata issued by the user pool that is not yet trusted."""

    device_key: str
    device_group_key: str

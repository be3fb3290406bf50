"""Configuration for connecting to the Hive identity provider.

The defaults point at the user pool used by the Hive web portal, so most
callers never need to build one:

>>> from hive import ClientConfig
>>> config = ClientConfig()
>>> print(config.region)
eu-west-1

>>> config_dict = config.to_dict()
>>> # ClientConfig.to_dict() can be used to store for later
>>> print(config_dict)
{'region': 'eu-west-1', 'pool_id': 'eu-west-1_SamNfoWtf', 'client_id': \
'3rl4i0ajrmtdm8sbre54p9dvd9', 'timeout': 10}

"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from typing import Any, Self

from aiohttp import ClientSession
from mashumaro import field_options
from mashumaro.config import BaseConfig
from mashumaro.types import SerializationStrategy
from yarl import URL

from .exceptions import HiveException
from .json import DataClassJSONMixin


#: The region of the Hive user pool, the prefix of :data:`DEFAULT_POOL_ID`
DEFAULT_REGION = "eu-west-1"
#: Found in the Hive web portal as ``window.HiveSSOPoolId``
DEFAULT_POOL_ID = "eu-west-1_SamNfoWtf"
#: Found in the Hive web portal as ``window.HiveSSOCognitoClientId``
DEFAULT_CLIENT_ID = "3rl4i0ajrmtdm8sbre54p9dvd9"


class _DoNotSerialize(SerializationStrategy):
    def serialize(self, value: Any) -> None:
        return None

    def deserialize(self, value: Any) -> None:
        return None


@dataclass(frozen=True)
class ClientConfig(DataClassJSONMixin):
    """Class to represent parameters that determine how to reach the user pool."""

    class Config(BaseConfig):
        """Serialization config."""

        omit_none = True

    DEFAULT_TIMEOUT = 10
    #: AWS region hosting the user pool
    region: str = DEFAULT_REGION
    #: Cognito user pool id, ``<region>_<pool name>``
    pool_id: str = DEFAULT_POOL_ID
    #: App client id of the user pool
    client_id: str = DEFAULT_CLIENT_ID
    #: Timeout in seconds for each request to the identity provider
    timeout: int | None = DEFAULT_TIMEOUT

    # compare=False will be excluded from object comparison.
    #: Set a custom http_client for the client to use.
    http_client: ClientSession | None = field(
        default=None,
        compare=False,
        metadata=field_options(serialization_strategy=_DoNotSerialize()),
    )

    def __post_init__(self) -> None:
        if "_" not in self.pool_id:
            raise HiveException(
                f"Invalid user pool id {self.pool_id}, expected <region>_<name>"
            )

    def __pre_serialize__(self) -> Self:
        return replace(self, http_client=None)

    @property
    def pool_name(self) -> str:
        """The pool name used in SRP key derivation."""
        return self.pool_id.split("_", 1)[1]

    @property
    def endpoint(self) -> URL:
        """The identity provider endpoint for the configured region."""
        return URL(f"https://cognito-idp.{self.region}.amazonaws.com/")

from __future__ import annotations

import aiohttp
import pytest

from hive import ClientConfig, Credentials
from hive.auth.cognito import CognitoClient

from .fakecognito import MOCK_PWD, MOCK_USER, MockCognito


@pytest.fixture
def mock_cognito(mocker):
    """Return a fake user pool answering all identity provider requests."""
    mock_cognito = MockCognito()
    mocker.patch.object(aiohttp.ClientSession, "post", side_effect=mock_cognito.post)
    return mock_cognito


@pytest.fixture
def credentials() -> Credentials:
    return Credentials(MOCK_USER, MOCK_PWD)


@pytest.fixture
async def cognito():
    cognito = CognitoClient(ClientConfig())
    yield cognito
    await cognito.close()

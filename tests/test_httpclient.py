import asyncio
import re

import aiohttp
import pytest

from hive.clientconfig import ClientConfig
from hive.exceptions import (
    HiveException,
    TimeoutError,
    _ConnectionError,
)
from hive.httpclient import HttpClient

URL = "https://cognito-idp.eu-west-1.amazonaws.com/"


class _mock_response:
    def __init__(self, status, body: bytes = b"", error=None):
        self.status = status
        self.body = body
        self.error = error
        self.call_count = 0

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_t, exc_v, exc_tb):
        pass

    async def read(self):
        self.call_count += 1
        if self.error:
            raise self.error
        return self.body


@pytest.mark.parametrize(
    "error, error_raises, error_message",
    [
        (
            aiohttp.ServerDisconnectedError(),
            _ConnectionError,
            "Unable to connect to the identity provider: ",
        ),
        (
            aiohttp.ClientOSError(),
            _ConnectionError,
            "Unable to connect to the identity provider: ",
        ),
        (
            aiohttp.ServerTimeoutError(),
            TimeoutError,
            "Unable to query the identity provider, timed out: ",
        ),
        (
            asyncio.TimeoutError(),
            TimeoutError,
            "Unable to query the identity provider, timed out: ",
        ),
        (Exception(), HiveException, "Unable to query the identity provider: "),
        (
            aiohttp.ServerFingerprintMismatch("exp", "got", "host", 1),
            _ConnectionError,
            "Unable to connect to the identity provider: ",
        ),
    ],
    ids=(
        "ServerDisconnectedError",
        "ClientOSError",
        "ServerTimeoutError",
        "TimeoutError",
        "Exception",
        "ServerFingerprintMismatch",
    ),
)
@pytest.mark.parametrize("mock_read", (False, True), ids=("post", "read"))
async def test_httpclient_errors(mocker, error, error_raises, error_message, mock_read):
    mock_response = _mock_response(200, error=error)

    async def _post(url, *_, **__):
        nonlocal mock_response
        return mock_response

    side_effect = _post if mock_read else error

    conn = mocker.patch.object(aiohttp.ClientSession, "post", side_effect=side_effect)
    client = HttpClient(ClientConfig())
    # Exceptions with parameters print with double quotes, without use single quotes
    full_msg = (
        r"\("
        + "['\"]"
        + re.escape(f"{error_message}{URL}: {error}")
        + "['\"]"
        + re.escape(f", {repr(error)})")
    )
    with pytest.raises(error_raises, match=error_message) as exc_info:
        await client.post(URL, json={})

    assert re.match(full_msg, str(exc_info.value))
    if mock_read:
        assert mock_response.call_count == 1
    else:
        assert conn.call_count == 1
    await client.close()


def _patch_post(mocker, mock_response):
    async def _post(url, *_, **__):
        return mock_response

    return mocker.patch.object(aiohttp.ClientSession, "post", side_effect=_post)


async def test_post_payload(mocker):
    mock_response = _mock_response(200, b'{"Session": "abc"}')
    conn = _patch_post(mocker, mock_response)
    client = HttpClient(ClientConfig(timeout=3))

    status, resp = await client.post(
        URL, json={"ClientId": "id"}, headers={"X-Amz-Target": "target"}
    )

    assert status == 200
    assert resp == {"Session": "abc"}
    assert mock_response.call_count == 1
    kwargs = conn.call_args.kwargs
    assert kwargs["data"] == b'{"ClientId":"id"}'
    assert kwargs["headers"] == {"X-Amz-Target": "target"}
    assert kwargs["timeout"].total == 3
    await client.close()


@pytest.mark.parametrize(
    ("status", "body", "expected"),
    [
        pytest.param(400, b"Bad Request", (400, None), id="not-json"),
        pytest.param(500, b"", (500, None), id="empty"),
    ],
)
async def test_post_unparseable_error_response(mocker, status, body, expected):
    _patch_post(mocker, _mock_response(status, body))
    client = HttpClient(ClientConfig())

    assert await client.post(URL, json={}) == expected
    await client.close()


async def test_post_unparseable_success_response(mocker):
    _patch_post(mocker, _mock_response(200, b"<html>"))
    client = HttpClient(ClientConfig())

    with pytest.raises(HiveException) as exc_info:
        await client.post(URL, json={})

    assert type(exc_info.value) is HiveException
    assert isinstance(exc_info.value.__cause__, ValueError)
    await client.close()


async def test_shared_http_client():
    session = aiohttp.ClientSession()
    client = HttpClient(ClientConfig(http_client=session))

    assert client.client is session
    await client.close()
    assert not session.closed
    await session.close()

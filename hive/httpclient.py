"""Module for HttpClient class."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

import aiohttp
from yarl import URL

from .clientconfig import ClientConfig
from .exceptions import (
    HiveException,
    TimeoutError,
    _ConnectionError,
)
from .json import decode_body, encode_body

_LOGGER = logging.getLogger(__name__)


class HttpClient:
    """HttpClient Class."""

    def __init__(self, config: ClientConfig) -> None:
        self._config = config
        self._client_session: aiohttp.ClientSession | None = None

    @property
    def client(self) -> aiohttp.ClientSession:
        """Return the underlying http client."""
        if self._config.http_client and issubclass(
            self._config.http_client.__class__, aiohttp.ClientSession
        ):
            return self._config.http_client

        if not self._client_session:
            self._client_session = aiohttp.ClientSession()
        return self._client_session

    async def post(
        self,
        url: URL,
        *,
        json: dict[str, Any],
        headers: dict[str, str] | None = None,
    ) -> tuple[int, dict[str, Any] | None]:
        """Post a json payload and return the status and decoded json response.

        The payload is sent as raw data so the caller controls the content type,
        the identity provider expects ``application/x-amz-json-1.1``.
        """
        _LOGGER.debug("Posting to %s", url)
        response_data: dict[str, Any] | None = None
        if self._config.timeout is None:
            _LOGGER.warning("Request timeout is set to None.")
        client_timeout = aiohttp.ClientTimeout(total=self._config.timeout)

        try:
            resp = await self.client.post(
                url,
                data=encode_body(json),
                timeout=client_timeout,
                headers=headers,
            )
            async with resp:
                raw = await resp.read()

            if raw:
                try:
                    response_data = decode_body(raw)
                except ValueError:
                    if resp.status == 200:
                        raise
                    _LOGGER.debug(
                        "Received status code %s with a response "
                        "that could not be parsed as json",
                        resp.status,
                    )

        except (aiohttp.ServerTimeoutError, asyncio.TimeoutError) as ex:
            raise TimeoutError(
                "Unable to query the identity provider, " + f"timed out: {url}: {ex}",
                ex,
            ) from ex
        except aiohttp.ClientConnectionError as ex:
            raise _ConnectionError(
                f"Unable to connect to the identity provider: {url}: {ex}", ex
            ) from ex
        except Exception as ex:
            raise HiveException(
                f"Unable to query the identity provider: {url}: {ex}", ex
            ) from ex

        return resp.status, response_data

    async def close(self) -> None:
        """Close the ClientSession."""
        client = self._client_session
        self._client_session = None
        if client:
            await client.close()

"""Common cli module."""

from __future__ import annotations

import logging
import re
import sys
from datetime import datetime
from typing import Any, NoReturn

import asyncclick as click

from hive import Client, Credentials, Session, TrustedDevice
from hive.exceptions import DeviceNotTrustedError, MfaRequiredError
from hive.json import dumps_indented

_LOGGER = logging.getLogger(__name__)

pass_client = click.make_pass_decorator(Client)


try:
    from rich import print as _echo
except ImportError:
    # Only lower case tags are markup, so token values survive unchanged
    _RICH_MARKUP = re.compile(r"\[/?[a-z ]+]")

    def _echo(message: str = "", **kwargs) -> None:
        click.echo(_RICH_MARKUP.sub("", message), **kwargs)


def _json_output() -> bool:
    if (ctx := click.get_current_context(silent=True)) is None:
        return False
    return bool(ctx.find_root().params.get("json"))


def echo(message: str = "", **kwargs) -> None:
    """Print a message unless JSON output was requested."""
    if not _json_output():
        _echo(message, **kwargs)


def error(msg: str) -> NoReturn:
    """Print an error and exit."""
    echo(f"[bold red]{msg}[/bold red]")
    sys.exit(1)


def _to_serializable(val: Any) -> str:
    if isinstance(val, datetime):
        return val.isoformat()
    return str(val)


def json_formatter_cb(result: Any, **kwargs) -> None:
    """Print the command result as JSON, if requested."""
    if kwargs.get("json") and result is not None:
        print(dumps_indented(result, default=_to_serializable))


def session_to_dict(session: Session) -> dict[str, Any]:
    """Return the non-secret details of a session."""
    res: dict[str, Any] = {
        "issued_at": session.issued_at,
        "expires_at": session.expires_at,
        "device_key": session.device_key,
    }
    if new_device := session.new_device:
        res["new_device"] = {
            "device_key": new_device.device_key,
            "device_group_key": new_device.device_group_key,
        }
    return res


async def login_client(
    client: Client,
    credentials: Credentials,
    trusted_device: TrustedDevice | None,
    *,
    fallback_without_device: bool = False,
) -> Session:
    """Log in, prompting for an SMS code if one is required.

    A rejected trusted device is only dropped when ``fallback_without_device``
    is set, otherwise the rejection is raised.
    """
    try:
        return await _login(client, credentials, trusted_device)
    except DeviceNotTrustedError as ex:
        if trusted_device is None or not fallback_without_device:
            raise
        _LOGGER.warning(
            "Trusted device %s was rejected (%s), logging in without it",
            trusted_device.device_key,
            ex,
        )
    return await _login(client, credentials, None)


async def _login(
    client: Client, credentials: Credentials, trusted_device: TrustedDevice | None
) -> Session:
    try:
        return await client.login(credentials, trusted_device)
    except MfaRequiredError:
        code = await click.prompt("Enter the code sent by SMS")
        return await client.respond_to_mfa(code.strip())


def ReportErrors(cls):
    """Return a subclass of the click command class which prints errors.

    Tracebacks are only shown when ``--debug`` was given.
    """

    def _report(debug: bool, exc: Exception) -> NoReturn:
        match exc:
            case click.ClickException():
                raise exc
            case click.exceptions.Exit():
                sys.exit(exc.exit_code)
            case click.exceptions.Abort():
                sys.exit(0)

        echo(f"[red]{type(exc).__name__}[/red]: {exc}")
        if debug:
            raise exc
        echo("Run with --debug to see the stacktrace")
        sys.exit(1)

    class _CommandCls(cls):
        _debug = False

        async def make_context(self, info_name, args, parent=None, **extra):
            self._debug = "--debug" in args or "-d" in args
            try:
                return await super().make_context(
                    info_name, args, parent=parent, **extra
                )
            except Exception as exc:
                _report(self._debug, exc)

        async def invoke(self, ctx):
            try:
                return await super().invoke(ctx)
            except Exception as exc:
                _report(self._debug, exc)

    return _CommandCls

"""Main module for cli tool."""

from __future__ import annotations

import logging
import sys
from contextlib import asynccontextmanager
from typing import Any

import asyncclick as click

from hive import Client, ClientConfig, Credentials, TrustedDevice
from hive.clientconfig import DEFAULT_CLIENT_ID, DEFAULT_POOL_ID, DEFAULT_REGION
from hive.exceptions import InvalidDeviceDescriptorError

from .common import (
    ReportErrors,
    echo,
    error,
    json_formatter_cb,
    login_client,
    pass_client,
    session_to_dict,
)


@click.group(
    invoke_without_command=True,
    cls=ReportErrors(click.Group),
    result_callback=json_formatter_cb,
)
@click.option(
    "--username",
    default=None,
    required=False,
    envvar="HIVE_USERNAME",
    help="Username/email address of the Hive account.",
)
@click.option(
    "--password",
    default=None,
    required=False,
    envvar="HIVE_PASSWORD",
    help="Password of the Hive account.",
)
@click.option(
    "--device-key",
    default=None,
    required=False,
    envvar="HIVE_DEVICE_KEY",
    help="Key of a trusted device to log in with.",
)
@click.option(
    "--device-group-key",
    default=None,
    required=False,
    envvar="HIVE_DEVICE_GROUP_KEY",
    help="Group key of the trusted device.",
)
@click.option(
    "--device-password",
    default=None,
    required=False,
    envvar="HIVE_DEVICE_PASSWORD",
    help="Password of the trusted device.",
)
@click.option(
    "--fallback-without-device",
    envvar="HIVE_FALLBACK_WITHOUT_DEVICE",
    default=False,
    is_flag=True,
    help="Log in without the trusted device if it is rejected.",
)
@click.option(
    "--region",
    envvar="HIVE_REGION",
    default=DEFAULT_REGION,
    show_default=True,
    help="Region of the user pool.",
)
@click.option(
    "--pool-id",
    envvar="HIVE_POOL_ID",
    default=DEFAULT_POOL_ID,
    show_default=True,
    help="Id of the user pool.",
)
@click.option(
    "--client-id",
    envvar="HIVE_CLIENT_ID",
    default=DEFAULT_CLIENT_ID,
    show_default=True,
    help="App client id registered with the user pool.",
)
@click.option(
    "--timeout",
    envvar="HIVE_TIMEOUT",
    default=ClientConfig.DEFAULT_TIMEOUT,
    type=int,
    required=False,
    show_default=True,
    help="Timeout for identity provider requests.",
)
@click.option(
    "-d",
    "--debug",
    envvar="HIVE_DEBUG",
    default=False,
    is_flag=True,
    help="Print debug output",
)
@click.option(
    "--json/--no-json",
    envvar="HIVE_JSON",
    default=False,
    is_flag=True,
    help="Output results as JSON.",
)
@click.version_option(package_name="python-hive")
@click.pass_context
async def cli(
    ctx,
    username,
    password,
    device_key,
    device_group_key,
    device_password,
    fallback_without_device,
    region,
    pool_id,
    client_id,
    timeout,
    debug,
    json,
):
    """A tool for logging in to Hive."""  # noqa
    # no need to perform any checks if we are just displaying the help
    if "--help" in sys.argv:
        # Context object is required to avoid crashing on sub-groups
        ctx.obj = object()
        return

    logging_config: dict[str, Any] = {
        "level": logging.DEBUG if debug > 0 else logging.INFO
    }
    try:
        from rich.logging import RichHandler

        rich_config = {
            "show_time": False,
        }
        logging_config["handlers"] = [RichHandler(**rich_config)]
        logging_config["format"] = "%(message)s"
    except ImportError:
        pass

    # The configuration should be converted to use dictConfig,
    # but this keeps mypy happy for now
    logging.basicConfig(**logging_config)  # type: ignore

    if not username or not password:
        raise click.BadOptionUsage(
            "username", "Logging in requires both --username and --password"
        )
    credentials = Credentials(username=username, password=password)

    trusted_device = None
    if device_key or device_group_key or device_password:
        try:
            trusted_device = TrustedDevice(
                device_key=device_key or "",
                device_group_key=device_group_key or "",
                device_password=device_password or "",
            )
        except InvalidDeviceDescriptorError as ex:
            raise click.BadOptionUsage("device_key", str(ex)) from ex

    config = ClientConfig(
        region=region, pool_id=pool_id, client_id=client_id, timeout=timeout
    )
    client = Client(config)

    @asynccontextmanager
    async def async_wrapped_client(client: Client):
        try:
            yield client
        finally:
            await client.close()

    ctx.obj = await ctx.with_async_resource(async_wrapped_client(client))
    await login_client(
        client,
        credentials,
        trusted_device,
        fallback_without_device=fallback_without_device,
    )

    if ctx.invoked_subcommand is None:
        return await ctx.invoke(login)


@cli.command()
@pass_client
async def login(client: Client):
    """Log in and show the session details."""
    if (session := client.session) is None:
        error("Not logged in")

    echo(f"[bold]Logged in[/bold], tokens expire at {session.expires_at}")
    if session.device_key:
        echo(f"Device key: {session.device_key}")
    if new_device := session.new_device:
        echo(
            f"New device issued: {new_device.device_key}"
            f" (group {new_device.device_group_key}),"
            " use confirm-device to trust it"
        )
    return session_to_dict(session)


@cli.command()
@pass_client
async def token(client: Client):
    """Print the value for the Authorization header."""
    headers = await client.authorization_headers()
    echo(headers["Authorization"])
    return headers


@cli.command()
@click.argument("name")
@pass_client
async def confirm_device(client: Client, name: str):
    """Confirm this client as a trusted device called NAME."""
    device = await client.confirm_device(name)
    echo(f"Confirmed device [bold]{name}[/bold]")
    echo(f"HIVE_DEVICE_KEY={device.device_key}")
    echo(f"HIVE_DEVICE_GROUP_KEY={device.device_group_key}")
    echo(f"HIVE_DEVICE_PASSWORD={device.device_password}")
    return {
        "device_key": device.device_key,
        "device_group_key": device.device_group_key,
        "device_password": device.device_password,
    }


@cli.command()
@pass_client
async def logout(client: Client):
    """Log out, invalidating all tokens of the account."""
    await client.logout()
    echo("Logged out")
    return {"logged_out": True}


if __name__ == "__main__":
    cli()

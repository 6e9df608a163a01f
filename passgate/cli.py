"""
Command-line interface for passgate.
"""

from __future__ import annotations

import os
from pathlib import Path

import click

from passgate.client.application.session_manager import AuthSession
from passgate.client.client import AuthClient
from passgate.client.infrastructure.wallet import LocalWalletSigner
from passgate.common.config import Config
from passgate.common.exceptions import AuthError
from passgate.common.models import ClientConfig
from passgate.server import start_server
from passgate.server.keygen import KeyGenerator


@click.group()
def cli() -> None:
    """Passgate session authentication CLI"""


@cli.command()
@click.option(
    "--keys-dir",
    default=None,
    help="Directory to save keys (default: ./passgate/server)",
)
@click.option("--force", is_flag=True, help="Overwrite existing keys")
def keygen(keys_dir: str | None, force: bool) -> None:  # noqa: FBT001
    """Generate server Ed25519 keys"""
    generator = KeyGenerator(Path(keys_dir) if keys_dir else None)
    try:
        generator.generate_keys(overwrite=force)
    except FileExistsError as e:
        raise click.ClickException(str(e)) from e
    click.echo("Keys generated and saved")


@cli.command()
@click.argument("path", type=click.Path(dir_okay=False, path_type=Path))
def wallet(path: Path) -> None:
    """Create a local wallet key at PATH, or show the address of an existing one"""
    if path.exists():
        signer = LocalWalletSigner.load(path)
    else:
        signer = LocalWalletSigner()
        signer.save(path)
        click.echo(f"Wallet key written to {path}")
    click.echo(signer.address())


@cli.command()
@click.option(
    "--keys-dir",
    default=None,
    help="Directory to load keys from (default: ./passgate/server)",
)
@click.option(
    "--host",
    default=None,
    help="Host to bind server to (default: from PASSGATE_SERVER_HOST env or 127.0.0.1)",
)
@click.option(
    "--port",
    default=None,
    type=int,
    help="Port to bind server to (default: from PASSGATE_SERVER_PORT env or 8000)",
)
def serve(keys_dir: str | None, host: str | None, port: int | None) -> None:
    """Start the authentication server"""
    # Set environment variables before building the config
    if keys_dir:
        os.environ["PASSGATE_KEYS_DIR"] = keys_dir
    if host:
        os.environ["PASSGATE_SERVER_HOST"] = host
    if port:
        os.environ["PASSGATE_SERVER_PORT"] = str(port)

    if not os.getenv("PASSGATE_CHAIN_RPC_URL"):
        msg = "ERROR: PASSGATE_CHAIN_RPC_URL env var must point at a fullnode."
        raise click.ClickException(msg)

    config = Config()
    try:
        start_server(config)
    except ValueError as e:
        raise click.ClickException(str(e)) from e


@cli.command()
@click.option(
    "--wallet",
    "wallet_path",
    required=True,
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help="Wallet key created with 'passgate wallet'",
)
@click.option("--server-url", default=None, help="Verifier base URL")
@click.option("--ttl", default=None, type=int, help="Session key TTL in minutes")
def login(wallet_path: Path, server_url: str | None, ttl: int | None) -> None:
    """Certify a session key with a local wallet and log in"""
    client = AuthClient(ClientConfig(server_url=server_url, ttl_minutes=ttl))
    session = AuthSession(client, LocalWalletSigner.load(wallet_path))
    session.create_key()
    try:
        result = session.login()
    except AuthError as e:
        raise click.ClickException(f"Login failed: {e}") from e

    click.echo(f"Address: {session.signer.address()}")
    click.echo(f"New user: {result.is_new_user}")
    click.echo(f"Game entry: {result.has_game_entry}")
    if result.credentials is not None:
        click.echo(f"Token expires at: {result.credentials.expires_at}")


if __name__ == "__main__":
    cli()

from __future__ import annotations

import logging
import shlex
import signal
import subprocess
import threading

import typer

from .client import VaultClient, VaultError
from .config import ConfigError, VaultConfig, get_env, load_vault_config_from_env
from .hashing import InvalidInputError, calculate_hash
from .watcher import Watcher, WatcherError

app = typer.Typer(add_completion=False, help="vaultwatch: react to changes in a Vault secret")


def _load_config(host: str | None, path: str | None, token: str | None) -> VaultConfig:
    try:
        if host is None and path is None and token is None:
            return load_vault_config_from_env()

        # Options override the environment field by field
        config = VaultConfig(
            host=host or get_env("VAULT_HOST"),
            path=path or get_env("VAULT_PATH"),
            token=token or get_env("VAULT_TOKEN"),
        )
        for option, env_var, value in (
            ("--host", "VAULT_HOST", config.host),
            ("--path", "VAULT_PATH", config.path),
            ("--token", "VAULT_TOKEN", config.token),
        ):
            if not value:
                raise ConfigError(f"{option} or {env_var} is required")
        return config
    except ConfigError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _run_command(command: str) -> None:
    result = subprocess.run(shlex.split(command))
    if result.returncode != 0:
        raise RuntimeError(f"command exited with status {result.returncode}")


@app.command("hash")
def hash_cmd(
    host: str | None = typer.Option(None, "--host", help="Vault address (default: $VAULT_HOST)"),
    path: str | None = typer.Option(None, "--path", help="Secret path (default: $VAULT_PATH)"),
    token: str | None = typer.Option(None, "--token", help="Vault token (default: $VAULT_TOKEN)"),
) -> None:
    """Fetch the secret once and print its hash."""
    config = _load_config(host, path, token)
    client = VaultClient(config.host, config.token)

    try:
        digest = calculate_hash(client.read(config.path))
    except (VaultError, InvalidInputError) as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    typer.echo(digest)


@app.command("watch")
def watch_cmd(
    host: str | None = typer.Option(None, "--host", help="Vault address (default: $VAULT_HOST)"),
    path: str | None = typer.Option(None, "--path", help="Secret path (default: $VAULT_PATH)"),
    token: str | None = typer.Option(None, "--token", help="Vault token (default: $VAULT_TOKEN)"),
    interval: float = typer.Option(30.0, "--interval", "-i", help="Seconds between checks"),
    exec_cmd: str | None = typer.Option(None, "--exec", help="Command to run on every change"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Watch the secret until interrupted."""
    _configure_logging(verbose)
    config = _load_config(host, path, token)

    def on_change() -> None:
        typer.secho(f"Change detected at {config.path}", fg=typer.colors.CYAN)
        if exec_cmd:
            _run_command(exec_cmd)

    try:
        watcher = Watcher(config, interval, on_change)
    except ConfigError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=2) from exc

    try:
        watcher.start()
    except WatcherError as exc:
        typer.secho(f"Error: {exc}", fg=typer.colors.RED)
        raise typer.Exit(code=1) from exc

    typer.secho(f"Watching {config.path} every {interval:g}s", fg=typer.colors.GREEN)
    typer.echo(f"Initial hash: {watcher.get_current_hash()}")

    done = threading.Event()
    previous = {}
    for sig in (signal.SIGINT, signal.SIGTERM):
        previous[sig] = signal.signal(sig, lambda signum, frame: done.set())

    try:
        while not done.wait(1.0):
            pass
    finally:
        for sig, handler in previous.items():
            signal.signal(sig, handler)
        typer.echo("Stopping watcher...")
        watcher.stop()


if __name__ == "__main__":
    app()

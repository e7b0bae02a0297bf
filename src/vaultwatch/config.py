from __future__ import annotations

import os
from dataclasses import dataclass, field


@dataclass(frozen=True)
class VaultConfig:
    host: str   # e.g., "https://vault.example.com:8200"
    path: str   # e.g., "kv/data/myapp/config"
    token: str = field(repr=False)


class ConfigError(ValueError):
    pass


def get_env(key: str, default: str = "") -> str:
    """Return the environment value, or default when unset or empty."""
    value = os.environ.get(key)
    if not value:
        return default
    return value


def load_vault_config_from_env() -> VaultConfig:
    host = get_env("VAULT_HOST")
    path = get_env("VAULT_PATH")
    token = get_env("VAULT_TOKEN")

    if not host:
        raise ConfigError("VAULT_HOST environment variable is required")
    if not path:
        raise ConfigError("VAULT_PATH environment variable is required")
    if not token:
        raise ConfigError("VAULT_TOKEN environment variable is required")

    return VaultConfig(host=host, path=path, token=token)

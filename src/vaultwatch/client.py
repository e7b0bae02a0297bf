# src/vaultwatch/client.py
from __future__ import annotations

from typing import Any

import requests


class VaultError(RuntimeError):
    pass


class VaultConnectionError(VaultError):
    pass


class VaultAuthError(VaultError):
    pass


class VaultNotFoundError(VaultError):
    pass


class VaultResponseError(VaultError):
    pass


class VaultClient:
    def __init__(self, host: str, token: str, timeout: float = 30.0) -> None:
        self.host = host.rstrip("/")
        self.timeout = timeout
        self._token = token

    def __repr__(self) -> str:
        return f"VaultClient(host={self.host!r})"

    def read(self, path: str) -> dict[str, Any]:
        """
        Read a secret and return its key/value data.

        KV v2 responses nest the secret under data.data; anything else
        (KV v1, generic engines) is returned from data directly.

        Raises:
            VaultConnectionError: request never got a response
            VaultAuthError: token rejected (401/403)
            VaultNotFoundError: nothing stored at path
            VaultResponseError: unexpected status or body
        """
        url = f"{self.host}/v1/{path.lstrip('/')}"
        try:
            resp = requests.get(
                url,
                headers={"X-Vault-Token": self._token},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise VaultConnectionError(f"failed to read secret from vault: {e}") from e

        if resp.status_code in (401, 403):
            raise VaultAuthError(f"failed to read secret from vault: permission denied ({resp.status_code})")
        if resp.status_code == 404:
            raise VaultNotFoundError(f"failed to read secret from vault: no secret at {path}")
        if resp.status_code == 204 or not resp.content:
            raise VaultNotFoundError("failed to read secret from vault: secret is nil")
        if not 200 <= resp.status_code < 300:
            raise VaultResponseError(f"failed to read secret from vault: unexpected status {resp.status_code}")

        try:
            body = resp.json()
        except ValueError as e:
            raise VaultResponseError(f"failed to read secret from vault: invalid JSON: {e}") from e

        if not isinstance(body, dict):
            raise VaultResponseError("failed to read secret from vault: response is not an object")

        data = body.get("data")
        if data is None:
            raise VaultResponseError("failed to read secret from vault: secret data is nil")
        if not isinstance(data, dict):
            raise VaultResponseError("failed to read secret from vault: secret data is not an object")

        # KV v2
        if isinstance(data.get("data"), dict):
            return data["data"]
        return data

"""Global pytest fixtures for the vaultwatch test suite.

Watcher tests never talk to a real Vault. They inject a scripted reader in
place of VaultClient: each read() pops the next scripted item (a snapshot
dict, or an exception to raise), and the last item repeats forever so a
polling loop can keep running after the script is exhausted.

VAULT_* variables from the developer's shell are cleared for every test so
config tests see a known environment.
"""

import threading

import pytest

from vaultwatch.config import VaultConfig


class ScriptedReader:
    def __init__(self, *items):
        self._lock = threading.Lock()
        self._items = list(items)
        self.calls = 0
        self.paths = []

    def read(self, path):
        with self._lock:
            self.calls += 1
            self.paths.append(path)
            item = self._items[0] if len(self._items) == 1 else self._items.pop(0)
        if isinstance(item, BaseException):
            raise item
        return item

    def set(self, item):
        """Replace the remaining script with a single repeating item."""
        with self._lock:
            self._items = [item]


@pytest.fixture(autouse=True)
def clear_vault_env(monkeypatch):
    for key in ("VAULT_HOST", "VAULT_PATH", "VAULT_TOKEN"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture
def vault_config():
    return VaultConfig(
        host="https://vault.example.com",
        path="kv/data/test",
        token="test-token",
    )


@pytest.fixture
def scripted_reader():
    return ScriptedReader


@pytest.fixture
def make_watcher(vault_config):
    """Build watchers on a scripted reader; every one is stopped at teardown."""
    from vaultwatch.watcher import Watcher

    created = []

    def _make(*items, on_change=None, interval=0.02):
        reader = ScriptedReader(*items)
        watcher = Watcher(vault_config, interval, on_change or (lambda: None), client=reader)
        created.append(watcher)
        return watcher, reader

    yield _make

    for watcher in created:
        watcher.stop()

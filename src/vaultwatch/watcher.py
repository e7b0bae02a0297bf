"""Vault path watcher: periodic fetch, fingerprint and change callback."""
from __future__ import annotations

import logging
import math
import threading
import time
from datetime import timedelta
from typing import Any, Callable, Mapping, Protocol

from .client import VaultClient
from .config import ConfigError, VaultConfig
from .hashing import calculate_hash
from .locks import ReadWriteLock

log = logging.getLogger(__name__)


class SecretReader(Protocol):
    """Anything that can return the key/value data stored at a path."""

    def read(self, path: str) -> Mapping[str, Any]:
        ...


class WatcherError(RuntimeError):
    pass


class AlreadyStartedError(WatcherError):
    pass


class StartError(WatcherError):
    pass


class Watcher:
    """
    Monitors a Vault path for changes by comparing hashes of its data.

    start() takes a baseline hash synchronously, then a daemon thread
    re-reads the path every check_interval seconds. When the hash differs
    from the stored one, on_change is called (never while holding the state
    lock) and the stored hash advances, whether or not the callback raised.

    Poll and callback failures are logged and never stop the loop; only
    stop() does.
    """

    def __init__(
        self,
        config: VaultConfig | None,
        check_interval: float | timedelta,
        on_change: Callable[[], Any] | None,
        client: SecretReader | None = None,
    ):
        """
        Args:
            config: Vault connection configuration
            check_interval: Seconds between checks (e.g., 30)
            on_change: Zero-argument callable run when changes are detected
            client: Optional reader to use instead of a VaultClient

        Raises:
            ConfigError: First invalid argument, checked in signature order
        """
        if config is None:
            raise ConfigError("vault config cannot be None")
        if not config.host:
            raise ConfigError("VAULT_HOST is required")
        if not config.path:
            raise ConfigError("VAULT_PATH is required")
        if not config.token:
            raise ConfigError("VAULT_TOKEN is required")
        if on_change is None:
            raise ConfigError("on_change callback cannot be None")
        if not callable(on_change):
            raise ConfigError("on_change callback must be callable")

        if isinstance(check_interval, timedelta):
            check_interval = check_interval.total_seconds()
        if not math.isfinite(check_interval) or not 0 < check_interval <= threading.TIMEOUT_MAX:
            raise ConfigError("check_interval must be positive and finite")

        self.config = config
        self.check_interval = float(check_interval)
        self.on_change = on_change
        self.client = client if client is not None else VaultClient(config.host, config.token)

        # Guarded by _lock
        self._lock = ReadWriteLock()
        self._current_hash = ""
        self._started = False
        self._stop_event: threading.Event | None = None
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        """
        Take the baseline hash and launch the polling thread.

        Raises:
            AlreadyStartedError: a run is already active
            StartError: the baseline fetch or hash failed; start() can be retried
        """
        with self._lock.write_locked():
            if self._started:
                raise AlreadyStartedError("watcher is already started")
            self._started = True
            stop_event = threading.Event()
            self._stop_event = stop_event
            previous = self._thread

        # A loop stopped from inside its own callback may still be finishing it
        if previous is not None and previous is not threading.current_thread():
            previous.join()

        try:
            data = self.client.read(self.config.path)
            initial_hash = calculate_hash(data)
        except Exception as e:
            self._abort_start(stop_event)
            raise StartError(f"failed to calculate initial hash: {e}") from e
        except BaseException:
            self._abort_start(stop_event)
            raise

        with self._lock.write_locked():
            if stop_event.is_set():
                log.info(f"Watcher for {self.config.path} stopped during start, not polling")
                return
            self._current_hash = initial_hash
            thread = threading.Thread(
                target=self._monitor,
                args=(stop_event,),
                name=f"vaultwatch-{self.config.path}",
                daemon=True,
            )
            self._thread = thread
            thread.start()

        log.info(f"Watching {self.config.path} every {self.check_interval:g}s (hash {initial_hash[:12]})")

    def stop(self) -> None:
        """
        Cancel the polling thread and wait for it to exit.

        Safe to call any number of times, before start(), and from inside
        on_change. In that case the loop exits once the callback returns,
        and a later start() from another thread waits for it first. A start()
        made from inside that same callback cannot wait, so the old loop
        overlaps the new one until the callback returns.
        """
        with self._lock.write_locked():
            stop_event = self._stop_event
            thread = self._thread
            if stop_event is None:
                return
            stop_event.set()

        joined = thread is None or thread is not threading.current_thread()
        if thread is not None and joined:
            thread.join()

        with self._lock.write_locked():
            if self._stop_event is stop_event:
                self._started = False
                self._stop_event = None
                if joined:
                    self._thread = None

        log.info(f"Stopped watching {self.config.path}")

    def get_current_hash(self) -> str:
        """Hash of the last observed data, or "" before the first successful start."""
        with self._lock.read_locked():
            return self._current_hash

    def is_started(self) -> bool:
        with self._lock.read_locked():
            return self._started

    def _abort_start(self, stop_event: threading.Event) -> None:
        with self._lock.write_locked():
            if self._stop_event is stop_event:
                self._started = False
                self._stop_event = None

    def _monitor(self, stop_event: threading.Event) -> None:
        interval = self.check_interval
        next_tick = time.monotonic() + interval

        while not stop_event.wait(max(0.0, next_tick - time.monotonic())):
            try:
                self._check_for_changes(stop_event)
            except Exception as e:
                log.warning(f"Error checking for vault changes at {self.config.path}: {e}")

            # Drop ticks missed while the cycle ran
            now = time.monotonic()
            next_tick += interval
            if next_tick <= now:
                next_tick += ((now - next_tick) // interval + 1) * interval

    def _check_for_changes(self, stop_event: threading.Event) -> bool:
        """
        Run one polling cycle.

        Returns True when a change was detected. Fetch and hash errors
        propagate to the caller; callback errors are logged here.
        """
        data = self.client.read(self.config.path)
        new_hash = calculate_hash(data)

        if stop_event.is_set():
            return False

        with self._lock.read_locked():
            current_hash = self._current_hash

        if new_hash == current_hash:
            log.debug(f"No change at {self.config.path}")
            return False

        log.info(f"Change detected at {self.config.path}: {current_hash[:12]} -> {new_hash[:12]}")
        try:
            self.on_change()
        except (Exception, SystemExit) as e:
            log.error(f"on_change callback failed for {self.config.path}: {e}", exc_info=True)

        with self._lock.write_locked():
            # A newer run owns the hash once a later start() has replaced our event
            if self._stop_event is stop_event or self._stop_event is None:
                self._current_hash = new_hash

        return True

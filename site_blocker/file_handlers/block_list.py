#!/usr/bin/env python3
import contextlib
import json
import logging
import os
import tempfile

import lockfile

from site_blocker.constants import CONFIG_FILENAME, DATA_DIR, LOCK_TIMEOUT
from site_blocker.exceptions import ConfigReadError, ConfigWriteError
from site_blocker.models import BlockerConfig
from site_blocker.utils.daemon import acquire_pid_lock
from site_blocker.utils.domains import normalize_domains


class ConfigStore:
    """JSON-backed list of blocked domains plus the enabled flag.

    Mutations are serialized across processes with an advisory lock next to
    the config file and only hit the disk when something actually changed.
    """

    def __init__(self, config_path=None, lock_timeout=LOCK_TIMEOUT):
        self.config_path = config_path or os.path.join(DATA_DIR, CONFIG_FILENAME)
        self.lock_timeout = lock_timeout

    def _ensure_config_directory(self):
        """Create config directory if it doesn't exist"""
        config_dir = os.path.dirname(os.path.abspath(self.config_path))
        if not os.path.exists(config_dir):
            try:
                os.makedirs(config_dir, exist_ok=True)
                logging.info(f"Created config directory: {config_dir}")
            except OSError as e:
                raise ConfigWriteError(f"Failed to create config directory {config_dir}: {e}") from e

    @contextlib.contextmanager
    def _locked(self):
        self._ensure_config_directory()
        lock_path = self.config_path + ".lock"
        try:
            lock = acquire_pid_lock(lock_path, self.lock_timeout)
        except lockfile.LockError as e:
            raise ConfigWriteError(
                f"Could not acquire config lock on {self.config_path}: {e}",
                {"lock_file": lock_path},
            ) from e
        try:
            yield
        finally:
            lock.release()

    def load(self):
        """Read the config, creating a default one if it doesn't exist"""
        if not os.path.exists(self.config_path):
            config = BlockerConfig()
            self.save(config)
            logging.info(f"Created default config at {self.config_path}")
            return config

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ConfigReadError(f"Malformed config file {self.config_path}: {e}") from e
        except OSError as e:
            raise ConfigReadError(f"Failed to read config file {self.config_path}: {e}") from e

        if not isinstance(data, dict):
            raise ConfigReadError(f"Config file {self.config_path} does not contain a JSON object")
        domains = data.get("domains", [])
        if not isinstance(domains, list) or not all(isinstance(d, str) for d in domains):
            raise ConfigReadError(
                f"Config file {self.config_path}: 'domains' must be a list of strings",
                {"domains": domains},
            )
        if "enabled" in data and not isinstance(data["enabled"], bool):
            raise ConfigReadError(
                f"Config file {self.config_path}: 'enabled' must be true or false",
                {"enabled": data["enabled"]},
            )
        return BlockerConfig.from_dict(data)

    def save(self, config):
        """Atomically replace the config file"""
        self._ensure_config_directory()
        config_dir = os.path.dirname(os.path.abspath(self.config_path))
        tmp_path = None
        try:
            with tempfile.NamedTemporaryFile(
                "w", encoding="utf-8", delete=False, dir=config_dir, prefix=".blocked-", suffix=".tmp"
            ) as tf:
                json.dump(config.to_dict(), tf, indent=2)
                tf.write("\n")
                tmp_path = tf.name
            os.replace(tmp_path, self.config_path)
        except OSError as e:
            if tmp_path:
                with contextlib.suppress(FileNotFoundError):
                    os.remove(tmp_path)
            raise ConfigWriteError(f"Failed to save config to {self.config_path}: {e}") from e

    def add(self, domains):
        """Add domains to the block list, returning the ones that were new"""
        normalized = normalize_domains(domains)
        with self._locked():
            config = self.load()
            added = []
            for domain in normalized:
                if domain not in config.domains:
                    config.domains.append(domain)
                    added.append(domain)
            if added:
                self.save(config)
                logging.info(f"Added {len(added)} domains to block list")
            else:
                logging.info("No new domains to add to block list")
        return added

    def remove(self, domains):
        """Remove domains from the block list, returning the ones that were present"""
        normalized = normalize_domains(domains)
        with self._locked():
            config = self.load()
            removed = []
            for domain in normalized:
                if domain in config.domains:
                    config.domains.remove(domain)
                    removed.append(domain)
            if removed:
                self.save(config)
                logging.info(f"Removed {len(removed)} domains from block list")
        return removed

    def set_enabled(self, enabled):
        with self._locked():
            config = self.load()
            config.enabled = bool(enabled)
            self.save(config)
        logging.info(f"Blocking flag set to {config.enabled}")

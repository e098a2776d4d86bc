#!/usr/bin/env python3
import contextlib
import logging
import os

import lockfile

from site_blocker.constants import CONFIG_FILENAME, DATA_DIR, HOSTS_LOCK_NAME, HOSTS_PATH, LOCK_TIMEOUT
from site_blocker.exceptions import NoDomainsError, SiteBlockerError
from site_blocker.file_handlers.access_log import AccessLogReader
from site_blocker.file_handlers.block_list import ConfigStore
from site_blocker.file_handlers.hosts_file import HostsFileHandler
from site_blocker.core.privileged import PrivilegedWriter
from site_blocker.utils.daemon import LoggerDaemonSupervisor, acquire_pid_lock
from site_blocker.utils.elevation import ElevatedRunner


class SiteBlocker:
    """Operations offered to the UI layer.

    The config file is the source of truth. The hosts file is brought in line
    with it whenever blocking is enabled.
    """

    def __init__(self, data_dir=DATA_DIR, hosts_path=HOSTS_PATH, config_store=None,
                 writer=None, supervisor=None, log_reader=None, runner=None,
                 lock_timeout=LOCK_TIMEOUT):
        self.data_dir = data_dir
        self.lock_timeout = lock_timeout
        runner = runner or ElevatedRunner()
        self.config_store = config_store or ConfigStore(os.path.join(data_dir, CONFIG_FILENAME), lock_timeout)
        self.supervisor = supervisor or LoggerDaemonSupervisor(runner=runner)
        self.writer = writer or PrivilegedWriter(hosts_path=hosts_path, supervisor=self.supervisor, runner=runner)
        self.log_reader = log_reader or AccessLogReader(data_dir)
        self.hosts_handler = HostsFileHandler(hosts_path)

    @contextlib.contextmanager
    def _hosts_lock(self):
        os.makedirs(self.data_dir, exist_ok=True)
        lock_path = os.path.join(self.data_dir, HOSTS_LOCK_NAME)
        try:
            lock = acquire_pid_lock(lock_path, self.lock_timeout)
        except lockfile.LockError as e:
            raise SiteBlockerError("Another hosts update is in progress", {"lock_file": lock_path}) from e
        try:
            yield
        finally:
            lock.release()

    def _apply(self, domains):
        with self._hosts_lock():
            self.writer.apply(domains)

    def _sync_if_enabled(self, action):
        """Re-apply the stored domains after a change; failures only get logged"""
        try:
            config = self.config_store.load()
            if config.enabled:
                logging.info(f"{action}: blocking enabled, syncing hosts")
                self._apply(config.domains)
        except (SiteBlockerError, OSError) as e:
            logging.error(f"{action}: hosts sync failed: {e}")

    def get_domains(self):
        return self.config_store.load().domains

    def add_domain(self, domain):
        """Add a domain; returns the list of domains actually added"""
        added = self.config_store.add([domain])
        if added:
            self._sync_if_enabled("add-domain")
        return added

    def remove_domain(self, domain):
        """Remove a domain; returns the list of domains actually removed"""
        removed = self.config_store.remove([domain])
        if removed:
            self._sync_if_enabled("remove-domain")
        return removed

    def is_active(self):
        return self.hosts_handler.is_active()

    def get_status(self):
        """Blocking is on only when the flag is set and the hosts block is present"""
        try:
            config = self.config_store.load()
            active = self.is_active()
        except (SiteBlockerError, OSError) as e:
            logging.warning(f"Could not determine blocking status: {e}")
            return False
        status = config.enabled and active
        logging.info(f"Status: {status} (enabled = {config.enabled}, active = {active})")
        return status

    def enable_blocking(self):
        config = self.config_store.load()
        if not config.domains:
            raise NoDomainsError("No domains to block. Add some first.")
        self._apply(config.domains)
        self.config_store.set_enabled(True)
        logging.info(f"Blocking enabled for {len(config.domains)} domains")

    def disable_blocking(self):
        self._apply([])
        self.config_store.set_enabled(False)
        logging.info("Blocking disabled")

    def get_access_log(self, days=None):
        entries = self.log_reader.read(days)
        logging.info(f"Access log: days = {days}, entries = {len(entries)}")
        return entries

    def needs_hosts_sync(self, domains):
        return self.hosts_handler.needs_sync(domains)

    def reconcile(self):
        """Bring flag, hosts file and logger daemon in line at startup"""
        config = self.config_store.load()
        active = self.is_active()
        if not config.enabled and active and config.domains:
            # Older configs had no flag; a present block means blocking was on
            self.config_store.set_enabled(True)
            config = self.config_store.load()
            logging.info("Startup: migrated enabled flag from active hosts state")

        should_be_enabled = config.enabled and bool(config.domains)
        logging.info(f"Startup: should be enabled = {should_be_enabled}, active = {active}")
        if not should_be_enabled:
            return

        try:
            if not active or self.needs_hosts_sync(config.domains):
                logging.info("Startup: re-syncing hosts file for active blocking")
                self._apply(config.domains)
        except (SiteBlockerError, OSError) as e:
            logging.error(f"Startup: hosts sync check/repair failed: {e}")

        if not self.supervisor.is_running():
            logging.info("Startup: logger not running, attempting start")
            self.supervisor.ensure_running()

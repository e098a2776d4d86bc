#!/usr/bin/env python3
import contextlib
import logging
import os
import tempfile

from site_blocker.constants import (
    DSCACHEUTIL,
    HOSTS_BACKUP_PATH,
    HOSTS_PATH,
    KILLALL,
    RESOLVER_SERVICE,
)
from site_blocker.file_handlers.hosts_file import HostsFileHandler, build_content, check_hosts_safety
from site_blocker.utils.daemon import LoggerDaemonSupervisor
from site_blocker.utils.elevation import ElevatedRunner, PrivilegedStep


@contextlib.contextmanager
def staged_hosts_file(content, tmp_dir=None):
    """Write content to a private temp file and remove it on every exit path.
    Undecodable bytes read from the hosts file are written back unchanged.
    """
    tf = tempfile.NamedTemporaryFile(
        "w", encoding="utf-8", errors="surrogateescape", delete=False, dir=tmp_dir, prefix="site-blocker-hosts-"
    )
    tmp_path = tf.name
    try:
        with tf:
            tf.write(content)
        yield tmp_path
    finally:
        with contextlib.suppress(FileNotFoundError):
            os.remove(tmp_path)


class PrivilegedWriter:
    """Applies a domain set to the hosts file behind one authorization prompt.

    Backing up, installing and chmod-ing the hosts file must succeed. Cache
    flushing, resolver restart and the logger toggle are best-effort and never
    fail the transaction.
    """

    def __init__(self, hosts_path=HOSTS_PATH, backup_path=HOSTS_BACKUP_PATH,
                 supervisor=None, runner=None, tmp_dir=None):
        self.hosts_path = hosts_path
        self.backup_path = backup_path
        self.runner = runner or ElevatedRunner()
        self.supervisor = supervisor or LoggerDaemonSupervisor(runner=self.runner)
        self.hosts_handler = HostsFileHandler(hosts_path)
        self.tmp_dir = tmp_dir

    def build_steps(self, staged_path, domains, logger_script=None):
        steps = [
            PrivilegedStep("backup", ["cp", self.hosts_path, self.backup_path]),
            PrivilegedStep("install", ["cp", staged_path, self.hosts_path]),
            PrivilegedStep("permissions", ["chmod", "644", self.hosts_path]),
            PrivilegedStep("flush-cache", [DSCACHEUTIL, "-flushcache"], required=False),
            PrivilegedStep("restart-resolver", [KILLALL, "-HUP", RESOLVER_SERVICE], required=False),
        ]
        if logger_script:
            if domains:
                steps.append(self.supervisor.start_step(logger_script))
            else:
                steps.append(self.supervisor.stop_step(logger_script))
        return steps

    def apply(self, domains):
        """Rewrite the managed block for domains; an empty list removes it.
        Raises SafetyCheckError or PrivilegedWriteError.
        """
        domains = list(domains)
        logging.info(f"Applying hosts block for {len(domains)} domains")
        current = self.hosts_handler.read()
        check_hosts_safety(current)
        new_content = build_content(current, domains)

        logger_script = self.supervisor.resolve_logger_script()
        with staged_hosts_file(new_content, self.tmp_dir) as staged_path:
            steps = self.build_steps(staged_path, domains, logger_script)
            output = self.runner.run(steps)

        if output.strip():
            logging.info(f"Elevated command output: {output.strip()}")
        if domains:
            logging.info(f"Blocked {len(domains)} domains in hosts file")
        else:
            logging.info("Removed site blocks from hosts file")
        return new_content

#!/usr/bin/env python3
import math
import os
import pwd
import shutil
import sys
import logging

from lockfile.pidlockfile import PIDLockFile

from site_blocker.constants import (
    LOGGER_INTERPRETER,
    LOGGER_PID_FILE,
    LOGGER_SCRIPT_NAME,
    LOGGER_STAGING_PATH,
)
from site_blocker.exceptions import LoggerStartError, SiteBlockerError
from site_blocker.utils.elevation import ElevatedRunner, PrivilegedStep


def is_process_alive(pid):
    """Best-effort process liveness check using kill(pid, 0).
    PermissionError counts as alive: the logger runs as root and may not be
    signalable from the unprivileged app.
    """
    if isinstance(pid, bool):
        return False
    if isinstance(pid, float):
        if not math.isfinite(pid) or not pid.is_integer():
            return False
        pid = int(pid)
    if not isinstance(pid, int) or pid <= 0:
        return False

    try:
        os.kill(pid, 0)
        return True
    except ProcessLookupError:
        return False
    except PermissionError:
        return True
    except (OSError, OverflowError):
        return False


def acquire_pid_lock(path, timeout):
    """Take the pid lock file at path, breaking it first if its owner has died.
    Raises lockfile.LockError on timeout.
    """
    lock = PIDLockFile(path, timeout=timeout)
    owner = lock.read_pid()
    if owner is not None and not is_process_alive(owner):
        logging.warning(f"Breaking stale lock {path} left by dead process {owner}")
        lock.break_lock()
    lock.acquire()
    return lock


def get_real_user():
    """Name of the human behind this process, even when running elevated"""
    for var in ("SUDO_USER", "USER"):
        user = os.environ.get(var)
        if user:
            return user
    try:
        return pwd.getpwuid(os.getuid()).pw_name
    except KeyError:
        return ""


def default_script_candidates():
    """Packaged resource location first, then the development checkout"""
    candidates = []
    resources = os.environ.get("SITE_BLOCKER_RESOURCES") or getattr(sys, "_MEIPASS", None)
    if resources:
        candidates.append(os.path.join(resources, LOGGER_SCRIPT_NAME))
    repo_root = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
    candidates.append(os.path.join(repo_root, LOGGER_SCRIPT_NAME))
    return candidates


class LoggerDaemonSupervisor:
    def __init__(self, pid_file=LOGGER_PID_FILE, staging_path=LOGGER_STAGING_PATH,
                 script_candidates=None, interpreter=LOGGER_INTERPRETER, runner=None):
        self.pid_file = pid_file
        self.staging_path = staging_path
        self.script_candidates = script_candidates
        self.interpreter = interpreter
        self.runner = runner or ElevatedRunner()

    def read_pid(self):
        """Read the daemon PID, or None if the file is missing or garbage"""
        try:
            with open(self.pid_file, "r", encoding="utf-8") as f:
                pid = int(f.read().strip())
        except FileNotFoundError:
            logging.debug("Logger pid file not found")
            return None
        except (OSError, ValueError):
            logging.info(f"Invalid logger pid file: {self.pid_file}")
            return None
        return pid if pid > 0 else None

    def is_running(self):
        pid = self.read_pid()
        if pid is None:
            return False
        if is_process_alive(pid):
            logging.debug(f"Logger running (PID: {pid})")
            return True
        logging.info(f"Logger pid file points at dead process {pid}")
        return False

    def resolve_logger_script(self):
        """Locate the logger script and stage it where the elevated helper can read it"""
        candidates = self.script_candidates
        if candidates is None:
            candidates = default_script_candidates()
        source = next((path for path in candidates if os.path.isfile(path)), None)
        if source is None:
            logging.warning(f"Logger script not found (tried {', '.join(candidates)})")
            return None

        try:
            shutil.copyfile(source, self.staging_path)
            os.chmod(self.staging_path, 0o644)
        except OSError as e:
            logging.error(f"Failed to stage logger script {source}: {e}")
            return None
        logging.info(f"Staged logger script {source} -> {self.staging_path}")
        return self.staging_path

    def start_step(self, script, user=None):
        """Elevated step that starts the daemon on behalf of the real user"""
        user = get_real_user() if user is None else user
        # Without SUDO_USER the daemon would log into root's home directory
        env = [f"SUDO_USER={user}"] if user else []
        return PrivilegedStep("logger-start", [self.interpreter, script, "start"], required=False, env=env)

    def stop_step(self, script):
        return PrivilegedStep("logger-stop", [self.interpreter, script, "stop"], required=False)

    def start(self):
        """Start the daemon through an elevated request"""
        script = self.resolve_logger_script()
        if script is None:
            raise LoggerStartError("Access logger script not found")
        step = self.start_step(script)
        try:
            self.runner.run([PrivilegedStep(step.name, step.argv, required=True, env=step.env)])
        except SiteBlockerError as e:
            raise LoggerStartError(f"Failed to start access logger: {e}", e.details) from e
        logging.info("Started access logger daemon")

    def ensure_running(self):
        """Start the daemon if it isn't running. Never raises; returns whether it was started or already up"""
        if self.is_running():
            logging.info("Access logger already running")
            return True
        try:
            self.start()
        except LoggerStartError as e:
            logging.error(f"Access logger unavailable, access logging disabled: {e}")
            return False
        return True

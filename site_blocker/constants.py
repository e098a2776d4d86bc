#!/usr/bin/env python3
import os

# ---------- Hosts file ----------

HOSTS_PATH = "/etc/hosts"
HOSTS_BACKUP_PATH = "/etc/hosts.site-blocker.bak"
MARKER_BEGIN = "# BEGIN SITE-BLOCKER"
MARKER_END = "# END SITE-BLOCKER"
LOOPBACK_ADDRESS = "127.0.0.1"

# ---------- Per-user data ----------

DATA_DIR = os.environ.get("SITE_BLOCKER_DATA_DIR") or os.path.join(
    os.environ.get("HOME") or "/tmp",
    "Library",
    "Application Support",
    "SiteBlocker",
)
CONFIG_FILENAME = "blocked.json"
ACCESS_LOG_JSONL = "access_log.jsonl"
ACCESS_LOG_JSON = "access_log.json"
LOG_FILENAME = "site_blocker.log"
HOSTS_LOCK_NAME = "hosts-sync.lock"

# Seconds to wait for another process to release a config/hosts lock
LOCK_TIMEOUT = 10

# ---------- Access logger daemon ----------

LOGGER_SCRIPT_NAME = "access_logger.py"
LOGGER_PID_FILE = "/tmp/site-blocker-logger.pid"
# The elevated helper cannot read TCC-protected folders, so the script is staged here
LOGGER_STAGING_PATH = "/tmp/site-blocker-access-logger.py"
LOGGER_INTERPRETER = "/usr/bin/python3"

# ---------- Privileged commands ----------

OSASCRIPT = "osascript"
DSCACHEUTIL = "/usr/bin/dscacheutil"
KILLALL = "/usr/bin/killall"
RESOLVER_SERVICE = "mDNSResponder"

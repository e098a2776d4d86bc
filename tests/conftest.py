"""Shared fixtures: sample hosts files and a fake elevated runner."""

import shutil
import subprocess
import sys

import pytest

from site_blocker.exceptions import PrivilegedWriteError


SAMPLE_HOSTS = (
    "##\n"
    "# Host Database\n"
    "#\n"
    "# localhost is used to configure the loopback interface\n"
    "# when the system is booting.  Do not alter this file.\n"
    "##\n"
    "127.0.0.1\tlocalhost\n"
    "255.255.255.255\tbroadcasthost\n"
    "::1             localhost\n"
)

SAMPLE_HOSTS_WITH_BLOCK = SAMPLE_HOSTS + (
    "\n"
    "# BEGIN SITE-BLOCKER\n"
    "127.0.0.1 facebook.com\n"
    "127.0.0.1 www.facebook.com\n"
    "# END SITE-BLOCKER\n"
)


def dead_pid():
    """Pid of a child that has already exited and been reaped"""
    proc = subprocess.Popen([sys.executable, "-c", "pass"])
    proc.wait()
    return proc.pid


class FakeRunner:
    """Stands in for the osascript helper.

    Records every request and performs the cp steps for real, so tests can
    inspect the resulting hosts file. Best-effort steps are only recorded.
    """

    def __init__(self, fail=False, output=""):
        self.fail = fail
        self.output = output
        self.calls = []

    def run(self, steps):
        self.calls.append(list(steps))
        if self.fail:
            raise PrivilegedWriteError("User canceled.", output="execution error: User canceled. (-128)",
                                       details={"cancelled": True})
        for step in steps:
            if step.required and step.argv[0] == "cp":
                shutil.copyfile(step.argv[1], step.argv[2])
        return self.output


@pytest.fixture
def fake_runner():
    return FakeRunner()


@pytest.fixture
def hosts_path(tmp_path):
    path = tmp_path / "hosts"
    path.write_text(SAMPLE_HOSTS, encoding="utf-8")
    return path


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "data"
    path.mkdir()
    return path

#!/usr/bin/env python3
"""
Runs an ordered list of commands with administrator rights behind a single
macOS authorization prompt.

Each step is an argument list rendered with shlex, so paths and user names
never reach the shell unquoted. Steps are either required (the whole request
fails with them) or best-effort (their failure is ignored).
"""

from __future__ import annotations

import dataclasses
import logging
import shlex
import subprocess
from typing import List, Sequence

from site_blocker.constants import OSASCRIPT
from site_blocker.exceptions import PrivilegedWriteError

# AppleScript error number reported when the operator dismisses the prompt
USER_CANCELED = "-128"


@dataclasses.dataclass(frozen=True)
class PrivilegedStep:
    name: str
    argv: Sequence[str]
    required: bool = True
    env: Sequence[str] = ()

    def render(self) -> str:
        command = shlex.join(list(self.argv))
        if self.env:
            command = "env " + " ".join(shlex.quote(item) for item in self.env) + " " + command
        if self.required:
            return command
        return f"({command} || true)"


def compose_script(steps: Sequence[PrivilegedStep]) -> str:
    """Join steps with && so the first failing required step stops the chain."""
    return " && ".join(step.render() for step in steps)


def applescript_quote(text: str) -> str:
    return text.replace("\\", "\\\\").replace('"', '\\"')


class ElevatedRunner:
    def __init__(self, osascript=OSASCRIPT):
        self.osascript = osascript

    def build_command(self, steps: Sequence[PrivilegedStep]) -> List[str]:
        script = compose_script(steps)
        return [
            self.osascript,
            "-e",
            f'do shell script "{applescript_quote(script)}" with administrator privileges',
        ]

    def run(self, steps: Sequence[PrivilegedStep]) -> str:
        """Run all steps in one elevated shell and return its stdout.
        Raises PrivilegedWriteError when the prompt is denied or cancelled,
        or when a required step fails.
        """
        cmd = self.build_command(steps)
        logging.info(f"Requesting administrator privileges for: {', '.join(step.name for step in steps)}")
        try:
            result = subprocess.run(cmd, stdout=subprocess.PIPE, stderr=subprocess.PIPE, text=True)
        except OSError as e:
            raise PrivilegedWriteError(f"Failed to launch {self.osascript}: {e}", output=str(e)) from e

        if result.returncode != 0:
            output = (result.stderr or "") + (result.stdout or "")
            cancelled = USER_CANCELED in output
            logging.error(f"Elevated command failed ({result.returncode}): {output.strip()}")
            raise PrivilegedWriteError(
                "Administrator authorization was cancelled" if cancelled else
                f"Elevated command failed with exit code {result.returncode}",
                output=output,
                details={"returncode": result.returncode, "cancelled": cancelled},
            )
        return result.stdout or ""

#!/usr/bin/env python3
"""
Managed-block handling for the hosts file.

Everything outside the "# BEGIN SITE-BLOCKER" / "# END SITE-BLOCKER" region
belongs to the operating system and is passed through untouched. The
functions here are pure text transforms; only HostsFileHandler touches disk.
"""

import logging
from typing import List, Sequence

from site_blocker.constants import HOSTS_PATH, LOOPBACK_ADDRESS, MARKER_BEGIN, MARKER_END
from site_blocker.exceptions import SafetyCheckError


def strip_block(content: str) -> str:
    """Remove every managed block and normalize the trailing newline."""
    result: List[str] = []
    in_block = False

    for line in content.split("\n"):
        if line.strip() == MARKER_BEGIN:
            in_block = True
            continue
        if line.strip() == MARKER_END:
            in_block = False
            continue
        if not in_block:
            result.append(line)

    # Drop blank lines left behind where the block used to be
    while result and result[-1].strip() == "":
        result.pop()

    return "\n".join(result) + "\n"


def block_lines(domains: Sequence[str]) -> List[str]:
    """Loopback override lines for domains, sorted, without the markers."""
    lines: List[str] = []
    for domain in sorted(domains):
        lines.append(f"{LOOPBACK_ADDRESS} {domain}")
        if not domain.startswith("www."):
            lines.append(f"{LOOPBACK_ADDRESS} www.{domain}")
    return lines


def build_content(original: str, domains: Sequence[str]) -> str:
    """Return original with its managed block replaced by one for domains.
    An empty domain list removes the block altogether.
    """
    base = strip_block(original)
    if not domains:
        return base

    block = [MARKER_BEGIN] + block_lines(domains) + [MARKER_END]
    return base.rstrip() + "\n\n" + "\n".join(block) + "\n"


def is_active(content: str) -> bool:
    # Presence only; ordering and nesting of the markers are not validated
    return MARKER_BEGIN in content and MARKER_END in content


def extract_block_lines(content: str) -> List[str]:
    """Return the non-blank lines currently inside the managed block(s)."""
    lines: List[str] = []
    in_block = False
    for line in content.split("\n"):
        stripped = line.strip()
        if stripped == MARKER_BEGIN:
            in_block = True
        elif stripped == MARKER_END:
            in_block = False
        elif in_block and stripped:
            lines.append(stripped)
    return lines


def check_hosts_safety(content: str) -> None:
    """Refuse to touch content that does not look like a hosts file."""
    if LOOPBACK_ADDRESS not in content or "localhost" not in content:
        raise SafetyCheckError(
            f"Hosts file is missing '{LOOPBACK_ADDRESS} localhost', refusing to modify it"
        )


class HostsFileHandler:
    def __init__(self, hosts_path=HOSTS_PATH):
        self.hosts_path = hosts_path

    def read(self):
        """Read the current hosts file"""
        with open(self.hosts_path, "r", encoding="utf-8", errors="surrogateescape") as f:
            return f.read()

    def is_active(self):
        """Whether a managed block is present in the hosts file"""
        return is_active(self.read())

    def needs_sync(self, domains):
        """Whether the managed block differs from the one domains would produce"""
        content = self.read()
        if not domains:
            return is_active(content)
        current = extract_block_lines(content)
        expected = block_lines(domains)
        if current != expected:
            logging.info(f"Hosts block out of date ({len(current)} lines, expected {len(expected)})")
            return True
        return False

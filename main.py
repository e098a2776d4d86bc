#!/usr/bin/env python3
"""
Site Blocker - Block distracting websites through the hosts file.

Domains are kept in a per-user JSON config and written into a managed block
of /etc/hosts with a single administrator prompt.

Usage:
    python main.py add reddit.com news.ycombinator.com
    python main.py enable
    python main.py log --days 7
"""

from site_blocker.cli import main

if __name__ == "__main__":
    main()

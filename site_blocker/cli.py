#!/usr/bin/env python3
import argparse
import json
import logging
import math
import os
import sys

from site_blocker.constants import DATA_DIR, HOSTS_PATH, LOG_FILENAME
from site_blocker.core.blocker import SiteBlocker
from site_blocker.exceptions import SiteBlockerError


def non_negative_days(value):
    days = float(value)
    if not math.isfinite(days) or days < 0:
        raise argparse.ArgumentTypeError(f"invalid number of days: {value!r}")
    return days


def build_arg_parser():
    p = argparse.ArgumentParser(description="Block distracting websites through /etc/hosts")
    p.add_argument("--data-dir", default=DATA_DIR, help="Directory holding the config and access logs")
    p.add_argument("--hosts", default=HOSTS_PATH, help="Hosts file to manage")
    p.add_argument("--verbose", "-v", action="store_true", help="Also print informational log messages")
    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("list", help="List blocked domains")

    pa = sub.add_parser("add", help="Add domains to the block list")
    pa.add_argument("domains", nargs="+", help="Domains or URLs to block")

    pr = sub.add_parser("remove", help="Remove domains from the block list")
    pr.add_argument("domains", nargs="+", help="Domains or URLs to unblock")

    sub.add_parser("status", help="Show whether blocking is active")
    sub.add_parser("enable", help="Write the block list into the hosts file")
    sub.add_parser("disable", help="Remove the managed block from the hosts file")

    pl = sub.add_parser("log", help="Show attempts to reach blocked domains")
    pl.add_argument("--days", type=non_negative_days, help="Only show the last N days")
    pl.add_argument("--json", action="store_true", help="Print entries as JSON")

    sub.add_parser("sync", help="Reconcile the hosts file and logger with the config")
    return p


def configure_logging(data_dir, verbose=False):
    """Log everything to a file in the data directory, warnings to the console"""
    handlers = []
    try:
        os.makedirs(data_dir, exist_ok=True)
        handlers.append(logging.FileHandler(os.path.join(data_dir, LOG_FILENAME)))
    except OSError as e:
        print(f"Cannot write log file in {data_dir}: {e}", file=sys.stderr)
    console = logging.StreamHandler()
    console.setLevel(logging.INFO if verbose else logging.WARNING)
    handlers.append(console)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=handlers,
    )


def run_command(blocker, args):
    if args.command == "list":
        for domain in blocker.get_domains():
            print(domain)
        return

    if args.command == "add":
        added = []
        for domain in args.domains:
            added.extend(blocker.add_domain(domain))
        print(f"Added {len(added)} domain(s): {', '.join(added)}" if added else "Nothing to add")
        return

    if args.command == "remove":
        removed = []
        for domain in args.domains:
            removed.extend(blocker.remove_domain(domain))
        print(f"Removed {len(removed)} domain(s): {', '.join(removed)}" if removed else "Nothing to remove")
        return

    if args.command == "status":
        print("Blocking: " + ("on" if blocker.get_status() else "off"))
        print(f"- domains: {len(blocker.get_domains())}")
        print(f"- access logger running: {blocker.supervisor.is_running()}")
        return

    if args.command == "enable":
        blocker.enable_blocking()
        print("Blocking enabled")
        return

    if args.command == "disable":
        blocker.disable_blocking()
        print("Blocking disabled")
        return

    if args.command == "log":
        entries = blocker.get_access_log(args.days)
        if args.json:
            print(json.dumps([entry.to_dict() for entry in entries], indent=2))
        else:
            for entry in entries:
                print(f"{entry.ts}  {entry.domain}")
        return

    if args.command == "sync":
        blocker.reconcile()
        print("Hosts file and access logger reconciled")
        return


def main(argv=None):
    """Main entry point"""
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    configure_logging(args.data_dir, args.verbose)

    blocker = SiteBlocker(data_dir=args.data_dir, hosts_path=args.hosts)
    try:
        run_command(blocker, args)
    except (SiteBlockerError, OSError) as e:
        logging.error(f"{args.command} failed: {e}")
        sys.exit(f"Error: {e}")


if __name__ == "__main__":
    main()

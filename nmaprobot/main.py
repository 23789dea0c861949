import argparse
import asyncio
import json
import sys
import time
from datetime import datetime

from .errors import ScanError
from .robot import complete
from .ui import ScannerUI


def build_parser():
    parser = argparse.ArgumentParser(prog="nmaprobot", description="Parallel nmap runner")
    sub = parser.add_subparsers(dest="mode", required=True)

    scan = sub.add_parser("scan", help="Scan hosts, networks and ranges")
    scan.add_argument("-r", "--range", action="append", required=True,
                      help="Host, IP, CIDR or a.b.c.d-e range (repeatable)")
    scan.add_argument("-p", "--ports", help="Ports to scan (e.g. 22,80,1000-2000)")
    scan.add_argument("--udp", action="store_true", help="UDP scan (-sU)")

    disc = sub.add_parser("discover", help="Sweep the networks of local adapters for live hosts")

    for p in (scan, disc):
        p.add_argument("--nmap", help="Path to the nmap binary")
        p.add_argument("--timeout", type=int, help="Per host timeout in seconds")
        p.add_argument("--blocksize", type=int, help="Hosts per scan block (max 128)")
        p.add_argument("--threshold", type=int, help="Max concurrent nmap processes")
        p.add_argument("--flag", action="append", dest="flags",
                       help="Extra nmap flag, replaces the defaults (repeatable)")
        p.add_argument("--xml", action="store_true", help="Keep raw XML instead of JSON")
        p.add_argument("-v", "--verbose", action="store_true", help="Print every command")
        p.add_argument("-o", "--output", help="Output JSON file path")

    return parser


def options_from_args(args):
    options = {"verbose": args.verbose, "json": not args.xml}
    for key in ("nmap", "timeout", "blocksize", "threshold", "flags"):
        value = getattr(args, key)
        if value is not None:
            options[key] = value
    if args.mode == "scan":
        options["range"] = args.range
        options["udp"] = args.udp
        if args.ports is not None:
            options["ports"] = args.ports
    return options


def save_results(filename, mode, reports):
    data = {
        "mode": mode,
        "timestamp": datetime.now().isoformat(),
        "results": reports,
    }
    with open(filename, "w") as f:
        json.dump(data, f, indent=4)


def main(argv=None):
    args = build_parser().parse_args(argv)
    ui = ScannerUI()
    ui.display_welcome()

    try:
        start = time.time()
        reports = asyncio.run(complete(
            options_from_args(args),
            discover=args.mode == "discover",
            ui=ui,
        ))
        ui.display_results(reports, time.time() - start)

        if args.output:
            save_results(args.output, args.mode, reports)
            ui.show_saved(args.output)
    except KeyboardInterrupt:
        ui.show_message("Scan interrupted by user.", style="yellow")
        return 130
    except ScanError as e:
        ui.show_errors(e)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python
"""Batch scrape CLI.
Reads a text file with one domain per line, runs the same batch pipeline as
the HTTP endpoint and prints one JSON event per line as results arrive.
Usage:
  python scripts/scrape_domains.py domains.txt --details > events.jsonl
Options:
  --window / -w        Domains fetched concurrently per window (default env or 5)
  --timeout / -t       Per-domain timeout seconds (default env or source default)
  --sequential         One domain at a time, with "processing" events
  --details            Include metadata extraction (title, emails, phones, social, tech)
  --no-details         Skip metadata extraction
  --pretty             Pretty print (multi-line) instead of JSONL
"""
from __future__ import annotations
import os, sys, json, argparse, threading
from typing import List, TextIO

# Allow running without installation
sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))
from portalscan import build_scraper  # type: ignore
from portalscan.config import load_config  # type: ignore
from portalscan.exceptions import ValidationError  # type: ignore
from portalscan.scan.domain import validate_domains  # type: ignore
from portalscan.scanners import SCHEDULE_SEQUENTIAL  # type: ignore
from portalscan.streaming import EventChannel, produce_batch  # type: ignore


def read_domains(source: TextIO) -> List[str]:
    out: List[str] = []
    seen = set()
    for line in source:
        line = line.strip()
        if not line or line.startswith('#'):
            continue
        d = line.lower()
        if d in seen:
            continue
        seen.add(d)
        out.append(d)
    return out


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description='Detect payment and PSA portals for a list of domains')
    ap.add_argument('file', help='File with one domain per line ("-" for stdin)')
    ap.add_argument('-w', '--window', type=int)
    ap.add_argument('-t', '--timeout', type=float)
    ap.add_argument('--sequential', action='store_true')
    ap.add_argument('--details', dest='details', action='store_true', default=None)
    ap.add_argument('--no-details', dest='details', action='store_false')
    ap.add_argument('--pretty', action='store_true')
    args = ap.parse_args(argv)

    try:
        if args.file == '-':
            domains = read_domains(sys.stdin)
        else:
            with open(args.file, 'r', encoding='utf-8') as fh:
                domains = read_domains(fh)
    except FileNotFoundError as e:
        print(str(e), file=sys.stderr)
        return 2

    config = load_config()
    if args.window:
        config['WINDOW_SIZE'] = args.window
    if args.timeout:
        config['FETCH_TIMEOUT'] = config['RENDER_TIMEOUT'] = args.timeout
    if args.sequential:
        config['SCHEDULE'] = SCHEDULE_SEQUENTIAL
    try:
        domains = validate_domains(domains, config['MAX_DOMAINS'])
    except ValidationError as ve:
        print(f'Error: {ve.message}', file=sys.stderr)
        return 2

    scraper = build_scraper(config)
    channel = EventChannel()
    # same producer as the HTTP stream, drained in-process
    worker = threading.Thread(target=produce_batch, args=(scraper, domains, channel, args.details), daemon=True)
    worker.start()
    errors = 0
    for event in channel:
        record = event.to_dict()
        if record.get('status') == 'error':
            errors += 1
        if args.pretty:
            print(json.dumps(record, indent=2, ensure_ascii=False))
        else:
            print(json.dumps(record, ensure_ascii=False), flush=True)
    worker.join(timeout=1.0)
    print(f'Done. domains={len(domains)} errors={errors}', file=sys.stderr)
    return 0


if __name__ == '__main__':
    sys.exit(main())

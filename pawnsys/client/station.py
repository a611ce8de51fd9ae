"""
pawnsys-station: scan a vault against the expected item list

Barcodes are read one per line from a file or stdin. A blank line or
end of input completes the reconciliation.
"""
import argparse
import logging
import os
import sys

from .api import PawnsysClient, ApiError
from .reconciliation import ReconciliationRunner

OFFLINE_LABEL = 'OFFLINE (not synced)'


def parse_args(argv=None):
    parser = argparse.ArgumentParser(prog='pawnsys-station', description='Vault stock reconciliation scanner')
    parser.add_argument('--url', help='API base URL (default: $PAWNSYS_API_URL)')
    parser.add_argument('--token', help='Bearer token (default: $PAWNSYS_API_TOKEN)')
    parser.add_argument('--username', help='Log in with this username instead of a token')
    parser.add_argument('--type', dest='reconciliation_type', default='adhoc',
                        choices=['daily', 'weekly', 'monthly', 'adhoc'])
    parser.add_argument('--file', help='Read barcodes from this file instead of stdin')
    parser.add_argument('--cache', default=os.path.expanduser('~/.pawnsys-expected.json'),
                        help='Where to keep the expected item list for offline use')
    parser.add_argument('--force', action='store_true', help='Cancel a session left in progress')
    parser.add_argument('-v', '--verbose', action='store_true')
    return parser.parse_args(argv)


def read_barcodes(stream):
    for line in stream:
        barcode = line.strip()
        if not barcode:
            break
        yield barcode


def print_result(result, out):
    tag = f" [{OFFLINE_LABEL}]" if result['offline'] else ''
    out.write(f"\nOutcome: {result['outcome'].upper()}{tag}\n")
    out.write(f"Progress: {result['progress']}% of {result['expected_count']} expected\n")
    for label in ('matched', 'unexpected', 'missing'):
        barcodes = result[label]
        out.write(f"{label.capitalize()} ({len(barcodes)}): {', '.join(barcodes) or '-'}\n")


def run(args, stream, out):
    client = PawnsysClient(base_url=args.url, token=args.token)
    if args.username:
        password = os.environ.get('PAWNSYS_API_PASSWORD')
        if password is None:
            import getpass
            password = getpass.getpass(f"Password for {args.username}: ")
        client.login(args.username, password)

    runner = ReconciliationRunner(client, args.reconciliation_type, cache_path=args.cache)
    session = runner.start(force_start=args.force)
    if session['offline']:
        out.write(f"{OFFLINE_LABEL}: server unreachable, scanning against {session['expected_items']} cached items\n")
    else:
        out.write(f"Started {session['reconciliation_no']} ({session['expected_items']} items expected)\n")

    for barcode in read_barcodes(stream):
        scan = runner.scan(barcode)
        tag = f" [{OFFLINE_LABEL}]" if scan['offline'] else ''
        if scan['accepted']:
            out.write(f"{scan['barcode']}: {scan['status']}{tag}\n")
        else:
            out.write(f"{scan['barcode']}: rejected ({scan['message']}){tag}\n")

    result = runner.complete()
    print_result(result, out)
    return 0 if result['outcome'] == 'complete' else 1


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format='{levelname} {asctime} {name} {message}',
        style='{',
    )
    try:
        if args.file:
            with open(args.file, encoding='utf-8') as stream:
                return run(args, stream, sys.stdout)
        return run(args, sys.stdin, sys.stdout)
    except ApiError as e:
        sys.stderr.write(f"Error: {e.message}\n")
        return 2


if __name__ == '__main__':
    sys.exit(main())

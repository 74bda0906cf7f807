#!/usr/bin/env python3
"""
Dev helper: send a test email through a locally running mail relay.

Builds a POST /send payload, optionally attaching one or more files
(base64-encoded the same way the relay expects), and submits it.

Usage
-----
# Plain-text mail to one recipient, targeting localhost:8080
python scripts/send_test_email.py --to bob@example.com

# Attach files
python scripts/send_test_email.py --to bob@example.com --file notes.txt --file logo.png

# CC / BCC (repeatable)
python scripts/send_test_email.py --to bob@example.com --cc carol@example.com --bcc dave@example.com

# Inspect the payload without sending it
python scripts/send_test_email.py --to bob@example.com --file report.csv --dry-run

# Target a different relay
python scripts/send_test_email.py --to bob@example.com --url http://relay.internal:9000
"""

import argparse
import base64
import json
import sys
import textwrap
from pathlib import Path

import httpx


# ---------------------------------------------------------------------------
# Payload builder
# ---------------------------------------------------------------------------

def _build_payload(
    from_email: str,
    to: list[str],
    cc: list[str],
    bcc: list[str],
    subject: str,
    body: str,
    files: list[Path],
) -> dict:
    """
    Build a /send payload.

    Relay format:
      from, to[], cc[], bcc[], title, body
      attachments[] — {filename, content (base64)}
    """
    return {
        "from": from_email,
        "to": to,
        "cc": cc,
        "bcc": bcc,
        "title": subject,
        "body": body,
        "attachments": [
            {
                "filename": path.name,
                "content": base64.b64encode(path.read_bytes()).decode(),
            }
            for path in files
        ],
    }


def _redact_attachments(payload: dict) -> dict:
    """Copy of payload with base64 blobs replaced by their decoded size."""
    display = dict(payload)
    display["attachments"] = [
        {
            **att,
            "content": "<base64-encoded, %d bytes>" % len(base64.b64decode(att["content"])),
        }
        for att in payload["attachments"]
    ]
    return display


# ---------------------------------------------------------------------------
# Pretty printer
# ---------------------------------------------------------------------------

def _print_response(response: httpx.Response) -> None:
    status = response.status_code
    symbol = "OK" if status == 200 else "FAIL"
    print(f"\n[{symbol}] HTTP {status}")
    try:
        print(json.dumps(response.json(), indent=2))
    except ValueError:
        print(response.text)


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main() -> int:
    parser = argparse.ArgumentParser(
        prog="send_test_email.py",
        description="Send a test email through the mail relay (POST /send).",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""\
            Examples:
              python scripts/send_test_email.py --to bob@example.com
              python scripts/send_test_email.py --to bob@example.com --file q1.pdf
              python scripts/send_test_email.py --to bob@example.com --dry-run
        """),
    )
    parser.add_argument(
        "--url",
        default="http://localhost:8080",
        help="Relay base URL (default: http://localhost:8080)",
    )
    parser.add_argument(
        "--from",
        dest="from_email",
        default="",
        help="Sender address (default: the relay's GMAIL_FROM account)",
    )
    parser.add_argument("--to", action="append", required=True, help="Recipient (repeatable)")
    parser.add_argument("--cc", action="append", default=[], help="CC recipient (repeatable)")
    parser.add_argument("--bcc", action="append", default=[], help="BCC recipient (repeatable)")
    parser.add_argument(
        "--subject",
        default="Mail relay test",
        help='Subject line (default: "Mail relay test")',
    )
    parser.add_argument(
        "--body",
        default="This is a test message sent through the mail relay.",
        help="Plain-text body",
    )
    parser.add_argument(
        "--file",
        action="append",
        default=[],
        metavar="PATH",
        help="File to attach (repeatable)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=60.0,
        help="Request timeout in seconds (default: 60)",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Print the payload JSON without sending it.",
    )

    args = parser.parse_args()

    files = [Path(f) for f in args.file]
    for path in files:
        if not path.is_file():
            print(f"ERROR: File not found: {path}", file=sys.stderr)
            return 1

    payload = _build_payload(
        from_email=args.from_email,
        to=args.to,
        cc=args.cc,
        bcc=args.bcc,
        subject=args.subject,
        body=args.body,
        files=files,
    )

    endpoint = f"{args.url.rstrip('/')}/send"

    print(f"Endpoint   : {endpoint}")
    print(f"From       : {args.from_email or '(relay account)'}")
    print(f"To         : {', '.join(args.to)}")
    if args.cc:
        print(f"Cc         : {', '.join(args.cc)}")
    if args.bcc:
        print(f"Bcc        : {', '.join(args.bcc)}")
    print(f"Subject    : {args.subject}")
    print(f"Attachments: {', '.join(p.name for p in files) or '(none)'}")

    if args.dry_run:
        print("\n[DRY RUN] Payload:")
        print(json.dumps(_redact_attachments(payload), indent=2))
        return 0

    try:
        response = httpx.post(endpoint, json=payload, timeout=args.timeout)
    except httpx.HTTPError as exc:
        print(f"\nERROR: Could not reach {endpoint}: {exc}", file=sys.stderr)
        return 1

    _print_response(response)
    return 0 if response.status_code == 200 else 1


if __name__ == "__main__":
    sys.exit(main())

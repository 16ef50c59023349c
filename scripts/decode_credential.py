#!/usr/bin/env python3
"""
Inspect a QR credential offline.

Decodes the token with the configured codec and prints the (user, event)
pair it carries. Nothing is checked against the roster; use the
/check-ins/verify endpoint for that.

Usage:
    python scripts/decode_credential.py <token>
    python scripts/decode_credential.py --encode --user-id alice --event-id evt-1
"""
import argparse
import os
import sys

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from admission.credentials.codec import (  # noqa: E402
    SIGNED_PREFIX,
    FormatError,
    decode_credential,
    encode_credential,
)


def main():
    parser = argparse.ArgumentParser(description="Decode or encode a QR credential")
    parser.add_argument("token", nargs="?", help="Credential read from a QR code")
    parser.add_argument("--encode", action="store_true", help="Encode instead of decode")
    parser.add_argument("--user-id", help="User id to encode")
    parser.add_argument("--event-id", help="Event id to encode")
    args = parser.parse_args()

    if args.encode:
        if not args.user_id or not args.event_id:
            parser.error("--encode requires --user-id and --event-id")
        print(encode_credential(args.user_id, args.event_id))
        return

    if not args.token:
        parser.error("a token is required unless --encode is given")

    try:
        credential = decode_credential(args.token)
    except FormatError as e:
        print(f"Invalid credential: {e}")
        sys.exit(1)

    print(f"format:   {'signed (v1)' if args.token.strip().startswith(SIGNED_PREFIX) else 'plain'}")
    print(f"userId:   {credential.user_id}")
    print(f"eventId:  {credential.event_id}")


if __name__ == "__main__":
    main()

"""sealverify CLI."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging

from sealverify.doh import DohResolver
from sealverify.errors import SealError
from sealverify.segments import load_asset
from sealverify.types import VerificationResult
from sealverify.verify import verify_all, verify_asset

EXIT_OK = 0
EXIT_INVALID = 1
EXIT_ERROR = 2


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="sealverify", description="SEAL signature verifier")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    verify_parser = subparsers.add_parser("verify", help="Verify the SEAL records in a file")
    verify_parser.add_argument("file")
    verify_parser.add_argument("--verbose", action="store_true")
    verify_parser.add_argument("--all", action="store_true", help="Verify every record, not only the first")
    verify_parser.add_argument("--doh-api", default=None)
    verify_parser.add_argument("--json", action="store_true")

    scan_parser = subparsers.add_parser("scan", help="List the SEAL records found in a file")
    scan_parser.add_argument("file")
    scan_parser.add_argument("--json", action="store_true")

    return parser


def _print_result(result: VerificationResult) -> None:
    print(result.message)
    for key, value in result.to_dict().items():
        if key in ("valid", "message"):
            continue
        if isinstance(value, list):
            value = ", ".join(value)
        print(f"{key}: {value}")


async def _verify(args: argparse.Namespace) -> list[VerificationResult]:
    asset = load_asset(args.file)
    resolver = DohResolver(args.doh_api)
    if args.all:
        return await verify_all(asset, resolver=resolver, verbose=args.verbose)
    return [await verify_asset(asset, resolver=resolver, verbose=args.verbose)]


def main(argv: list[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(argv)

    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    if args.command == "scan":
        segments = load_asset(args.file).segments
        if args.json:
            print(
                json.dumps(
                    {
                        "command": "scan",
                        "file": args.file,
                        "count": len(segments),
                        "segments": [
                            {"signature_end": segment.signature_end, "text": segment.text}
                            for segment in segments
                        ],
                    },
                    sort_keys=True,
                )
            )
            return EXIT_OK
        if not segments:
            print("No SEAL records found.")
            return EXIT_OK
        for index, segment in enumerate(segments, start=1):
            print(f"#{index} signature_end={segment.signature_end}: {segment.text}")
        return EXIT_OK

    if args.command == "verify":
        try:
            results = asyncio.run(_verify(args))
        except SealError as error:
            if args.json:
                print(json.dumps({"command": "verify", "file": args.file, **error.to_dict()}, sort_keys=True))
            else:
                print(f"{error.code}: {error.message}")
            return EXIT_ERROR

        if args.json:
            print(
                json.dumps(
                    {
                        "command": "verify",
                        "file": args.file,
                        "results": [result.to_dict() for result in results],
                    },
                    sort_keys=True,
                )
            )
        else:
            for result in results:
                _print_result(result)
        return EXIT_INVALID if any(result.valid is False for result in results) else EXIT_OK

    parser.print_help()
    return 1


if __name__ == "__main__":
    raise SystemExit(main())

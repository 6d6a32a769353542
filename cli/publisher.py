# cli/publisher.py
"""
Pipe text in, get a shareable URL back.

  echo "hello world" | tafcha
  cat file.txt | tafcha --expiry 1d
  tafcha < script.sh --expiry 1w
"""
import argparse
import os
import sys
from typing import BinaryIO, Optional, Sequence, TextIO
from cli.client import ClientError, TafchaClient, format_local

DEFAULT_API = "https://tafcha.dev"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tafcha",
        description="Pipe text to get a shareable URL.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-a",
        "--api",
        default=os.getenv("TAFCHA_API", DEFAULT_API),
        help="API server URL (env: TAFCHA_API)",
    )
    parser.add_argument(
        "-e", "--expiry", default=None, help="Expiry duration (e.g. 10m, 12h, 3d, 1w)"
    )
    parser.add_argument(
        "-t", "--timeout", type=float, default=30.0, help="Request timeout in seconds"
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Only output the URL"
    )
    return parser


def run(
    argv: Optional[Sequence[str]] = None,
    stdin: Optional[BinaryIO] = None,
    stdout: Optional[TextIO] = None,
    stderr: Optional[TextIO] = None,
    client: Optional[TafchaClient] = None,
) -> int:
    args = build_parser().parse_args(argv)
    stdin = stdin if stdin is not None else sys.stdin.buffer
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    if stdin.isatty():
        print(
            'error: no input provided - pipe text to tafcha\n\nExample: echo "hello" | tafcha',
            file=stderr,
        )
        return 1

    content = stdin.read()
    if not content:
        print("error: empty input - nothing to upload", file=stderr)
        return 1

    client = client or TafchaClient(args.api, timeout=args.timeout)
    try:
        res = client.create(content, args.expiry)
    except ClientError as e:
        print(f"error: {e}", file=stderr)
        return 1

    print(res.url, file=stdout)
    if not args.quiet:
        print(f"Expires: {format_local(res.expires_at)}", file=stderr)
    return 0


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()

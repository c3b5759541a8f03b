"""Stand-in for the prompt executable used by integration tests."""

from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path


def main(argv: list[str] | None = None) -> int:
    """Sleep, then exit with the requested code."""

    parser = argparse.ArgumentParser()
    parser.add_argument("--in", dest="prompt_file", required=True)
    parser.add_argument("--sleep", type=float, default=0.0)
    parser.add_argument("--exit-code", type=int, default=0)
    args = parser.parse_args(argv)

    if not Path(args.prompt_file).is_file():
        print(f"prompt file not found: {args.prompt_file}", file=sys.stderr)
        return 2
    if args.sleep > 0:
        time.sleep(args.sleep)
    print(f"ran {args.prompt_file}")
    return args.exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())

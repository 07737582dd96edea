import argparse
import sys
from typing import List, Mapping, Optional

from keyspace.core.deps import StorageContext, build_context
from keyspace.core.logging import setup_logging
from keyspace.observability.tracing import setup_tracing


def _print_fields(fields: Mapping) -> None:
    if not fields:
        return
    width = max(len(str(name)) for name in fields)
    for name, value in fields.items():
        print(f"{str(name):>{width}}: {value}")


def show(context: StorageContext, name: str, buckets: List[str]) -> None:
    buckets = list(dict.fromkeys(buckets))
    result = context.stats().get(name, buckets)
    if len(buckets) == 1:
        _print_fields(result)
        return
    for label, fields in result.items():
        print(f"[{label}]")
        _print_fields(fields)


def main(argv: Optional[List[str]] = None, context: Optional[StorageContext] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="keyspace-stats", description="Print the fields of a stats hash"
    )
    parser.add_argument("name", nargs="?", help="Name of the stats to print")
    parser.add_argument(
        "--bucket",
        action="append",
        dest="buckets",
        help="Bucket to read, e.g. global or user:foo (repeatable)",
    )
    args = parser.parse_args(argv)

    setup_logging()
    setup_tracing()

    if not args.name:
        print("error: missing parameter name", file=sys.stderr)
        return 1

    show(context or build_context(), args.name, args.buckets or ["global"])
    return 0


if __name__ == "__main__":
    sys.exit(main())

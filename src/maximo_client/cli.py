#!/usr/bin/env python3

"""Command-line query tool for Maximo object structures.

Connection settings come from MAXIMO_* environment variables (see
MaximoOptions.from_env). Members are printed as JSON, one page per array.
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional, Tuple

from pydantic import ValidationError

from .client import Maximo
from .options import MaximoOptions
from .resource_set import ResourceSet
from .runtime.errors import MaximoError


def _split_pair(text: str, flag: str) -> Tuple[str, str]:
    field_name, sep, value = text.partition("=")
    if not sep or not field_name:
        raise argparse.ArgumentTypeError(f"{flag} expects FIELD=VALUE, got {text!r}")
    return field_name, value


def _clause(kind: str, flag: str):
    def parse(text: str) -> Tuple[str, str, str]:
        if kind == "notnull":
            return kind, text, ""
        return (kind,) + _split_pair(text, flag)
    return parse


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="maximo-client", description="Query Maximo object structures")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    query = sub.add_parser("query", help="Query an object structure")
    query.add_argument("mbo", help="Object structure, e.g. MXASSET")
    query.add_argument("--select", default="", help="Comma-separated fields")
    # Filters share one dest so clauses keep their command-line order.
    query.add_argument("--where", dest="clauses", action="append", default=[], metavar="FIELD=VALUE",
                       type=_clause("equal", "--where"), help="Equality filter")
    query.add_argument("--in", dest="clauses", action="append", default=[], metavar="FIELD=V1,V2",
                       type=_clause("in", "--in"), help="Membership filter")
    query.add_argument("--notnull", dest="clauses", action="append", default=[], metavar="FIELD",
                       type=_clause("notnull", "--notnull"), help="Not-null filter")
    query.add_argument("--orderby", metavar="FIELD[:asc|desc]", help="Ordering")
    query.add_argument("--pagesize", type=int, help="Page size")
    query.add_argument("--all-pages", action="store_true", help="Follow next-page links")
    return parser


def apply_query_args(resource_set: ResourceSet, args: argparse.Namespace) -> ResourceSet:
    """Translate parsed arguments into builder calls."""
    if args.select:
        resource_set.select([f.strip() for f in args.select.split(",") if f.strip()])

    for index, (kind, field_name, value) in enumerate(args.clauses):
        if index:
            resource_set.and_(field_name)
        else:
            resource_set.where(field_name)
        if kind == "equal":
            resource_set.equal(value)
        elif kind == "in":
            items = [v.strip() for v in value.split(",") if v.strip()]
            resource_set.in_(items, is_int=all(v.lstrip("-").isdigit() for v in items))
        else:
            resource_set.notnull()

    if args.orderby:
        field_name, _, direction = args.orderby.partition(":")
        resource_set.orderby(field_name, direction or "asc")
    if args.pagesize is not None:
        resource_set.pagesize(args.pagesize)
    return resource_set


async def run_query(options: MaximoOptions, args: argparse.Namespace) -> List[list]:
    pages = []
    async with Maximo(options) as maximo:
        query = apply_query_args(maximo.resourceobject(args.mbo), args)
        async for page in query.pages():
            pages.append(page.this_resource_set())
            if not args.all_pages:
                break
    return pages


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        options = MaximoOptions.from_env()
    except ValidationError as e:
        print(f"Invalid MAXIMO_* configuration: {e}", file=sys.stderr)
        return 1

    try:
        pages = asyncio.run(run_query(options, args))
    except MaximoError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for page in pages:
        print(json.dumps(page, indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())

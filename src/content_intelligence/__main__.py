"""
content-intel — Query a JSON corpus from the command line.

Usage:
    content-intel corpus.json build
    content-intel corpus.json search "street food" --limit 5 --sort date
    content-intel corpus.json recommend bangkok-street-food --count 3
    content-intel corpus.json clusters
    content-intel corpus.json links --entity --geographic

The corpus file holds a JSON list of document records, or an object with a
"posts" or "documents" list. Output is JSON on stdout; logs go to stderr.
"""

import json
import logging
import sys
from datetime import date

from content_intelligence.config import EngineConfig, configure_logging
from content_intelligence.engine import ContentEngine
from content_intelligence.errors import DocumentNotFoundError
from content_intelligence.models import Document, SearchFilters
from content_intelligence.search import SORT_ORDERS


def load_corpus(path):
    with open(path, encoding="utf-8") as f:
        data = json.load(f)
    if isinstance(data, dict):
        data = data.get("posts") or data.get("documents") or []
    return [Document.from_dict(record) for record in data]


def _dump(payload):
    json.dump(payload, sys.stdout, indent=2, default=str)
    sys.stdout.write("\n")


def build_parser():
    import argparse

    parser = argparse.ArgumentParser(
        prog="content-intel",
        description="Search, cluster and link a JSON document corpus",
    )
    parser.add_argument("corpus", help="Path to a JSON corpus file")
    parser.add_argument("--env-file", default=None, help="Read CONTENT_INTEL_* settings from this .env file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("build", help="Build the index and print engine statistics")

    search = sub.add_parser("search", help="Run a query")
    search.add_argument("query")
    search.add_argument("--limit", type=int, default=None)
    search.add_argument("--offset", type=int, default=0)
    search.add_argument("--sort", default="relevance", choices=SORT_ORDERS)
    search.add_argument("--language", default=None)
    search.add_argument("--category", action="append", default=[])
    search.add_argument("--tag", action="append", default=[])
    search.add_argument("--location", action="append", default=[])
    search.add_argument("--since", type=date.fromisoformat, default=None)
    search.add_argument("--until", type=date.fromisoformat, default=None)
    search.add_argument("--entities", action="store_true", help="Include matching entity mentions")

    recommend = sub.add_parser("recommend", help="Related documents for one document")
    recommend.add_argument("document_id")
    recommend.add_argument("--count", type=int, default=5)

    sub.add_parser("clusters", help="Print topic clusters with their analysis")

    links = sub.add_parser("links", help="Print internal link suggestions")
    links.add_argument("--entity", action="store_true", help="Add entity-based links")
    links.add_argument("--geographic", action="store_true", help="Add same-location links")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    engine = ContentEngine(EngineConfig.from_env(args.env_file))
    engine.rebuild(load_corpus(args.corpus))

    if args.command == "build":
        _dump(engine.stats())
    elif args.command == "search":
        filters = SearchFilters(
            language=args.language,
            categories=args.category,
            tags=args.tag,
            locations=args.location,
            start_date=args.since,
            end_date=args.until,
        )
        results = engine.search(args.query, filters=filters, sort_by=args.sort,
                                limit=args.limit, offset=args.offset,
                                include_entities=args.entities)
        _dump([r.to_dict() for r in results])
    elif args.command == "recommend":
        try:
            recs = engine.recommend(args.document_id, args.count)
        except DocumentNotFoundError as e:
            sys.stderr.write(f"{e}\n")
            return 1
        _dump([r.to_dict() for r in recs])
    elif args.command == "clusters":
        _dump([dict(cluster.to_dict(), analysis=analysis)
               for cluster, analysis in engine.cluster_report()])
    elif args.command == "links":
        links = engine.generate_links(include_entity_links=args.entity,
                                      include_geographic_links=args.geographic)
        _dump([link.to_dict() for link in links])
    return 0


if __name__ == "__main__":
    sys.exit(main())

"""
main.py — command-line entry point.

Runs one search against a JSON product file, puts the results into the
comparison set and prints the comparison matrix with the winning value of
each row marked.

Examples:
  python main.py products.json "laptop"
  python main.py products.json "laptop" --currency EUR --compare p1 p3
  python main.py products.json "" --history
  python main.py --clear-history
"""
import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path

import config

# Log file lives in the same data/ directory as the database so that a single
# volume mount (./data:/app/data) captures both.
_data_dir = Path(os.getenv("DATA_DIR", "data"))
_data_dir.mkdir(parents=True, exist_ok=True)

logging.basicConfig(
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    level=logging.INFO,
    handlers=[
        logging.StreamHandler(sys.stderr),
        logging.FileHandler(str(_data_dir / "lumina.log"), encoding="utf-8"),
    ],
)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Search products and compare them side by side.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__.split("Examples:", 1)[1] if __doc__ else None,
    )
    parser.add_argument("products_file", nargs="?", help="JSON array of product records")
    parser.add_argument("query", nargs="?", default="", help="Search terms")
    parser.add_argument(
        "--currency", default=config.DEFAULT_CURRENCY,
        help=f"Currency code (default: {config.DEFAULT_CURRENCY})",
    )
    parser.add_argument(
        "--compare", nargs="+", metavar="ID",
        help="Product ids to compare (default: the first results that fit)",
    )
    parser.add_argument(
        "--images", action="store_true",
        help="Resolve a displayable image URL for every compared product",
    )
    parser.add_argument("--history", action="store_true", help="Show recent searches")
    parser.add_argument("--clear-history", action="store_true", help="Forget recent searches")
    return parser


def render_matrix(matrix, names: dict[str, str]) -> str:
    """Plain-text table; winning cells are marked with '*'."""
    if matrix.is_empty:
        return "No products in comparison. Add products from the search results."

    header = ["Feature", *(names.get(pid, pid) for pid in matrix.product_ids)]
    body = [
        [row.field_name, *(f"{c.display} *" if c.best else c.display for c in row.cells)]
        for row in matrix.rows
    ]
    widths = [max(len(str(line[i])) for line in [header, *body]) for i in range(len(header))]

    def fmt(line):
        return " | ".join(str(v).ljust(w) for v, w in zip(line, widths))

    sep = "-+-".join("-" * w for w in widths)
    return "\n".join([fmt(header), sep, *(fmt(line) for line in body)])


async def run(args: argparse.Namespace) -> int:
    import database as _db
    from comparison import ComparisonStore
    from highlight import build_matrix
    from search import run_search
    from search_history import HistoryStore

    try:
        await _db.init_db()
    except Exception as exc:
        logger.critical("FATAL: database init failed: %s", exc, exc_info=True)
        raise

    history = HistoryStore()
    await history.load()

    if args.clear_history:
        await history.clear_history()
        print("Search history cleared.")
        return 0

    if args.history:
        terms = history.history
        print("Recent searches: " + (", ".join(terms) if terms else "(none)"))
        if not args.products_file:
            return 0

    if not args.products_file:
        build_parser().print_usage(sys.stderr)
        return 2

    from product_sources.json_file import JsonFileSource

    result = await run_search(
        args.query, JsonFileSource(args.products_file), history, currency=args.currency,
    )
    if result.is_empty:
        print("No products found. Try adjusting your search terms or checking the currency.")
        return 0

    store = ComparisonStore()
    by_id = {p.id: p for p in result.products}
    wanted = args.compare or [p.id for p in result.products]
    for pid in wanted:
        product = by_id.get(pid)
        if product is None:
            logger.warning("No product with id %r in the results", pid)
            continue
        store.add(product)

    matrix = build_matrix(store.products, result.currency)
    print(render_matrix(matrix, {p.id: p.name for p in store}))

    for p in store:
        print(f"{p.name}: {p.outbound_url()}")

    if args.images:
        from image_fallback import resolve_images
        resolved = await resolve_images([(p.image_url, p.name) for p in store])
        for p, machine in zip(store, resolved):
            print(f"{p.name} image: {machine.current_url if machine.loaded else 'Image unavailable'}")

    return 0


def main() -> None:
    args = build_parser().parse_args()
    try:
        sys.exit(asyncio.run(run(args)))
    except KeyboardInterrupt:
        pass


if __name__ == "__main__":
    main()

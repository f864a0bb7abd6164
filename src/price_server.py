import argparse
import logging
import sys
from dataclasses import dataclass
from typing import List, Optional, Tuple

from flask import Flask, Response, current_app, request

from price_store import DEFAULT_ITEMS, Dollars, ItemStore, StoreError, parse_price


logger = logging.getLogger(__name__)

TEXT_PLAIN = "text/plain; charset=utf-8"

# Handlers answer any method; only the path and query parameters matter.
METHODS = ["GET", "POST", "PUT", "PATCH", "DELETE"]


@dataclass(frozen=True)
class ItemRequest:
    item: str
    price: str

    @classmethod
    def from_args(cls, args) -> "ItemRequest":
        # Absent parameters read as "", like an empty query value.
        return cls(item=args.get("item", ""), price=args.get("price", ""))


def _text(body: str, status: int = 200) -> Response:
    return Response(body, status=status, content_type=TEXT_PLAIN)


def _store() -> ItemStore:
    return current_app.config["ITEM_STORE"]


def create_app(store: ItemStore) -> Flask:
    app = Flask(__name__)
    app.config["ITEM_STORE"] = store

    @app.errorhandler(StoreError)
    def store_error(exc: StoreError):
        logger.debug("%s %s -> %d %s", request.method, request.path, exc.status, exc.message)
        return _text(exc.message + "\n", exc.status)

    @app.route("/list", methods=METHODS)
    def list_items():
        lines = [f"{name}: {price}\n" for name, price in _store().list_items()]
        return _text("".join(lines))

    @app.route("/price", methods=METHODS)
    def price():
        req = ItemRequest.from_args(request.args)
        return _text(f"{_store().get(req.item)}\n")

    @app.route("/create", methods=METHODS)
    def create():
        req = ItemRequest.from_args(request.args)
        name, value = _store().create(req.item, req.price)
        logger.info("created %s: %s", name, value)
        return _text(f"created {name}: {value}\n")

    @app.route("/update", methods=METHODS)
    def update():
        req = ItemRequest.from_args(request.args)
        name, value = _store().update(req.item, req.price)
        logger.info("updated %s: %s", name, value)
        return _text(f"updated {name}: {value}\n")

    @app.route("/delete", methods=METHODS)
    def delete():
        req = ItemRequest.from_args(request.args)
        name = _store().delete(req.item)
        logger.info("deleted %s", name)
        return _text(f"deleted {name}\n")

    return app


def _seed_item(value: str) -> Tuple[str, Dollars]:
    name, sep, price_text = value.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=PRICE, got {value!r}")
    try:
        return name, parse_price(price_text)
    except StoreError as exc:
        raise argparse.ArgumentTypeError(exc.message) from None


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Serve an in-memory item price store over HTTP"
    )
    parser.add_argument("--host", default="localhost", help="Address to listen on")
    parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    parser.add_argument(
        "--item",
        dest="items",
        action="append",
        type=_seed_item,
        metavar="NAME=PRICE",
        help="Seed entry; repeat to seed several. Replaces the default seed.",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Console log level (default INFO)",
    )
    return parser.parse_args(argv)


def setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_level)

    seed = dict(args.items) if args.items else DEFAULT_ITEMS
    app = create_app(ItemStore(seed))
    logger.info("Serving %d item(s) on http://%s:%d", len(seed), args.host, args.port)
    try:
        # threaded=True so requests are handled concurrently
        app.run(host=args.host, port=args.port, threaded=True)
    except OSError as exc:
        logger.critical("Could not listen on %s:%d: %s", args.host, args.port, exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

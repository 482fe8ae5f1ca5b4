"""CLI entry point for the smart fridge server."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

from .config import load_config
from .db import InventoryDB, ShoppingListDB
from .errors import SmartFridgeError


def main(argv: list[str] | None = None) -> None:
    load_dotenv()

    parser = argparse.ArgumentParser(
        prog="smartfridge",
        description="Smart fridge inventory: barcode scans, shopping list and receipt OCR",
    )
    parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="Path to the configuration file (TOML)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true", help="Enable debug logging"
    )

    sub = parser.add_subparsers(dest="command")

    # serve
    serve_parser = sub.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", type=str, default=None)
    serve_parser.add_argument("--port", type=int, default=None)

    # receipt
    receipt_parser = sub.add_parser("receipt", help="Register products from a receipt")
    receipt_parser.add_argument("file", type=str, help="Receipt image (or text with --text)")
    receipt_parser.add_argument(
        "--text", action="store_true", help="The file holds OCR text, not an image"
    )
    receipt_parser.add_argument(
        "--dry-run", action="store_true", help="Parse only, do not store products"
    )
    receipt_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # inventory
    inv_parser = sub.add_parser("inventory", help="List products in the fridge")
    inv_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # expiring
    exp_parser = sub.add_parser("expiring", help="List products expiring soon")
    exp_parser.add_argument("--days", type=int, default=7)

    # shopping
    sub.add_parser("shopping", help="Show the shopping list")

    # history
    hist_parser = sub.add_parser("history", help="Show recent scanner events")
    hist_parser.add_argument("--limit", type=int, default=50)

    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    config = load_config(args.config)
    level = "DEBUG" if args.verbose else config.logging.level.upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    )

    match args.command:
        case "serve":
            _cmd_serve(config, args)
        case "receipt":
            try:
                asyncio.run(_cmd_receipt(config, args))
            except SmartFridgeError as e:
                print(f"Receipt processing failed: {e}", file=sys.stderr)
                sys.exit(1)
        case "inventory":
            _cmd_inventory(config, args)
        case "expiring":
            _cmd_expiring(config, args)
        case "shopping":
            _cmd_shopping(config)
        case "history":
            _cmd_history(config, args)


def _cmd_serve(config, args) -> None:
    import uvicorn

    from .server import create_app

    app = create_app(config)
    uvicorn.run(
        app,
        host=args.host or config.server.host,
        port=args.port or config.server.port,
    )


async def _cmd_receipt(config, args) -> None:
    from .ocr import create_backend, recognize_text
    from .receipt import ReceiptParser

    backend = create_backend(config)
    path = Path(args.file)
    db = InventoryDB(config.database.path)
    try:
        parser = ReceiptParser(
            backend,
            db,
            languages=config.ocr.languages,
            ocr_timeout=config.ocr.timeout,
        )
        if not args.text and not args.dry_run:
            summary = await parser.process_image(path.read_bytes())
        else:
            if args.text:
                text = path.read_text(encoding="utf-8")
            else:
                text = await recognize_text(
                    backend,
                    path.read_bytes(),
                    config.ocr.languages,
                    timeout=config.ocr.timeout,
                )
            summary = parser.parse_text(text)
            if not args.dry_run:
                parser.register(summary)
    finally:
        db.close()

    if args.json:
        print(json.dumps(summary.to_dict(), ensure_ascii=False, indent=2))
        return

    print(f"Purchase date: {summary.purchase_date}  (expiry {summary.expiry_date})")
    if not summary.products:
        print("No deli products found.")
        return
    print(f"Products found: {summary.products_found}")
    for p in summary.products:
        print(f"  {p.name:<40} {p.weight or '':>10}  [{p.category}]")


def _cmd_inventory(config, args) -> None:
    db = InventoryDB(config.database.path)
    try:
        products = db.get_inventory()
    finally:
        db.close()

    if args.json:
        print(json.dumps(products, ensure_ascii=False, indent=2))
        return
    if not products:
        print("The fridge is empty.")
        return
    print(f"Products in the fridge: {len(products)}")
    for p in products:
        name = p["name"] or p["barcode"]
        print(f"  {name:<40} x{p['quantity']:<3} expires {p['expiry_date'] or '-'}")


def _cmd_expiring(config, args) -> None:
    db = InventoryDB(config.database.path)
    try:
        products = db.get_expiring(args.days)
    finally:
        db.close()

    if not products:
        print(f"Nothing expires within {args.days} days.")
        return
    print(f"Expiring within {args.days} days: {len(products)}")
    for p in products:
        print(f"  {p['expiry_date']}  {p['name'] or p['barcode']}")


def _cmd_shopping(config) -> None:
    db = ShoppingListDB(config.database.path)
    try:
        items = db.get_items()
    finally:
        db.close()

    if not items:
        print("The shopping list is empty.")
        return
    print(f"Shopping list: {len(items)} items")
    for item in items:
        auto = " (auto)" if item["auto_generated"] else ""
        print(f"  {item['name'] or item['barcode']} x{item['quantity_needed']}{auto}")


def _cmd_history(config, args) -> None:
    db = InventoryDB(config.database.path)
    try:
        events = db.get_scan_history(args.limit)
    finally:
        db.close()

    if not events:
        print("No scans recorded.")
        return
    for event in events:
        device = f" ({event['device']})" if event["device"] else ""
        print(f"  {event['timestamp']}  {event['action']:<6} {event['barcode']}{device}")

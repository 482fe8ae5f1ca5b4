"""FastAPI server for the fridge scanner, web UI and receipt uploads."""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, File, Request, UploadFile
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError
from starlette.datastructures import UploadFile as StarletteUploadFile
from starlette.exceptions import HTTPException

from .config import FridgeConfig
from .db import InventoryDB, ShoppingListDB
from .errors import NoImageProvided, OcrFailure, StorageFailure
from .ocr import OCRBackend, create_backend, recognize_text
from .receipt import ReceiptParser, find_date
from .schemas import ManualProductIn, ProductUpdate, ScanEventIn, ShoppingItemIn
from .uploads import remove_product_image, save_product_image, temporary_upload

logger = logging.getLogger(__name__)

# Reported when a date was read off a product photo; tesseract gives no
# per-match confidence.
_EXPIRY_OCR_CONFIDENCE = 0.7


async def _read_image(image: UploadFile | None, max_bytes: int) -> bytes:
    """Return the bytes of an uploaded image.

    Raises:
        NoImageProvided: If no file (or an empty one) was attached.
        HTTPException: If the file is larger than ``max_bytes``.
    """
    if image is None:
        raise NoImageProvided("No image")
    data = await image.read(max_bytes + 1)
    if not data:
        raise NoImageProvided("No image")
    if len(data) > max_bytes:
        raise HTTPException(
            status_code=400, detail=f"Image larger than {max_bytes} bytes"
        )
    return data


def _validation_message(errors) -> str:
    """Flatten pydantic errors into "field: message" pairs."""
    parts = []
    for err in errors:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err['msg']}" if loc else err["msg"])
    return "; ".join(parts)


def create_app(
    config: FridgeConfig,
    *,
    ocr_backend: OCRBackend | None = None,
    inventory: InventoryDB | None = None,
    shopping: ShoppingListDB | None = None,
) -> FastAPI:
    """Build the API app around one inventory database.

    The OCR backend is created from config on first use unless given.
    """
    inventory = inventory or InventoryDB(config.database.path)
    shopping = shopping or ShoppingListDB(config.database.path)
    upload_dir = Path(config.server.upload_dir)
    tmp_dir = Path(config.server.tmp_dir)
    max_bytes = config.server.max_upload_bytes
    upload_dir.mkdir(parents=True, exist_ok=True)
    tmp_dir.mkdir(parents=True, exist_ok=True)

    backends: dict[str, OCRBackend] = {}
    if ocr_backend is not None:
        backends["ocr"] = ocr_backend

    def get_backend() -> OCRBackend:
        if "ocr" not in backends:
            backends["ocr"] = create_backend(config)
        return backends["ocr"]

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        scheduler = None
        if config.scheduler.enabled:
            from .scheduler import ExpiryScheduler

            scheduler = ExpiryScheduler(config, inventory)
            scheduler.start()
        logger.info("Smart fridge server ready (db: %s)", config.database.path)
        try:
            yield
        finally:
            if scheduler is not None:
                scheduler.stop()
            inventory.close()
            shopping.close()

    app = FastAPI(title="Smart Fridge", lifespan=lifespan)
    app.mount("/images", StaticFiles(directory=str(upload_dir)), name="images")

    @app.exception_handler(NoImageProvided)
    async def _no_image(request: Request, exc: NoImageProvided) -> JSONResponse:
        return JSONResponse({"success": False, "error": str(exc)}, status_code=400)

    @app.exception_handler(OcrFailure)
    async def _ocr_failed(request: Request, exc: OcrFailure) -> JSONResponse:
        logger.error("OCR failed on %s: %s", request.url.path, exc)
        return JSONResponse({"success": False, "error": str(exc)}, status_code=500)

    @app.exception_handler(StorageFailure)
    async def _storage_failed(request: Request, exc: StorageFailure) -> JSONResponse:
        logger.error("Storage failed on %s: %s", request.url.path, exc)
        return JSONResponse({"success": False, "error": str(exc)}, status_code=500)

    @app.exception_handler(HTTPException)
    async def _http_error(request: Request, exc: HTTPException) -> JSONResponse:
        return JSONResponse(
            {"success": False, "error": exc.detail}, status_code=exc.status_code
        )

    @app.exception_handler(RequestValidationError)
    async def _invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            {"success": False, "error": _validation_message(exc.errors())},
            status_code=400,
        )

    @app.post("/api/product")
    async def scan_product(request: Request) -> JSONResponse:
        """Receive an add/remove event from the barcode scanner.

        The scanner posts JSON; the web UI posts a form that may carry a photo.
        """
        image = None
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("application/json"):
            try:
                payload = await request.json()
            except ValueError:
                raise HTTPException(status_code=400, detail="Invalid JSON body") from None
        else:
            form = await request.form()
            payload = {k: v for k, v in form.items() if isinstance(v, str)}
            upload = form.get("image")
            if isinstance(upload, StarletteUploadFile) and upload.filename:
                image = upload

        try:
            event = ScanEventIn.model_validate(payload)
        except ValidationError as e:
            raise RequestValidationError(e.errors()) from e

        action, barcode = event.action, event.barcode
        expiry_date = event.expiry_date or None
        logger.info("[PRODUCT] %s: %s", action, barcode)
        if action not in ("add", "remove"):
            return JSONResponse(
                {"success": False, "error": f"Unknown action {action!r}"},
                status_code=400,
            )

        image_path = None
        if image is not None:
            data = await _read_image(image, max_bytes)
            image_path = save_product_image(upload_dir, data, image.filename)

        inventory.record_scan(barcode, action, event.device, image_path)

        if action == "add":
            inventory.add_scanned(barcode, expiry_date, image_path)
            return JSONResponse({"success": True, "message": "Prodotto aggiunto"})

        result = inventory.remove_scanned(barcode)
        if result.finished:
            remove_product_image(upload_dir, result.image_path)
            if result.added_to_shopping:
                logger.info("%s finished, added to shopping list", barcode)
        return JSONResponse({"success": True, "message": "Prodotto rimosso"})

    @app.post("/api/ocr")
    async def read_expiry_date(image: Optional[UploadFile] = File(None)) -> dict:
        """Read a printed expiry date off a product photo."""
        data = await _read_image(image, max_bytes)
        with temporary_upload(tmp_dir, data, image.filename) as path:
            text = await recognize_text(
                get_backend(),
                path.read_bytes(),
                config.ocr.languages,
                timeout=config.ocr.timeout,
            )
        found = find_date(text)
        return {
            "expiry_date": found.isoformat() if found else None,
            "confidence": _EXPIRY_OCR_CONFIDENCE if found else 0,
        }

    @app.post("/api/receipt")
    async def process_receipt(image: Optional[UploadFile] = File(None)) -> dict:
        """Register the deli products printed on a receipt photo."""
        data = await _read_image(image, max_bytes)
        parser = ReceiptParser(
            get_backend(),
            inventory,
            languages=config.ocr.languages,
            ocr_timeout=config.ocr.timeout,
        )
        with temporary_upload(tmp_dir, data, image.filename) as path:
            summary = await parser.process_image(path.read_bytes())
        return summary.to_dict()

    @app.get("/api/inventory")
    async def list_inventory() -> dict:
        products = inventory.get_inventory()
        return {"products": products, "count": len(products)}

    @app.get("/api/expiring")
    async def list_expiring(days: int = 7) -> dict:
        products = inventory.get_expiring(days)
        return {"products": products, "count": len(products), "days": days}

    @app.get("/api/shopping")
    async def list_shopping() -> dict:
        items = shopping.get_items()
        return {"shopping_list": items, "total_items": len(items)}

    @app.post("/api/shopping")
    async def add_shopping(item: ShoppingItemIn) -> dict:
        item_id = shopping.add_item(item.barcode, item.name, item.quantity or 1)
        return {"success": True, "id": item_id}

    @app.delete("/api/shopping/{item_id}")
    async def delete_shopping(item_id: int) -> dict:
        shopping.delete_item(item_id)
        return {"success": True}

    @app.post("/api/manual")
    async def add_manual(product: ManualProductIn) -> dict:
        product_id = inventory.add_manual(
            product.barcode,
            name=product.name,
            brand=product.brand,
            category=product.category,
            quantity=product.quantity or 1,
            expiry_date=product.expiry_date,
        )
        return {"success": True, "id": product_id}

    @app.put("/api/product/{product_id}")
    async def update_product(product_id: int, update: ProductUpdate) -> dict:
        if not inventory.update_product(
            product_id,
            name=update.name,
            brand=update.brand,
            category=update.category,
            quantity=update.quantity,
            expiry_date=update.expiry_date,
        ):
            raise HTTPException(status_code=404, detail="Product not found")
        return {"success": True}

    @app.delete("/api/product/{product_id}")
    async def delete_product(product_id: int) -> dict:
        image_path = inventory.delete_product(product_id)
        remove_product_image(upload_dir, image_path)
        return {"success": True}

    @app.get("/api/stats")
    async def stats() -> dict:
        return inventory.get_stats()

    return app

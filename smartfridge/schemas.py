"""Request bodies accepted by the HTTP API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict


class ScanEventIn(BaseModel):
    # The scanner firmware also sends barcode_type, timestamp, boot_count,
    # ocr_method and wifi_rssi.
    model_config = ConfigDict(extra="ignore")

    action: str
    barcode: str
    expiry_date: Optional[str] = None   # "" when the scanner read no date
    device: Optional[str] = None


class ShoppingItemIn(BaseModel):
    barcode: str
    name: Optional[str] = None
    quantity: Optional[int] = 1


class ManualProductIn(BaseModel):
    barcode: str
    name: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[int] = 1
    expiry_date: Optional[str] = None   # "YYYY-MM-DD"


class ProductUpdate(BaseModel):
    name: Optional[str] = None
    brand: Optional[str] = None
    category: Optional[str] = None
    quantity: Optional[int] = None
    expiry_date: Optional[str] = None

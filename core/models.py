from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .config import settings

QuoteStatus = Literal["draft", "sent", "approved", "cancelled"]
DiscountType = Literal["fixed", "percentage"]
CatalogType = Literal["product", "service"]


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class MaterialCategory(str, Enum):
    PIPING = "Tubulações"
    FOAM_AND_TAPES = "Esponjoso e fitas"
    ELECTRICAL_CABLES = "Cabos elétricos"
    OTHER = "Outros"


class ServiceCategory(str, Enum):
    INSTALLATION = "Instalação"
    CLEANING = "Limpeza"
    REPAIRS = "Consertos"
    OTHER = "Outros"


# ---------- CATALOG ----------

class Material(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    unit: str = "un"
    cost: float = Field(default=0, ge=0)
    price: float = Field(default=0, ge=0)
    category: MaterialCategory = MaterialCategory.OTHER


class Service(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str
    cost: float = Field(default=0, ge=0)
    price: float = Field(default=0, ge=0)
    category: ServiceCategory = ServiceCategory.OTHER


class CompanySettings(BaseModel):
    id: str = Field(default_factory=new_id)
    name: str = ""
    document: str = ""
    phone: str = ""
    address: str = ""
    logo: str = ""
    footer_text: str = Field(default_factory=lambda: settings.DEFAULT_FOOTER_TEXT)
    copper_price_per_kg: float = Field(
        default_factory=lambda: settings.DEFAULT_COPPER_PRICE_PER_KG, ge=0
    )


# ---------- COPPER ----------

class CopperTubeInfo(BaseModel):
    is_copper_tube: bool = False
    size: Optional[str] = None
    weight_per_meter: Optional[float] = None


class CopperPrice(BaseModel):
    total_weight: float
    total_price: float


# ---------- QUOTE ----------

class QuoteLineItem(BaseModel):
    id: str = Field(default_factory=new_id)
    material_id: str
    name: str
    unit: str = "un"
    quantity: float = Field(default=1, ge=0)
    unit_price: float = 0
    total: float = 0

    # only set on lines detected as copper tube
    is_copper_tube: bool = False
    copper_size: Optional[str] = None
    copper_weight_per_meter: Optional[float] = None
    copper_total_weight: Optional[float] = None
    copper_price_per_kg: Optional[float] = None


class QuoteServiceLine(BaseModel):
    id: str = Field(default_factory=new_id)
    service_id: str
    name: str
    unit_price: float = 0
    quantity: float = Field(default=1, ge=0)
    price: float = 0


class QuoteTotals(BaseModel):
    subtotal_materials: float
    subtotal_services: float
    subtotal: float
    discount_value: float
    total: float


class Quote(BaseModel):
    id: str = Field(default_factory=new_id)
    number: int = 0
    version: int = 1
    status: QuoteStatus = "draft"

    client_name: str = ""
    client_phone: str = ""
    client_address: str = ""

    items: list[QuoteLineItem] = []
    services: list[QuoteServiceLine] = []

    # discount keeps the user's input; discount_value is derived from it
    discount: float = 0
    discount_type: DiscountType = "fixed"

    subtotal_materials: float = 0
    subtotal_services: float = 0
    subtotal: float = 0
    discount_value: float = 0
    total: float = 0

    internal_notes: str = ""
    client_notes: str = ""
    validity_days: int = Field(default_factory=lambda: settings.DEFAULT_VALIDITY_DAYS, ge=0)
    payment_conditions: str = Field(default_factory=lambda: settings.DEFAULT_PAYMENT_CONDITIONS)

    created_at: str = Field(default_factory=utc_now_iso)
    updated_at: str = Field(default_factory=utc_now_iso)


# ---------- API REQUESTS ----------

class MaterialCreate(BaseModel):
    name: str = Field(min_length=1)
    unit: str = "un"
    cost: float = Field(default=0, ge=0)
    price: float = Field(default=0, ge=0)
    category: MaterialCategory = MaterialCategory.OTHER


class MaterialUpdate(BaseModel):
    name: Optional[str] = None
    unit: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[MaterialCategory] = None


class ServiceCreate(BaseModel):
    name: str = Field(min_length=1)
    cost: float = Field(default=0, ge=0)
    price: float = Field(default=0, ge=0)
    category: ServiceCategory = ServiceCategory.OTHER


class ServiceUpdate(BaseModel):
    name: Optional[str] = None
    cost: Optional[float] = Field(default=None, ge=0)
    price: Optional[float] = Field(default=None, ge=0)
    category: Optional[ServiceCategory] = None


class CompanySettingsUpdate(BaseModel):
    name: Optional[str] = None
    document: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    logo: Optional[str] = None
    footer_text: Optional[str] = None
    copper_price_per_kg: Optional[float] = Field(default=None, ge=0)


class CustomItemRequest(BaseModel):
    name: str = Field(min_length=1)
    unit: str = "un"
    price: float = Field(ge=0)


class CatalogRefRequest(BaseModel):
    catalog_id: str


class QuantityChange(BaseModel):
    # exactly one of the two is expected; delta wins when both are given
    delta: Optional[float] = None
    quantity: Optional[float] = None


class DiscountChange(BaseModel):
    discount: float = Field(default=0, ge=0)
    discount_type: DiscountType = "fixed"


class StatusChange(BaseModel):
    status: QuoteStatus


class QuoteDraft(BaseModel):
    status: QuoteStatus = "draft"
    client_name: str = ""
    client_phone: str = ""
    client_address: str = ""
    items: list[QuoteLineItem] = []
    services: list[QuoteServiceLine] = []
    discount: float = Field(default=0, ge=0)
    discount_type: DiscountType = "fixed"
    internal_notes: str = ""
    client_notes: str = ""
    validity_days: int = Field(default_factory=lambda: settings.DEFAULT_VALIDITY_DAYS, ge=0)
    payment_conditions: str = Field(default_factory=lambda: settings.DEFAULT_PAYMENT_CONDITIONS)


class CopperDetectRequest(BaseModel):
    name: str = ""


class CopperPriceRequest(BaseModel):
    meters: float = Field(ge=0)
    weight_per_meter: float = Field(gt=0)
    price_per_kg: float = Field(ge=0)

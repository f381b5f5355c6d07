from __future__ import annotations

import logging
from typing import Any, Optional

from fastapi import Body, Depends, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from core import lines
from core.calculator import effective_copper_price
from core.catalog import (
    MATERIAL_CATEGORY_ORDER,
    SERVICE_CATEGORY_ORDER,
    group_by_category,
)
from core.document import document_filename, render_quote_text, share_link, share_message
from core.models import (
    CatalogRefRequest,
    CompanySettings,
    CompanySettingsUpdate,
    CopperDetectRequest,
    CopperPrice,
    CopperPriceRequest,
    CopperTubeInfo,
    CustomItemRequest,
    DiscountChange,
    Material,
    MaterialCreate,
    MaterialUpdate,
    QuantityChange,
    Quote,
    QuoteDraft,
    QuoteStatus,
    Service,
    ServiceCreate,
    ServiceUpdate,
    StatusChange,
)
from core.repositories import CatalogRepository, CompanySettingsRepository, QuoteRepository
from core.rules import detect_copper_tube, price_copper_tube
from core.store import RecordNotFound, RecordStore, StoreError, build_store

logger = logging.getLogger(__name__)

app = FastAPI(title="HVAC Quote Builder API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_store: Optional[RecordStore] = None


def get_store() -> RecordStore:
    global _store
    if _store is None:
        _store = build_store()
    return _store


def get_catalog(store: RecordStore = Depends(get_store)) -> CatalogRepository:
    return CatalogRepository(store)


def get_company(store: RecordStore = Depends(get_store)) -> CompanySettingsRepository:
    return CompanySettingsRepository(store)


def get_quotes(store: RecordStore = Depends(get_store)) -> QuoteRepository:
    return QuoteRepository(store)


@app.exception_handler(RecordNotFound)
async def _not_found(request: Request, exc: RecordNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(lines.LineNotFound)
async def _line_not_found(request: Request, exc: lines.LineNotFound) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


@app.exception_handler(StoreError)
async def _store_error(request: Request, exc: StoreError) -> JSONResponse:
    logger.error("Store failure on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=503, content={"detail": f"Storage unavailable: {exc}"})


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


# ---------- CATALOG ----------

@app.get("/materials", response_model=list[Material])
def list_materials(catalog: CatalogRepository = Depends(get_catalog)) -> list[Material]:
    return catalog.list_materials()


@app.get("/materials/grouped", response_model=dict[str, list[Material]])
def list_materials_grouped(catalog: CatalogRepository = Depends(get_catalog)) -> dict[str, list[Material]]:
    return group_by_category(catalog.list_materials(), MATERIAL_CATEGORY_ORDER)


@app.get("/materials/{material_id}", response_model=Material)
def get_material(material_id: str, catalog: CatalogRepository = Depends(get_catalog)) -> Material:
    return catalog.get_material(material_id)


@app.post("/materials", response_model=Material, status_code=201)
def create_material(data: MaterialCreate, catalog: CatalogRepository = Depends(get_catalog)) -> Material:
    return catalog.create_material(Material(**data.model_dump()))


@app.patch("/materials/{material_id}", response_model=Material)
def update_material(
    material_id: str, data: MaterialUpdate, catalog: CatalogRepository = Depends(get_catalog)
) -> Material:
    return catalog.update_material(material_id, data.model_dump(exclude_unset=True))


@app.delete("/materials/{material_id}", status_code=204)
def delete_material(material_id: str, catalog: CatalogRepository = Depends(get_catalog)) -> None:
    catalog.get_material(material_id)
    catalog.delete(material_id)


@app.get("/services", response_model=list[Service])
def list_services(catalog: CatalogRepository = Depends(get_catalog)) -> list[Service]:
    return catalog.list_services()


@app.get("/services/grouped", response_model=dict[str, list[Service]])
def list_services_grouped(catalog: CatalogRepository = Depends(get_catalog)) -> dict[str, list[Service]]:
    return group_by_category(catalog.list_services(), SERVICE_CATEGORY_ORDER)


@app.get("/services/{service_id}", response_model=Service)
def get_service(service_id: str, catalog: CatalogRepository = Depends(get_catalog)) -> Service:
    return catalog.get_service(service_id)


@app.post("/services", response_model=Service, status_code=201)
def create_service(data: ServiceCreate, catalog: CatalogRepository = Depends(get_catalog)) -> Service:
    return catalog.create_service(Service(**data.model_dump()))


@app.patch("/services/{service_id}", response_model=Service)
def update_service(
    service_id: str, data: ServiceUpdate, catalog: CatalogRepository = Depends(get_catalog)
) -> Service:
    return catalog.update_service(service_id, data.model_dump(exclude_unset=True))


@app.delete("/services/{service_id}", status_code=204)
def delete_service(service_id: str, catalog: CatalogRepository = Depends(get_catalog)) -> None:
    catalog.get_service(service_id)
    catalog.delete(service_id)


# ---------- SETTINGS ----------

@app.get("/settings", response_model=CompanySettings)
def get_settings(company: CompanySettingsRepository = Depends(get_company)) -> CompanySettings:
    return company.get()


@app.put("/settings", response_model=CompanySettings)
def save_settings(
    data: CompanySettingsUpdate, company: CompanySettingsRepository = Depends(get_company)
) -> CompanySettings:
    current = company.get()
    return company.save(current.model_copy(update=data.model_dump(exclude_unset=True)))


# ---------- COPPER ----------

@app.post("/copper/detect", response_model=CopperTubeInfo)
def copper_detect(req: CopperDetectRequest) -> CopperTubeInfo:
    return detect_copper_tube(req.name)


@app.post("/copper/price", response_model=CopperPrice)
def copper_price(req: CopperPriceRequest) -> CopperPrice:
    return price_copper_tube(req.meters, req.weight_per_meter, req.price_per_kg)


# ---------- QUOTES ----------

def _require_valid(quote: Quote) -> None:
    problems = lines.validate_quote_for_save(quote)
    if problems:
        raise HTTPException(status_code=400, detail=" ".join(problems))


@app.get("/quotes", response_model=list[Quote])
def list_quotes(
    status: Optional[QuoteStatus] = None, quotes: QuoteRepository = Depends(get_quotes)
) -> list[Quote]:
    return quotes.list(status=status)


@app.post("/quotes", response_model=Quote, status_code=201)
def create_quote(draft: QuoteDraft, quotes: QuoteRepository = Depends(get_quotes)) -> Quote:
    quote = lines.normalize_lines(Quote(**draft.model_dump()))
    _require_valid(quote)
    return quotes.create(quote)


@app.get("/quotes/{quote_id}", response_model=Quote)
def get_quote(quote_id: str, quotes: QuoteRepository = Depends(get_quotes)) -> Quote:
    return quotes.get(quote_id)


@app.put("/quotes/{quote_id}", response_model=Quote)
def replace_quote(
    quote_id: str, draft: QuoteDraft, quotes: QuoteRepository = Depends(get_quotes)
) -> Quote:
    current = quotes.get(quote_id)
    quote = lines.normalize_lines(Quote.model_validate(current.model_dump() | draft.model_dump()))
    _require_valid(quote)
    return quotes.save(quote)


@app.delete("/quotes/{quote_id}", status_code=204)
def delete_quote(quote_id: str, quotes: QuoteRepository = Depends(get_quotes)) -> None:
    quotes.delete(quote_id)


@app.post("/quotes/{quote_id}/items", response_model=Quote)
def add_item(
    quote_id: str,
    req: CatalogRefRequest,
    quotes: QuoteRepository = Depends(get_quotes),
    catalog: CatalogRepository = Depends(get_catalog),
    company: CompanySettingsRepository = Depends(get_company),
) -> Quote:
    quote = quotes.get(quote_id)
    material = catalog.get_material(req.catalog_id)
    rate = effective_copper_price(company.get())
    return quotes.save(lines.add_catalog_material(quote, material, rate))


@app.post("/quotes/{quote_id}/items/custom", response_model=Quote)
def add_custom_item(
    quote_id: str, req: CustomItemRequest, quotes: QuoteRepository = Depends(get_quotes)
) -> Quote:
    quote = quotes.get(quote_id)
    return quotes.save(lines.add_custom_material(quote, req.name, req.unit, req.price))


@app.patch("/quotes/{quote_id}/items/{line_id}", response_model=Quote)
def change_item_quantity(
    quote_id: str, line_id: str, change: QuantityChange, quotes: QuoteRepository = Depends(get_quotes)
) -> Quote:
    quote = quotes.get(quote_id)
    try:
        if change.delta is not None:
            quote = lines.update_item_quantity(quote, line_id, change.delta)
        elif change.quantity is not None:
            quote = lines.set_item_quantity(quote, line_id, change.quantity)
        else:
            raise ValueError("Provide 'delta' or 'quantity'")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return quotes.save(quote)


@app.delete("/quotes/{quote_id}/items/{line_id}", response_model=Quote)
def remove_item(quote_id: str, line_id: str, quotes: QuoteRepository = Depends(get_quotes)) -> Quote:
    return quotes.save(lines.remove_item(quotes.get(quote_id), line_id))


@app.post("/quotes/{quote_id}/services", response_model=Quote)
def add_service(
    quote_id: str,
    req: CatalogRefRequest,
    quotes: QuoteRepository = Depends(get_quotes),
    catalog: CatalogRepository = Depends(get_catalog),
) -> Quote:
    quote = quotes.get(quote_id)
    service = catalog.get_service(req.catalog_id)
    return quotes.save(lines.add_catalog_service(quote, service))


@app.post("/quotes/{quote_id}/services/custom", response_model=Quote)
def add_custom_service(
    quote_id: str, req: CustomItemRequest, quotes: QuoteRepository = Depends(get_quotes)
) -> Quote:
    quote = quotes.get(quote_id)
    return quotes.save(lines.add_custom_service(quote, req.name, req.price))


@app.patch("/quotes/{quote_id}/services/{line_id}", response_model=Quote)
def change_service_quantity(
    quote_id: str, line_id: str, change: QuantityChange, quotes: QuoteRepository = Depends(get_quotes)
) -> Quote:
    quote = quotes.get(quote_id)
    try:
        if change.delta is not None:
            quote = lines.update_service_quantity(quote, line_id, change.delta)
        elif change.quantity is not None:
            quote = lines.set_service_quantity(quote, line_id, change.quantity)
        else:
            raise ValueError("Provide 'delta' or 'quantity'")
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return quotes.save(quote)


@app.delete("/quotes/{quote_id}/services/{line_id}", response_model=Quote)
def remove_service(quote_id: str, line_id: str, quotes: QuoteRepository = Depends(get_quotes)) -> Quote:
    return quotes.save(lines.remove_service(quotes.get(quote_id), line_id))


@app.put("/quotes/{quote_id}/discount", response_model=Quote)
def change_discount(
    quote_id: str, change: DiscountChange, quotes: QuoteRepository = Depends(get_quotes)
) -> Quote:
    quote = quotes.get(quote_id)
    return quotes.save(lines.set_discount(quote, change.discount, change.discount_type))


@app.put("/quotes/{quote_id}/status", response_model=Quote)
def change_status(
    quote_id: str, change: StatusChange, quotes: QuoteRepository = Depends(get_quotes)
) -> Quote:
    return quotes.save(lines.set_status(quotes.get(quote_id), change.status))


@app.get("/quotes/{quote_id}/document", response_class=PlainTextResponse)
def quote_document(
    quote_id: str,
    quotes: QuoteRepository = Depends(get_quotes),
    company: CompanySettingsRepository = Depends(get_company),
) -> PlainTextResponse:
    quote = quotes.get(quote_id)
    return PlainTextResponse(
        render_quote_text(quote, company.get()),
        headers={"Content-Disposition": f'attachment; filename="{document_filename(quote.number)}"'},
    )


@app.get("/quotes/{quote_id}/share")
def quote_share(quote_id: str, quotes: QuoteRepository = Depends(get_quotes)) -> dict[str, Any]:
    quote = quotes.get(quote_id)
    return {"message": share_message(quote), "link": share_link(quote)}


# ---- Engine preview without storing anything ----
@app.post("/quotes/preview", response_model=Quote)
def preview_quote(draft: QuoteDraft = Body(...)) -> Quote:
    """Recomputes line and quote totals for a draft held by the client."""
    return lines.normalize_lines(Quote(**draft.model_dump()))

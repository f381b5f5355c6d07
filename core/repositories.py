"""
Repositories mapping domain models to record-store collections.

Collections:
  products          catalog materials (type=product) and services (type=service)
  company_settings  one record per account
  quotes            quote headers
  quote_lines       material and service lines, keyed back to their quote
  meta              bookkeeping records (catalog schema version)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from .catalog import (
    CATALOG_SCHEMA_VERSION,
    DEFAULT_MATERIALS,
    DEFAULT_SERVICES,
    migrate_product_record,
)
from .calculator import recalculate
from .config import settings
from .models import (
    CompanySettings,
    Material,
    Quote,
    QuoteLineItem,
    QuoteServiceLine,
    QuoteStatus,
    Service,
    utc_now_iso,
)
from .store import RecordNotFound, RecordStore, StoreError

logger = logging.getLogger(__name__)

PRODUCTS = "products"
COMPANY_SETTINGS = "company_settings"
QUOTES = "quotes"
QUOTE_LINES = "quote_lines"
META = "meta"

CATALOG_VERSION_ID = "catalog_schema_version"


class CatalogRepository:
    def __init__(self, store: RecordStore, seed_defaults: Optional[bool] = None):
        self.store = store
        self.seed_defaults = settings.SEED_DEFAULT_CATALOG if seed_defaults is None else seed_defaults
        self._prepared = False

    # ---------- LOAD-TIME PREPARATION ----------

    def prepare(self) -> None:
        """Seed an empty catalog and run pending category migrations, once per repository."""
        if self._prepared:
            return
        records = self.store.list(PRODUCTS)
        if not records and self.seed_defaults:
            self._seed()
        else:
            self._migrate(records)
        self._prepared = True

    def _schema_version(self) -> int:
        try:
            return int(self.store.get(META, CATALOG_VERSION_ID).get("value", 0))
        except RecordNotFound:
            return 0

    def _set_schema_version(self, version: int) -> None:
        try:
            self.store.update(META, CATALOG_VERSION_ID, {"value": version})
        except RecordNotFound:
            self.store.create(META, {"id": CATALOG_VERSION_ID, "value": version})

    def _seed(self) -> None:
        logger.info("Seeding default catalog (%d materials, %d services)",
                    len(DEFAULT_MATERIALS), len(DEFAULT_SERVICES))
        for m in DEFAULT_MATERIALS:
            self.store.create(PRODUCTS, Material(**m).model_dump(mode="json") | {"type": "product"})
        for s in DEFAULT_SERVICES:
            self.store.create(PRODUCTS, Service(**s).model_dump(mode="json") | {"type": "service", "unit": "un"})
        self._set_schema_version(CATALOG_SCHEMA_VERSION)

    def _migrate(self, records: list[dict[str, Any]]) -> None:
        version = self._schema_version()
        if version >= CATALOG_SCHEMA_VERSION:
            return
        changed = 0
        for record in records:
            changes = migrate_product_record(record)
            if changes:
                self.store.update(PRODUCTS, record["id"], changes)
                changed += 1
        self._set_schema_version(CATALOG_SCHEMA_VERSION)
        logger.info("Catalog categories migrated v%d -> v%d (%d records rewritten)",
                    version, CATALOG_SCHEMA_VERSION, changed)

    # ---------- READ ----------

    def _records(self, kind: str) -> list[dict[str, Any]]:
        self.prepare()
        records = [r for r in self.store.list(PRODUCTS) if r.get("type", "product") == kind]
        return sorted(records, key=lambda r: r.get("name", ""))

    def list_materials(self) -> list[Material]:
        return [Material.model_validate(r) for r in self._records("product")]

    def list_services(self) -> list[Service]:
        return [Service.model_validate(r) for r in self._records("service")]

    def _get(self, record_id: str, kind: str) -> dict[str, Any]:
        self.prepare()
        record = self.store.get(PRODUCTS, record_id)
        if record.get("type", "product") != kind:
            raise RecordNotFound(PRODUCTS, record_id)
        return record

    def get_material(self, material_id: str) -> Material:
        return Material.model_validate(self._get(material_id, "product"))

    def get_service(self, service_id: str) -> Service:
        return Service.model_validate(self._get(service_id, "service"))

    # ---------- WRITE ----------

    def create_material(self, material: Material) -> Material:
        record = self.store.create(PRODUCTS, material.model_dump(mode="json") | {"type": "product"})
        return Material.model_validate(record)

    def create_service(self, service: Service) -> Service:
        record = self.store.create(PRODUCTS, service.model_dump(mode="json") | {"type": "service", "unit": "un"})
        return Service.model_validate(record)

    def _update(self, record_id: str, kind: str, changes: dict[str, Any]) -> dict[str, Any]:
        self._get(record_id, kind)
        try:
            return self.store.update(PRODUCTS, record_id, changes)
        except StoreError as e:
            logger.error("Failed to update catalog item %s: %s", record_id, e)
            raise

    def update_material(self, material_id: str, changes: dict[str, Any]) -> Material:
        validated = Material.model_validate(self.get_material(material_id).model_dump() | changes)
        data = validated.model_dump(mode="json", include=set(changes))
        return Material.model_validate(self._update(material_id, "product", data))

    def update_service(self, service_id: str, changes: dict[str, Any]) -> Service:
        validated = Service.model_validate(self.get_service(service_id).model_dump() | changes)
        data = validated.model_dump(mode="json", include=set(changes))
        return Service.model_validate(self._update(service_id, "service", data))

    def delete(self, record_id: str) -> None:
        try:
            self.store.delete(PRODUCTS, record_id)
        except StoreError as e:
            logger.error("Failed to delete catalog item %s: %s", record_id, e)
            raise


class CompanySettingsRepository:
    def __init__(self, store: RecordStore):
        self.store = store

    def get(self) -> CompanySettings:
        records = self.store.list(COMPANY_SETTINGS)
        if not records:
            return CompanySettings()
        return CompanySettings.model_validate(records[0])

    def save(self, company: CompanySettings) -> CompanySettings:
        existing = self.store.list(COMPANY_SETTINGS)
        data = company.model_dump(mode="json")
        try:
            if existing:
                data["id"] = existing[0]["id"]
                record = self.store.update(COMPANY_SETTINGS, data["id"], data)
            else:
                record = self.store.create(COMPANY_SETTINGS, data)
        except StoreError as e:
            logger.error("Failed to save company settings: %s", e)
            raise
        return CompanySettings.model_validate(record)


class QuoteRepository:
    def __init__(self, store: RecordStore):
        self.store = store

    # ---------- MAPPING ----------

    @staticmethod
    def _header(quote: Quote) -> dict[str, Any]:
        return quote.model_dump(mode="json", exclude={"items", "services"})

    @staticmethod
    def _line_records(quote: Quote) -> dict[str, dict[str, Any]]:
        records: dict[str, dict[str, Any]] = {}
        for position, item in enumerate(quote.items):
            records[item.id] = item.model_dump(mode="json") | {
                "quote_id": quote.id, "kind": "material", "position": position,
            }
        for position, service in enumerate(quote.services):
            records[service.id] = service.model_dump(mode="json") | {
                "quote_id": quote.id, "kind": "service", "position": position,
            }
        return records

    def _stored_lines(self, quote_id: str) -> dict[str, dict[str, Any]]:
        return {r["id"]: r for r in self.store.list(QUOTE_LINES) if r.get("quote_id") == quote_id}

    def _assemble(self, header: dict[str, Any]) -> Quote:
        lines = sorted(self._stored_lines(header["id"]).values(), key=lambda r: r.get("position", 0))
        items = [QuoteLineItem.model_validate(r) for r in lines if r.get("kind") == "material"]
        services = [QuoteServiceLine.model_validate(r) for r in lines if r.get("kind") == "service"]
        return Quote.model_validate(header | {"items": items, "services": services})

    # ---------- READ ----------

    def list(self, status: Optional[QuoteStatus] = None) -> list[Quote]:
        headers = self.store.list(QUOTES)
        if status is not None:
            headers = [h for h in headers if h.get("status") == status]
        headers.sort(key=lambda h: (h.get("created_at", ""), h.get("number", 0)), reverse=True)
        return [self._assemble(h) for h in headers]

    def get(self, quote_id: str) -> Quote:
        return self._assemble(self.store.get(QUOTES, quote_id))

    def next_number(self) -> int:
        return max((int(h.get("number", 0)) for h in self.store.list(QUOTES)), default=0) + 1

    # ---------- WRITE ----------

    def create(self, quote: Quote) -> Quote:
        now = utc_now_iso()
        quote = recalculate(quote).model_copy(
            update={"number": self.next_number(), "version": 1, "created_at": now, "updated_at": now}
        )
        try:
            self.store.create(QUOTES, self._header(quote))
            for record in self._line_records(quote).values():
                self.store.create(QUOTE_LINES, record)
        except StoreError as e:
            logger.error("Failed to create quote #%d: %s", quote.number, e)
            raise
        logger.info("Created quote #%04d (%s)", quote.number, quote.id)
        return quote

    def save(self, quote: Quote) -> Quote:
        """Persist header and lines, writing only the lines that were added, changed or removed."""
        self.store.get(QUOTES, quote.id)
        quote = recalculate(quote).model_copy(update={"updated_at": utc_now_iso()})

        stored = self._stored_lines(quote.id)
        wanted = self._line_records(quote)
        added = [lid for lid in wanted if lid not in stored]
        removed = [lid for lid in stored if lid not in wanted]
        changed = [
            lid for lid in wanted
            if lid in stored and any(stored[lid].get(k) != v for k, v in wanted[lid].items())
        ]

        try:
            for lid in added:
                self.store.create(QUOTE_LINES, wanted[lid])
            for lid in changed:
                self.store.update(QUOTE_LINES, lid, wanted[lid])
            for lid in removed:
                self.store.delete(QUOTE_LINES, lid)
            self.store.update(QUOTES, quote.id, self._header(quote))
        except StoreError as e:
            logger.error("Failed to save quote %s: %s", quote.id, e)
            raise

        logger.debug("Quote %s lines: +%d ~%d -%d", quote.id, len(added), len(changed), len(removed))
        return quote

    def delete(self, quote_id: str) -> None:
        self.store.get(QUOTES, quote_id)
        try:
            for lid in self._stored_lines(quote_id):
                self.store.delete(QUOTE_LINES, lid)
            self.store.delete(QUOTES, quote_id)
        except StoreError as e:
            logger.error("Failed to delete quote %s: %s", quote_id, e)
            raise

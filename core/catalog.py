"""
Catalog resolver and catalog data.

Turns a catalog Material into a priced quote line (copper tubes get the
weight-based price), owns the closed category enumerations with their
versioned legacy-label migration, the default catalog, and the in-memory
catalog cache used by interactive callers.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Iterable, TypeVar

from .models import (
    Material,
    MaterialCategory,
    QuoteLineItem,
    Service,
    ServiceCategory,
    new_id,
)
from .rules import detect_copper_tube, price_copper_tube
from .store import StoreError

if TYPE_CHECKING:
    from .repositories import CatalogRepository

logger = logging.getLogger(__name__)

CUSTOM_PREFIX = "custom-"

CATALOG_SCHEMA_VERSION = 1

# v1: labels used by the first catalog form -> current enumeration
LEGACY_MATERIAL_CATEGORIES: dict[str, MaterialCategory] = {
    "Tubulação e tubo isolante": MaterialCategory.PIPING,
    "Suportes e fitas": MaterialCategory.FOAM_AND_TAPES,
}

MATERIAL_CATEGORY_ORDER = [
    MaterialCategory.PIPING,
    MaterialCategory.FOAM_AND_TAPES,
    MaterialCategory.ELECTRICAL_CABLES,
    MaterialCategory.OTHER,
]

SERVICE_CATEGORY_ORDER = [
    ServiceCategory.INSTALLATION,
    ServiceCategory.CLEANING,
    ServiceCategory.REPAIRS,
    ServiceCategory.OTHER,
]

DEFAULT_MATERIALS: list[dict[str, Any]] = [
    {"name": "Gás R-410A (kg)", "unit": "kg", "price": 150, "category": "Outros"},
    {"name": "Gás R-22 (kg)", "unit": "kg", "price": 120, "category": "Outros"},
    {"name": 'Tubo de Cobre 1/4"', "unit": "m", "price": 45, "category": "Tubulações"},
    {"name": 'Tubo de Cobre 3/8"', "unit": "m", "price": 60, "category": "Tubulações"},
    {"name": 'Tubo de Cobre 1/2"', "unit": "m", "price": 80, "category": "Tubulações"},
    {"name": 'Tubo de Cobre 5/8"', "unit": "m", "price": 100, "category": "Tubulações"},
    {"name": 'Tubo de Cobre 3/4"', "unit": "m", "price": 130, "category": "Tubulações"},
    {"name": "Isolamento Térmico", "unit": "m", "price": 7, "category": "Tubulações"},
    {"name": "Cabo PP 3x1.5mm", "unit": "m", "price": 12, "category": "Cabos elétricos"},
    {"name": "Suporte para Condensadora", "unit": "un", "price": 90, "category": "Esponjoso e fitas"},
    {"name": "Dreno Corrugado", "unit": "m", "price": 8, "category": "Esponjoso e fitas"},
]

DEFAULT_SERVICES: list[dict[str, Any]] = [
    {"name": "Instalação Split 9.000 BTUs", "price": 350, "category": "Instalação"},
    {"name": "Instalação Split 12.000 BTUs", "price": 400, "category": "Instalação"},
    {"name": "Instalação Split 18.000 BTUs", "price": 500, "category": "Instalação"},
    {"name": "Instalação Split 24.000 BTUs", "price": 600, "category": "Instalação"},
    {"name": "Limpeza Completa (Evap + Cond)", "price": 180, "category": "Limpeza"},
    {"name": "Manutenção Preventiva", "price": 150, "category": "Consertos"},
    {"name": "Carga de Gás", "price": 120, "category": "Consertos"},
    {"name": "Diagnóstico/Visita Técnica", "price": 80, "category": "Consertos"},
    {"name": "Desinstalação", "price": 150, "category": "Consertos"},
]


def custom_id() -> str:
    return f"{CUSTOM_PREFIX}{new_id()}"


def is_custom_id(catalog_id: str) -> bool:
    return catalog_id.startswith(CUSTOM_PREFIX)


def resolve_material_line(material: Material, copper_price_per_kg: float) -> QuoteLineItem:
    """New quote line at quantity 1 for a catalog material.

    Copper tubes are priced by weight at the given rate and carry their copper
    metadata; everything else takes the catalog sale price verbatim.
    """
    copper = detect_copper_tube(material.name)
    line = QuoteLineItem(
        material_id=material.id,
        name=material.name,
        unit=material.unit,
        quantity=1,
        unit_price=material.price,
        total=material.price,
    )
    if not copper.is_copper_tube or not copper.weight_per_meter:
        return line

    priced = price_copper_tube(1, copper.weight_per_meter, copper_price_per_kg)
    return line.model_copy(
        update={
            "unit_price": priced.total_price,
            "total": priced.total_price,
            "is_copper_tube": True,
            "copper_size": copper.size,
            "copper_weight_per_meter": copper.weight_per_meter,
            "copper_total_weight": priced.total_weight,
            "copper_price_per_kg": copper_price_per_kg,
        }
    )


# ---------- CATEGORIES ----------

def migrate_material_category(label: str | None) -> str:
    label = (label or "").strip()
    if label in LEGACY_MATERIAL_CATEGORIES:
        return LEGACY_MATERIAL_CATEGORIES[label].value
    if label in {c.value for c in MaterialCategory}:
        return label
    return MaterialCategory.OTHER.value


def migrate_service_category(label: str | None) -> str:
    label = (label or "").strip()
    if label in {c.value for c in ServiceCategory}:
        return label
    return ServiceCategory.OTHER.value


def migrate_product_record(record: dict[str, Any]) -> dict[str, Any]:
    """Category rewrite for one raw `products` record; returns only the changed fields."""
    current = record.get("category")
    if record.get("type") == "service":
        migrated = migrate_service_category(current)
    else:
        migrated = migrate_material_category(current)
    if migrated == current:
        return {}
    return {"category": migrated}


T = TypeVar("T", Material, Service)


def group_by_category(entries: Iterable[T], order: list) -> dict[str, list[T]]:
    """Groups in the fixed display order, empty groups skipped, unknown groups last."""
    grouped: dict[str, list[T]] = {}
    for entry in entries:
        grouped.setdefault(entry.category.value, []).append(entry)

    known = [c.value for c in order]
    ordered = [c for c in known if c in grouped]
    ordered += [c for c in grouped if c not in known]
    return {category: grouped[category] for category in ordered}


# ---------- CACHE ----------

class CatalogCache:
    """In-memory catalog lists over a CatalogRepository.

    Edits are applied locally before they are persisted. When the store rejects
    one, the local lists are thrown away and re-read from the store, then the
    error goes back to the caller.
    """

    def __init__(self, repository: "CatalogRepository"):
        self.repository = repository
        self.materials: list[Material] = []
        self.services: list[Service] = []

    def refresh(self) -> None:
        self.materials = self.repository.list_materials()
        self.services = self.repository.list_services()

    def _invalidate(self, exc: StoreError) -> None:
        logger.warning("Catalog write failed (%s); reloading catalog from store", exc)
        self.refresh()

    def find_material(self, material_id: str) -> Material | None:
        return next((m for m in self.materials if m.id == material_id), None)

    def find_service(self, service_id: str) -> Service | None:
        return next((s for s in self.services if s.id == service_id), None)

    def add_material(self, material: Material) -> Material:
        created = self.repository.create_material(material)
        self.materials.append(created)
        return created

    def add_service(self, service: Service) -> Service:
        created = self.repository.create_service(service)
        self.services.append(created)
        return created

    def update_material(self, material_id: str, changes: dict[str, Any]) -> None:
        self.materials = [
            Material.model_validate(m.model_dump() | changes) if m.id == material_id else m
            for m in self.materials
        ]
        try:
            self.repository.update_material(material_id, changes)
        except StoreError as exc:
            self._invalidate(exc)
            raise

    def update_service(self, service_id: str, changes: dict[str, Any]) -> None:
        self.services = [
            Service.model_validate(s.model_dump() | changes) if s.id == service_id else s
            for s in self.services
        ]
        try:
            self.repository.update_service(service_id, changes)
        except StoreError as exc:
            self._invalidate(exc)
            raise

    def delete_material(self, material_id: str) -> None:
        self.materials = [m for m in self.materials if m.id != material_id]
        try:
            self.repository.delete(material_id)
        except StoreError as exc:
            self._invalidate(exc)
            raise

    def delete_service(self, service_id: str) -> None:
        self.services = [s for s in self.services if s.id != service_id]
        try:
            self.repository.delete(service_id)
        except StoreError as exc:
            self._invalidate(exc)
            raise

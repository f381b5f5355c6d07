import pytest
from pydantic import ValidationError

from core.catalog import (
    MATERIAL_CATEGORY_ORDER,
    CatalogCache,
    group_by_category,
    is_custom_id,
    migrate_material_category,
    migrate_service_category,
    resolve_material_line,
)
from core.models import Material
from core.repositories import CatalogRepository
from core.store import MemoryStore, StoreError


class FlakyStore(MemoryStore):
    fail_writes = False

    def update(self, collection, record_id, changes):
        if self.fail_writes:
            raise StoreError("connection reset")
        return super().update(collection, record_id, changes)

    def delete(self, collection, record_id):
        if self.fail_writes:
            raise StoreError("connection reset")
        return super().delete(collection, record_id)


def test_resolve_copper_line(copper_quarter):
    line = resolve_material_line(copper_quarter, 80)
    assert line.is_copper_tube is True
    assert line.copper_size == '1/4"'
    assert line.copper_total_weight == 0.198
    assert line.unit_price == 15.84
    assert line.total == 15.84
    assert line.copper_price_per_kg == 80


def test_resolve_plain_line(cable):
    line = resolve_material_line(cable, 80)
    assert line.unit_price == cable.price
    assert line.is_copper_tube is False
    assert line.copper_price_per_kg is None


def test_copper_keyword_without_size_uses_catalog_price():
    material = Material(name="Tubo de Cobre 7/8", unit="m", price=210)
    line = resolve_material_line(material, 75)
    assert line.total == 210
    assert line.is_copper_tube is False


def test_custom_ids():
    assert is_custom_id("custom-123")
    assert not is_custom_id("123")


@pytest.mark.parametrize("label, expected", [
    ("Tubulação e tubo isolante", "Tubulações"),
    ("Suportes e fitas", "Esponjoso e fitas"),
    ("Cabos elétricos", "Cabos elétricos"),
    (None, "Outros"),
    ("qualquer", "Outros"),
])
def test_migrate_material_category(label, expected):
    assert migrate_material_category(label) == expected


def test_migrate_service_category():
    assert migrate_service_category("Limpeza") == "Limpeza"
    assert migrate_service_category("Outra coisa") == "Outros"


def test_group_by_category_uses_display_order(catalog):
    grouped = group_by_category(catalog.list_materials(), MATERIAL_CATEGORY_ORDER)
    assert list(grouped) == ["Tubulações", "Esponjoso e fitas", "Cabos elétricos", "Outros"]
    assert len(grouped["Tubulações"]) == 6


def test_group_skips_empty_categories(cable):
    assert list(group_by_category([cable], MATERIAL_CATEGORY_ORDER)) == ["Cabos elétricos"]


class TestCatalogCache:
    @pytest.fixture
    def flaky(self):
        return FlakyStore()

    @pytest.fixture
    def cache(self, flaky):
        cache = CatalogCache(CatalogRepository(flaky))
        cache.refresh()
        return cache

    def test_update_applies_locally_and_persists(self, cache):
        material = cache.materials[0]
        cache.update_material(material.id, {"price": 999})
        assert cache.find_material(material.id).price == 999
        assert cache.repository.get_material(material.id).price == 999

    def test_failed_update_reloads_from_store(self, cache, flaky):
        material = cache.materials[0]
        flaky.fail_writes = True
        with pytest.raises(StoreError):
            cache.update_material(material.id, {"price": 999})
        assert cache.find_material(material.id).price == material.price

    def test_invalid_update_leaves_cache_untouched(self, cache):
        material = cache.materials[0]
        with pytest.raises(ValidationError):
            cache.update_material(material.id, {"price": -5})
        assert cache.find_material(material.id).price == material.price
        assert cache.repository.get_material(material.id).price == material.price

    def test_invalid_service_update_leaves_cache_untouched(self, cache):
        service = cache.services[0]
        with pytest.raises(ValidationError):
            cache.update_service(service.id, {"price": -1})
        assert cache.find_service(service.id).price == service.price

    def test_failed_delete_restores_item(self, cache, flaky):
        service = cache.services[0]
        flaky.fail_writes = True
        with pytest.raises(StoreError):
            cache.delete_service(service.id)
        assert cache.find_service(service.id) is not None

    def test_add_and_delete(self, cache):
        created = cache.add_material(Material(name="Curva 90", price=5))
        assert cache.find_material(created.id) is not None
        cache.delete_material(created.id)
        assert cache.find_material(created.id) is None

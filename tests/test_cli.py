import pytest

from cli import app as cli
from core.models import Material, Service
from core.repositories import CatalogRepository, QuoteRepository
from core.store import MemoryStore


def feed(monkeypatch, answers):
    it = iter(answers)
    monkeypatch.setattr("builtins.input", lambda prompt="": next(it))


@pytest.fixture
def small_store():
    store = MemoryStore()
    repo = CatalogRepository(store, seed_defaults=False)
    repo.create_material(Material(name='Tubo de Cobre 1/2"', unit="m", price=80, category="Tubulações"))
    repo.create_material(Material(name="Cabo PP 3x1.5mm", unit="m", price=12, category="Cabos elétricos"))
    repo.create_service(Service(name="Instalação Split 12.000 BTUs", price=400, category="Instalação"))
    return store


def test_ask_float_retries(monkeypatch, capsys):
    feed(monkeypatch, ["abc", "-1", "2,5"])
    assert cli.ask_float("n: ", min_value=0) == 2.5
    out = capsys.readouterr().out
    assert "Enter a number" in out
    assert "must be >= 0" in out


def test_ask_float_default(monkeypatch):
    feed(monkeypatch, [""])
    assert cli.ask_float_default("Qty", 3) == 3.0


def test_ask_yes_no(monkeypatch):
    feed(monkeypatch, ["talvez", "sim"])
    assert cli.ask_yes_no("ok?") is True


def test_full_session_saves_quote(monkeypatch, small_store, capsys):
    feed(monkeypatch, [
        "Maria Souza", "11999999999", "",  # client
        "1", "1", "",                      # copper twice
        "3",                               # copper quantity -> 3 m
        "1", "",                           # one installation
        "",                                # keep service quantity
        "y", "n", "2.15",                  # fixed discount
        "", "", "",                        # validity, payment, notes
        "y",                               # save
        "n",                               # no text export
    ])
    quote = cli.run_cli(store=small_store)

    assert quote.number == 1
    assert quote.items[0].quantity == 3
    assert quote.items[0].copper_total_weight == 1.362
    assert quote.total == pytest.approx(102.15 + 400 - 2.15)
    assert QuoteRepository(small_store).get(quote.id).client_name == "Maria Souza"
    assert "✅ Saved quote #0001" in capsys.readouterr().out


def test_empty_quote_is_not_saved(monkeypatch, small_store, capsys):
    feed(monkeypatch, ["Maria", "", "", "", "", "n", "", "", ""])
    assert cli.run_cli(store=small_store) is None
    assert QuoteRepository(small_store).list() == []
    assert "Add at least one material or service." in capsys.readouterr().out


def test_export_text(tmp_path, empty_quote):
    quote = empty_quote.model_copy(update={"number": 4})
    path = cli.export_text(quote, "conteúdo", tmp_path)
    assert path.name == "orcamento-0004.txt"
    assert path.read_text(encoding="utf-8") == "conteúdo"

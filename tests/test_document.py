from core import lines
from core.document import (
    document_filename,
    format_money,
    format_quantity,
    format_weight,
    quote_label,
    render_quote_text,
    share_link,
    share_message,
    status_label,
)
from core.models import CompanySettings


def test_labels_and_filenames():
    assert quote_label(7) == "#0007"
    assert quote_label(12345) == "#12345"
    assert document_filename(7) == "orcamento-0007.txt"
    assert status_label("approved") == "Aprovado"


def test_format_money():
    assert format_money(1234.56) == "R$ 1.234,56"
    assert format_money(0) == "R$ 0,00"
    assert format_money(102.149999) == "R$ 102,15"
    assert format_money(-5) == "-R$ 5,00"
    assert format_money(50.215) == "R$ 50,22"


def test_format_weight_and_quantity():
    assert format_weight(1.362) == "1.362 kg"
    assert format_quantity(3.0) == "3"
    assert format_quantity(2.5) == "2,5"


def _quote(empty_quote, copper_half, install):
    quote = lines.add_catalog_material(empty_quote, copper_half, 75)
    quote = lines.set_item_quantity(quote, quote.items[0].id, 3)
    quote = lines.add_catalog_service(quote, install)
    quote = lines.set_discount(quote, 20, "percentage")
    return quote.model_copy(update={"number": 3, "client_notes": "Acesso pela garagem"})


def test_render_quote_text(empty_quote, copper_half, install):
    quote = _quote(empty_quote, copper_half, install)
    company = CompanySettings(name="Frio Bom Climatização", phone="11 4000-0000")
    text = render_quote_text(quote, company)

    assert text.startswith("Frio Bom Climatização\n11 4000-0000\n")
    assert "ORÇAMENTO #0003  [Rascunho]" in text
    assert "Cliente:  Maria Souza" in text
    assert 'bitola 1/2", 1.362 kg a R$ 75,00/kg' in text
    assert "= R$ 102,15" in text
    assert "Desconto (20%): -R$ 100,43" in text
    assert "TOTAL: R$ 401,72" in text
    assert "Validade: 15 dias" in text
    assert "Acesso pela garagem" in text
    assert company.footer_text in text


def test_share_message_and_link(empty_quote, copper_half, install):
    quote = _quote(empty_quote, copper_half, install)
    assert share_message(quote) == (
        "Olá Maria Souza! Segue o orçamento #0003 no valor de R$ 401,72. Em anexo o PDF detalhado."
    )
    link = share_link(quote)
    assert link.startswith("https://wa.me/5511999999999?text=Ol%C3%A1%20Maria")

# core/document.py
# Plain-text quote document and the WhatsApp share message.

from __future__ import annotations

import re
from urllib.parse import quote as urlquote

from .config import settings
from .models import CompanySettings, Quote, QuoteStatus
from .rules import round_half_up

STATUS_LABELS: dict[str, str] = {
    "draft": "Rascunho",
    "sent": "Enviado",
    "approved": "Aprovado",
    "cancelled": "Cancelado",
}


def quote_label(number: int) -> str:
    return f"#{number:04d}"


def document_filename(number: int, ext: str = "txt") -> str:
    return f"orcamento-{number:04d}.{ext}"


def format_money(value: float) -> str:
    """R$ 1.234,56 (pt-BR separators)."""
    value = round_half_up(value, 2)
    sign = "-" if value < 0 else ""
    text = f"{abs(value):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    return f"{sign}{settings.CURRENCY_SYMBOL} {text}"


def format_weight(kg: float) -> str:
    return f"{kg:.3f} kg"


def format_quantity(quantity: float) -> str:
    if float(quantity).is_integer():
        return str(int(quantity))
    return f"{quantity:g}".replace(".", ",")


def status_label(status: QuoteStatus) -> str:
    return STATUS_LABELS.get(status, status)


def render_quote_text(quote: Quote, company: CompanySettings) -> str:
    lines: list[str] = []

    if company.name:
        lines.append(company.name)
    for extra in (company.document, company.phone, company.address):
        if extra:
            lines.append(extra)
    if lines:
        lines.append("")

    lines.append(f"ORÇAMENTO {quote_label(quote.number)}  [{status_label(quote.status)}]")
    lines.append(f"Data: {quote.created_at[:10]}")
    lines.append("")

    lines.append(f"Cliente:  {quote.client_name or 'Não informado'}")
    if quote.client_phone:
        lines.append(f"Telefone: {quote.client_phone}")
    if quote.client_address:
        lines.append(f"Endereço: {quote.client_address}")

    if quote.items:
        lines.append("")
        lines.append("Materiais")
        for item in quote.items:
            lines.append(
                f"  {format_quantity(item.quantity)} {item.unit}  {item.name}"
                f"  x {format_money(item.unit_price)} = {format_money(item.total)}"
            )
            if item.is_copper_tube and item.copper_total_weight is not None:
                lines.append(
                    f"      bitola {item.copper_size}, {format_weight(item.copper_total_weight)}"
                    f" a {format_money(item.copper_price_per_kg or 0)}/kg"
                )

    if quote.services:
        lines.append("")
        lines.append("Serviços")
        for service in quote.services:
            lines.append(
                f"  {format_quantity(service.quantity)}x  {service.name}"
                f"  x {format_money(service.unit_price)} = {format_money(service.price)}"
            )

    lines.append("")
    lines.append(f"Subtotal materiais: {format_money(quote.subtotal_materials)}")
    lines.append(f"Subtotal serviços:  {format_money(quote.subtotal_services)}")
    if quote.discount_value:
        label = f"Desconto ({quote.discount:g}%)" if quote.discount_type == "percentage" else "Desconto"
        lines.append(f"{label}: -{format_money(quote.discount_value)}")
    lines.append(f"TOTAL: {format_money(quote.total)}")

    lines.append("")
    lines.append(f"Validade: {quote.validity_days} dias")
    if quote.payment_conditions:
        lines.append(f"Pagamento: {quote.payment_conditions}")
    if quote.client_notes:
        lines.append("")
        lines.append("Observações:")
        lines.append(quote.client_notes)
    if company.footer_text:
        lines.append("")
        lines.append(company.footer_text)

    return "\n".join(lines) + "\n"


def share_message(quote: Quote) -> str:
    return (
        f"Olá {quote.client_name}! Segue o orçamento {quote_label(quote.number)} "
        f"no valor de {format_money(quote.total)}. Em anexo o PDF detalhado."
    )


def share_link(quote: Quote) -> str:
    phone = re.sub(r"\D", "", quote.client_phone)
    return f"https://wa.me/55{phone}?text={urlquote(share_message(quote))}"

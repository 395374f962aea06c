"""PDF layout of the service invoice.

The document is assembled as a list of reportlab platypus flowables
(paragraphs and tables); the page header and the footer with the
authentication code are drawn on every page by the page callback.
"""
from __future__ import annotations

import logging
from io import BytesIO
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Flowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from martelinho.formatters import format_currency, format_long_date
from martelinho.invoice.build import Invoice

log = logging.getLogger(__name__)

SHOP_TITLE = "MARTELINHO DE OURO"
DOCUMENT_TITLE = "NOTA FISCAL DE SERVIÇO"

AZUL = colors.HexColor("#2563EB")
BORDA = colors.HexColor("#EAEAEA")
CABECALHO = colors.HexColor("#F3F4F6")
TEXTO = colors.HexColor("#374151")


def _styles() -> dict[str, ParagraphStyle]:
    base = getSampleStyleSheet()
    body = ParagraphStyle(name="InvoiceBody", parent=base["Normal"], fontSize=10, leading=13,
                          textColor=TEXTO)
    return {
        "body": body,
        "title": ParagraphStyle(name="InvoiceTitle", parent=body, fontName="Helvetica-Bold",
                                fontSize=14, leading=18, alignment=TA_CENTER, spaceAfter=10 * mm),
        "section": ParagraphStyle(name="InvoiceSection", parent=body, fontName="Helvetica-Bold",
                                  fontSize=11, textColor=AZUL, spaceBefore=5 * mm, spaceAfter=2 * mm),
        "right": ParagraphStyle(name="InvoiceRight", parent=body, alignment=TA_RIGHT),
        "center": ParagraphStyle(name="InvoiceCenter", parent=body, alignment=TA_CENTER),
        "header": ParagraphStyle(name="InvoiceHeader", parent=body, fontName="Helvetica-Bold",
                                 alignment=TA_CENTER, textColor=colors.HexColor("#1F2937")),
        "total": ParagraphStyle(name="InvoiceTotal", parent=body, fontName="Helvetica-Bold",
                                fontSize=12, alignment=TA_RIGHT, textColor=AZUL),
    }


def _boxed(lines: list[str], style: ParagraphStyle, width: float) -> Table:
    """A single bordered cell holding `label: value` lines."""
    table = Table([[[Paragraph(line, style) for line in lines]]], colWidths=[width])
    table.setStyle(TableStyle([
        ("BOX", (0, 0), (-1, -1), 1, BORDA),
        ("LEFTPADDING", (0, 0), (-1, -1), 5),
        ("TOPPADDING", (0, 0), (-1, -1), 5),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 5),
    ]))
    return table


def _label(name: str, value: str) -> str:
    return f"<b>{escape(name)}:</b> {escape(value)}"


def build_flowables(invoice: Invoice, width: float) -> list[Flowable]:
    """Return the document content for `invoice`.

    Args:
        invoice: Invoice data.
        width: Usable frame width in points.
    """
    s = _styles()
    elements: list[Flowable] = [Paragraph(DOCUMENT_TITLE, s["title"])]

    meta = Table(
        [[
            Paragraph(_label("Nº do Pedido", invoice.order_number or invoice.auth_code), s["body"]),
            Paragraph(_label("Data", format_long_date(invoice.service_date)), s["right"]),
        ]],
        colWidths=[width / 2, width / 2],
    )
    elements += [meta, Spacer(1, 4 * mm)]

    elements.append(Paragraph("DADOS DO CLIENTE", s["section"]))
    elements.append(_boxed(
        [_label("Nome", invoice.client_name), _label("Telefone", invoice.client_phone or "Não informado")],
        s["body"],
        width,
    ))

    elements.append(Paragraph("DADOS DO VEÍCULO", s["section"]))
    elements.append(_boxed(
        [_label("Modelo", invoice.car_model), _label("Placa", invoice.car_plate)],
        s["body"],
        width,
    ))

    elements.append(Paragraph("SERVIÇOS REALIZADOS", s["section"]))
    rows = [[
        Paragraph("Item", s["header"]),
        Paragraph("Descrição", s["header"]),
        Paragraph("Valor", s["header"]),
    ]]
    for idx, item in enumerate(invoice.items, start=1):
        rows.append([
            Paragraph(str(idx), s["center"]),
            Paragraph(escape(item.description), s["body"]),
            Paragraph(format_currency(item.value), s["right"]),
        ])
    services = Table(rows, colWidths=[width * 0.08, width * 0.67, width * 0.25], repeatRows=1)
    services.setStyle(TableStyle([
        ("GRID", (0, 0), (-1, -1), 1, BORDA),
        ("BACKGROUND", (0, 0), (-1, 0), CABECALHO),
        ("VALIGN", (0, 0), (-1, -1), "MIDDLE"),
    ]))
    elements.append(services)

    total = Table(
        [[Paragraph("<b>TOTAL:</b>", s["right"]), Paragraph(format_currency(invoice.total), s["total"])]],
        colWidths=[width * 0.75, width * 0.25],
    )
    total.setStyle(TableStyle([("TOPPADDING", (0, 0), (-1, -1), 8)]))
    elements.append(total)

    if invoice.notes:
        elements.append(Paragraph("OBSERVAÇÕES", s["section"]))
        elements.append(_boxed([escape(invoice.notes)], s["body"], width))

    return elements


def _page_decorations(auth_code: str):
    def _on_page(c, doc):
        width, height = A4
        c.saveState()
        c.setFont("Helvetica-Bold", 16)
        c.setFillColor(AZUL)
        c.drawCentredString(width / 2, height - 20 * mm, SHOP_TITLE)
        c.setFont("Helvetica", 8)
        c.setFillColor(TEXTO)
        c.drawCentredString(width / 2, 12 * mm, f"Código de Autenticação: {auth_code}")
        c.restoreState()
    return _on_page


def build_invoice_pdf(invoice: Invoice) -> bytes:
    """Render `invoice` as an A4 PDF and return its bytes."""
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=14 * mm,
        rightMargin=14 * mm,
        topMargin=30 * mm,
        bottomMargin=25 * mm,
        title=f"{DOCUMENT_TITLE} {invoice.auth_code}",
        author=SHOP_TITLE,
    )
    decorate = _page_decorations(invoice.auth_code)
    doc.build(build_flowables(invoice, doc.width), onFirstPage=decorate, onLaterPages=decorate)
    data = buffer.getvalue()
    log.info("Invoice %s rendered (%d bytes)", invoice.auth_code, len(data))
    return data

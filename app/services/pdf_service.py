"""PDF export for quotes (client-facing document, no cost or profit data)."""
import logging
from io import BytesIO
from typing import Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_LEFT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle
from xml.sax.saxutils import escape

from app.models import CompanyProfile, Quote, QuoteStatus
from app.services.totals_service import line_total
from app.utils.formatters import date_br, money_br, num_br, percent_br
from app.utils.validation import format_document

logger = logging.getLogger(__name__)

DEFAULT_BRAND_COLOR = '#2C3E50'

STATUS_STAMPS = {
    QuoteStatus.APPROVED.value: ('APROVADO', '#27AE60'),
    QuoteStatus.REJECTED.value: ('RECUSADO', '#C0392B'),
    QuoteStatus.NEGOTIATING.value: ('EM NEGOCIAÇÃO', '#E67E22'),
}


def _text(value) -> str:
    return escape(str(value)) if value else ''


def _brand_color(company: Optional[CompanyProfile]):
    try:
        return colors.HexColor((company.brand_color if company else None) or DEFAULT_BRAND_COLOR)
    except ValueError:
        return colors.HexColor(DEFAULT_BRAND_COLOR)


def generate_quote_pdf(quote: Quote, company: Optional[CompanyProfile]) -> BytesIO:
    """
    Render a quote as an A4 PDF.

    Lines are printed in their stored order. Only client-facing figures
    (subtotal, discount, total) are shown.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.75*inch,
        leftMargin=0.75*inch,
        topMargin=0.75*inch,
        bottomMargin=0.75*inch,
        title=f"Orçamento {quote.quote_number}"
    )

    brand = _brand_color(company)
    elements = []
    styles = getSampleStyleSheet()

    # Custom styles
    title_style = ParagraphStyle(
        'QuoteTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=brand,
        spaceAfter=12,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )

    header_style = ParagraphStyle(
        'CompanyHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=6
    )

    body_style = ParagraphStyle('Body', parent=styles['Normal'], fontSize=10, alignment=TA_LEFT)

    # 1. Company header
    elements.append(Paragraph("ORÇAMENTO", title_style))

    if company:
        elements.append(Paragraph(f"<b>{_text(company.display_name)}</b>", header_style))
        if company.razao_social and company.razao_social != company.display_name:
            elements.append(Paragraph(_text(company.razao_social), header_style))
        if company.document:
            label = 'CPF' if company.company_type == 'pessoa_fisica' else 'CNPJ'
            elements.append(Paragraph(f"{label}: {format_document(company.document)}", header_style))
        if company.address:
            elements.append(Paragraph(_text(company.address), header_style))

        contact_parts = []
        if company.phone:
            contact_parts.append(f"Tel: {_text(company.phone)}")
        if company.email:
            contact_parts.append(f"Email: {_text(company.email)}")
        if contact_parts:
            elements.append(Paragraph(" | ".join(contact_parts), header_style))

    elements.append(Spacer(1, 0.3*inch))

    # 2. Quote metadata and client
    info_data = [
        ['Orçamento Nº:', quote.quote_number],
        ['Data:', date_br(quote.issued_on)],
    ]
    if quote.due_date:
        info_data.append(['Válido até:', date_br(quote.due_date)])
    if quote.client_name:
        info_data.append(['Cliente:', quote.client_name])
    if quote.client_document:
        info_data.append([
            'CPF:' if quote.client_person_type == 'PF' else 'CNPJ:',
            format_document(quote.client_document)
        ])
    if quote.client_phone:
        info_data.append(['Telefone:', quote.client_phone])
    if quote.client_email:
        info_data.append(['Email:', quote.client_email])
    if quote.client_address:
        info_data.append(['Endereço:', Paragraph(_text(quote.client_address), body_style)])

    info_table = Table(info_data, colWidths=[1.5*inch, 5.2*inch])
    info_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (0, -1), 'RIGHT'),
        ('ALIGN', (1, 0), (1, -1), 'LEFT'),
        ('VALIGN', (0, 0), (-1, -1), 'TOP'),
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
    ]))
    elements.append(info_table)
    elements.append(Spacer(1, 0.3*inch))

    # 3. Items table, print order
    table_data = [['#', 'Descrição', 'Un.', 'Qtd.', 'Valor unit.', 'Total']]
    for index, line in enumerate(quote.lines, start=1):
        table_data.append([
            str(index),
            Paragraph(_text(line.description), body_style),
            line.unit or '-',
            num_br(line.quantity, decimals=3),
            money_br(line.unit_price),
            money_br(line_total(line)),
        ])

    items_table = Table(table_data, colWidths=[0.35*inch, 3.05*inch, 0.5*inch, 0.7*inch, 1.05*inch, 1.05*inch],
                        repeatRows=1)
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), brand),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 10),
        ('VALIGN', (0, 1), (-1, -1), 'MIDDLE'),
        ('ALIGN', (0, 1), (0, -1), 'CENTER'),
        ('ALIGN', (2, 1), (3, -1), 'CENTER'),
        ('ALIGN', (4, 1), (5, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#ECF0F1')]),
    ]))
    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Totals
    totals = quote.totals
    totals_data = [['Subtotal:', money_br(totals.subtotal)]]
    if totals.discount > 0:
        totals_data.append([
            f"Desconto ({percent_br(quote.discount_percent, decimals=2)}):",
            f"- {money_br(totals.discount)}"
        ])
    totals_data.append(['TOTAL:', money_br(totals.total)])

    totals_table = Table(totals_data, colWidths=[5.4*inch, 1.3*inch])
    totals_table.setStyle(TableStyle([
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -2), 10),
        ('FONTNAME', (0, -1), (-1, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, -1), (-1, -1), 14),
        ('TEXTCOLOR', (0, -1), (-1, -1), colors.HexColor('#27AE60')),
        ('BACKGROUND', (0, -1), (-1, -1), colors.HexColor('#E8F8F5')),
        ('BOX', (0, -1), (-1, -1), 2, colors.HexColor('#27AE60')),
    ]))
    elements.append(totals_table)
    elements.append(Spacer(1, 0.3*inch))

    # 5. Status stamp
    stamp = STATUS_STAMPS.get(quote.status)
    if stamp:
        label, color = stamp
        stamp_style = ParagraphStyle(
            'Stamp', parent=styles['Normal'], fontSize=16, fontName='Helvetica-Bold',
            textColor=colors.HexColor(color), alignment=TA_CENTER, spaceAfter=6
        )
        elements.append(Paragraph(label, stamp_style))
        if quote.client_feedback:
            elements.append(Paragraph(f"<i>{_text(quote.client_feedback)}</i>", header_style))
        elements.append(Spacer(1, 0.2*inch))

    # 6. Notes and signature
    footer_style = ParagraphStyle(
        'Footer', parent=styles['Normal'], fontSize=9,
        textColor=colors.HexColor('#95A5A6'), alignment=TA_CENTER
    )
    if quote.notes:
        notes = _text(quote.notes).replace('\n', '<br/>')
        elements.append(Paragraph(f"<b>Observações:</b><br/>{notes}", footer_style))
        elements.append(Spacer(1, 0.4*inch))

    if company and company.show_signature:
        signer = quote.client_display_name or quote.client_name or 'Cliente'
        signed = ' (assinado digitalmente)' if quote.signature else ''
        elements.append(Spacer(1, 0.4*inch))
        elements.append(Paragraph("_______________________________________", footer_style))
        elements.append(Paragraph(f"{_text(signer)}{signed}", footer_style))

    doc.build(elements)
    buffer.seek(0)
    logger.debug(f"PDF generated for quote {quote.quote_number}")
    return buffer

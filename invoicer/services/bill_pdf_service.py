"""Bill document export: renders a finalized bill as a paginated A4 PDF."""

from io import BytesIO
from typing import Any, Dict
from xml.sax.saxutils import escape

from reportlab.lib.pagesizes import A4
from reportlab.lib import colors
from reportlab.lib.units import inch
from reportlab.platypus import SimpleDocTemplate, Table, TableStyle, Paragraph, Spacer
from reportlab.lib.styles import getSampleStyleSheet, ParagraphStyle
from reportlab.lib.enums import TA_CENTER

from invoicer.models import Bill
from invoicer.utils.formatters import money, percent, date_short


def bill_pdf_filename(bill: Bill) -> str:
    return f"invoice-{bill.bill_number}.pdf"


def render_bill_pdf(bill: Bill, business_info: Dict[str, Any]) -> BytesIO:
    """
    Render a bill document.

    The title and the rate column follow the customer type snapshot
    ("Retail Invoice" / "Wholesale Invoice"). Amount Due is printed only
    when something is left to pay. Long bills flow onto extra pages with
    the header row repeated.
    """
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        rightMargin=0.75*inch,
        leftMargin=0.75*inch,
        topMargin=0.75*inch,
        bottomMargin=0.75*inch,
        title=f"Invoice {bill.bill_number}"
    )

    elements = []
    styles = getSampleStyleSheet()

    title_style = ParagraphStyle(
        'BillTitle',
        parent=styles['Heading1'],
        fontSize=24,
        textColor=colors.HexColor('#2C3E50'),
        spaceAfter=6,
        alignment=TA_CENTER,
        fontName='Helvetica-Bold'
    )

    header_style = ParagraphStyle(
        'BillHeader',
        parent=styles['Normal'],
        fontSize=10,
        textColor=colors.HexColor('#7F8C8D'),
        alignment=TA_CENTER,
        spaceAfter=6
    )

    template_title = "Retail Invoice" if bill.is_retail else "Wholesale Invoice"
    rate_header = "Retail Rate" if bill.is_retail else "Wholesale Rate"

    # 1. Title and Business Header
    business_name = business_info.get('name') or 'Invoicer Pro'
    elements.append(Paragraph(escape(business_name.upper()), title_style))
    elements.append(Paragraph(template_title, header_style))

    if business_info.get('address'):
        elements.append(Paragraph(escape(business_info['address']), header_style))

    contact_parts = []
    if business_info.get('phone'):
        contact_parts.append(f"Tel: {business_info['phone']}")
    if business_info.get('email'):
        contact_parts.append(f"Email: {business_info['email']}")

    if contact_parts:
        elements.append(Paragraph(escape(" | ".join(contact_parts)), header_style))

    elements.append(Spacer(1, 0.3*inch))

    # 2. Billed To / Bill metadata
    info_table = Table([
        ['Billed To:', bill.customer_name, 'Bill No:', bill.bill_number],
        ['', '', 'Date:', date_short(bill.date)],
    ], colWidths=[0.9*inch, 2.6*inch, 0.8*inch, 2.4*inch])
    info_table.setStyle(TableStyle([
        ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
        ('FONTNAME', (2, 0), (2, -1), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('TEXTCOLOR', (0, 0), (-1, -1), colors.HexColor('#34495E')),
        ('ALIGN', (2, 0), (2, -1), 'RIGHT'),
    ]))

    elements.append(info_table)
    elements.append(Spacer(1, 0.3*inch))

    # 3. Items Table
    table_data = [['#', 'Item Name', 'Qty', rate_header, 'Total']]
    for index, item in enumerate(bill.items, start=1):
        table_data.append([
            str(index),
            item.name,
            str(item.quantity),
            money(item.rate),
            money(item.total)
        ])

    items_table = Table(table_data, colWidths=[0.4*inch, 3.3*inch, 0.7*inch, 1.1*inch, 1.2*inch], repeatRows=1)
    items_table.setStyle(TableStyle([
        ('BACKGROUND', (0, 0), (-1, 0), colors.HexColor('#3498DB')),
        ('TEXTCOLOR', (0, 0), (-1, 0), colors.whitesmoke),
        ('ALIGN', (0, 0), (-1, 0), 'CENTER'),
        ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
        ('BOTTOMPADDING', (0, 0), (-1, 0), 12),
        ('ALIGN', (0, 1), (0, -1), 'CENTER'),
        ('ALIGN', (2, 1), (2, -1), 'CENTER'),
        ('ALIGN', (3, 1), (3, -1), 'RIGHT'),
        ('ALIGN', (4, 1), (4, -1), 'RIGHT'),
        ('GRID', (0, 0), (-1, -1), 0.5, colors.HexColor('#BDC3C7')),
        ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#ECF0F1')]),
    ]))

    elements.append(items_table)
    elements.append(Spacer(1, 0.2*inch))

    # 4. Totals
    totals_data = [
        ['Subtotal:', money(bill.sub_total)],
        [f'Discount ({percent(bill.discount_percentage)}%):', f"- {money(bill.discount_amount)}"],
        ['Grand Total:', money(bill.grand_total)],
        ['Amount Paid:', money(bill.amount_paid)],
    ]
    if bill.amount_due > 0:
        totals_data.append(['Amount Due:', money(bill.amount_due)])

    totals_table = Table(totals_data, colWidths=[5.5*inch, 1.2*inch])
    totals_style = [
        ('ALIGN', (0, 0), (-1, -1), 'RIGHT'),
        ('FONTSIZE', (0, 0), (-1, -1), 10),
        ('FONTNAME', (0, 2), (-1, 2), 'Helvetica-Bold'),
        ('FONTSIZE', (0, 2), (-1, 2), 13),
        ('TEXTCOLOR', (0, 2), (-1, 2), colors.HexColor('#27AE60')),
        ('LINEABOVE', (0, 2), (-1, 2), 1, colors.HexColor('#27AE60')),
    ]
    if bill.amount_due > 0:
        totals_style.append(('TEXTCOLOR', (0, 4), (-1, 4), colors.HexColor('#C0392B')))
        totals_style.append(('FONTNAME', (0, 4), (-1, 4), 'Helvetica-Bold'))
    totals_table.setStyle(TableStyle(totals_style))

    elements.append(totals_table)
    elements.append(Spacer(1, 0.4*inch))

    # 5. Footer
    footer_style = ParagraphStyle('Footer', parent=styles['Normal'], fontSize=9, textColor=colors.HexColor('#95A5A6'), alignment=TA_CENTER)
    footer_text = "Thank you for your business!"
    tagline = business_info.get('tagline')
    if tagline:
        footer_text += f"<br/>{escape(business_name)} - {escape(tagline)}"

    elements.append(Paragraph(footer_text, footer_style))

    doc.build(elements)
    buffer.seek(0)
    return buffer


def business_info_from_config(config) -> Dict[str, Any]:
    """Collect the business header fields from app config."""
    return {
        'name': config.get('BUSINESS_NAME'),
        'tagline': config.get('BUSINESS_TAGLINE'),
        'address': config.get('BUSINESS_ADDRESS'),
        'phone': config.get('BUSINESS_PHONE'),
        'email': config.get('BUSINESS_EMAIL'),
    }

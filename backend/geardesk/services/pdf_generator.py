"""
PDF Generator Service for GearDesk.

Generates:
- Supplier invoices (what the store pays a private seller)
- Consignment agreements
"""

import io
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.platypus import (
    HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle,
)

from geardesk.services.pricing import format_price

DARK = colors.HexColor('#1a1a1a')
GREY = colors.HexColor('#666666')
RULE = colors.HexColor('#e0e0e0')

CONSIGNMENT_TERMS = [
    "The Consignor retains ownership of the items until they are sold.",
    "The payout listed is paid to the Consignor within 7 days of the sale.",
    "Items remain on consignment until the agreed end date, after which they may be collected or the terms renegotiated.",
    "Any change to the payout requires the Consignor's written confirmation.",
    "The store takes reasonable care of consigned items but is not liable for wear from display and handling.",
]

PAYMENT_TERMS = [
    "Payment will be made via direct bank transfer (EFT).",
    "Payment will be processed within 48 hours of approval.",
    "The Supplier is responsible for ensuring banking details are accurate.",
]


class PDFGenerator:
    """Generates supplier invoices and consignment agreements."""

    def __init__(self, company_name: str = "GearDesk Camera Exchange"):
        self.company_name = company_name
        self.styles = getSampleStyleSheet()
        self._setup_custom_styles()

    def _setup_custom_styles(self):
        """Add custom paragraph styles."""
        self.styles.add(ParagraphStyle(
            name='DocTitle',
            parent=self.styles['Heading1'],
            fontSize=20,
            spaceAfter=6,
            alignment=TA_CENTER,
            textColor=DARK,
        ))
        self.styles.add(ParagraphStyle(
            name='Subtitle',
            parent=self.styles['Normal'],
            fontSize=11,
            spaceAfter=16,
            alignment=TA_CENTER,
            textColor=GREY,
        ))
        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=12,
            spaceBefore=14,
            spaceAfter=6,
            textColor=DARK,
        ))
        self.styles.add(ParagraphStyle(
            name='Small',
            parent=self.styles['Normal'],
            fontSize=9,
            textColor=GREY,
        ))
        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontSize=8,
            textColor=GREY,
            alignment=TA_CENTER,
            spaceBefore=20,
        ))
        self.styles.add(ParagraphStyle(
            name='Total',
            parent=self.styles['Normal'],
            fontSize=12,
            alignment=TA_RIGHT,
            fontName='Helvetica-Bold',
        ))

    def _doc(self, buffer: io.BytesIO) -> SimpleDocTemplate:
        return SimpleDocTemplate(
            buffer,
            pagesize=A4,
            rightMargin=0.75*inch,
            leftMargin=0.75*inch,
            topMargin=0.75*inch,
            bottomMargin=0.75*inch,
        )

    def _section(self, story: list, title: str) -> None:
        story.append(Paragraph(title, self.styles['SectionHeader']))
        story.append(HRFlowable(width="100%", thickness=1, color=RULE))

    def _field_table(self, rows: List[List[str]]) -> Table:
        table = Table(rows, colWidths=[1.8*inch, 4.7*inch])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (0, -1), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 10),
            ('TEXTCOLOR', (0, 0), (0, -1), GREY),
            ('VALIGN', (0, 0), (-1, -1), 'TOP'),
            ('BOTTOMPADDING', (0, 0), (-1, -1), 5),
        ]))
        return table

    def _items_table(self, items: List[Dict[str, Any]], price_label: str) -> Table:
        rows = [["#", "Item", "Serial", price_label]]
        for index, item in enumerate(items, start=1):
            rows.append([
                str(index),
                Paragraph(item.get("name") or "-", self.styles['Normal']),
                item.get("serial_number") or "-",
                format_price(item.get("price_cents")),
            ])
        table = Table(rows, colWidths=[0.4*inch, 3.6*inch, 1.3*inch, 1.2*inch])
        table.setStyle(TableStyle([
            ('FONTNAME', (0, 0), (-1, 0), 'Helvetica-Bold'),
            ('FONTSIZE', (0, 0), (-1, -1), 9),
            ('BACKGROUND', (0, 0), (-1, 0), DARK),
            ('TEXTCOLOR', (0, 0), (-1, 0), colors.white),
            ('ALIGN', (-1, 0), (-1, -1), 'RIGHT'),
            ('VALIGN', (0, 0), (-1, -1), 'MIDDLE'),
            ('GRID', (0, 0), (-1, -1), 0.5, RULE),
            ('ROWBACKGROUNDS', (0, 1), (-1, -1), [colors.white, colors.HexColor('#f9f9f9')]),
        ]))
        return table

    def _party_rows(self, party: Dict[str, Any]) -> List[List[str]]:
        return [
            ["Name:", party.get("name") or "N/A"],
            ["ID/Passport:", party.get("id_number") or party.get("passport_number") or "N/A"],
            ["Email:", party.get("email") or "N/A"],
            ["Phone:", party.get("phone") or "N/A"],
            ["Address:", party.get("address") or "N/A"],
        ]

    def _signatures(self, story: list, counterparty: str) -> None:
        story.append(Spacer(1, 0.4*inch))
        story.append(Paragraph(
            f"{counterparty} Signature: _________________________  Date: ______________",
            self.styles['Normal'],
        ))
        story.append(Spacer(1, 0.3*inch))
        story.append(Paragraph(
            f"{self.company_name} Representative: ___________________  Date: ______________",
            self.styles['Normal'],
        ))

    def generate_supplier_invoice(self, data: Dict[str, Any]) -> bytes:
        """
        Generate a supplier invoice.

        Args:
            data: invoice_number, date, supplier (name, id_number, email, phone, address),
                banking (bank_name, account_holder, account_number, branch_code,
                account_type), items (name, serial_number, price_cents), optional
                consignment_items (paid on sale, not in the total), total_cents

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()
        doc = self._doc(buffer)
        story = []

        story.append(Paragraph(self.company_name, self.styles['DocTitle']))
        story.append(Paragraph("Supplier's Invoice - Purchase Agreement", self.styles['Subtitle']))

        story.append(self._field_table([
            ["Invoice Number:", data.get("invoice_number") or "N/A"],
            ["Date:", self._format_date(data.get("date"))],
        ]))

        self._section(story, "SUPPLIER DETAILS")
        story.append(self._field_table(self._party_rows(data.get("supplier", {}))))

        self._section(story, "ITEMS PURCHASED")
        story.append(self._items_table(data.get("items", []), "Price"))
        story.append(Spacer(1, 0.1*inch))
        story.append(Paragraph(f"TOTAL: {format_price(data.get('total_cents'))}", self.styles['Total']))

        consigned = data.get("consignment_items") or []
        if consigned:
            self._section(story, "CONSIGNMENT ITEMS (Paid on Sale)")
            story.append(self._items_table(consigned, "Payout"))

        banking = data.get("banking") or {}
        self._section(story, "BANKING DETAILS FOR PAYMENT")
        story.append(self._field_table([
            ["Bank:", banking.get("bank_name") or "N/A"],
            ["Account Holder:", banking.get("account_holder") or "N/A"],
            ["Account Number:", banking.get("account_number") or "N/A"],
            ["Branch Code:", banking.get("branch_code") or "N/A"],
            ["Account Type:", banking.get("account_type") or "N/A"],
        ]))

        self._section(story, "PAYMENT TERMS")
        for term in PAYMENT_TERMS:
            story.append(Paragraph(f"• {term}", self.styles['Small']))

        self._signatures(story, "Supplier")
        story.append(Paragraph(
            f"Document generated {datetime.utcnow().strftime('%Y-%m-%d %H:%M UTC')}",
            self.styles['Footer'],
        ))

        doc.build(story)
        buffer.seek(0)
        return buffer.read()

    def generate_consignment_agreement(self, data: Dict[str, Any]) -> bytes:
        """
        Generate a consignment agreement.

        Args:
            data: date, consignor (name, id_number, email, phone, address),
                items (name, serial_number, price_cents as payout), end_date,
                total_cents

        Returns:
            PDF bytes
        """
        buffer = io.BytesIO()
        doc = self._doc(buffer)
        story = []

        story.append(Paragraph(self.company_name, self.styles['DocTitle']))
        story.append(Paragraph("Consignment Agreement", self.styles['Subtitle']))
        story.append(self._field_table([
            ["Date:", self._format_date(data.get("date"))],
            ["Consignment Until:", self._format_date(data.get("end_date"))],
        ]))

        self._section(story, "PARTIES")
        story.append(Paragraph(f"Consignee: {self.company_name}", self.styles['Normal']))
        story.append(Spacer(1, 0.1*inch))
        story.append(self._field_table(self._party_rows(data.get("consignor", {}))))

        self._section(story, "CONSIGNED ITEMS")
        story.append(self._items_table(data.get("items", []), "Payout"))
        story.append(Spacer(1, 0.1*inch))
        story.append(Paragraph(
            f"TOTAL PAYOUT: {format_price(data.get('total_cents'))}", self.styles['Total']
        ))

        self._section(story, "TERMS")
        for index, term in enumerate(CONSIGNMENT_TERMS, start=1):
            story.append(Paragraph(f"{index}. {term}", self.styles['Small']))

        self._signatures(story, "Consignor")
        story.append(Paragraph(
            f"Document generated {datetime.utcnow().strftime('%Y-%m-%d %H:%M UTC')}",
            self.styles['Footer'],
        ))

        doc.build(story)
        buffer.seek(0)
        return buffer.read()

    def _format_date(self, value: Optional[Any]) -> str:
        """Format a date for display."""
        if value is None:
            return "N/A"
        if isinstance(value, (date, datetime)):
            return value.strftime("%Y-%m-%d")
        return str(value)[:10]


def get_pdf_generator() -> PDFGenerator:
    """Get PDF generator instance."""
    from geardesk.core.config import get_settings

    return PDFGenerator(company_name=get_settings().company_name)

"""
PDF documents: price lists, delivery notes (remitos) and export price lists.

Documents are drawn with the reportlab canvas into an in-memory buffer and
returned as bytes; views decide whether they are downloaded or shown inline.
Computed columns come from the same row builders the preview endpoints use.
"""
import io
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import List

from django.conf import settings
from django.utils import timezone
from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.pdfgen import canvas

PAGE_WIDTH, PAGE_HEIGHT = A4
MARGIN = 14 * mm
HEADER_HEIGHT = 40 * mm
FONT_SIZE = 9
LEADING = 11
CELL_PADDING = 2 * mm

BRAND_BLUE = colors.HexColor('#00558F')
BRAND_RED = colors.HexColor('#E30613')
FOOTER_GREY = colors.HexColor('#646464')

PRICE_LIST_PREFIX = 'Lista_Precios'

CENT = Decimal('0.01')

_WHITESPACE = re.compile(r'\s+')


def format_ars(value):
    """es-AR number format with two decimals: 44306 -> '44.306,00'"""
    amount = Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)
    text = f"{amount:,.2f}"
    return text.replace(',', 'X').replace('.', ',').replace('X', '.')


def format_amount(value):
    """Whole amounts without decimals, as printed on remitos: 4500 -> '4500'"""
    amount = Decimal(str(value or 0))
    if amount == amount.to_integral_value():
        return str(amount.quantize(Decimal('1')))
    return str(amount.quantize(CENT, rounding=ROUND_HALF_UP))


def document_filename(prefix, label):
    label = _WHITESPACE.sub('_', str(label))
    return f"{prefix}_{label}.pdf"


def remito_prefix():
    return f"Remito_{settings.DOCUMENT_BRAND}"


def export_prefix():
    return f"{settings.DOCUMENT_BRAND}_Export"


def issue_date(when=None):
    return timezone.localtime(when or timezone.now()).strftime('%d/%m/%Y')


@dataclass
class Column:
    title: str
    width: float
    align: str = 'left'
    bold: bool = False


class TableWriter:
    """
    Draws a grid table on a canvas, starting a new page (and repeating the
    header row) when the next row does not fit.
    """

    def __init__(self, pdf, columns: List[Column], header_color, top):
        self.pdf = pdf
        self.columns = columns
        self.header_color = header_color
        self.y = top
        self.draw_header()

    def _wrap(self, text, width, font):
        words = str(text).split(' ')
        lines, current = [], ''
        for word in words:
            candidate = (current + ' ' + word).strip()
            if self.pdf.stringWidth(candidate, font, FONT_SIZE) <= width - 2 * CELL_PADDING:
                current = candidate
            else:
                if current:
                    lines.append(current)
                current = word
        if current:
            lines.append(current)
        return lines or ['']

    def _draw_row(self, cells, fill=None, text_color=colors.black, bold=False):
        fonts = [
            'Helvetica-Bold' if bold or column.bold else 'Helvetica'
            for column in self.columns
        ]
        wrapped = [self._wrap(cell, column.width, font) for cell, column, font in zip(cells, self.columns, fonts)]
        height = max(len(lines) for lines in wrapped) * LEADING + 2 * CELL_PADDING

        if self.y - height < MARGIN:
            self.pdf.showPage()
            self.y = PAGE_HEIGHT - MARGIN
            if fill is None:
                self.draw_header()

        x = MARGIN
        for lines, column, font in zip(wrapped, self.columns, fonts):
            if fill is not None:
                self.pdf.setFillColor(fill)
                self.pdf.rect(x, self.y - height, column.width, height, stroke=0, fill=1)
            self.pdf.setStrokeColor(colors.lightgrey)
            self.pdf.rect(x, self.y - height, column.width, height, stroke=1, fill=0)
            self.pdf.setFillColor(text_color)
            self.pdf.setFont(font, FONT_SIZE)
            text_y = self.y - CELL_PADDING - FONT_SIZE
            for line in lines:
                if column.align == 'right':
                    self.pdf.drawRightString(x + column.width - CELL_PADDING, text_y, line)
                elif column.align == 'center':
                    self.pdf.drawCentredString(x + column.width / 2, text_y, line)
                else:
                    self.pdf.drawString(x + CELL_PADDING, text_y, line)
                text_y -= LEADING
            x += column.width
        self.y -= height

    def draw_header(self):
        self._draw_row([column.title for column in self.columns], fill=self.header_color, text_color=colors.white, bold=True)

    def add_row(self, cells, bold=False):
        self._draw_row([str(cell) for cell in cells], bold=bold)


def _new_canvas(title):
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    pdf.setTitle(title)
    return buffer, pdf


def _draw_banner(pdf, tagline, right_lines, right_align='right'):
    pdf.setFillColor(BRAND_BLUE)
    pdf.rect(0, PAGE_HEIGHT - HEADER_HEIGHT, PAGE_WIDTH, HEADER_HEIGHT, stroke=0, fill=1)

    pdf.setFillColor(colors.white)
    pdf.setFont('Helvetica-Bold', 22)
    pdf.drawString(MARGIN, PAGE_HEIGHT - 20 * mm, settings.COMPANY_NAME)
    pdf.setFont('Helvetica', 11)
    pdf.drawString(MARGIN, PAGE_HEIGHT - 28 * mm, tagline)

    y = PAGE_HEIGHT - 20 * mm
    for index, line in enumerate(right_lines):
        pdf.setFont('Helvetica-Bold' if index == 0 else 'Helvetica', 13 if index == 0 else 10)
        if right_align == 'center':
            pdf.drawCentredString(PAGE_WIDTH * 2 / 3, y, line)
        else:
            pdf.drawRightString(PAGE_WIDTH - MARGIN, y, line)
        y -= 7 * mm


def _draw_footer(pdf, y, left_text, right_text=''):
    if y - 10 * mm < MARGIN:
        pdf.showPage()
        y = PAGE_HEIGHT - MARGIN
    pdf.setFont('Helvetica', 9)
    pdf.setFillColor(FOOTER_GREY)
    pdf.drawString(MARGIN, y - 10 * mm, left_text)
    if right_text:
        pdf.drawRightString(PAGE_WIDTH - MARGIN, y - 10 * mm, right_text)


def _finish(buffer, pdf):
    pdf.showPage()
    pdf.save()
    return buffer.getvalue()


# Price list

PRICE_LIST_COLUMNS = [
    Column('Código', 22 * mm, bold=True),
    Column('Línea', 28 * mm),
    Column('Nombre', 40 * mm),
    Column('Detalles', 50 * mm),
    Column('Stock', 14 * mm, align='center'),
    Column('Precio', 28 * mm, align='right', bold=True),
]


def render_price_list(rows, title, adjustment_note='', when=None) -> bytes:
    """
    Price list of the given rows. Rows whose adjusted price is 0 are skipped.
    """
    buffer, pdf = _new_canvas(title)
    header_lines = [title.upper(), f"Fecha de Emisión: {issue_date(when)}"]
    if adjustment_note:
        header_lines.append(adjustment_note)
    _draw_banner(pdf, settings.COMPANY_TAGLINE, header_lines, right_align='center')

    table = TableWriter(pdf, PRICE_LIST_COLUMNS, BRAND_BLUE, PAGE_HEIGHT - HEADER_HEIGHT - 10 * mm)
    for row in rows:
        if not row.printable:
            continue
        table.add_row([
            row.code, row.line, row.name, row.details, row.stock,
            f"${format_ars(row.adjusted_price)}",
        ])

    _draw_footer(pdf, table.y, "Precios sujetos a cambios sin previo aviso.",
                 f"Generado por Sistema {settings.DOCUMENT_BRAND} S.A.")
    return _finish(buffer, pdf)


# Remito

REMITO_COLUMNS = [
    Column('Código', 25 * mm, bold=True),
    Column('Descripción', 57 * mm),
    Column('Línea', 30 * mm),
    Column('Cant', 15 * mm, align='center'),
    Column('Precio Unit.', 28 * mm, align='right'),
    Column('Subtotal', 27 * mm, align='right'),
]


@dataclass
class RemitoRow:
    code: str
    description: str
    line: str
    quantity: int
    unit_price: Decimal
    subtotal: Decimal


def remito_rows(items) -> List[RemitoRow]:
    """Rows of a remito from order item snapshots (dicts with quantity)"""
    rows = []
    for item in items:
        price = Decimal(str(item.get('price') or 0))
        quantity = int(item.get('quantity') or 0)
        rows.append(RemitoRow(
            code=item.get('code', ''),
            description=f"{item.get('name', '')} - {item.get('details', '')}",
            line=item.get('line', ''),
            quantity=quantity,
            unit_price=price,
            subtotal=price * quantity,
        ))
    return rows


def remito_total(rows: List[RemitoRow]) -> Decimal:
    return sum((row.subtotal for row in rows), Decimal('0'))


def render_remito(order) -> bytes:
    """Delivery note of a stored order (OrderRecord with its id set)"""
    buffer, pdf = _new_canvas(f"Remito {order.reference}")
    _draw_banner(pdf, settings.COMPANY_TAGLINE, [
        'REMITO DE ENTREGA',
        f"Fecha: {issue_date(order.date)}",
        f"Ref: {order.reference}",
    ])

    pdf.setFillColor(colors.black)
    pdf.setFont('Helvetica', 12)
    pdf.drawString(MARGIN, PAGE_HEIGHT - HEADER_HEIGHT - 15 * mm, f"Cliente: {order.customer_name}")

    rows = remito_rows(order.items)
    table = TableWriter(pdf, REMITO_COLUMNS, BRAND_RED, PAGE_HEIGHT - HEADER_HEIGHT - 25 * mm)
    for row in rows:
        table.add_row([
            row.code, row.description, row.line, row.quantity,
            f"${format_amount(row.unit_price)}", f"${format_amount(row.subtotal)}",
        ])
    table.add_row(['', '', '', '', 'TOTAL', f"${format_amount(remito_total(rows))}"], bold=True)

    _draw_footer(pdf, table.y, "Gracias por su confianza.",
                 "Firma de Conformidad: __________________________")
    return _finish(buffer, pdf)


# Export list

EXPORT_COLUMNS = [
    Column('Code', 25 * mm, bold=True),
    Column('Line', 30 * mm),
    Column('Description (English)', 80 * mm),
    Column('Stock', 20 * mm, align='center'),
    Column('Price USD', 27 * mm, align='right', bold=True),
]


def render_export_list(rows, title, when=None) -> bytes:
    buffer, pdf = _new_canvas(title)
    _draw_banner(pdf, settings.EXPORT_TAGLINE, [
        title.upper(),
        f"Date: {issue_date(when)} | Currency: USD",
    ])

    table = TableWriter(pdf, EXPORT_COLUMNS, BRAND_BLUE, PAGE_HEIGHT - HEADER_HEIGHT - 10 * mm)
    for row in rows:
        table.add_row([row.code, row.line, row.description, row.stock, row.price_label])

    _draw_footer(pdf, table.y, "Prices valid for 30 days. FOB Argentina.")
    return _finish(buffer, pdf)

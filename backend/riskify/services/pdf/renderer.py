"""
Reportlab interpreter for ``DocumentLayout``.

Draws straight onto a canvas with a moving cursor (``self.y``). When the
cursor would pass the bottom margin a new page is started; tables redraw
their header row on every continuation page. Page numbers ("Page x of y")
are stamped on save by ``_NumberedCanvas``.
"""
import time
from collections import defaultdict
from dataclasses import dataclass, field
from io import BytesIO
from typing import Dict, List, Optional

from reportlab.lib.colors import HexColor, white
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from riskify import __version__
from riskify.core.exceptions import PdfRenderError, RiskifyError
from riskify.core.logging_config import logger
from riskify.services.pdf.layout import (
    Badge,
    BulletList,
    Card,
    DocumentLayout,
    ImageBox,
    KeyValueGrid,
    Node,
    Placeholder,
    RiskMatrix,
    Section,
    SignatureBlock,
    Table,
    TextBlock,
)
from riskify.services.pdf.themes import Theme
from riskify.services.risk import RiskLevel, risk_colour

CELL_PADDING = 4
SECTION_GAP = 10
HEADER_HEIGHT = 40


@dataclass
class RenderResult:
    pdf: bytes
    page_count: int
    rows_drawn: Dict[str, int] = field(default_factory=dict)


class _NumberedCanvas(canvas.Canvas):
    """Canvas that defers footers until the total page count is known"""

    def __init__(self, *args, theme: Theme, footer_text: str, **kwargs):
        canvas.Canvas.__init__(self, *args, **kwargs)
        self._theme = theme
        self._footer_text = footer_text
        self._saved_page_states = []

    def showPage(self):
        self._saved_page_states.append(dict(self.__dict__))
        self._startPage()

    def save(self):
        page_count = len(self._saved_page_states)
        for state in self._saved_page_states:
            self.__dict__.update(state)
            self._draw_footer(page_count)
            canvas.Canvas.showPage(self)
        canvas.Canvas.save(self)

    def _draw_footer(self, page_count: int):
        theme = self._theme
        width, _ = theme.page_size
        y = theme.margin / 2
        self.saveState()
        self.setStrokeColor(HexColor(theme.border))
        self.setLineWidth(0.5)
        self.line(theme.margin, y + 10, width - theme.margin, y + 10)
        self.setFont(theme.font, theme.small_size)
        self.setFillColor(HexColor(theme.muted_text))
        self.drawString(theme.margin, y, self._footer_text)
        self.drawRightString(width - theme.margin, y, f"Page {self._pageNumber} of {page_count}")
        self.restoreState()


class PdfRenderer:
    """Draw a ``DocumentLayout`` with one ``Theme``"""

    def __init__(self, theme: Theme, compress: bool = True):
        self.theme = theme
        self.compress = compress
        self.page_width, self.page_height = theme.page_size
        self.left = theme.margin
        self.content_width = self.page_width - 2 * theme.margin
        self.content_top = self.page_height - theme.margin - HEADER_HEIGHT
        self.bottom = theme.margin + 8
        self.leading = theme.body_size * 1.3

        self.canvas: Optional[_NumberedCanvas] = None
        self.layout: Optional[DocumentLayout] = None
        self.y = self.content_top
        self.page_count = 0
        self.rows_drawn: Dict[str, int] = defaultdict(int)

    def render(self, layout: DocumentLayout) -> RenderResult:
        start = time.time()
        buffer = BytesIO()
        self.layout = layout
        self.page_count = 0
        self.rows_drawn = defaultdict(int)
        self.canvas = _NumberedCanvas(
            buffer,
            pagesize=self.theme.page_size,
            pageCompression=1 if self.compress else 0,
            theme=self.theme,
            footer_text=layout.footer_text,
        )
        self.canvas.setTitle(f"{layout.title} - {layout.header_lines[1] if len(layout.header_lines) > 1 else ''}")
        self.canvas.setAuthor(layout.header_lines[0] if layout.header_lines else "")
        self.canvas.setSubject(layout.title)
        self.canvas.setCreator(f"Riskify {__version__}")

        current = None
        try:
            self._start_page()
            for section in layout.sections:
                current = section.key
                self._draw_section(section)
            self.canvas.showPage()
            self.canvas.save()
        except RiskifyError:
            raise
        except Exception as exc:
            logger.log_error_with_context(exc, "pdf_render", section=current, theme=self.theme.name)
            raise PdfRenderError(f"Failed to render section '{current}': {exc}", section=current) from exc

        logger.log_performance(
            "pdf_render", (time.time() - start) * 1000,
            theme=self.theme.name, pages=self.page_count,
        )
        return RenderResult(pdf=buffer.getvalue(), page_count=self.page_count, rows_drawn=dict(self.rows_drawn))

    # ---------- Pages ----------

    def _start_page(self):
        self.page_count += 1
        self._draw_watermark()
        self._draw_header()
        self.y = self.content_top

    def _new_page(self):
        self.canvas.showPage()
        self._start_page()

    def _at_page_top(self) -> bool:
        return self.y >= self.content_top - 1

    def _ensure(self, height: float):
        if self.y - height < self.bottom and not self._at_page_top():
            self._new_page()

    def _draw_watermark(self):
        text = self.layout.watermark
        if not text:
            return
        c = self.canvas
        font = self.theme.font_bold
        diagonal = (self.page_width ** 2 + self.page_height ** 2) ** 0.5
        size = min(54, diagonal * 0.6 / max(c.stringWidth(text, font, 1), 1))
        c.saveState()
        c.setFillColor(HexColor(self.theme.primary))
        c.setFillAlpha(self.theme.watermark_alpha)
        c.setFont(font, size)
        c.translate(self.page_width / 2, self.page_height / 2)
        c.rotate(30)
        c.drawCentredString(0, 0, text)
        c.restoreState()

    def _draw_header(self):
        c = self.canvas
        theme = self.theme
        top = self.page_height - theme.margin
        c.saveState()
        c.setFillColor(HexColor(theme.primary))
        c.setFont(theme.font_bold, theme.title_size)
        c.drawString(self.left, top - theme.title_size, self.layout.title)
        c.setFont(theme.font, theme.small_size + 1)
        c.setFillColor(HexColor(theme.muted_text))
        line_y = top - 8
        for line in self.layout.header_lines:
            if line:
                c.drawRightString(self.page_width - theme.margin, line_y, line)
                line_y -= theme.small_size + 3
        c.setStrokeColor(HexColor(theme.primary))
        c.setLineWidth(1.2)
        c.line(self.left, top - 28, self.page_width - theme.margin, top - 28)
        c.restoreState()

    # ---------- Sections ----------

    def _draw_section(self, section: Section):
        if section.new_page and not self._at_page_top():
            self._new_page()
        # Keep the heading with some of its content
        self._ensure(22 + 60)
        c = self.canvas
        theme = self.theme
        c.saveState()
        c.setFillColor(HexColor(theme.primary))
        c.roundRect(self.left, self.y - 18, self.content_width, 18, min(theme.card_radius, 4), stroke=0, fill=1)
        c.setFillColor(white)
        c.setFont(theme.font_bold, theme.heading_size)
        c.drawString(self.left + 8, self.y - 13, section.title.upper() if theme.name == "classic" else section.title)
        c.restoreState()
        self.y -= 26

        for node in section.nodes:
            self._draw_node(node, self.left, self.content_width)
        self.y -= SECTION_GAP

    def _draw_node(self, node: Node, x: float, width: float):
        drawers = {
            TextBlock: self._draw_text_block,
            BulletList: self._draw_bullet_list,
            KeyValueGrid: self._draw_key_value_grid,
            Table: self._draw_table,
            Placeholder: self._draw_placeholder,
            ImageBox: self._draw_image_box,
            RiskMatrix: self._draw_risk_matrix,
            SignatureBlock: self._draw_signature_block,
            Card: self._draw_card,
        }
        drawer = drawers.get(type(node))
        if drawer is None:
            raise PdfRenderError(f"Unsupported layout node: {type(node).__name__}")
        drawer(node, x, width)

    # ---------- Text ----------

    def _text_style(self, style: str):
        theme = self.theme
        return {
            "body": (theme.font, theme.body_size, theme.text),
            "small": (theme.font, theme.small_size, theme.text),
            "muted": (theme.font_italic, theme.small_size + 0.5, theme.muted_text),
            "heading": (theme.font_bold, theme.heading_size - 2, theme.primary),
        }.get(style, (theme.font, theme.body_size, theme.text))

    @staticmethod
    def _wrap(text: str, font: str, size: float, width: float) -> List[str]:
        return simpleSplit(text or "", font, size, width) or [""]

    def _draw_lines(self, lines: List[str], x: float, font: str, size: float, colour: str):
        leading = size * 1.3
        c = self.canvas
        for line in lines:
            if self.y - leading < self.bottom:
                self._new_page()
            c.setFont(font, size)
            c.setFillColor(HexColor(colour))
            c.drawString(x, self.y - size, line)
            self.y -= leading

    def _measure_text_block(self, node: TextBlock, width: float) -> float:
        font, size, _ = self._text_style(node.style)
        return len(self._wrap(node.text, font, size, width)) * size * 1.3 + 4

    def _draw_text_block(self, node: TextBlock, x: float, width: float):
        font, size, colour = self._text_style(node.style)
        self._draw_lines(self._wrap(node.text, font, size, width), x, font, size, colour)
        self.y -= 4

    def _measure_bullet_list(self, node: BulletList, width: float) -> float:
        theme = self.theme
        lines = sum(len(self._wrap(item, theme.font, theme.body_size, width - 10)) for item in node.items)
        return lines * self.leading + 4

    def _draw_bullet_list(self, node: BulletList, x: float, width: float):
        theme = self.theme
        c = self.canvas
        for item in node.items:
            lines = self._wrap(item, theme.font, theme.body_size, width - 10)
            self._ensure(self.leading)
            c.setFont(theme.font, theme.body_size)
            c.setFillColor(HexColor(theme.accent))
            c.drawString(x, self.y - theme.body_size, "•")
            self._draw_lines(lines, x + 10, theme.font, theme.body_size, theme.text)
        self.y -= 4

    # ---------- Grids & cards ----------

    def _grid_rows(self, node: KeyValueGrid, width: float):
        theme = self.theme
        column_width = width / node.columns
        rows = []
        for start in range(0, len(node.pairs), node.columns):
            cells = []
            for label, value in node.pairs[start:start + node.columns]:
                cells.append((label, self._wrap(value, theme.font, theme.body_size, column_width - 8)))
            height = theme.small_size * 1.3 + max(len(lines) for _, lines in cells) * self.leading + 6
            rows.append((cells, height))
        return column_width, rows

    def _measure_key_value_grid(self, node: KeyValueGrid, width: float) -> float:
        _, rows = self._grid_rows(node, width)
        return sum(height for _, height in rows)

    def _draw_key_value_grid(self, node: KeyValueGrid, x: float, width: float):
        theme = self.theme
        c = self.canvas
        column_width, rows = self._grid_rows(node, width)
        for cells, height in rows:
            if height > self.content_top - self.bottom:
                self._draw_tall_grid_row(cells, x, column_width)
                continue
            self._ensure(height)
            for index, (label, lines) in enumerate(cells):
                cx = x + index * column_width
                c.setFont(theme.font, theme.small_size)
                c.setFillColor(HexColor(theme.muted_text))
                c.drawString(cx, self.y - theme.small_size, label.upper())
                c.setFont(theme.font, theme.body_size)
                c.setFillColor(HexColor(theme.text))
                ty = self.y - theme.small_size * 1.3
                for line in lines:
                    c.drawString(cx, ty - theme.body_size, line)
                    ty -= self.leading
            self.y -= height

    def _draw_tall_grid_row(self, cells, x: float, column_width: float):
        """A grid row taller than a page: value lines continue on the following pages"""
        theme = self.theme
        c = self.canvas
        label_height = theme.small_size * 1.3
        self._ensure(label_height + self.leading * 3)
        pending = [(label, list(lines)) for label, lines in cells]
        first = True
        while any(lines for _, lines in pending):
            if not first:
                self._new_page()
            room = max(int((self.y - self.bottom - label_height) // self.leading), 1)
            used = 0
            for index, (label, lines) in enumerate(pending):
                if not lines and not first:
                    continue
                cx = x + index * column_width
                c.setFont(theme.font, theme.small_size)
                c.setFillColor(HexColor(theme.muted_text))
                c.drawString(cx, self.y - theme.small_size, label.upper() if first else f"{label.upper()} (CONT.)")
                c.setFont(theme.font, theme.body_size)
                c.setFillColor(HexColor(theme.text))
                ty = self.y - label_height
                for line in lines[:room]:
                    c.drawString(cx, ty - theme.body_size, line)
                    ty -= self.leading
                used = max(used, min(len(lines), room))
            pending = [(label, lines[room:]) for label, lines in pending]
            first = False
        self.y -= label_height + used * self.leading + 6

    def _measure(self, node: Node, width: float) -> Optional[float]:
        measures = {
            TextBlock: self._measure_text_block,
            BulletList: self._measure_bullet_list,
            KeyValueGrid: self._measure_key_value_grid,
            Placeholder: lambda n, w: n.height + 8,
            ImageBox: lambda n, w: n.height + 8,
        }
        measure = measures.get(type(node))
        return measure(node, width) if measure else None

    def _draw_card(self, node: Card, x: float, width: float):
        theme = self.theme
        c = self.canvas
        padding = 8
        inner = width - 2 * padding
        title_height = theme.body_size * 1.6 if node.title else 0
        heights = [self._measure(child, inner) for child in node.children]
        page_room = self.content_top - self.bottom

        if any(h is None for h in heights) or sum(heights) + title_height + 2 * padding > page_room:
            # Too big to keep together: flow the children without a frame
            if node.title:
                self._draw_lines([node.title], x, theme.font_bold, theme.body_size + 1, theme.primary)
            for child in node.children:
                self._draw_node(child, x, width)
            return

        height = sum(heights) + title_height + 2 * padding
        self._ensure(height)
        top = self.y
        c.saveState()
        c.setFillColor(HexColor(theme.card_background))
        c.setStrokeColor(HexColor(theme.border))
        c.setLineWidth(0.6)
        c.roundRect(x, top - height, width, height, theme.card_radius, stroke=1, fill=1)
        c.restoreState()
        self.y -= padding
        if node.title:
            c.setFont(theme.font_bold, theme.body_size + 1)
            c.setFillColor(HexColor(theme.primary))
            c.drawString(x + padding, self.y - theme.body_size - 1, node.title)
            self.y -= title_height
        for child in node.children:
            self._draw_node(child, x + padding, inner)
        self.y = top - height - 6

    def _draw_placeholder(self, node: Placeholder, x: float, width: float):
        self._dashed_box(x, width, node.height, node.text)

    def _dashed_box(self, x: float, width: float, height: float, text: str):
        theme = self.theme
        c = self.canvas
        self._ensure(height + 8)
        c.saveState()
        c.setStrokeColor(HexColor(theme.border))
        c.setDash(3, 2)
        c.setLineWidth(0.8)
        c.roundRect(x, self.y - height, width, height, theme.card_radius, stroke=1, fill=0)
        c.setFont(theme.font_italic, theme.body_size)
        c.setFillColor(HexColor(theme.muted_text))
        c.drawCentredString(x + width / 2, self.y - height / 2 - theme.body_size / 3, text)
        c.restoreState()
        self.y -= height + 8

    def _draw_image_box(self, node: ImageBox, x: float, width: float):
        if node.image is None:
            self._dashed_box(x, min(node.width, width), node.height, node.placeholder)
            return
        self._ensure(node.height + 8)
        self.canvas.drawImage(
            ImageReader(BytesIO(node.image)), x, self.y - node.height,
            width=min(node.width, width), height=node.height,
            preserveAspectRatio=True, anchor="sw", mask="auto",
        )
        self.y -= node.height + 8

    # ---------- Tables ----------

    def _cell_lines(self, cell, width: float) -> list:
        theme = self.theme
        if isinstance(cell, Badge):
            return [cell]
        if isinstance(cell, list):
            if len(cell) == 1:
                return self._wrap(cell[0], theme.font, theme.body_size, width)
            lines = []
            for item in cell:
                wrapped = self._wrap(item, theme.font, theme.body_size, width - 8)
                lines.append("• " + wrapped[0])
                lines.extend("   " + line for line in wrapped[1:])
            return lines
        return self._wrap(str(cell), theme.font, theme.body_size, width)

    def _draw_table_header(self, table: Table, x: float, widths: List[float], headers: List[List[str]],
                           height: float):
        theme = self.theme
        c = self.canvas
        c.saveState()
        c.setFillColor(HexColor(theme.table_header_background))
        c.rect(x, self.y - height, sum(widths), height, stroke=0, fill=1)
        c.setFillColor(HexColor(theme.table_header_text))
        c.setFont(theme.font_bold, theme.body_size)
        cx = x
        for column_width, lines in zip(widths, headers):
            ty = self.y - CELL_PADDING
            for line in lines:
                c.drawString(cx + CELL_PADDING, ty - theme.body_size, line)
                ty -= self.leading
            cx += column_width
        c.restoreState()
        self.y -= height

    def _draw_table_row(self, cells: list, x: float, widths: List[float], height: float, shaded: bool):
        theme = self.theme
        c = self.canvas
        top = self.y
        c.saveState()
        if shaded:
            c.setFillColor(HexColor(theme.zebra))
            c.rect(x, top - height, sum(widths), height, stroke=0, fill=1)
        c.setStrokeColor(HexColor(theme.border))
        c.setLineWidth(0.4)
        c.line(x, top - height, x + sum(widths), top - height)

        cx = x
        for column_width, lines in zip(widths, cells):
            ty = top - CELL_PADDING
            for line in lines:
                if isinstance(line, Badge):
                    self._draw_badge(line, cx + CELL_PADDING, ty)
                else:
                    c.setFont(theme.font, theme.body_size)
                    c.setFillColor(HexColor(theme.text))
                    c.drawString(cx + CELL_PADDING, ty - theme.body_size, line)
                ty -= self.leading
            cx += column_width
            if cx < x + sum(widths) - 1:
                c.line(cx, top, cx, top - height)
        c.restoreState()
        self.y -= height

    def _draw_badge(self, badge: Badge, x: float, top: float):
        theme = self.theme
        c = self.canvas
        size = theme.small_size
        width = c.stringWidth(badge.text, theme.font_bold, size) + 10
        height = self.leading
        c.saveState()
        c.setFillColor(HexColor(risk_colour(badge.level)))
        c.roundRect(x, top - height, width, height, height / 2, stroke=0, fill=1)
        c.setFillColor(white)
        c.setFont(theme.font_bold, size)
        c.drawString(x + 5, top - height + (height - size) / 2 + 1, badge.text)
        c.restoreState()

    def _draw_table(self, table: Table, x: float, width: float):
        theme = self.theme
        total_weight = sum(column.weight for column in table.columns)
        widths = [width * column.weight / total_weight for column in table.columns]
        headers = [
            self._wrap(column.title, theme.font_bold, theme.body_size, column_width - 2 * CELL_PADDING)
            for column, column_width in zip(table.columns, widths)
        ]
        header_height = max(len(lines) for lines in headers) * self.leading + 2 * CELL_PADDING
        min_row_height = self.leading + 2 * CELL_PADDING
        repeat_height = header_height if table.repeat_header else 0

        def continue_on_new_page():
            self._new_page()
            if table.repeat_header:
                self._draw_table_header(table, x, widths, headers, header_height)

        self._ensure(header_height + min_row_height)
        self._draw_table_header(table, x, widths, headers, header_height)

        for index, row in enumerate(table.rows):
            remaining = [
                self._cell_lines(cell, column_width - 2 * CELL_PADDING)
                for cell, column_width in zip(row, widths)
            ]
            while True:
                row_height = max(len(lines) for lines in remaining) * self.leading + 2 * CELL_PADDING
                available = self.y - self.bottom
                if row_height <= available:
                    self._draw_table_row(remaining, x, widths, row_height, shaded=index % 2 == 1)
                    break
                fresh_room = self.content_top - self.bottom - repeat_height
                if row_height <= fresh_room or available < min_row_height:
                    continue_on_new_page()
                    continue
                # Row taller than a whole page: split its lines across pages
                fit = max(1, int((available - 2 * CELL_PADDING) // self.leading))
                chunk = [lines[:fit] for lines in remaining]
                self._draw_table_row(chunk, x, widths, fit * self.leading + 2 * CELL_PADDING,
                                     shaded=index % 2 == 1)
                remaining = [lines[fit:] for lines in remaining]
                continue_on_new_page()
            self.rows_drawn[table.kind] += 1
        self.y -= 6

    # ---------- Risk matrix ----------

    def _draw_risk_matrix(self, node: RiskMatrix, x: float, width: float):
        theme = self.theme
        c = self.canvas
        label_width = 90
        cell_width = min(80, (width - label_width) / len(node.consequence))
        cell_height = 24
        header_height = 28
        legend_height = len(node.bands) * 16 + 8
        self._ensure(header_height + cell_height * len(node.rows) + legend_height + 12)

        c.saveState()
        c.setFont(theme.font_bold, theme.small_size)
        c.setFillColor(HexColor(theme.muted_text))
        c.drawString(x, self.y - header_height / 2 - 2, "Likelihood / Consequence")
        for index, label in enumerate(node.consequence):
            cx = x + label_width + index * cell_width
            c.setFillColor(HexColor(theme.table_header_background))
            c.rect(cx, self.y - header_height, cell_width, header_height, stroke=0, fill=1)
            c.setFillColor(HexColor(theme.table_header_text))
            c.drawCentredString(cx + cell_width / 2, self.y - header_height / 2 - 2, label)
        self.y -= header_height

        c.setStrokeColor(white)
        for row in node.rows:
            c.setFont(theme.font_bold, theme.small_size)
            c.setFillColor(HexColor(theme.text))
            c.drawString(x, self.y - cell_height / 2 - 2, row["likelihood"])
            for index, cell in enumerate(row["cells"]):
                cx = x + label_width + index * cell_width
                c.setFillColor(HexColor(cell["colour"]))
                c.rect(cx, self.y - cell_height, cell_width, cell_height, stroke=1, fill=1)
                c.setFillColor(white)
                c.setFont(theme.font_bold, theme.body_size)
                c.drawCentredString(
                    cx + cell_width / 2, self.y - cell_height / 2 - 3,
                    f"{RiskLevel(cell['level']).label} ({cell['score']})",
                )
            self.y -= cell_height
        self.y -= 12

        for band in node.bands:
            c.setFillColor(HexColor(band["colour"]))
            c.rect(x, self.y - 10, 10, 10, stroke=0, fill=1)
            c.setFillColor(HexColor(theme.text))
            c.setFont(theme.font_bold, theme.body_size)
            label = f"{RiskLevel(band['level']).label} ({band['min_score']}-{band['max_score']})"
            c.drawString(x + 16, self.y - 8, label)
            c.setFont(theme.font, theme.body_size)
            c.drawString(x + 120, self.y - 8, band["action"])
            self.y -= 16
        c.restoreState()
        self.y -= 8

    # ---------- Signatures ----------

    def _draw_signature_block(self, node: SignatureBlock, x: float, width: float):
        theme = self.theme
        c = self.canvas
        columns = 2
        gap = 12
        box_width = (width - gap) / columns
        box_height = 72

        for start in range(0, len(node.entries), columns):
            self._ensure(box_height + 8)
            for index, entry in enumerate(node.entries[start:start + columns]):
                bx = x + index * (box_width + gap)
                top = self.y
                c.saveState()
                c.setStrokeColor(HexColor(theme.border))
                c.setFillColor(HexColor(theme.card_background))
                c.roundRect(bx, top - box_height, box_width, box_height, theme.card_radius, stroke=1, fill=1)
                c.setFont(theme.font_bold, theme.body_size)
                c.setFillColor(HexColor(theme.primary))
                c.drawString(bx + 8, top - 14, entry.role)
                c.setFont(theme.font, theme.body_size)
                c.setFillColor(HexColor(theme.text))
                c.drawString(bx + 8, top - 27, f"Name: {entry.name}" if entry.name else "Name:")
                c.drawRightString(bx + box_width - 8, top - 27,
                                  f"Date: {entry.signed_at}" if entry.signed_at else "Date:")

                signature_top = top - 34
                if entry.image is not None:
                    c.drawImage(
                        ImageReader(BytesIO(entry.image)), bx + 8, signature_top - 30,
                        width=box_width / 2, height=30, preserveAspectRatio=True, anchor="sw", mask="auto",
                    )
                elif entry.typed:
                    c.setFont(theme.font_italic, 14)
                    c.drawString(bx + 8, signature_top - 22, entry.typed)
                else:
                    c.setStrokeColor(HexColor(theme.muted_text))
                    c.line(bx + 8, signature_top - 26, bx + box_width - 8, signature_top - 26)
                    c.setFont(theme.font, theme.small_size)
                    c.setFillColor(HexColor(theme.muted_text))
                    c.drawString(bx + 8, signature_top - 34, "Signature")
                c.restoreState()
            self.y -= box_height + 8

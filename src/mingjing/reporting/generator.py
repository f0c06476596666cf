"""
Report Card Generator
Maps an AnalysisResult to a themed report view and exports it as:
  - PNG (Pillow), the downloadable share image
  - PDF (ReportLab), a printable copy of the same card
"""

import io
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable, List, Optional
from xml.sax.saxutils import escape

from PIL import Image, ImageDraw, ImageFont
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import inch
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfbase.cidfonts import UnicodeCIDFont
from reportlab.platypus import HRFlowable, Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from mingjing import config
from mingjing.core.errors import ExportError
from mingjing.core.models import AnalysisResult

logger = logging.getLogger("MINGJING_REPORT")

BRAND = "职场明镜"
TITLE = "分析报告"
SUBTITLE = "ANALYSIS REPORT"

# ── Colour palette ─────────────────────────────────────────────────
_INK = "#1c1917"
_STONE_800 = "#292524"
_STONE_600 = "#57534e"
_STONE_400 = "#a8a29e"
_STONE_300 = "#d6d3d1"
_STONE_100 = "#f5f5f4"
_BAMBOO = "#15803d"
_CINNABAR = "#b91c1c"

# Built-in Adobe CID font; renders Chinese without shipping font files.
_PDF_FONT = "STSong-Light"


@dataclass(frozen=True)
class ReportTheme:
    """Colours chosen from the risk score."""
    level: str
    accent: str
    bar: str
    background: str


SAFE_THEME = ReportTheme("safe", _BAMBOO, _BAMBOO, "#f0fdf4")
WARNING_THEME = ReportTheme("warning", _STONE_600, _STONE_400, _STONE_100)
DANGER_THEME = ReportTheme("danger", _CINNABAR, _CINNABAR, "#fef2f2")


def theme_for_score(score: int) -> ReportTheme:
    if score < 30:
        return SAFE_THEME
    if score < 70:
        return WARNING_THEME
    return DANGER_THEME


@dataclass(frozen=True)
class ReportView:
    """Everything the report card shows, ready for display or export."""
    result: AnalysisResult
    theme: ReportTheme
    generated_on: date = field(default_factory=date.today)
    title: str = TITLE
    brand: str = BRAND

    def filename(self, extension: str = "png") -> str:
        return f"{self.brand}鉴定-{self.generated_on.isoformat()}.{extension}"


class ReportGenerator:
    """Renders report cards and exports them to PNG or PDF."""

    WIDTH = 640
    PADDING = 44

    def __init__(self, font_path: Optional[str] = None, scale: Optional[int] = None):
        self.font_path = font_path if font_path is not None else config.REPORT_FONT
        self.scale = scale or config.REPORT_SCALE
        if not self.font_path:
            logger.warning("No CJK font found; PNG reports may not render Chinese text. "
                           "Set REPORT_FONT_PATH to a .ttf/.ttc font.")

    # ── Public API ──────────────────────────────────────────────────
    def render(self, result: AnalysisResult, generated_on: Optional[date] = None) -> ReportView:
        """Build the themed view for a result."""
        return ReportView(
            result=result,
            theme=theme_for_score(result.score),
            generated_on=generated_on or date.today(),
        )

    def export_png(self, view: ReportView) -> bytes:
        """
        Rasterize the report card.

        Raises:
            ExportError: if the image could not be produced
        """
        try:
            image = self._draw_card(view)
            buffer = io.BytesIO()
            image.save(buffer, format="PNG")
            return buffer.getvalue()
        except Exception as e:
            logger.error("PNG export failed: %s", e, exc_info=True)
            raise ExportError() from e

    def export_pdf(self, view: ReportView) -> bytes:
        """
        Produce a printable PDF of the report card.

        Raises:
            ExportError: if the document could not be built
        """
        try:
            return self._build_pdf(view)
        except Exception as e:
            logger.error("PDF export failed: %s", e, exc_info=True)
            raise ExportError() from e

    # ── PNG rendering ───────────────────────────────────────────────
    def _font(self, size: int) -> ImageFont.FreeTypeFont:
        size = size * self.scale
        if self.font_path:
            return ImageFont.truetype(self.font_path, size)
        return ImageFont.load_default(size=size)

    @staticmethod
    def _wrap(text: str, font, max_width: float) -> List[str]:
        """Greedy per-character wrapping; works for CJK text without spaces."""
        lines: List[str] = []
        for paragraph in (text or "").splitlines() or [""]:
            line = ""
            for ch in paragraph:
                if not line or font.getlength(line + ch) <= max_width:
                    line += ch
                else:
                    lines.append(line)
                    line = ch
            lines.append(line)
        return lines

    def _draw_card(self, view: ReportView) -> Image.Image:
        s = self.scale
        result, theme = view.result, view.theme
        width = self.WIDTH * s
        pad = self.PADDING * s
        content_width = width - 2 * pad

        f_title = self._font(24)
        f_small = self._font(10)
        f_label = self._font(11)
        f_verdict = self._font(40)
        f_body = self._font(16)
        f_detail = self._font(14)
        f_score = self._font(40)

        # Layout pass: collect draw operations with their y positions, then
        # size the canvas to fit.
        ops: List[Callable[[ImageDraw.ImageDraw], None]] = []
        y = 6 * s  # top accent bar

        def text_op(xy, txt, font, fill, anchor="la"):
            ops.append(lambda d: d.text(xy, txt, font=font, fill=fill, anchor=anchor))

        def line_height(font) -> int:
            top, bottom = font.getbbox("国Ag")[1], font.getbbox("国Ag")[3]
            return int((bottom - top) * 1.6) + 1

        # Header
        y += pad
        text_op((pad, y), view.title, f_title, _INK)
        text_op((width - pad, y), view.generated_on.strftime("%Y/%m/%d"), f_small, _STONE_400, "ra")
        y += line_height(f_title)
        text_op((pad, y), SUBTITLE, f_small, _STONE_600)
        text_op((width - pad, y), f"{view.brand} · 制", f_small, _STONE_300, "ra")
        y += line_height(f_small) + 8 * s
        header_rule = y
        ops.append(lambda d: d.line((pad, header_rule, width - pad, header_rule), fill=_STONE_300, width=s))
        y += 24 * s

        # Verdict + seal
        seal_r = 56 * s
        seal_cx, seal_cy = width - pad - seal_r, y + seal_r
        verdict_top = y
        text_op((pad, y), "鉴定结论 / VERDICT", f_small, _STONE_400)
        y += line_height(f_small)
        for line in self._wrap(result.verdict, f_verdict, content_width - 2 * seal_r - 16 * s):
            text_op((pad, y), line, f_verdict, theme.accent)
            y += line_height(f_verdict)
        y += 4 * s
        tone_text = f"语气: {result.tone}"
        tone_box = (pad, y, pad + f_label.getlength(tone_text) + 16 * s, y + line_height(f_label) + 4 * s)
        ops.append(lambda d: d.rectangle(tone_box, fill=_STONE_100, outline=_STONE_100))
        text_op((pad + 8 * s, y + 4 * s), tone_text, f_label, _STONE_600)
        y = max(tone_box[3], verdict_top + 2 * seal_r) + 32 * s

        def draw_seal(d: ImageDraw.ImageDraw):
            box = (seal_cx - seal_r, seal_cy - seal_r, seal_cx + seal_r, seal_cy + seal_r)
            d.ellipse(box, outline=theme.accent, width=3 * s)
            d.text((seal_cx, seal_cy - 30 * s), "RISK LEVEL", font=f_small, fill=theme.accent, anchor="mm")
            d.text((seal_cx, seal_cy), str(result.score), font=f_score, fill=theme.accent, anchor="mm")
            d.text((seal_cx, seal_cy + 32 * s), "PUA指数", font=f_small, fill=theme.accent, anchor="mm")
        ops.append(draw_seal)

        # Summary
        for line in self._wrap(result.summary, f_body, content_width):
            text_op((pad, y), line, f_body, _STONE_800)
            y += line_height(f_body)
        y += 24 * s

        # Details
        text_op((pad, y), "—  深度剖析", f_small, _STONE_400)
        y += line_height(f_small) + 6 * s
        indent = 30 * s
        for index, detail in enumerate(result.details, start=1):
            num_y = y
            ops.append(lambda d, cy=num_y: d.ellipse(
                (pad, cy + 2 * s, pad + 20 * s, cy + 22 * s), outline=_STONE_300, width=s))
            text_op((pad + 10 * s, num_y + 12 * s), str(index), f_small, _STONE_400, "mm")
            for line in self._wrap(detail, f_detail, content_width - indent):
                text_op((pad + indent, y), line, f_detail, _STONE_600)
                y += line_height(f_detail)
            y += 10 * s
        y += 16 * s

        # Advice box
        inner = 20 * s
        advice_lines = self._wrap(result.advice, f_detail, content_width - 2 * inner)
        box_top = y
        box_bottom = (box_top + inner + line_height(f_small) + 4 * s
                      + len(advice_lines) * line_height(f_detail) + inner)
        ops.append(lambda d: d.rectangle((pad, box_top, width - pad, box_bottom), fill=theme.background))
        ops.append(lambda d: d.rectangle((pad, box_top, pad + 2 * s, box_bottom), fill=theme.accent))
        y = box_top + inner
        text_op((pad + inner, y), "应对建议 / ADVICE", f_small, theme.accent)
        y += line_height(f_small) + 4 * s
        for line in advice_lines:
            text_op((pad + inner, y), line, f_detail, _STONE_800)
            y += line_height(f_detail)
        y = box_bottom + pad

        height = int(y)
        image = Image.new("RGB", (width, height), config.REPORT_BACKGROUND)
        draw = ImageDraw.Draw(image)
        draw.rectangle((0, 0, width, 6 * s), fill=theme.bar)
        for op in ops:
            op(draw)
        draw.rectangle((0, 0, width - 1, height - 1), outline=_STONE_300, width=s)
        return image

    # ── PDF rendering ───────────────────────────────────────────────
    @staticmethod
    def _build_styles():
        if _PDF_FONT not in pdfmetrics.getRegisteredFontNames():
            pdfmetrics.registerFont(UnicodeCIDFont(_PDF_FONT))

        base = getSampleStyleSheet()
        s = {}
        s["body"] = ParagraphStyle(
            "CardBody", parent=base["BodyText"],
            fontName=_PDF_FONT, fontSize=11, leading=18, textColor=colors.HexColor(_STONE_800),
        )
        s["title"] = ParagraphStyle(
            "CardTitle", parent=base["Title"],
            fontName=_PDF_FONT, fontSize=22, leading=28, textColor=colors.HexColor(_INK),
            alignment=TA_CENTER, spaceAfter=4,
        )
        s["subtitle"] = ParagraphStyle(
            "CardSub", parent=base["Normal"],
            fontName=_PDF_FONT, fontSize=9, textColor=colors.HexColor(_STONE_400),
            alignment=TA_CENTER, spaceAfter=14,
        )
        s["h2"] = ParagraphStyle(
            "CardH2", parent=base["Heading2"],
            fontName=_PDF_FONT, fontSize=11, leading=16, textColor=colors.HexColor(_STONE_400),
            spaceBefore=12, spaceAfter=6,
        )
        s["verdict"] = ParagraphStyle(
            "CardVerdict", parent=base["Normal"],
            fontName=_PDF_FONT, fontSize=18, leading=24, alignment=TA_CENTER,
        )
        s["small"] = ParagraphStyle(
            "CardSmall", parent=base["Normal"],
            fontName=_PDF_FONT, fontSize=8, textColor=colors.HexColor(_STONE_400), alignment=TA_RIGHT,
        )
        return s

    @staticmethod
    def _header_footer(canvas_obj, doc):
        canvas_obj.saveState()
        canvas_obj.setStrokeColor(colors.HexColor(_STONE_300))
        canvas_obj.setLineWidth(0.5)
        canvas_obj.line(doc.leftMargin, doc.bottomMargin - 12,
                        doc.width + doc.leftMargin, doc.bottomMargin - 12)
        canvas_obj.setFont(_PDF_FONT, 7)
        canvas_obj.setFillColor(colors.HexColor(_STONE_400))
        canvas_obj.drawString(doc.leftMargin, doc.bottomMargin - 24, f"{BRAND} · 话术分析")
        canvas_obj.drawRightString(doc.width + doc.leftMargin, doc.bottomMargin - 24,
                                   f"Page {doc.page}")
        canvas_obj.restoreState()

    def _build_pdf(self, view: ReportView) -> bytes:
        s = self._build_styles()
        result, theme = view.result, view.theme
        buffer = io.BytesIO()

        doc = SimpleDocTemplate(
            buffer, pagesize=A4,
            topMargin=0.75 * inch, bottomMargin=0.75 * inch,
            leftMargin=0.8 * inch, rightMargin=0.8 * inch,
            title=f"{view.brand} {view.title}",
        )
        story: list = []

        # ─── 1. HEADER ─────────────────────────────────────────────
        story.append(Paragraph(view.title, s["title"]))
        story.append(Paragraph(f"{SUBTITLE} · {view.generated_on.isoformat()}", s["subtitle"]))

        # Verdict banner
        verdict_table = Table(
            [[Paragraph(
                f"<font color='#ffffff'>{escape(result.verdict)}  —  PUA指数 {result.score}</font>",
                s["verdict"],
            )]],
            colWidths=[doc.width],
        )
        verdict_table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor(theme.accent)),
            ("ALIGN", (0, 0), (-1, -1), "CENTER"),
            ("TOPPADDING", (0, 0), (-1, -1), 10),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 10),
        ]))
        story.append(verdict_table)
        story.append(Spacer(1, 10))
        story.append(Paragraph(f"语气: {escape(result.tone)}", s["body"]))
        story.append(HRFlowable(width="100%", thickness=1, color=colors.HexColor(_STONE_300),
                                spaceBefore=8, spaceAfter=8))

        # ─── 2. SUMMARY ────────────────────────────────────────────
        story.append(Paragraph(escape(result.summary), s["body"]))

        # ─── 3. DETAILS ────────────────────────────────────────────
        story.append(Paragraph("深度剖析", s["h2"]))
        rows = [[str(i), Paragraph(escape(detail), s["body"])]
                for i, detail in enumerate(result.details, start=1)]
        if rows:
            details_table = Table(rows, colWidths=[24, doc.width - 24])
            details_table.setStyle(TableStyle([
                ("FONTNAME", (0, 0), (0, -1), _PDF_FONT),
                ("TEXTCOLOR", (0, 0), (0, -1), colors.HexColor(_STONE_400)),
                ("VALIGN", (0, 0), (-1, -1), "TOP"),
                ("TOPPADDING", (0, 0), (-1, -1), 3),
                ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
                ("LINEBELOW", (0, 0), (-1, -2), 0.3, colors.HexColor(_STONE_300)),
            ]))
            story.append(details_table)

        # ─── 4. ADVICE ─────────────────────────────────────────────
        story.append(Spacer(1, 14))
        advice_table = Table(
            [[Paragraph(f"<font color='{theme.accent}'>应对建议 / Advice</font>", s["body"])],
             [Paragraph(escape(result.advice), s["body"])]],
            colWidths=[doc.width],
        )
        advice_table.setStyle(TableStyle([
            ("BACKGROUND", (0, 0), (-1, -1), colors.HexColor(theme.background)),
            ("LINEBEFORE", (0, 0), (0, -1), 2, colors.HexColor(theme.accent)),
            ("LEFTPADDING", (0, 0), (-1, -1), 12),
            ("TOPPADDING", (0, 0), (-1, -1), 6),
            ("BOTTOMPADDING", (0, 0), (-1, -1), 6),
        ]))
        story.append(advice_table)

        story.append(Spacer(1, 24))
        story.append(Paragraph(f"{view.brand} · 制", s["small"]))

        doc.build(story, onFirstPage=self._header_footer, onLaterPages=self._header_footer)
        return buffer.getvalue()

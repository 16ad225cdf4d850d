"""
PDF rendering for reports and laudos

Document layout:
1. Title
2. Subject details (case or evidence)
3. Related items (evidence and victims for a case, case context for evidence)
4. Evidence image (laudos on image/jpeg or image/png evidence only)
5. Narrative
6. Signature line (signed documents only)
"""
import io
from typing import Iterable, List, NamedTuple, Optional, Sequence, Tuple
from xml.sax.saxutils import escape

from PIL import Image as PILImage
from reportlab.lib import colors
from reportlab.lib.enums import TA_CENTER, TA_JUSTIFY, TA_RIGHT
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.platypus import Flowable, Image, Paragraph, SimpleDocTemplate, Spacer

from odontoforense.services.blob_store import BlobStore
from odontoforense.services.prompt_builder import odontogram_quadrants
from odontoforense.services.subjects import (
    CaseSubject,
    CaseView,
    EvidenceSubject,
    EvidenceView,
    ReportSubject,
    VictimView,
)
from odontoforense.utils.constants import EMBEDDABLE_IMAGE_TYPES, NONE_REGISTERED
from odontoforense.utils.helpers import format_coordinates, format_datetime, or_na
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)

PAGE_MARGIN = 50
IMAGE_BOX = (400, 400)
IMAGE_PLACEHOLDER = "Unable to load the evidence image."


class Section(NamedTuple):
    """A named block of flowables"""
    name: str
    flowables: List[Flowable]


class ReportStyles:
    """Paragraph styles used by the renderer"""

    def __init__(self):
        self.styles = getSampleStyleSheet()
        self._add_custom_styles()

    def _add_custom_styles(self) -> None:
        self.styles.add(ParagraphStyle(
            name='DocumentTitle',
            parent=self.styles['Heading1'],
            fontSize=20,
            alignment=TA_CENTER,
            spaceAfter=24,
        ))

        self.styles.add(ParagraphStyle(
            name='SectionHeader',
            parent=self.styles['Heading2'],
            fontSize=16,
            spaceBefore=18,
            spaceAfter=10,
            textColor=colors.HexColor('#2c3e50'),
        ))

        self.styles.add(ParagraphStyle(
            name='ItemHeader',
            parent=self.styles['Heading3'],
            fontSize=12,
            spaceBefore=10,
            spaceAfter=4,
        ))

        self.styles.add(ParagraphStyle(
            name='Field',
            parent=self.styles['Normal'],
            fontSize=11,
            leading=15,
        ))

        self.styles.add(ParagraphStyle(
            name='Narrative',
            parent=self.styles['Normal'],
            fontSize=11,
            leading=16,
            alignment=TA_JUSTIFY,
            spaceAfter=10,
        ))

        self.styles.add(ParagraphStyle(
            name='Placeholder',
            parent=self.styles['Normal'],
            fontSize=11,
            alignment=TA_CENTER,
            textColor=colors.HexColor('#888888'),
        ))

        self.styles.add(ParagraphStyle(
            name='Signature',
            parent=self.styles['Normal'],
            fontSize=12,
            alignment=TA_RIGHT,
            spaceBefore=30,
        ))

        self.styles.add(ParagraphStyle(
            name='Footer',
            parent=self.styles['Normal'],
            fontSize=8,
            alignment=TA_CENTER,
            textColor=colors.HexColor('#888888'),
        ))

    def __getitem__(self, name: str) -> ParagraphStyle:
        return self.styles[name]


def _text(value: str) -> str:
    """Escape text for Paragraph markup, keeping line breaks"""
    return escape(value).replace("\n", "<br/>")


class DocumentRenderer:
    """Renders report subjects into PDF bytes"""

    def __init__(self, blob_store: BlobStore, pagesize=A4):
        """
        Args:
            blob_store: source of evidence images
            pagesize: reportlab page size
        """
        self.blob_store = blob_store
        self.pagesize = pagesize
        self.styles = ReportStyles()

    # ------------------------------------------------------------------
    # Building blocks
    # ------------------------------------------------------------------

    def _header(self, text: str) -> Paragraph:
        return Paragraph(_text(text), self.styles['SectionHeader'])

    def _item_header(self, text: str) -> Paragraph:
        return Paragraph(_text(text), self.styles['ItemHeader'])

    def _fields(self, fields: Iterable[Tuple[str, object]]) -> List[Flowable]:
        return [
            Paragraph(f"<b>{escape(label)}:</b> {_text(or_na(value))}", self.styles['Field'])
            for label, value in fields
        ]

    def _none_registered(self) -> Paragraph:
        return Paragraph(NONE_REGISTERED, self.styles['Field'])

    @staticmethod
    def case_fields(case: CaseView) -> List[Tuple[str, object]]:
        return [
            ("Name", case.name),
            ("Category", case.category),
            ("Location", case.location),
            ("Status", case.status),
            ("Opened At", format_datetime(case.opened_at)),
            ("Responsible Examiner", case.examiner_name),
            ("Description", case.description),
        ]

    @staticmethod
    def evidence_fields(evidence: EvidenceView) -> List[Tuple[str, object]]:
        return [
            ("Title", evidence.title),
            ("Category", evidence.category),
            ("Description", evidence.description),
            ("Collected By", evidence.collector_name),
            ("Created At", format_datetime(evidence.created_at)),
            ("File Name", evidence.filename),
            ("File Type", evidence.mime_type),
            ("Location", format_coordinates(evidence.coordinates)),
        ]

    @staticmethod
    def victim_fields(victim: VictimView) -> List[Tuple[str, object]]:
        fields = [
            ("Name", victim.name),
            ("Gender", victim.gender),
            ("Age", victim.age),
            ("CPF", victim.cpf),
            ("Address", victim.address),
            ("Ethnicity", victim.ethnicity),
            ("Anatomical Note", victim.anatomical_note),
        ]
        for label, teeth in odontogram_quadrants(victim):
            fields.append((f"Odontogram - {label}", teeth))
        return fields

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _title_section(self, title: str) -> Section:
        return Section("title", [
            Paragraph(_text(or_na(title)), self.styles['DocumentTitle']),
            Spacer(1, 12),
        ])

    def _evidence_list_section(self, items: Sequence[EvidenceView]) -> Section:
        flowables: List[Flowable] = [self._header("Evidence")]
        if not items:
            flowables.append(self._none_registered())
        for index, item in enumerate(items, start=1):
            flowables.append(self._item_header(f"Evidence {index}: {or_na(item.title)}"))
            flowables.extend(self._fields(self.evidence_fields(item)[1:]))
        return Section("evidence", flowables)

    def _victim_list_section(self, items: Sequence[VictimView]) -> Section:
        flowables: List[Flowable] = [self._header("Victims")]
        if not items:
            flowables.append(self._none_registered())
        for index, victim in enumerate(items, start=1):
            flowables.append(self._item_header(f"Victim {index} (NIC {or_na(victim.nic)})"))
            flowables.extend(self._fields(self.victim_fields(victim)))
        return Section("victims", flowables)

    def _image_section(self, evidence: EvidenceView) -> Section:
        flowables: List[Flowable] = [self._header("Evidence Image")]
        try:
            content = self.blob_store.read(evidence.blob_id)
            # Decode every pixel now; reportlab only decodes during build
            with PILImage.open(io.BytesIO(content)) as picture:
                picture.load()
                width, height = picture.size
            scale = min(IMAGE_BOX[0] / width, IMAGE_BOX[1] / height)
            image = Image(io.BytesIO(content), width=width * scale, height=height * scale)
            image.hAlign = 'CENTER'
            flowables.append(image)
        except Exception as e:
            logger.warning(f"Evidence image could not be embedded ({evidence.blob_id}): {str(e)}")
            flowables.append(Paragraph(IMAGE_PLACEHOLDER, self.styles['Placeholder']))
        flowables.append(Spacer(1, 12))
        return Section("image", flowables)

    def _narrative_section(self, heading: str, narrative: str) -> Section:
        flowables: List[Flowable] = [self._header(heading)]
        blocks = [block for block in (narrative or "").split("\n\n") if block.strip()]
        if not blocks:
            blocks = [or_na(None)]
        flowables.extend(Paragraph(_text(block), self.styles['Narrative']) for block in blocks)
        return Section("narrative", flowables)

    def _signature_section(self, signature: str) -> Section:
        return Section("signature", [
            Paragraph(f"Signed by: {_text(signature)}", self.styles['Signature']),
        ])

    def compose(
        self,
        title: str,
        subject: ReportSubject,
        narrative: str,
        signature: Optional[str] = None,
    ) -> List[Section]:
        """
        Lay out the document sections

        Args:
            title: document title
            subject: case or evidence subject
            narrative: generated (or fallback) text, rendered verbatim
            signature: signature line, appended when given

        Returns:
            Ordered sections
        """
        sections = [self._title_section(title)]

        if isinstance(subject, CaseSubject):
            sections.append(Section("subject", [self._header("Case Details")] + self._fields(self.case_fields(subject.case))))
            sections.append(self._evidence_list_section(subject.evidence))
            sections.append(self._victim_list_section(subject.victims))
            narrative_heading = "Expert Report"
        elif isinstance(subject, EvidenceSubject):
            sections.append(Section("subject", [self._header("Evidence Details")] + self._fields(self.evidence_fields(subject.evidence))))
            sections.append(Section("case", [self._header("Case Context")] + self._fields(self.case_fields(subject.case))))
            if subject.evidence.mime_type in EMBEDDABLE_IMAGE_TYPES:
                sections.append(self._image_section(subject.evidence))
            narrative_heading = "Expert Opinion"
        else:
            raise TypeError(f"Unsupported report subject: {type(subject).__name__}")

        sections.append(self._narrative_section(narrative_heading, narrative))

        if signature:
            sections.append(self._signature_section(signature))

        return sections

    def _draw_footer(self, canvas, doc):
        canvas.saveState()
        canvas.setFont('Helvetica', 8)
        canvas.setFillColor(colors.HexColor('#888888'))
        canvas.drawCentredString(self.pagesize[0] / 2, PAGE_MARGIN / 2, f"Page {doc.page}")
        canvas.restoreState()

    def render(
        self,
        title: str,
        subject: ReportSubject,
        narrative: str,
        signature: Optional[str] = None,
    ) -> bytes:
        """
        Render a document

        Returns:
            PDF bytes, available only once the document has been built
        """
        buffer = io.BytesIO()
        doc = SimpleDocTemplate(
            buffer,
            pagesize=self.pagesize,
            leftMargin=PAGE_MARGIN,
            rightMargin=PAGE_MARGIN,
            topMargin=PAGE_MARGIN,
            bottomMargin=PAGE_MARGIN,
            title=title,
        )

        story: List[Flowable] = []
        for section in self.compose(title, subject, narrative, signature):
            story.extend(section.flowables)

        doc.build(story, onFirstPage=self._draw_footer, onLaterPages=self._draw_footer)
        pdf_bytes = buffer.getvalue()
        buffer.close()

        logger.debug(f"Rendered '{title}': {len(pdf_bytes)} bytes")
        return pdf_bytes

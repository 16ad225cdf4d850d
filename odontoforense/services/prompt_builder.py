"""
Prompt and fallback narrative builder
"""
from pathlib import Path
from typing import Any, Dict, Iterable, Optional, Tuple

from odontoforense.services.subjects import (
    CaseSubject,
    CaseView,
    EvidenceSubject,
    EvidenceView,
    ReportSubject,
    VictimView,
)
from odontoforense.utils.constants import NONE_REGISTERED, ODONTOGRAM_QUADRANTS
from odontoforense.utils.helpers import format_coordinates, format_datetime, or_na
from odontoforense.utils.logger import get_logger

logger = get_logger(__name__)


CASE_REPORT_TEMPLATE = """\
Write a detailed technical forensic odontology report for the following case, taking into account every registered piece of evidence and every registered victim:

Case:
Case ID: {case_id}
Name: {case_name}
Category: {case_category}
Location: {case_location}
Status: {case_status}
Opened At: {case_opened_at}
Responsible Examiner: {case_examiner}
Description: {case_description}

Evidence:
{evidence_block}

Victims:
{victims_block}

Based on this information, assess the case from a forensic odontology standpoint, relate the evidence to the victims where possible, and give forensic implications and recommendations for further investigation. The report must be concise, objective and based strictly on the data provided."""

EVIDENCE_LAUDO_TEMPLATE = """\
Write a detailed technical expert opinion (laudo) for the following criminal evidence, focusing on forensic odontology analysis and considering the context of the associated case:

Case Context:
Case ID: {case_id}
Name: {case_name}
Category: {case_category}
Location: {case_location}
Description: {case_description}

Evidence Details:
Evidence ID: {evidence_id}
Title: {evidence_title}
Category: {evidence_category}
Description: {evidence_description}
Collected By: {evidence_collector}
Created At: {evidence_created_at}
File Name: {evidence_filename}
File Type: {evidence_mime_type}
Location: {evidence_location}

Based on this information, analyse the evidence (especially if it is a radiograph or an odontogram) in the context of the case and provide a detailed technical assessment, including possible forensic implications and recommendations for further investigation. The laudo must be concise, objective and based strictly on the data provided."""

CASE_REPORT_FALLBACK = """\
The expert report could not be generated automatically because the content generation service failed. Case details:

Name: {case_name}
Category: {case_category}
Location: {case_location}
Status: {case_status}
Opened At: {case_opened_at}
Responsible Examiner: {case_examiner}
Description: {case_description}
Registered evidence: {evidence_count}
Registered victims: {victim_count}

Manual analysis by the responsible examiner is recommended."""

EVIDENCE_LAUDO_FALLBACK = """\
The expert opinion could not be generated automatically because the content generation service failed. Evidence details:

Title: {evidence_title}
Category: {evidence_category}
Description: {evidence_description}
Collected By: {evidence_collector}
Location: {evidence_location}

Manual analysis by the responsible examiner is recommended."""

DEFAULT_TEMPLATES = {
    "case_report": CASE_REPORT_TEMPLATE,
    "evidence_laudo": EVIDENCE_LAUDO_TEMPLATE,
    "case_report_fallback": CASE_REPORT_FALLBACK,
    "evidence_laudo_fallback": EVIDENCE_LAUDO_FALLBACK,
}


def case_variables(case: CaseView) -> Dict[str, str]:
    return {
        "case_id": case.id,
        "case_name": or_na(case.name),
        "case_category": or_na(case.category),
        "case_location": or_na(case.location),
        "case_status": or_na(case.status),
        "case_opened_at": format_datetime(case.opened_at),
        "case_examiner": or_na(case.examiner_name),
        "case_description": or_na(case.description),
    }


def evidence_variables(evidence: EvidenceView) -> Dict[str, str]:
    return {
        "evidence_id": evidence.id,
        "evidence_title": or_na(evidence.title),
        "evidence_category": or_na(evidence.category),
        "evidence_description": or_na(evidence.description),
        "evidence_collector": or_na(evidence.collector_name),
        "evidence_created_at": format_datetime(evidence.created_at),
        "evidence_filename": or_na(evidence.filename),
        "evidence_mime_type": or_na(evidence.mime_type),
        "evidence_location": format_coordinates(evidence.coordinates),
    }


def odontogram_quadrants(victim: VictimView) -> Iterable[Tuple[str, str]]:
    """(label, comma separated teeth) per quadrant, N/A when empty"""
    for key, label in ODONTOGRAM_QUADRANTS:
        teeth = [tooth for tooth in victim.odontogram.get(key, []) if tooth]
        yield label, ", ".join(teeth) if teeth else or_na(None)


def odontogram_lines(victim: VictimView) -> Iterable[str]:
    for label, teeth in odontogram_quadrants(victim):
        yield f"{label}: {teeth}"


def _evidence_block(items) -> str:
    if not items:
        return NONE_REGISTERED
    lines = []
    for item in items:
        values = evidence_variables(item)
        lines.append(
            f"- {values['evidence_title']} (category: {values['evidence_category']}; "
            f"description: {values['evidence_description']}; "
            f"collected by: {values['evidence_collector']}; "
            f"file type: {values['evidence_mime_type']}; "
            f"location: {values['evidence_location']})"
        )
    return "\n".join(lines)


def _victims_block(items) -> str:
    if not items:
        return NONE_REGISTERED
    lines = []
    for victim in items:
        lines.append(
            f"- NIC {or_na(victim.nic)}: name {or_na(victim.name)}; gender {or_na(victim.gender)}; "
            f"age {or_na(victim.age)}; ethnicity {or_na(victim.ethnicity)}; "
            f"anatomical note: {or_na(victim.anatomical_note)}"
        )
        lines.extend(f"  {line}" for line in odontogram_lines(victim))
    return "\n".join(lines)


class PromptBuilder:
    """Builds generation prompts and fallback narratives from report subjects"""

    def __init__(self, templates_dir: Optional[Path] = None):
        """
        Args:
            templates_dir: optional directory of <name>.txt files overriding
                the built-in templates
        """
        self.templates: Dict[str, str] = dict(DEFAULT_TEMPLATES)
        if templates_dir is not None:
            self._load_templates(Path(templates_dir))

    def _load_templates(self, templates_dir: Path):
        if not templates_dir.exists():
            logger.warning(f"Template directory not found: {templates_dir}")
            return

        for template_file in templates_dir.glob("*.txt"):
            with open(template_file, 'r', encoding='utf-8') as f:
                self.templates[template_file.stem] = f.read()
            logger.debug(f"Template loaded: {template_file.stem}")

    def variables(self, subject: ReportSubject) -> Dict[str, Any]:
        """Template variables for a subject"""
        if isinstance(subject, CaseSubject):
            variables = case_variables(subject.case)
            variables.update({
                "evidence_block": _evidence_block(subject.evidence),
                "victims_block": _victims_block(subject.victims),
                "evidence_count": len(subject.evidence),
                "victim_count": len(subject.victims),
            })
            return variables

        if isinstance(subject, EvidenceSubject):
            variables = case_variables(subject.case)
            variables.update(evidence_variables(subject.evidence))
            return variables

        raise TypeError(f"Unsupported report subject: {type(subject).__name__}")

    def _template_name(self, subject: ReportSubject) -> str:
        if isinstance(subject, CaseSubject):
            return "case_report"
        if isinstance(subject, EvidenceSubject):
            return "evidence_laudo"
        raise TypeError(f"Unsupported report subject: {type(subject).__name__}")

    def build_prompt(self, subject: ReportSubject) -> str:
        """
        Build the generation prompt

        Args:
            subject: report subject

        Returns:
            Prompt text with N/A in place of missing optional fields
        """
        return self.templates[self._template_name(subject)].format(**self.variables(subject))

    def build_fallback(self, subject: ReportSubject) -> str:
        """
        Build the deterministic narrative used when generation fails

        Args:
            subject: report subject

        Returns:
            Narrative built only from the subject's stored fields
        """
        name = f"{self._template_name(subject)}_fallback"
        return self.templates[name].format(**self.variables(subject))

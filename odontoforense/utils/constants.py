"""
Constants and closed enumerations
"""
from enum import Enum
from typing import FrozenSet


# ============================================================================
# Users
# ============================================================================

class UserRole(str, Enum):
    """User role Enum"""
    ADMIN = "admin"
    ASSISTANT = "assistant"
    EXAMINER = "examiner"


# Roles an admin may assign when registering users
REGISTRABLE_ROLES: FrozenSet[str] = frozenset({UserRole.ASSISTANT.value, UserRole.EXAMINER.value})

# Roles allowed to create, update and delete cases
CASE_MANAGER_ROLES: FrozenSet[str] = frozenset({UserRole.ADMIN.value, UserRole.ASSISTANT.value})


# ============================================================================
# Cases
# ============================================================================

class CaseCategory(str, Enum):
    """Forensic examination type Enum"""
    BODILY_INJURY = "bodily_injury"
    DENTAL_ARCH_IDENTIFICATION = "dental_arch_identification"
    AGE_ESTIMATION = "age_estimation"
    BITE_MARK_EXAMINATION = "bite_mark_examination"
    DNA_COLLECTION = "dna_collection"


class CaseStatus(str, Enum):
    """Case lifecycle Enum"""
    OPEN = "open"
    CLOSED = "closed"
    ARCHIVED = "archived"


# ============================================================================
# Evidence
# ============================================================================

class EvidenceCategory(str, Enum):
    """Evidence category Enum"""
    RADIOGRAPH = "radiograph"
    ODONTOGRAM = "odontogram"
    OTHER = "other"


# MIME types embedded inline when rendering an evidence laudo
EMBEDDABLE_IMAGE_TYPES: FrozenSet[str] = frozenset({"image/jpeg", "image/png"})


# ============================================================================
# Victims
# ============================================================================

UNIDENTIFIED = "unidentified"


class Ethnicity(str, Enum):
    """Victim ethnicity Enum"""
    WHITE = "white"
    BLACK = "black"
    BROWN = "brown"
    YELLOW = "yellow"
    INDIGENOUS = "indigenous"
    UNIDENTIFIED = "unidentified"


ODONTOGRAM_QUADRANTS = (
    ("upper_left", "Upper left"),
    ("upper_right", "Upper right"),
    ("lower_left", "Lower left"),
    ("lower_right", "Lower right"),
)

NIC_MAX_ATTEMPTS = 100


# ============================================================================
# Reports and audit
# ============================================================================

class ReportKind(str, Enum):
    """Kind of expert document; the value prefixes generated filenames"""
    REPORT = "report"
    LAUDO = "laudo"


class AuditAction(str, Enum):
    """Audit action labels"""
    REPORT_CREATED = "Report Created"
    REPORT_SIGNED = "Report Signed"
    LAUDO_CREATED = "Laudo Created"
    LAUDO_SIGNED = "Laudo Signed"


NONE_REGISTERED = "None registered."

"""
Victim model
"""
from sqlalchemy import Column, String, Integer, Text, DateTime, ForeignKey, JSON
from odontoforense.db.base import BaseModel
from odontoforense.utils.constants import UNIDENTIFIED, ODONTOGRAM_QUADRANTS
from odontoforense.utils.helpers import generate_id, utcnow


def empty_odontogram():
    return {key: [] for key, _ in ODONTOGRAM_QUADRANTS}


class Victim(BaseModel):
    """Person tied to a case, possibly unidentified, with a dental chart"""
    __tablename__ = "victims"

    id = Column(String(32), primary_key=True, default=generate_id)
    case_id = Column(String(32), ForeignKey("cases.id"), nullable=False, index=True)
    nic = Column(String(8), nullable=False, unique=True)
    name = Column(String(255), nullable=False, default=UNIDENTIFIED)
    gender = Column(String(50), nullable=False, default=UNIDENTIFIED)
    age = Column(Integer, nullable=True)
    cpf = Column(String(14), nullable=False, default=UNIDENTIFIED)
    address = Column(String(500), nullable=False, default=UNIDENTIFIED)
    ethnicity = Column(String(20), nullable=False, default=UNIDENTIFIED)
    # {"upper_left": [...], "upper_right": [...], "lower_left": [...], "lower_right": [...]}
    odontogram = Column(JSON, nullable=False, default=empty_odontogram)
    anatomical_note = Column(Text, nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

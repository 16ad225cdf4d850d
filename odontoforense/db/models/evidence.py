"""
Evidence model
"""
from sqlalchemy import Column, String, Float, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from odontoforense.db.base import BaseModel
from odontoforense.utils.helpers import generate_id, utcnow


class Evidence(BaseModel):
    """Collected material (stored file plus metadata) tied to a case"""
    __tablename__ = "evidence"

    id = Column(String(32), primary_key=True, default=generate_id)
    case_id = Column(String(32), ForeignKey("cases.id"), nullable=False, index=True)
    title = Column(String(255), nullable=False)
    blob_id = Column(String(32), nullable=False, index=True)
    filename = Column(String(255), nullable=False)
    mime_type = Column(String(100), nullable=False)
    category = Column(String(20), nullable=False)
    description = Column(Text)
    longitude = Column(Float)
    latitude = Column(Float)
    collected_by = Column(String(32), ForeignKey("users.id"), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

    # Relationships
    collector = relationship("User")

    @property
    def coordinates(self):
        """[longitude, latitude] or None"""
        if self.longitude is None or self.latitude is None:
            return None
        return [self.longitude, self.latitude]

    def to_json(self):
        result = super().to_json()
        result["location"] = {"type": "Point", "coordinates": self.coordinates} if self.coordinates else None
        return result

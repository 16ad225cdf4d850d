"""
Blob storage models (file header plus ordered chunks)
"""
from sqlalchemy import Column, BigInteger, Integer, String, DateTime, ForeignKey, LargeBinary, JSON, UniqueConstraint
from odontoforense.db.base import BaseModel
from odontoforense.utils.helpers import generate_id, utcnow


class BlobFile(BaseModel):
    """Stored binary object header"""
    __tablename__ = "blob_files"

    id = Column(String(32), primary_key=True, default=generate_id)
    filename = Column(String(255), nullable=False)
    length = Column(BigInteger, nullable=False)
    chunk_size = Column(Integer, nullable=False)
    # "metadata" is reserved on declarative classes
    file_metadata = Column("metadata", JSON)
    upload_date = Column(DateTime, nullable=False, default=utcnow)


class BlobChunk(BaseModel):
    """One slice of a stored binary object"""
    __tablename__ = "blob_chunks"
    __table_args__ = (
        UniqueConstraint("file_id", "n", name="uq_blob_chunk_order"),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    file_id = Column(String(32), ForeignKey("blob_files.id", ondelete="CASCADE"), nullable=False, index=True)
    n = Column(Integer, nullable=False)
    data = Column(LargeBinary, nullable=False)

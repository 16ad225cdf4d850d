"""
User model
"""
from sqlalchemy import Column, String, DateTime
from odontoforense.db.base import BaseModel
from odontoforense.utils.helpers import generate_id, utcnow


class User(BaseModel):
    """Platform users (admins, assistants and examiners)"""
    __tablename__ = "users"
    __private_columns__ = ("password_hash",)

    id = Column(String(32), primary_key=True, default=generate_id)
    cpf = Column(String(14), nullable=False, unique=True)
    email = Column(String(255), nullable=False, unique=True)
    name = Column(String(255), nullable=False)
    role = Column(String(20), nullable=False)
    password_hash = Column(String(255), nullable=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)

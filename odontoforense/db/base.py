"""
Declarative base for database models
"""
from datetime import datetime

from sqlalchemy.orm import declarative_base

Base = declarative_base()


class BaseModel(Base):
    """Base model class"""
    __abstract__ = True

    # Columns left out of to_json (e.g. credentials)
    __private_columns__ = ()

    def to_json(self):
        """Model as a JSON serialisable dictionary"""
        result = {}
        for column in self.__mapper__.column_attrs:
            if column.key in self.__private_columns__:
                continue
            value = getattr(self, column.key)
            if isinstance(value, datetime):
                result[column.key] = value.isoformat()
            else:
                result[column.key] = value
        return result

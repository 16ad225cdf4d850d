"""
Create the first admin user

Usage:
    python scripts/create_admin.py <cpf> <email> <name> <password>
"""
import sys
import os

# Project root on the Python path
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from odontoforense.db.connection import DatabaseManager
from odontoforense.services.user_service import UserService
from odontoforense.utils.constants import UserRole
from odontoforense.utils.exceptions import ValidationError
from odontoforense.utils.logger import setup_logging, get_logger

setup_logging()
logger = get_logger(__name__)


def create_admin(cpf: str, email: str, name: str, password: str) -> str:
    """Create the tables if needed and insert an admin user"""
    db_manager = DatabaseManager()
    try:
        db_manager.create_all()
        session = db_manager.get_session()
        try:
            user = UserService(session).create_user(
                cpf=cpf,
                email=email,
                name=name,
                role=UserRole.ADMIN.value,
                password=password,
            )
            return user.id
        finally:
            session.close()
    finally:
        db_manager.close()


if __name__ == "__main__":
    if len(sys.argv) != 5:
        print(__doc__)
        sys.exit(1)

    try:
        user_id = create_admin(*sys.argv[1:])
    except ValidationError as e:
        logger.error(f"Admin not created: {e.message}")
        sys.exit(1)

    print(f"Admin created: {user_id}")

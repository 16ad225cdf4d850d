"""
Dashboard aggregates
"""
from typing import Any, Dict

from sqlalchemy import func
from sqlalchemy.orm import Session, joinedload

from odontoforense.db.models import Case, User
from odontoforense.utils.constants import UserRole
from odontoforense.utils.helpers import NOT_AVAILABLE

RECENT_CASES_LIMIT = 5


def build_summary(session: Session) -> Dict[str, Any]:
    """
    Case counts for the dashboard

    Returns:
        total_cases, total_examiners, cases_by_category, recent_cases and
        cases_by_examiner
    """
    total_cases = session.query(func.count(Case.id)).scalar()
    total_examiners = (
        session.query(func.count(User.id))
        .filter(User.role == UserRole.EXAMINER.value)
        .scalar()
    )

    cases_by_category = {
        category: count
        for category, count in session.query(Case.category, func.count(Case.id)).group_by(Case.category)
    }

    recent = (
        session.query(Case)
        .options(joinedload(Case.examiner))
        .order_by(Case.created_at.desc())
        .limit(RECENT_CASES_LIMIT)
        .all()
    )
    recent_cases = [
        {
            "id": case.id,
            "name": case.name,
            "category": case.category,
            "examiner": case.examiner.name if case.examiner else NOT_AVAILABLE,
            "opened_at": case.opened_at.isoformat() if case.opened_at else None,
        }
        for case in recent
    ]

    examiner_rows = (
        session.query(User.id, User.name, func.count(Case.id))
        .outerjoin(Case, Case.examiner_id == User.id)
        .filter(User.role == UserRole.EXAMINER.value)
        .group_by(User.id, User.name)
        .order_by(User.name)
        .all()
    )
    cases_by_examiner = [
        {"examiner_id": examiner_id, "name": name, "cases": count}
        for examiner_id, name, count in examiner_rows
    ]

    return {
        "total_cases": total_cases,
        "total_examiners": total_examiners,
        "cases_by_category": cases_by_category,
        "recent_cases": recent_cases,
        "cases_by_examiner": cases_by_examiner,
    }

"""Shared skill catalogue helpers."""

from sqlalchemy import text
from sqlalchemy.orm import Session


def get_or_create_skill(db: Session, skill_name: str, category: str = "uncategorized") -> int:
    """Return skill_id for `skill_name`, inserting it into the catalogue if new."""
    result = db.execute(
        text("""
            INSERT INTO skills (skill_name, category) VALUES (:name, :category)
            ON CONFLICT (skill_name) DO UPDATE SET skill_name = EXCLUDED.skill_name
            RETURNING skill_id
        """),
        {"name": skill_name.strip(), "category": category}
    )
    return result.fetchone()[0]

"""
SQLAlchemy ORM model for projects.

Only the header fields the budget report reads are mapped: name, external
project code, number of rooms, and the project-level contingency percentage
used when an estimate line carries none of its own.
"""

from decimal import Decimal
from typing import Any

from sqlalchemy import Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from budget_kernel.db.base import TrackedBase, as_record_id


class ProjectModel(TrackedBase):
    """A construction project owned by a corporation."""

    __tablename__ = "projects"

    __table_args__ = (
        Index("idx_project_corporation", "corporation_id"),
    )

    corporation_id: Mapped[str] = mapped_column(String(64), nullable=False)
    project_name: Mapped[str] = mapped_column(String(255), nullable=False)
    project_code: Mapped[str | None] = mapped_column(String(100), nullable=True)
    no_of_rooms: Mapped[int | None] = mapped_column(Integer, nullable=True)
    contingency_percentage: Mapped[Decimal | None] = mapped_column(nullable=True)

    def to_record(self) -> dict[str, Any]:
        return {
            "uuid": as_record_id(self.id),
            "corporation_uuid": self.corporation_id,
            "project_name": self.project_name,
            "project_id": self.project_code,
            "no_of_rooms": self.no_of_rooms,
            "contingency_percentage": self.contingency_percentage,
        }

    def __repr__(self) -> str:
        return f"<ProjectModel {self.project_name}>"

"""User model."""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from teacher_portal.models.base import Base, IntegerPrimaryKeyMixin, TimestampMixin


class User(Base, IntegerPrimaryKeyMixin, TimestampMixin):
    __tablename__ = "users"

    email: Mapped[str] = mapped_column(String(320), unique=True, nullable=False, index=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), nullable=False, default="teacher")  # teacher | admin | student
    campus: Mapped[str] = mapped_column(String(32), nullable=False, default="dubai")

    # Relationships
    events: Mapped[list["Event"]] = relationship("Event", back_populates="creator")

    def __repr__(self) -> str:
        return f"<User {self.id} role={self.role}>"

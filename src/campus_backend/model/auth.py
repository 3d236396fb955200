from sqlalchemy import CheckConstraint, Column, String

from .base import Base, TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = 'user'
    __table_args__ = (
        CheckConstraint("role IN ('admin', 'teacher', 'student')", name='ck_user_role'),
    )

    name = Column(String(255), nullable=False)
    email = Column(String(320), unique=True, nullable=False)
    password = Column(String(1024), nullable=False)
    role = Column(String(16), nullable=False, default='student')
    # Teacher or student record the account acts as, empty for admins
    related_id = Column(String(36))

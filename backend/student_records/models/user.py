"""
User model - accounts that can sign in to the records dashboard.

Passwords are stored exactly as submitted; login compares them by equality.
"""

from sqlalchemy import Column, Integer, Text
from student_records.database import Base


class User(Base):
    """SQLAlchemy model for the users table."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True,
                doc="Auto-assigned user identifier")
    name = Column(Text, doc="Display name")
    email = Column(Text, unique=True,
                   doc="Login email, unique across users (compared as stored)")
    password = Column(Text,
                      doc="Password in the form it was submitted")

    def to_dict(self) -> dict:
        """Public projection; the password never leaves the service."""
        return {"id": self.id, "name": self.name, "email": self.email}

    def __repr__(self):
        return f"<User(id={self.id}, email='{self.email}')>"

"""
Student model - one row per enrolled student.

The `idno` is supplied by the client and is the primary key. `photo` holds
the bare filename of a file in the upload directory, or NULL.
"""

from sqlalchemy import Column, Integer, Text
from student_records.database import Base


class Student(Base):
    """SQLAlchemy model for the students table."""
    __tablename__ = "students"

    idno = Column(Text, primary_key=True,
                  doc="Client-supplied student number")
    lastname = Column(Text, nullable=False)
    firstname = Column(Text, nullable=False)
    course = Column(Text, nullable=False,
                    doc="Program code, e.g. BSIT or BSCS (not enforced)")
    level = Column(Integer, nullable=False,
                   doc="Year level 1-4 (range not enforced)")
    photo = Column(Text, nullable=True,
                   doc="Filename in the upload directory")

    def __repr__(self):
        return f"<Student(idno={self.idno}, name='{self.lastname}, {self.firstname}')>"

from student_records.models.user import User
from student_records.models.student import Student

__all__ = ["User", "Student"]

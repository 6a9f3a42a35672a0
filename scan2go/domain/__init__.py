"""Domain package - all ORM models are imported here so Alembic autogenerate detects them.

Folder intent:
  vendor.py   - Vendor Directory
  student.py  - Student Registry and the per-student meal history list
  meal.py     - Meal Ledger (immutable claim events)
  user.py     - Login accounts and roles
  mixins.py   - Shared IdMixin, TimestampMixin
"""

from scan2go.domain.meal import MealRecord
from scan2go.domain.student import Student, StudentMealHistory
from scan2go.domain.user import User
from scan2go.domain.vendor import Vendor

__all__ = [
    "MealRecord",
    "Student",
    "StudentMealHistory",
    "User",
    "Vendor",
]

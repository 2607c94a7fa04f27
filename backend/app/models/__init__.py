"""ORM Models — SQLAlchemy declarative models for all domain entities.

Invariants:
    - All models inherit from Base (db/base.py)
    - User is the root; case studies, favorites, profiles and inquiries reference users.id

Design Decisions:
    - One file per entity for locality
    - All models imported here so Base.metadata is complete before create_all
      or Alembic autogenerate runs
"""

from app.models.user import User  # noqa: F401
from app.models.user_profile import UserProfile  # noqa: F401
from app.models.case_study import CaseStudy  # noqa: F401
from app.models.favorite import Favorite  # noqa: F401
from app.models.app_setting import AppSetting  # noqa: F401
from app.models.inquiry import Inquiry  # noqa: F401

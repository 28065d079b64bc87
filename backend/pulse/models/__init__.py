"""ORM Models — SQLAlchemy declarative models.

Invariants:
    - All models inherit from Base (db/base.py)
    - Every row is scoped by academy_id

Design Decisions:
    - All models imported here so metadata is complete before create_all / autogenerate
"""

from pulse.models.academy_collection import AcademyCollection  # noqa: F401

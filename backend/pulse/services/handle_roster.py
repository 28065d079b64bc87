"""Roster Commands — students and class enrollment (4 methods).

Invariants:
    - Every command requires MASTER
    - Enrollment is mirrored on both sides (class.student_ids, student.class_ids)
    - Enroll/unenroll are idempotent
    - New students start active with balance 0; balance is then derived only
"""

import uuid

from pulse.core.academy_state import ClassDefinition, Student
from pulse.core.domain_types import ZERO, Collection, StudentStatus
from pulse.core.enforce_capabilities import ActorContext, require_master
from pulse.core.errors import ErrorContext, ResourceNotFoundError
from pulse.services.academy_cache import AcademyCache
from pulse.services.collection_writer import CollectionWriter


class RosterCommands:
    """Student and enrollment commands over one academy cache."""

    def __init__(self, cache: AcademyCache, writer: CollectionWriter):
        self.cache = cache
        self.writer = writer

    def _lookup(self, student_id: str, class_id: str | None = None):
        snapshot = self.cache.snapshot
        ctx = ErrorContext(academy_id=self.cache.academy_id)
        student = snapshot.find_student(student_id)
        if student is None:
            raise ResourceNotFoundError("Student", student_id, ctx)
        cls: ClassDefinition | None = None
        if class_id is not None:
            cls = snapshot.find_class(class_id)
            if cls is None:
                raise ResourceNotFoundError("Class", class_id, ctx)
        return student, cls

    async def add_student(self, ctx: ActorContext, name: str, student_id: str | None = None) -> Student:
        require_master(ctx, self.cache.academy_id, "add_student")
        student = Student(
            id=student_id or f"stu-{uuid.uuid4()}",
            academy_id=self.cache.academy_id,
            name=name,
            status=StudentStatus.ACTIVE,
            balance=ZERO,
        )
        snapshot = self.cache.snapshot
        snapshot.students = [s for s in snapshot.students if s.id != student.id] + [student]
        await self.writer.commit({Collection.STUDENTS})
        return self.cache.snapshot.find_student(student.id)

    async def set_student_status(
        self, ctx: ActorContext, student_id: str, status: StudentStatus,
    ) -> Student:
        """Manual status change (e.g. exam_ready, inactive). Debt still wins on next reconcile."""
        require_master(ctx, self.cache.academy_id, "set_student_status")
        student, _ = self._lookup(student_id)
        student.status = status
        await self.writer.commit({Collection.STUDENTS})
        return self.cache.snapshot.find_student(student_id)

    async def enroll(self, ctx: ActorContext, student_id: str, class_id: str) -> None:
        require_master(ctx, self.cache.academy_id, "enroll")
        student, cls = self._lookup(student_id, class_id)
        if student_id not in cls.student_ids:
            cls.student_ids.append(student_id)
        if class_id not in student.class_ids:
            student.class_ids.append(class_id)
        await self.writer.commit({Collection.CLASSES, Collection.STUDENTS})

    async def unenroll(self, ctx: ActorContext, student_id: str, class_id: str) -> None:
        require_master(ctx, self.cache.academy_id, "unenroll")
        student, cls = self._lookup(student_id, class_id)
        cls.student_ids = [s for s in cls.student_ids if s != student_id]
        student.class_ids = [c for c in student.class_ids if c != class_id]
        await self.writer.commit({Collection.CLASSES, Collection.STUDENTS})

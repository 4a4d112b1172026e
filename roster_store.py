import logging
from collections import Counter
from typing import Dict, Iterable, List, Optional, Tuple

from models import AuditReport, ClassGroup, Hall, Student


class RosterStore:
    """
    Holds the class groups and their unseated students.

    The snapshot is a tuple of immutable ClassGroup records; every
    mutation builds a new tuple and swaps it in.
    """

    def __init__(self, classes: Iterable[ClassGroup] = ()):
        self.logger = logging.getLogger(__name__)
        self._classes: Tuple[ClassGroup, ...] = ()
        self._enrollment: Dict[str, int] = {}
        self.load(classes)

    # Snapshot access

    @property
    def classes(self) -> Tuple[ClassGroup, ...]:
        return self._classes

    def get(self, class_name: str) -> Optional[ClassGroup]:
        return next((c for c in self._classes if c.name == class_name), None)

    def enrollment(self, class_name: str) -> int:
        return self._enrollment.get(class_name, 0)

    # Mutations

    def load(self, classes: Iterable[ClassGroup]) -> None:
        """Replace the whole roster, e.g. after an import."""
        self._classes = tuple(classes)
        self._enrollment = {c.name: len(c.students) for c in self._classes}

    def replace_students(self, class_name: str, students: Iterable[Student]) -> bool:
        group = self.get(class_name)
        if group is None:
            self.logger.warning(f"Class {class_name} not found in roster")
            return False
        self._swap(group.with_students(students))
        return True

    def add_student(self, class_name: str, register_number: str,
                    seated: Iterable[Student] = ()) -> bool:
        """
        Add a new unseated student. Register numbers already listed in the
        class, or already seated for it (pass the halls' seated students),
        are rejected.
        """
        register_number = str(register_number).strip()
        group = self.get(class_name)
        if group is None or not register_number:
            self.logger.warning(f"Cannot add {register_number!r} to unknown class {class_name}")
            return False
        if any(s.register_number == register_number for s in group.students):
            self.logger.warning(f"{register_number} already listed in {class_name}")
            return False
        if Student(register_number, class_name) in set(seated):
            self.logger.warning(f"{register_number} of {class_name} is already seated")
            return False
        self._swap(group.with_students(group.students + (Student(register_number, class_name),)))
        self._enrollment[class_name] = self._enrollment.get(class_name, 0) + 1
        return True

    def remove_student(self, class_name: str, register_number: str) -> bool:
        """Remove an unseated student from the class entirely."""
        group = self.get(class_name)
        if group is None:
            return False
        remaining = [s for s in group.students if s.register_number != register_number]
        if len(remaining) == len(group.students):
            return False
        self._swap(group.with_students(remaining))
        self._enrollment[class_name] -= len(group.students) - len(remaining)
        return True

    def return_students(self, students: Iterable[Student]) -> int:
        """
        Append students back to the end of their class lists.
        Students whose class no longer exists are discarded.
        """
        by_class: Dict[str, List[Student]] = {}
        for student in students:
            by_class.setdefault(student.class_name, []).append(student)
        if not by_class:
            return 0

        returned = 0
        updated = []
        for group in self._classes:
            returnees = by_class.pop(group.name, [])
            if returnees:
                group = group.with_students(group.students + tuple(returnees))
                returned += len(returnees)
            updated.append(group)
        self._classes = tuple(updated)

        for class_name, orphans in by_class.items():
            self.logger.warning(
                f"Discarded {len(orphans)} returned students of unknown class {class_name}"
            )
        return returned

    def _swap(self, group: ClassGroup) -> None:
        self._classes = tuple(group if c.name == group.name else c for c in self._classes)

    # Consistency

    def audit(self, halls: Iterable[Hall]) -> AuditReport:
        """
        Check that every class's available + seated students add up to its
        enrollment and that nobody is both seated and available.
        """
        errors = []
        seated = Counter()
        seated_keys = set()
        for hall in halls:
            for student in hall.seated_students():
                seated[student.class_name] += 1
                seated_keys.add(student)

        for group in self._classes:
            expected = self.enrollment(group.name)
            actual = len(group.students) + seated[group.name]
            if actual != expected:
                errors.append(
                    f"Class {group.name}: {len(group.students)} available + "
                    f"{seated[group.name]} seated != enrollment {expected}"
                )
            for student in group.students:
                if student in seated_keys:
                    errors.append(
                        f"Class {group.name}: {student.register_number} is both seated and available"
                    )

        return AuditReport(is_consistent=not errors, errors=errors)

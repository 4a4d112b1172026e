# In-memory data model for the seating planner.
# Every record is a frozen dataclass; stores replace records wholesale
# instead of mutating them, so a snapshot handed out earlier never changes.

from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Tuple


@dataclass(frozen=True)
class Student:
    register_number: str
    class_name: str

    def to_dict(self) -> Dict:
        return {'register_number': self.register_number, 'class_name': self.class_name}


@dataclass(frozen=True)
class ClassGroup:
    """A named pool of students that are not seated yet."""
    name: str
    students: Tuple[Student, ...] = ()
    color: str = ""

    def with_students(self, students) -> 'ClassGroup':
        return replace(self, students=tuple(students))

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'color': self.color,
            'count': len(self.students),
            'students': [s.register_number for s in self.students],
        }


@dataclass(frozen=True)
class Desk:
    id: str
    row: int
    col: int
    students: Tuple[Optional[Student], ...] = ()

    @classmethod
    def empty(cls, desk_id: str, row: int, col: int, capacity: int) -> 'Desk':
        return cls(id=desk_id, row=row, col=col, students=(None,) * capacity)

    def with_seat(self, seat_index: int, student: Optional[Student]) -> 'Desk':
        seats = list(self.students)
        seats[seat_index] = student
        return replace(self, students=tuple(seats))

    def occupants(self) -> List[Student]:
        return [s for s in self.students if s is not None]

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'row': self.row,
            'col': self.col,
            'seats': [s.to_dict() if s else None for s in self.students],
        }


@dataclass(frozen=True)
class HallConfig:
    """Operator input for creating or resizing a hall."""
    name: str
    rows: int
    cols: int
    capacity: int

    def validate(self, max_capacity: Optional[int] = None) -> List[str]:
        """
        Check the configuration before any desk is generated.
        Returns a list of problems found (empty when valid).
        """
        errors = []
        if not str(self.name).strip():
            errors.append("Hall name is required")
        for label, value in (('rows', self.rows), ('cols', self.cols), ('capacity', self.capacity)):
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                errors.append(f"{label} must be a whole number of at least 1 (got {value!r})")
        if max_capacity is not None and isinstance(self.capacity, int) and self.capacity > max_capacity:
            errors.append(f"capacity cannot exceed {max_capacity} seats per desk (got {self.capacity})")
        return errors

    def to_dict(self) -> Dict:
        return {'name': self.name, 'rows': self.rows, 'cols': self.cols, 'capacity': self.capacity}


@dataclass(frozen=True)
class Hall:
    id: str
    name: str
    rows: int
    cols: int
    desk_capacity: int
    desks: Tuple[Desk, ...] = ()

    @classmethod
    def build(cls, hall_id: str, config: HallConfig) -> 'Hall':
        """Generate an empty hall, desks in row-major order."""
        desks = []
        for r in range(config.rows):
            for c in range(config.cols):
                desks.append(Desk.empty(f"{hall_id}-{r}-{c}", r + 1, c + 1, config.capacity))
        return cls(
            id=hall_id,
            name=config.name,
            rows=config.rows,
            cols=config.cols,
            desk_capacity=config.capacity,
            desks=tuple(desks),
        )

    @property
    def total_seats(self) -> int:
        return self.rows * self.cols * self.desk_capacity

    def config(self) -> HallConfig:
        return HallConfig(self.name, self.rows, self.cols, self.desk_capacity)

    def find_desk(self, desk_id: str) -> Optional[int]:
        for index, desk in enumerate(self.desks):
            if desk.id == desk_id:
                return index
        return None

    def desk_at(self, row: int, col: int) -> Optional[Desk]:
        return next((d for d in self.desks if d.row == row and d.col == col), None)

    def seated_students(self) -> List[Student]:
        return [s for desk in self.desks for s in desk.occupants()]

    def class_names(self) -> List[str]:
        """Distinct classes currently seated, sorted."""
        return sorted({s.class_name for s in self.seated_students()})

    def with_desks(self, desks) -> 'Hall':
        return replace(self, desks=tuple(desks))

    def cleared(self) -> 'Hall':
        return self.with_desks(
            replace(d, students=(None,) * self.desk_capacity) for d in self.desks
        )

    def summary(self) -> Dict:
        seated = len(self.seated_students())
        total = self.total_seats
        return {
            'hall_id': self.id,
            'name': self.name,
            'layout': f"{self.rows}×{self.cols}×{self.desk_capacity}",
            'classes': self.class_names(),
            'total_strength': seated,
            'total_seats': total,
            'empty_seats': total - seated,
            'utilization': round(seated / total * 100, 1) if total else 0,
        }

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'name': self.name,
            'rows': self.rows,
            'cols': self.cols,
            'desk_capacity': self.desk_capacity,
            'desks': [d.to_dict() for d in self.desks],
            'summary': self.summary(),
        }


@dataclass(frozen=True)
class SeatRef:
    """Address of one seat slot: (hall, desk, seat index)."""
    hall_id: str
    desk_id: str
    seat_index: int


@dataclass(frozen=True)
class ExamDetails:
    college_name: str
    department: str
    exam_date: str  # ISO YYYY-MM-DD

    @property
    def display_date(self) -> str:
        """DD-MM-YYYY as printed on the seating sheets."""
        return '-'.join(reversed(self.exam_date.split('-')))

    def to_dict(self) -> Dict:
        return {
            'college_name': self.college_name,
            'department': self.department,
            'exam_date': self.exam_date,
        }


@dataclass
class AuditReport:
    """Result of checking the seated/available partition."""
    is_consistent: bool
    errors: List[str] = field(default_factory=list)

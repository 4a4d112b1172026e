import re
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from models import ClassGroup, Desk, Hall, Student

MIDDLE_SEAT_CAPACITY = 3

_DIGITS = re.compile(r'(\d+)')


def natural_key(register_number: str) -> Tuple:
    """
    Sort key that compares digit runs numerically, so "R9" < "R10".
    Text parts compare case-insensitively.
    """
    parts = _DIGITS.split(str(register_number))
    return tuple(
        (0, int(part), '') if part.isdigit() else (1, 0, part.lower())
        for part in parts if part != ''
    )


def sort_by_register_number(students: Iterable[Student]) -> List[Student]:
    return sorted(students, key=lambda s: natural_key(s.register_number))


def seat_fill_order(capacity: int) -> List[int]:
    """Both ends before the middle on 3-seat desks, left to right otherwise."""
    if capacity == MIDDLE_SEAT_CAPACITY:
        return [0, 2, 1]
    return list(range(capacity))


def column_major(desks: Iterable[Desk]) -> List[Desk]:
    return sorted(desks, key=lambda d: (d.col, d.row))


class PlacementStatus(Enum):
    COMPLETE = 'complete'
    PARTIAL = 'partial'
    ZERO_PLACEMENT = 'zero_placement'
    NO_CANDIDATES = 'no_candidates'


@dataclass(frozen=True)
class PlacementResult:
    hall: Hall
    remaining: Tuple[Student, ...]
    placed_count: int
    status: PlacementStatus


@dataclass(frozen=True)
class MiddleSeatResult:
    hall: Hall
    remaining_b: Tuple[Student, ...]
    # Seated students of the first class that found no side/middle seat.
    # They are not returned to any pool.
    dropped_a: Tuple[Student, ...] = field(default_factory=tuple)


class SeatingAlgorithm:
    def __init__(self):
        self.logger = logging.getLogger(__name__)

    def place_class(self, hall: Hall, class_group: ClassGroup) -> PlacementResult:
        """
        Fill empty seats of a hall with one class, column by column.

        Candidates are taken in register-number order. A candidate is not put
        next to a student of the same class on the same desk; the slot is left
        empty and the candidate waits for the next eligible slot.

        Returns:
            PlacementResult with the updated hall and the students left over.
        """
        queue = sort_by_register_number(class_group.students)
        initial_count = len(queue)
        if not queue:
            return PlacementResult(hall, (), 0, PlacementStatus.NO_CANDIDATES)

        capacity = hall.desk_capacity
        seats: Dict[str, List[Optional[Student]]] = {d.id: list(d.students) for d in hall.desks}
        ordered = column_major(hall.desks)

        for col in range(1, hall.cols + 1):
            desks_in_col = [d for d in ordered if d.col == col]
            for seat_idx in seat_fill_order(capacity):
                for desk in desks_in_col:
                    if not queue:
                        break
                    slots = seats[desk.id]
                    if slots[seat_idx] is not None:
                        continue
                    if self._has_same_class_neighbour(slots, seat_idx, queue[0].class_name):
                        continue
                    slots[seat_idx] = queue.pop(0)

        placed = initial_count - len(queue)
        if placed == 0:
            self.logger.warning(
                f"No students of {class_group.name} could be placed in {hall.id}; "
                f"adjacent same-class constraints prevented assignment"
            )
            return PlacementResult(hall, tuple(queue), 0, PlacementStatus.ZERO_PLACEMENT)

        updated = hall.with_desks(
            Desk(id=d.id, row=d.row, col=d.col, students=tuple(seats[d.id])) for d in hall.desks
        )
        if queue:
            self.logger.warning(
                f"Placed {placed} students of {class_group.name} in {hall.id}. "
                f"{len(queue)} remaining due to constraints."
            )
            status = PlacementStatus.PARTIAL
        else:
            self.logger.info(f"Placed all {placed} students of {class_group.name} in {hall.id}")
            status = PlacementStatus.COMPLETE
        return PlacementResult(updated, tuple(queue), placed, status)

    def _has_same_class_neighbour(self, slots: Sequence[Optional[Student]],
                                  seat_idx: int, class_name: str) -> bool:
        for neighbour_idx in (seat_idx - 1, seat_idx + 1):
            if 0 <= neighbour_idx < len(slots):
                neighbour = slots[neighbour_idx]
                if neighbour is not None and neighbour.class_name == class_name:
                    return True
        return False

    def resolve_middle_seat(self, hall: Hall, class_a: str, class_b: str,
                            candidates_b: Iterable[Student], middle_class: str) -> MiddleSeatResult:
        """
        Re-lay a 3-seat hall holding only class_a so that class_b can join it.

        Both ends of each desk go to one class and the middle seat to the other,
        as chosen by the operator through middle_class. The hall is rebuilt
        from scratch: for each column, seat 0 is filled down the column, then
        seat 2, then seat 1.
        """
        if hall.desk_capacity != MIDDLE_SEAT_CAPACITY:
            raise ValueError(
                f"Middle seat layout needs {MIDDLE_SEAT_CAPACITY}-seat desks, "
                f"{hall.id} has {hall.desk_capacity}"
            )
        if middle_class not in (class_a, class_b):
            raise ValueError(f"Middle class must be {class_a} or {class_b}, got {middle_class}")

        list_a = sort_by_register_number(
            s for s in hall.seated_students() if s.class_name == class_a
        )
        list_b = sort_by_register_number(candidates_b)

        middle_queue, side_queue = (list_a, list_b) if middle_class == class_a else (list_b, list_a)

        seats: Dict[str, List[Optional[Student]]] = {
            d.id: [None] * MIDDLE_SEAT_CAPACITY for d in hall.desks
        }
        ordered = column_major(hall.desks)

        for col in range(1, hall.cols + 1):
            desks_in_col = [d for d in ordered if d.col == col]
            for seat_idx, queue in ((0, side_queue), (2, side_queue), (1, middle_queue)):
                for desk in desks_in_col:
                    if queue:
                        seats[desk.id][seat_idx] = queue.pop(0)

        updated = hall.with_desks(
            Desk(id=d.id, row=d.row, col=d.col, students=tuple(seats[d.id])) for d in hall.desks
        )

        # Whatever is left of each list after the pops
        remaining_b = tuple(list_b)
        dropped_a = tuple(list_a)
        if dropped_a:
            self.logger.warning(
                f"{len(dropped_a)} students of {class_a} found no seat in {hall.id} "
                f"and were dropped: {[s.register_number for s in dropped_a]}"
            )
        self.logger.info(
            f"Mixed {class_a} and {class_b} in {hall.id} with {middle_class} in the middle; "
            f"{len(remaining_b)} of {class_b} remaining"
        )
        return MiddleSeatResult(updated, remaining_b, dropped_a)

    def validate_seating_plan(self, halls: Iterable[Hall]) -> List[str]:
        """
        Report every pair of horizontally adjacent seats holding the same class.
        Manual moves may create these, so the result is advisory.
        """
        violations = []
        for hall in halls:
            for desk in hall.desks:
                for seat_idx in range(len(desk.students) - 1):
                    left = desk.students[seat_idx]
                    right = desk.students[seat_idx + 1]
                    if left and right and left.class_name == right.class_name:
                        violations.append(
                            f"Hall {hall.name}, Desk R{desk.row}C{desk.col}, seats "
                            f"{seat_idx}-{seat_idx + 1}: Same class {left.class_name} side by side"
                        )
        return violations


# Global wrapper functions for convenience
def place_class(hall: Hall, class_group: ClassGroup) -> PlacementResult:
    return seating_algorithm.place_class(hall, class_group)


def resolve_middle_seat(hall: Hall, class_a: str, class_b: str,
                        candidates_b: Iterable[Student], middle_class: str) -> MiddleSeatResult:
    return seating_algorithm.resolve_middle_seat(hall, class_a, class_b, candidates_b, middle_class)


# Global instance for import
seating_algorithm = SeatingAlgorithm()

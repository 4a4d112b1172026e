import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union

from hall_store import HallStore
from models import SeatRef, Student
from roster_store import RosterStore
from seat_mover import move_seat
from seating_algorithm import (
    MIDDLE_SEAT_CAPACITY, PlacementStatus, SeatingAlgorithm,
)


@dataclass(frozen=True)
class SeatDrop:
    """A seat dragged onto another seat."""
    source: SeatRef
    target: SeatRef


@dataclass(frozen=True)
class ClassDrop:
    """An unassigned class dragged onto a hall."""
    class_name: str
    hall_id: str


DropCommand = Union[SeatDrop, ClassDrop]


class OrchestratorState(Enum):
    IDLE = 'idle'
    AWAITING_MIDDLE_DECISION = 'awaiting_middle_decision'


class OutcomeStatus(Enum):
    COMPLETE = 'complete'
    PARTIAL = 'partial'
    ZERO_PLACEMENT = 'zero_placement'
    NO_CANDIDATES = 'no_candidates'
    MOVED = 'moved'
    UNRESOLVED = 'unresolved'
    AWAITING_DECISION = 'awaiting_decision'
    DECISION_PENDING = 'decision_pending'
    INVALID_DECISION = 'invalid_decision'
    CANCELLED = 'cancelled'


_PLACEMENT_TO_OUTCOME = {
    PlacementStatus.COMPLETE: OutcomeStatus.COMPLETE,
    PlacementStatus.PARTIAL: OutcomeStatus.PARTIAL,
    PlacementStatus.ZERO_PLACEMENT: OutcomeStatus.ZERO_PLACEMENT,
    PlacementStatus.NO_CANDIDATES: OutcomeStatus.NO_CANDIDATES,
}


@dataclass(frozen=True)
class PendingMiddleSeat:
    class_a: str
    class_b: str
    hall_id: str
    # Class B's students as they were when dropped
    candidates: Tuple[Student, ...] = ()

    def to_dict(self) -> Dict:
        return {'class_a': self.class_a, 'class_b': self.class_b, 'hall_id': self.hall_id}


@dataclass(frozen=True)
class DropOutcome:
    status: OutcomeStatus
    message: str = ""
    placed_count: int = 0
    remaining: Tuple[Student, ...] = ()
    dropped: Tuple[Student, ...] = ()
    pending: Optional[PendingMiddleSeat] = None

    def to_dict(self) -> Dict:
        return {
            'status': self.status.value,
            'message': self.message,
            'placed_count': self.placed_count,
            'remaining': [s.register_number for s in self.remaining],
            'dropped': [s.register_number for s in self.dropped],
            'pending': self.pending.to_dict() if self.pending else None,
        }


class SeatingOrchestrator:
    """
    Routes drop commands to the placement engine or the seat mutator and
    writes the results back into the stores.

    A class dropped on a 3-seat hall that holds exactly one other class needs
    the operator to pick which class takes the middle seat; until decide() or
    cancel() is called no further drop is accepted.
    """

    def __init__(self, roster: RosterStore, halls: HallStore,
                 algorithm: Optional[SeatingAlgorithm] = None):
        self.logger = logging.getLogger(__name__)
        self.roster = roster
        self.halls = halls
        self.algorithm = algorithm or SeatingAlgorithm()
        self.pending: Optional[PendingMiddleSeat] = None

    @property
    def state(self) -> OrchestratorState:
        if self.pending is not None:
            return OrchestratorState.AWAITING_MIDDLE_DECISION
        return OrchestratorState.IDLE

    def reject_if_pending(self, action: str) -> Optional[DropOutcome]:
        """
        DECISION_PENDING outcome while a middle seat decision is open, else None.
        Hall and roster edits go through this before touching the stores.
        """
        if self.pending is None:
            return None
        self.logger.warning(f"Rejected {action}: a middle seat decision is pending")
        return DropOutcome(
            OutcomeStatus.DECISION_PENDING,
            "Choose the middle seat class (or cancel) before changing anything else.",
            pending=self.pending,
        )

    def handle(self, command: DropCommand) -> DropOutcome:
        rejected = self.reject_if_pending(str(command))
        if rejected is not None:
            return rejected
        if isinstance(command, SeatDrop):
            return self._move(command)
        if isinstance(command, ClassDrop):
            return self._drop_class(command)
        raise TypeError(f"Unknown drop command: {command!r}")

    def _move(self, command: SeatDrop) -> DropOutcome:
        before = self.halls.halls
        after = move_seat(before, command.source, command.target)
        if after is before:  # unresolved reference
            return DropOutcome(OutcomeStatus.UNRESOLVED, "Seat not found")
        self.halls.replace_many(after)
        return DropOutcome(OutcomeStatus.MOVED, "Seats swapped")

    def _drop_class(self, command: ClassDrop) -> DropOutcome:
        hall = self.halls.get(command.hall_id)
        group = self.roster.get(command.class_name)
        if hall is None or group is None:
            self.logger.warning(f"Drop ignored, unknown hall or class in {command}")
            return DropOutcome(OutcomeStatus.UNRESOLVED, "Hall or class not found")
        if not group.students:
            return DropOutcome(OutcomeStatus.NO_CANDIDATES, f"{group.name}: all students assigned")

        occupied_by = set(hall.class_names())
        if (hall.desk_capacity == MIDDLE_SEAT_CAPACITY and len(occupied_by) == 1
                and group.name not in occupied_by):
            self.pending = PendingMiddleSeat(
                class_a=next(iter(occupied_by)),
                class_b=group.name,
                hall_id=hall.id,
                candidates=group.students,
            )
            self.logger.info(f"Awaiting middle seat decision for {self.pending.to_dict()}")
            return DropOutcome(
                OutcomeStatus.AWAITING_DECISION,
                f"Which class should take the middle seat: "
                f"{self.pending.class_a} or {self.pending.class_b}?",
                pending=self.pending,
            )

        result = self.algorithm.place_class(hall, group)
        status = _PLACEMENT_TO_OUTCOME[result.status]

        if result.status is PlacementStatus.ZERO_PLACEMENT:
            return DropOutcome(
                status,
                "Could not place any students! Adjacent same-class constraints prevented assignment.",
                remaining=result.remaining,
            )
        if result.status is PlacementStatus.NO_CANDIDATES:
            return DropOutcome(status, f"{group.name}: all students assigned")

        self.halls.replace(result.hall)
        # Candidates were the whole class list; what is left goes back in order
        self.roster.replace_students(group.name, ())
        self.roster.return_students(result.remaining)

        if status is OutcomeStatus.PARTIAL:
            message = (f"Placed {result.placed_count} students. "
                       f"{len(result.remaining)} remaining due to constraints.")
        else:
            message = f"Placed {result.placed_count} students."
        return DropOutcome(status, message, result.placed_count, result.remaining)

    def decide(self, middle_class: str) -> DropOutcome:
        pending = self.pending
        if pending is None:
            return DropOutcome(OutcomeStatus.INVALID_DECISION, "No middle seat decision is pending")
        if middle_class not in (pending.class_a, pending.class_b):
            return DropOutcome(
                OutcomeStatus.INVALID_DECISION,
                f"Middle seat must go to {pending.class_a} or {pending.class_b}",
                pending=pending,
            )

        # The hall must still be the one-class 3-seat hall seen at drop time
        self.pending = None
        hall = self.halls.get(pending.hall_id)
        if hall is None:
            self.logger.warning(f"Middle seat decision dropped, {pending.hall_id} no longer exists")
            return DropOutcome(OutcomeStatus.UNRESOLVED, "Hall not found")
        if hall.desk_capacity != MIDDLE_SEAT_CAPACITY or hall.class_names() != [pending.class_a]:
            self.logger.warning(f"Middle seat decision dropped, {hall.id} changed since the drop")
            return DropOutcome(OutcomeStatus.UNRESOLVED, "Hall changed since the drop, drop the class again")

        # Candidates captured at drop time that are still unseated in class B
        group = self.roster.get(pending.class_b)
        available = set(group.students) if group else set()
        candidates = tuple(s for s in pending.candidates if s in available)

        result = self.algorithm.resolve_middle_seat(
            hall, pending.class_a, pending.class_b, candidates, middle_class
        )
        self.halls.replace(result.hall)

        taken = set(candidates)
        untouched = [s for s in group.students if s not in taken] if group else []
        self.roster.replace_students(pending.class_b, untouched)
        self.roster.return_students(result.remaining_b)

        placed = len(candidates) - len(result.remaining_b)
        status = OutcomeStatus.PARTIAL if result.remaining_b else OutcomeStatus.COMPLETE
        message = f"Placed {placed} students of {pending.class_b} with {middle_class} in the middle."
        if result.dropped_a:
            message += f" {len(result.dropped_a)} students of {pending.class_a} found no seat."
        return DropOutcome(status, message, placed, result.remaining_b, result.dropped_a)

    def cancel(self) -> DropOutcome:
        if self.pending is not None:
            self.logger.info(f"Cancelled middle seat decision {self.pending.to_dict()}")
        self.pending = None
        return DropOutcome(OutcomeStatus.CANCELLED, "Drop cancelled")

    def reset(self) -> None:
        self.pending = None
        self.halls.reset()

    def status(self) -> Dict:
        return {
            'state': self.state.value,
            'pending': self.pending.to_dict() if self.pending else None,
            'halls': [h.to_dict() for h in self.halls.halls],
            'classes': [c.to_dict() for c in self.roster.classes],
            'violations': self.algorithm.validate_seating_plan(self.halls.halls),
            'audit': self.roster.audit(self.halls.halls).errors,
        }

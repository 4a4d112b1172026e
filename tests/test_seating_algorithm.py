"""Tests for the placement engine: ordinary fill and middle seat fill."""

import random

import pytest

from models import ClassGroup, Hall, HallConfig, Student
from seating_algorithm import (
    PlacementStatus, SeatingAlgorithm, column_major, natural_key, place_class,
    resolve_middle_seat, seat_fill_order, sort_by_register_number,
)


# ─── Helpers ──────────────────────────────────────────────────────────────────

def make_hall(rows: int, cols: int, capacity: int, hall_id: str = "hall-1") -> Hall:
    return Hall.build(hall_id, HallConfig("Test Hall", rows, cols, capacity))


def make_class(name: str, *register_numbers: str) -> ClassGroup:
    return ClassGroup(name=name, students=tuple(Student(r, name) for r in register_numbers))


def seat_map(hall: Hall) -> dict:
    """(row, col) -> register numbers (None for empty seats)."""
    return {
        (d.row, d.col): [s.register_number if s else None for s in d.students]
        for d in hall.desks
    }


# ─── Ordering ─────────────────────────────────────────────────────────────────

class TestNaturalOrdering:

    def test_numeric_runs_compare_as_numbers(self):
        students = [Student(r, "A") for r in ["R9", "R10", "R2"]]
        assert [s.register_number for s in sort_by_register_number(students)] == ["R2", "R9", "R10"]

    def test_plain_numbers(self):
        assert sorted(["10", "9", "100", "1"], key=natural_key) == ["1", "9", "10", "100"]

    def test_long_register_numbers(self):
        regs = ["612224104010", "612224104002", "612224104001"]
        assert sorted(regs, key=natural_key) == ["612224104001", "612224104002", "612224104010"]

    def test_digits_before_letters(self):
        assert sorted(["A1", "11"], key=natural_key) == ["11", "A1"]


class TestTraversalOrder:

    def test_three_seat_desks_fill_ends_first(self):
        assert seat_fill_order(3) == [0, 2, 1]

    @pytest.mark.parametrize("capacity,expected", [(1, [0]), (2, [0, 1]), (4, [0, 1, 2, 3])])
    def test_other_capacities_fill_left_to_right(self, capacity, expected):
        assert seat_fill_order(capacity) == expected

    def test_desks_sorted_column_then_row(self):
        hall = make_hall(2, 2, 1)
        assert [(d.col, d.row) for d in column_major(hall.desks)] == [(1, 1), (1, 2), (2, 1), (2, 2)]


# ─── Ordinary fill ────────────────────────────────────────────────────────────

class TestPlaceClass:

    def test_single_class_two_seat_desks(self):
        """2×1 hall, 2 seats per desk: same class never shares a desk."""
        hall = make_hall(2, 1, 2)
        result = place_class(hall, make_class("A", "A1", "A2", "A3"))

        assert seat_map(result.hall) == {(1, 1): ["A1", None], (2, 1): ["A2", None]}
        assert [s.register_number for s in result.remaining] == ["A3"]
        assert result.placed_count == 2
        assert result.status is PlacementStatus.PARTIAL

    def test_complete_fill(self):
        hall = make_hall(2, 2, 1)
        result = place_class(hall, make_class("A", "A4", "A1", "A3", "A2"))

        assert result.status is PlacementStatus.COMPLETE
        assert result.remaining == ()
        # Column-major: column 1 rows 1-2, then column 2
        assert seat_map(result.hall) == {
            (1, 1): ["A1"], (2, 1): ["A2"], (1, 2): ["A3"], (2, 2): ["A4"],
        }

    def test_three_seat_desks_single_class_uses_ends(self):
        hall = make_hall(2, 1, 3)
        result = place_class(hall, make_class("A", "A1", "A2", "A3", "A4", "A5"))

        assert seat_map(result.hall) == {(1, 1): ["A1", None, "A3"], (2, 1): ["A2", None, "A4"]}
        assert [s.register_number for s in result.remaining] == ["A5"]

    def test_second_class_interleaves(self):
        hall = make_hall(2, 1, 2)
        first = place_class(hall, make_class("A", "A1", "A2"))
        second = place_class(first.hall, make_class("B", "B1", "B2", "B3"))

        assert seat_map(second.hall) == {(1, 1): ["A1", "B1"], (2, 1): ["A2", "B2"]}
        assert [s.register_number for s in second.remaining] == ["B3"]
        assert second.status is PlacementStatus.PARTIAL

    def test_column_filled_before_next_column(self):
        hall = make_hall(2, 2, 2)
        result = place_class(hall, make_class("A", "A1", "A2", "A3"))
        assert seat_map(result.hall) == {
            (1, 1): ["A1", None], (2, 1): ["A2", None],
            (1, 2): ["A3", None], (2, 2): [None, None],
        }

    def test_zero_placement_leaves_hall_untouched(self):
        hall = place_class(make_hall(1, 1, 2), make_class("A", "A1")).hall
        result = place_class(hall, make_class("A", "A2"))

        assert result.status is PlacementStatus.ZERO_PLACEMENT
        assert result.placed_count == 0
        assert result.hall is hall
        assert [s.register_number for s in result.remaining] == ["A2"]

    def test_full_hall_is_zero_placement(self):
        hall = place_class(make_hall(1, 1, 1), make_class("A", "A1")).hall
        result = place_class(hall, make_class("B", "B1"))
        assert result.status is PlacementStatus.ZERO_PLACEMENT

    def test_empty_class_is_no_op(self):
        hall = make_hall(1, 1, 2)
        result = place_class(hall, make_class("A"))
        assert result.status is PlacementStatus.NO_CANDIDATES
        assert result.hall is hall
        assert result.remaining == ()

    def test_input_hall_not_mutated(self):
        hall = make_hall(1, 2, 2)
        before = seat_map(hall)
        place_class(hall, make_class("A", "A1", "A2"))
        assert seat_map(hall) == before

    def test_deterministic_regardless_of_input_order(self):
        regs = [f"R{i}" for i in range(1, 16)]
        shuffled = regs[:]
        random.Random(7).shuffle(shuffled)

        hall = make_hall(3, 2, 3)
        one = place_class(hall, make_class("A", *regs))
        two = place_class(hall, make_class("A", *shuffled))
        assert seat_map(one.hall) == seat_map(two.hall)
        assert one.remaining == two.remaining

    def test_no_same_class_neighbours_after_fills(self):
        algorithm = SeatingAlgorithm()
        hall = make_hall(3, 2, 3)
        for name, size in (("X", 5), ("Y", 9), ("Z", 12)):
            group = make_class(name, *[f"{name}{i}" for i in range(1, size + 1)])
            hall = algorithm.place_class(hall, group).hall
            assert algorithm.validate_seating_plan([hall]) == []

    def test_four_seat_desks_alternate_two_classes(self):
        hall = make_hall(1, 1, 4)
        hall = place_class(hall, make_class("A", "A1", "A2", "A3")).hall
        assert seat_map(hall) == {(1, 1): ["A1", None, "A2", None]}
        hall = place_class(hall, make_class("B", "B1", "B2")).hall
        assert seat_map(hall) == {(1, 1): ["A1", "B1", "A2", "B2"]}


# ─── Middle seat fill ─────────────────────────────────────────────────────────

def hall_with_class_a(count: int, rows: int = 2, cols: int = 1) -> Hall:
    regs = [f"A{i}" for i in range(1, count + 1)]
    return place_class(make_hall(rows, cols, 3), make_class("A", *regs)).hall


class TestResolveMiddleSeat:

    def test_second_class_in_middle(self):
        hall = hall_with_class_a(4)
        candidates = make_class("B", "B2", "B1").students

        result = resolve_middle_seat(hall, "A", "B", candidates, middle_class="B")

        assert seat_map(result.hall) == {(1, 1): ["A1", "B1", "A3"], (2, 1): ["A2", "B2", "A4"]}
        assert result.remaining_b == ()
        assert result.dropped_a == ()

    def test_first_class_in_middle(self):
        hall = hall_with_class_a(2)
        candidates = make_class("B", "B1", "B2", "B3", "B4", "B5").students

        result = resolve_middle_seat(hall, "A", "B", candidates, middle_class="A")

        assert seat_map(result.hall) == {(1, 1): ["B1", "A1", "B3"], (2, 1): ["B2", "A2", "B4"]}
        assert [s.register_number for s in result.remaining_b] == ["B5"]
        assert result.dropped_a == ()

    def test_columns_filled_in_turn(self):
        hall = hall_with_class_a(4, rows=1, cols=2)
        candidates = make_class("B", "B1", "B2").students

        result = resolve_middle_seat(hall, "A", "B", candidates, middle_class="B")

        assert seat_map(result.hall) == {(1, 1): ["A1", "B1", "A2"], (1, 2): ["A3", "B2", "A4"]}

    def test_overflow_of_first_class_is_dropped(self):
        """First-class students beyond the middle seats are not returned anywhere."""
        hall = hall_with_class_a(4)
        candidates = make_class("B", "B1", "B2").students

        result = resolve_middle_seat(hall, "A", "B", candidates, middle_class="A")

        assert seat_map(result.hall) == {(1, 1): ["B1", "A1", None], (2, 1): ["B2", "A2", None]}
        assert [s.register_number for s in result.dropped_a] == ["A3", "A4"]
        assert result.remaining_b == ()
        seated = {s.register_number for s in result.hall.seated_students()}
        assert not seated & {"A3", "A4"}

    def test_rejects_non_three_seat_hall(self):
        hall = place_class(make_hall(1, 1, 2), make_class("A", "A1")).hall
        with pytest.raises(ValueError):
            resolve_middle_seat(hall, "A", "B", (), middle_class="B")

    def test_rejects_unknown_middle_class(self):
        hall = hall_with_class_a(2)
        with pytest.raises(ValueError):
            resolve_middle_seat(hall, "A", "B", (), middle_class="C")


class TestValidateSeatingPlan:

    def test_reports_same_class_side_by_side(self):
        hall = make_hall(1, 1, 3)
        desk = hall.desks[0].with_seat(0, Student("A1", "A")).with_seat(1, Student("A2", "A"))
        hall = hall.with_desks([desk])

        violations = SeatingAlgorithm().validate_seating_plan([hall])
        assert len(violations) == 1
        assert "Same class A" in violations[0]

    def test_gap_between_same_class_is_fine(self):
        hall = make_hall(1, 1, 3)
        desk = hall.desks[0].with_seat(0, Student("A1", "A")).with_seat(2, Student("A2", "A"))
        assert SeatingAlgorithm().validate_seating_plan([hall.with_desks([desk])]) == []

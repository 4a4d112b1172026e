import logging
from typing import Iterable, Tuple

from models import Hall, SeatRef

logger = logging.getLogger(__name__)


def move_seat(halls: Iterable[Hall], source: SeatRef, target: SeatRef) -> Tuple[Hall, ...]:
    """
    Swap the occupants (empty included) of two seat slots.

    Works within one desk, across desks of one hall, or across halls.
    No adjacency check is made: a manual move always wins.
    An unknown hall, desk or seat index leaves everything unchanged and the
    very same tuple is returned.
    """
    if not isinstance(halls, tuple):
        halls = tuple(halls)
    s_hall_idx = _index_of_hall(halls, source.hall_id)
    t_hall_idx = _index_of_hall(halls, target.hall_id)
    if s_hall_idx is None or t_hall_idx is None:
        logger.warning(f"Seat move ignored, unknown hall in {source} -> {target}")
        return halls

    s_hall = halls[s_hall_idx]
    t_hall = halls[t_hall_idx]
    s_desk_idx = s_hall.find_desk(source.desk_id)
    t_desk_idx = t_hall.find_desk(target.desk_id)
    if s_desk_idx is None or t_desk_idx is None:
        logger.warning(f"Seat move ignored, unknown desk in {source} -> {target}")
        return halls
    if not (0 <= source.seat_index < s_hall.desk_capacity
            and 0 <= target.seat_index < t_hall.desk_capacity):
        logger.warning(f"Seat move ignored, seat index out of range in {source} -> {target}")
        return halls

    updated = list(halls)

    if source.hall_id == target.hall_id and source.desk_id == target.desk_id:
        desk = s_hall.desks[s_desk_idx]
        first = desk.students[source.seat_index]
        second = desk.students[target.seat_index]
        desk = desk.with_seat(source.seat_index, second).with_seat(target.seat_index, first)
        desks = list(s_hall.desks)
        desks[s_desk_idx] = desk
        updated[s_hall_idx] = s_hall.with_desks(desks)
        return tuple(updated)

    s_desk = s_hall.desks[s_desk_idx]
    t_desk = t_hall.desks[t_desk_idx]
    moving = s_desk.students[source.seat_index]
    s_desk = s_desk.with_seat(source.seat_index, t_desk.students[target.seat_index])
    t_desk = t_desk.with_seat(target.seat_index, moving)

    if s_hall_idx == t_hall_idx:
        desks = list(s_hall.desks)
        desks[s_desk_idx] = s_desk
        desks[t_desk_idx] = t_desk
        updated[s_hall_idx] = s_hall.with_desks(desks)
    else:
        s_desks = list(s_hall.desks)
        s_desks[s_desk_idx] = s_desk
        t_desks = list(t_hall.desks)
        t_desks[t_desk_idx] = t_desk
        updated[s_hall_idx] = s_hall.with_desks(s_desks)
        updated[t_hall_idx] = t_hall.with_desks(t_desks)

    return tuple(updated)


def _index_of_hall(halls: Tuple[Hall, ...], hall_id: str):
    for index, hall in enumerate(halls):
        if hall.id == hall_id:
            return index
    return None

import logging
from typing import Iterable, List, Optional, Tuple

from models import Hall, HallConfig
from roster_store import RosterStore


class HallStore:
    """
    Holds the exam halls. Resizing, clearing and deleting a hall hand its
    seated students back to the roster before the hall is replaced.
    """

    def __init__(self, roster: RosterStore, max_capacity: Optional[int] = None):
        self.logger = logging.getLogger(__name__)
        self.roster = roster
        self.max_capacity = max_capacity
        self.last_config: Optional[HallConfig] = None
        self._halls: Tuple[Hall, ...] = ()
        self._next_id = 1

    @property
    def halls(self) -> Tuple[Hall, ...]:
        return self._halls

    def get(self, hall_id: str) -> Optional[Hall]:
        return next((h for h in self._halls if h.id == hall_id), None)

    def validate(self, config: HallConfig) -> List[str]:
        return config.validate(self.max_capacity)

    def create_hall(self, config: HallConfig) -> Optional[Hall]:
        errors = self.validate(config)
        if errors:
            self.logger.warning(f"Rejected hall configuration {config}: {errors}")
            return None

        hall = Hall.build(f"hall-{self._next_id}", config)
        self._next_id += 1
        self._halls = self._halls + (hall,)
        self.last_config = config
        self.logger.info(
            f"Created {hall.name} ({hall.id}): {hall.rows}×{hall.cols} desks, "
            f"{hall.desk_capacity} per desk"
        )
        return hall

    def update_hall(self, hall_id: str, config: HallConfig) -> Optional[Hall]:
        """
        Rename/resize a hall. Desks are always regenerated, so every seated
        student goes back to the roster first.
        """
        old = self.get(hall_id)
        if old is None:
            self.logger.warning(f"Hall {hall_id} not found")
            return None
        errors = self.validate(config)
        if errors:
            self.logger.warning(f"Rejected hall configuration {config}: {errors}")
            return None

        self.roster.return_students(old.seated_students())
        hall = Hall.build(hall_id, config)
        self.replace(hall)
        self.logger.info(f"Rebuilt {hall_id} as {hall.rows}×{hall.cols}×{hall.desk_capacity}")
        return hall

    def clear_hall(self, hall_id: str) -> Optional[Hall]:
        """Empty every seat but keep the desk structure."""
        hall = self.get(hall_id)
        if hall is None:
            self.logger.warning(f"Hall {hall_id} not found")
            return None
        seated = hall.seated_students()
        if not seated:
            return hall
        self.roster.return_students(seated)
        cleared = hall.cleared()
        self.replace(cleared)
        self.logger.info(f"Cleared {len(seated)} students from {hall_id}")
        return cleared

    def delete_hall(self, hall_id: str) -> bool:
        hall = self.get(hall_id)
        if hall is None:
            self.logger.warning(f"Hall {hall_id} not found")
            return False
        self.roster.return_students(hall.seated_students())
        self._halls = tuple(h for h in self._halls if h.id != hall_id)
        self.logger.info(f"Deleted {hall_id}")
        return True

    def reset(self) -> None:
        """Delete every hall, keeping the roster."""
        for hall in self._halls:
            self.roster.return_students(hall.seated_students())
        self._halls = ()

    def replace(self, hall: Hall) -> None:
        self._halls = tuple(hall if h.id == hall.id else h for h in self._halls)

    def replace_many(self, halls: Iterable[Hall]) -> None:
        self._halls = tuple(halls)

from __future__ import annotations

from typing import Optional, Protocol, Sequence

from ..policy.model import TicketSnapshot
from .model import Ticket


class TicketRepository(Protocol):
    def get(self, task_id: int, ticket_id: int) -> Optional[Ticket]:
        raise NotImplementedError

    def list_for_task(self, task_id: int) -> Sequence[Ticket]:
        raise NotImplementedError

    def create(self, task_id: int, fields: dict) -> int:
        raise NotImplementedError

    def update_fields(self, snapshot: TicketSnapshot, fields: dict) -> bool:
        """Conditional on ``snapshot.version``."""

        raise NotImplementedError

    def delete(self, snapshot: TicketSnapshot) -> bool:
        raise NotImplementedError

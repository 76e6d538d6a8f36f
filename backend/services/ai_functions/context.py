import threading
from dataclasses import dataclass, field
from typing import Optional

from schemas.ai_function.apply import Background
from services.ai_functions.errors import GenerationCancelled


@dataclass
class ApplyContext:
    """Caller identity and cancellation for one apply call.

    Passed explicitly to the resolver, the variable registrar and every
    generation unit.
    """
    org_id: int
    project_id: int
    user_id: str
    need_adjust: bool = False
    cancel_event: threading.Event = field(default_factory=threading.Event)

    @classmethod
    def from_background(cls, background: Background, need_adjust: bool = False) -> "ApplyContext":
        return cls(
            org_id=background.org_id,
            project_id=background.project_id,
            user_id=background.user_id,
            need_adjust=need_adjust,
        )

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def check_cancelled(
        self,
        operation: str,
        requirement_index: Optional[int] = None,
        api_index_id: Optional[int] = None,
    ) -> None:
        if self.cancel_event.is_set():
            raise GenerationCancelled(
                "batch cancelled",
                operation=operation,
                requirement_index=requirement_index,
                api_index_id=api_index_id,
            )

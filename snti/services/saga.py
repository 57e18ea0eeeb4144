"""
Compensating actions for writes that span more than one commit.
"""
import logging
from typing import Awaitable, Callable, List, Optional, Tuple
from snti.core.logging_utils import sanitize_log_message

logger = logging.getLogger(__name__)

Compensation = Callable[[], Awaitable[object]]


class Saga:
    """
    Stack of undo steps registered as each step commits.

    Used as an async context manager: if the block raises, compensations run
    newest first and the original exception propagates. A failing
    compensation is logged and the remaining ones still run.

    Usage:
        async with Saga("create_permiso", request_id) as saga:
            documento = await upload(...)
            saga.add_compensation("delete document", lambda: delete(documento))
            await insert_permiso(...)
    """

    def __init__(self, name: str, request_id: Optional[str] = None):
        self.name = name
        self.request_id = request_id
        self._compensations: List[Tuple[str, Compensation]] = []

    def add_compensation(self, description: str, action: Compensation) -> None:
        self._compensations.append((description, action))

    async def compensate(self) -> None:
        while self._compensations:
            description, action = self._compensations.pop()
            try:
                await action()
            except Exception as e:
                logger.error(
                    sanitize_log_message(
                        "Compensation failed",
                        Saga=self.name,
                        Step=description,
                        Error=str(e),
                        RequestID=self.request_id
                    )
                )
            else:
                logger.warning(
                    sanitize_log_message(
                        "Compensation applied",
                        Saga=self.name,
                        Step=description,
                        RequestID=self.request_id
                    )
                )

    async def __aenter__(self) -> "Saga":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            await self.compensate()
        return False

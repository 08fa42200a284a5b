"""Single-flight guard for operations with simulated latency."""

import logging
from enum import Enum
from typing import Callable, Optional, TypeVar

from bizledger.domain.errors import OperationInFlightError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class OperationState(str, Enum):
    IDLE = "idle"
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class SingleFlight:
    """Runs one operation at a time and rejects re-entrant invocations.

    The guard moves IDLE -> PENDING -> SUCCEEDED/FAILED. A finished guard
    accepts the next invocation. Started operations always run to completion.
    """

    def __init__(self, name: str):
        """Initialize guard.

        Args:
            name: Operation name used in error messages and logs
        """
        self.name = name
        self.state = OperationState.IDLE
        self.last_error: Optional[Exception] = None

    @property
    def is_pending(self) -> bool:
        return self.state == OperationState.PENDING

    def run(self, operation: Callable[[], T]) -> T:
        """Run ``operation`` unless another run is still pending.

        Raises:
            OperationInFlightError: If the guard is already pending
        """
        if self.is_pending:
            logger.warning("Rejected concurrent '%s' while pending", self.name)
            raise OperationInFlightError(f"'{self.name}' is already in progress")

        self.state = OperationState.PENDING
        self.last_error = None
        try:
            result = operation()
        except Exception as exc:
            self.state = OperationState.FAILED
            self.last_error = exc
            raise
        self.state = OperationState.SUCCEEDED
        return result

"""
Operation state tracking.

An OperationState is a plain status object that an encryption or decryption
call moves through explicit transitions:

    pending -> in_flight -> resolved | failed

It has no dependency on any UI framework; callers that render progress
read `status`, `result` and `error` directly.
"""

import inspect
from enum import Enum
from typing import Any, Awaitable, Optional


class OperationStatus(str, Enum):
    """Lifecycle of a single encryption or decryption request."""

    PENDING = "pending"
    IN_FLIGHT = "in_flight"
    RESOLVED = "resolved"
    FAILED = "failed"


_TERMINAL = (OperationStatus.RESOLVED, OperationStatus.FAILED)


class OperationState:
    """
    Mutable status holder for one request.

    Example:
        >>> state = OperationState()
        >>> value = await state.track(session.decryption.public(handle))
        >>> state.status
        <OperationStatus.RESOLVED: 'resolved'>
    """

    def __init__(self):
        self._status = OperationStatus.PENDING
        self._result: Any = None
        self._error: Optional[BaseException] = None

    @property
    def status(self) -> OperationStatus:
        return self._status

    @property
    def result(self) -> Any:
        return self._result

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    def done(self) -> bool:
        """True once the request has resolved or failed."""
        return self._status in _TERMINAL

    def exception(self) -> Optional[BaseException]:
        """Return the failure, or None if not failed."""
        return self._error if self._status == OperationStatus.FAILED else None

    def start(self) -> None:
        if self._status != OperationStatus.PENDING:
            raise RuntimeError(f"Cannot start operation in state {self._status.value!r}")
        self._status = OperationStatus.IN_FLIGHT

    def resolve(self, result: Any) -> None:
        if self._status != OperationStatus.IN_FLIGHT:
            raise RuntimeError(f"Cannot resolve operation in state {self._status.value!r}")
        self._result = result
        self._status = OperationStatus.RESOLVED

    def fail(self, error: BaseException) -> None:
        if self._status != OperationStatus.IN_FLIGHT:
            raise RuntimeError(f"Cannot fail operation in state {self._status.value!r}")
        self._error = error
        self._status = OperationStatus.FAILED

    async def track(self, awaitable: Awaitable[Any]) -> Any:
        """
        Await `awaitable`, recording the outcome.

        Failures are recorded and then re-raised to the caller.
        """
        try:
            self.start()
        except RuntimeError:
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            raise

        try:
            result = await awaitable
        except Exception as e:
            self.fail(e)
            raise
        self.resolve(result)
        return result

    def as_dict(self) -> dict:
        return {
            "status": self._status.value,
            "result": self._result,
            "error": str(self._error) if self._error is not None else None,
        }

    def __repr__(self) -> str:
        return f"OperationState(status={self._status.value!r})"

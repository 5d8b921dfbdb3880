"""Saga runner for lifecycle operations spanning the identity provider and the store.

Steps run in order. When a step fails, the compensations registered by the
steps before it run in reverse order, each outcome recorded. A failed
compensation turns the failure into CompensationFailureError, because the
two systems of record now disagree.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from src.agency.core.errors import CompensationFailureError
from src.agency.core.logging import get_logger

logger = get_logger(__name__)


class InviteState(str, Enum):
    START = "start"
    IDENTITY_CREATED = "identity_created"
    STORE_COMMITTED = "store_committed"
    NOTIFIED = "notified"
    FAILED = "failed"


class ActivateState(str, Enum):
    START = "start"
    CREDENTIAL_UPDATED = "credential_updated"
    STORE_COMMITTED = "store_committed"
    FAILED = "failed"


class DeleteState(str, Enum):
    START = "start"
    INVARIANT_CHECKED = "invariant_checked"
    CASCADE_PLANNED = "cascade_planned"
    STORE_COMMITTED = "store_committed"
    IDENTITY_REMOVED = "identity_removed"
    FAILED = "failed"


@dataclass(frozen=True)
class CompensationOutcome:
    step: str
    succeeded: bool
    error: str | None = None


@dataclass
class _Completed:
    name: str
    compensation: Callable[[Any], Awaitable[Any]] | None
    result: Any


@dataclass
class Saga:
    """Incremental saga: call step() for each action, in order.

    Usage:
        saga = Saga("invite", InviteState.START)
        account_id = await saga.step(
            "create_identity",
            lambda: identity.create_account(...),
            compensation=lambda account_id: identity.delete_account(account_id),
            reached=InviteState.IDENTITY_CREATED,
        )
    """

    name: str
    state: Enum
    failed_state: Enum | None = None
    compensations: list[CompensationOutcome] = field(default_factory=list)
    _completed: list[_Completed] = field(default_factory=list, init=False, repr=False)

    def advance(self, state: Enum) -> None:
        logger.info(
            "Saga state transition",
            saga=self.name,
            from_state=self.state.value,
            to_state=state.value,
        )
        self.state = state

    async def step[T](
        self,
        name: str,
        action: Callable[[], Awaitable[T]],
        compensation: Callable[[T], Awaitable[Any]] | None = None,
        reached: Enum | None = None,
        keep_completed_on: Callable[[Exception], bool] | None = None,
    ) -> T:
        """Run one action; on failure compensate earlier steps and re-raise.

        keep_completed_on marks failures whose earlier steps must stand, such
        as a duplicate request that lost to one which already committed.
        """
        try:
            result = await action()
        except Exception as e:
            logger.warning(
                "Saga step failed",
                saga=self.name,
                step=name,
                state=self.state.value,
                error_type=type(e).__name__,
            )
            if keep_completed_on is not None and keep_completed_on(e):
                logger.info(
                    "Earlier steps kept",
                    saga=self.name,
                    step=name,
                    kept=[completed.name for completed in self._completed],
                )
                self._completed.clear()
                if self.failed_state is not None:
                    self.advance(self.failed_state)
                raise
            await self._fail(e)
            raise

        self._completed.append(_Completed(name=name, compensation=compensation, result=result))
        if reached is not None:
            self.advance(reached)
        return result

    @property
    def compensation_failed(self) -> bool:
        return any(not outcome.succeeded for outcome in self.compensations)

    async def _fail(self, error: Exception) -> None:
        await self._run_compensations()
        if self.failed_state is not None:
            self.advance(self.failed_state)

        failed = [outcome.step for outcome in self.compensations if not outcome.succeeded]
        if failed:
            logger.critical(
                "Saga compensation failed - manual reconciliation required",
                saga=self.name,
                failed_compensations=failed,
                original_error=str(error),
                original_error_type=type(error).__name__,
            )
            raise CompensationFailureError(
                f"{self.name} failed and could not be rolled back",
                original_error=error,
                failed_compensations=failed,
                details={
                    "failed_compensations": failed,
                    "original_error": getattr(error, "message", str(error)),
                },
            ) from error

    async def _run_compensations(self) -> None:
        """Run compensations in reverse order (Saga pattern)."""
        for completed in reversed(self._completed):
            if completed.compensation is None:
                continue
            try:
                await completed.compensation(completed.result)
            except Exception as comp_error:
                self.compensations.append(
                    CompensationOutcome(
                        step=completed.name, succeeded=False, error=str(comp_error)
                    )
                )
                logger.error(
                    "Compensation failed",
                    saga=self.name,
                    step=completed.name,
                    error=str(comp_error),
                    error_type=type(comp_error).__name__,
                )
            else:
                self.compensations.append(CompensationOutcome(step=completed.name, succeeded=True))
                logger.info("Compensation succeeded", saga=self.name, step=completed.name)
        self._completed.clear()

"""Apply a plan against provider adapters with bounded concurrency."""

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional, Tuple, TypeVar
from ..catalog.models import RemovalPolicy
from ..contracts.execution_report import ExecutionReport, OperationOutcome, OperationResult
from ..planner.models import Operation, OperationKind, Plan
from ..provider.base import ProviderAdapter
from ..provider.registry import ProviderRegistry
from ..state.models import ActualStateRecord, ResourceStatus
from ..state.store import StateStore
from ..utils.errors import (
    ConvergeError,
    PermanentProviderError,
    ProviderError,
    StateStoreError,
    TransientProviderError,
)
from ..utils.logging import get_logger
from .retry import RetryPolicy, RetryState

logger = get_logger("executor.executor")

T = TypeVar("T")

_IN_FLIGHT = {
    OperationKind.CREATE: ResourceStatus.CREATING,
    OperationKind.UPDATE: ResourceStatus.UPDATING,
    OperationKind.DELETE: ResourceStatus.DELETING,
}

_BLOCKING_OUTCOMES = (OperationOutcome.FAILED, OperationOutcome.SKIPPED, OperationOutcome.CANCELLED)


class Executor:
    """
    Data-flow scheduler over a plan.

    An operation is dispatched to the worker pool only once every operation in
    its `requires` list has a terminal outcome; deletes also wait for every
    create and update. A failed or skipped prerequisite skips the operation
    without calling the provider. Independent branches keep running.
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        store: StateStore,
        max_workers: int = 4,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        self.registry = registry
        self.store = store
        self.max_workers = max_workers
        self.retry_policy = retry_policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock

    def apply(self, plan: Plan, cancel_event: Optional[threading.Event] = None) -> ExecutionReport:
        """
        Execute every operation of the plan.

        Args:
            plan: Plan produced by the planner
            cancel_event: When set, no new operations are dispatched; in-flight
                operations finish and the rest are reported as cancelled

        Returns:
            ExecutionReport with one result per operation, in plan order

        Raises:
            StateStoreError: If a state write fails; the run stops dispatching
        """
        started_at = datetime.now(timezone.utc)
        operations: Dict[str, Operation] = {op.target: op for op in plan.operations}
        pending: List[str] = plan.targets()
        non_deletes = [op.target for op in plan.operations if op.action != OperationKind.DELETE]
        results: Dict[str, OperationResult] = {}
        in_flight: Dict[Future, str] = {}

        logger.info(f"Applying plan with {len(plan)} operations (max workers: {self.max_workers})")

        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="converge") as pool:
            while pending or in_flight:
                cancelled = cancel_event is not None and cancel_event.is_set()
                if not cancelled:
                    self._dispatch_ready(operations, pending, non_deletes, results, in_flight, pool)

                if not in_flight:
                    if cancelled:
                        break
                    if pending:
                        raise ConvergeError(f"Plan cannot make progress; waiting operations: {', '.join(pending)}")
                    continue

                done, _ = wait(list(in_flight), return_when=FIRST_COMPLETED)
                for future in done:
                    target = in_flight.pop(future)
                    results[target] = future.result()

        for target in pending:
            op = operations[target]
            results[target] = OperationResult(
                target=target,
                action=op.action,
                outcome=OperationOutcome.CANCELLED,
                external_id=op.external_id,
                message="run cancelled before dispatch"
            )
        if pending:
            logger.warning(f"Run cancelled; {len(pending)} operations were not dispatched")

        ordered = [results[target] for target in plan.targets()]
        report = ExecutionReport(
            status=ExecutionReport.overall_status(ordered),
            results=ordered,
            started_at=started_at,
            finished_at=datetime.now(timezone.utc)
        )
        counts = report.counts()
        logger.info(
            f"Run finished: {report.status} "
            f"(succeeded: {counts['succeeded']}, failed: {counts['failed']}, "
            f"skipped: {counts['skipped']}, cancelled: {counts['cancelled']})"
        )
        return report

    def _dispatch_ready(
        self,
        operations: Dict[str, Operation],
        pending: List[str],
        non_deletes: List[str],
        results: Dict[str, OperationResult],
        in_flight: Dict[Future, str],
        pool: ThreadPoolExecutor
    ) -> None:
        """Resolve skips and submit every operation whose prerequisites are terminal."""
        progressed = True
        while progressed:
            progressed = False
            for target in list(pending):
                op = operations[target]
                requires = [name for name in op.requires if name in operations]
                if any(name not in results for name in requires):
                    continue
                if op.action == OperationKind.DELETE and any(name not in results for name in non_deletes):
                    continue

                blocked = [name for name in requires if results[name].outcome in _BLOCKING_OUTCOMES]
                if blocked:
                    pending.remove(target)
                    results[target] = self._skip(op, blocked[0])
                    progressed = True
                    continue

                if len(in_flight) >= self.max_workers:
                    return
                pending.remove(target)
                in_flight[pool.submit(self._execute, op)] = target
                logger.debug(f"Dispatched {op.action} {target}")

    def _skip(self, op: Operation, blocked_by: str) -> OperationResult:
        message = f"skipped: dependency '{blocked_by}' did not complete"
        record = self.store.get(op.target)
        if record is None:
            record = ActualStateRecord(
                status=ResourceStatus.ABSENT,
                kind=op.resource_kind,
                depends_on=op.depends_on,
                removal_policy=op.removal_policy,
                message=message
            )
        else:
            record = record.transition(message=message)
        self.store.record_transition(op.target, record)
        logger.warning(f"Skipping {op.action} {op.target}: {blocked_by} did not complete")
        return OperationResult(
            target=op.target,
            action=op.action,
            outcome=OperationOutcome.SKIPPED,
            external_id=record.external_id,
            message=message,
            blocked_by=blocked_by
        )

    def _execute(self, op: Operation) -> OperationResult:
        """Run one operation on a worker thread."""
        record = self.store.get(op.target) or ActualStateRecord(kind=op.resource_kind)

        if op.action == OperationKind.NO_OP:
            return self._execute_no_op(op, record)

        if op.action == OperationKind.REPLACE:
            return self._execute_replace(op, record)

        if op.action == OperationKind.DELETE:
            if op.removal_policy == RemovalPolicy.RETAIN:
                return self._release(op, record)
            if not op.external_id:
                self.store.record_transition(op.target, record.transition(
                    status=ResourceStatus.ABSENT, external_id=None, checksum=None,
                    message="nothing to delete"
                ))
                return self._result(op, OperationOutcome.SUCCEEDED, 0, None, "nothing to delete")

        self.store.record_transition(op.target, record.transition(
            status=_IN_FLIGHT[OperationKind(op.action)],
            kind=op.resource_kind,
            message=f"{op.action} in progress"
        ))

        kind = op.resource_kind
        try:
            if op.action == OperationKind.CREATE:
                external_id, attempts = self._invoke(
                    op, kind, lambda adapter: adapter.create(kind, op.properties)
                )
            elif op.action == OperationKind.UPDATE:
                _, attempts = self._invoke(
                    op, kind, lambda adapter: adapter.update(kind, op.external_id, op.properties)
                )
                external_id = op.external_id
            else:
                _, attempts = self._invoke(
                    op, kind, lambda adapter: adapter.delete(kind, op.external_id)
                )
                external_id = None
        except PermanentProviderError as e:
            return self._fail(op, record, str(e), e.attempts)

        if op.action == OperationKind.DELETE:
            new_record = record.transition(
                status=ResourceStatus.ABSENT, external_id=None, checksum=None, message="deleted"
            )
        else:
            new_record = self._applied(op, record, external_id)
        self.store.record_transition(op.target, new_record)
        logger.info(f"{op.action} {op.target} succeeded after {attempts} attempt(s)")
        return self._result(op, OperationOutcome.SUCCEEDED, attempts, external_id, "")

    def _execute_replace(self, op: Operation, record: ActualStateRecord) -> OperationResult:
        """Delete the resource under its recorded kind, then create it under the declared kind."""
        old_kind = op.prior_kind
        self.store.record_transition(op.target, record.transition(
            status=ResourceStatus.DELETING,
            message=f"replacing {old_kind} with {op.resource_kind}"
        ))
        try:
            _, deleted_attempts = self._invoke(
                op, old_kind, lambda adapter: adapter.delete(old_kind, op.external_id)
            )
        except PermanentProviderError as e:
            return self._fail(op, record, str(e), e.attempts, kind=old_kind)

        record = record.transition(
            status=ResourceStatus.CREATING,
            external_id=None,
            checksum=None,
            kind=op.resource_kind,
            message="replace in progress"
        )
        self.store.record_transition(op.target, record)
        try:
            external_id, created_attempts = self._invoke(
                op, op.resource_kind, lambda adapter: adapter.create(op.resource_kind, op.properties)
            )
        except PermanentProviderError as e:
            return self._fail(op, record, str(e), deleted_attempts + e.attempts)

        attempts = deleted_attempts + created_attempts
        self.store.record_transition(op.target, self._applied(op, record, external_id))
        logger.info(f"replace {op.target} succeeded after {attempts} attempt(s)")
        return self._result(op, OperationOutcome.SUCCEEDED, attempts, external_id, "")

    def _execute_no_op(self, op: Operation, record: ActualStateRecord) -> OperationResult:
        if record.depends_on != op.depends_on or record.removal_policy != op.removal_policy:
            self.store.record_transition(op.target, record.transition(
                depends_on=list(op.depends_on), removal_policy=op.removal_policy
            ))
        return self._result(op, OperationOutcome.SUCCEEDED, 0, record.external_id, "up to date")

    def _release(self, op: Operation, record: ActualStateRecord) -> OperationResult:
        message = f"retained; {op.external_id or 'resource'} is no longer managed"
        self.store.record_transition(op.target, record.transition(
            status=ResourceStatus.ABSENT, external_id=None, checksum=None, message=message
        ))
        logger.info(f"Released {op.target} without deleting it (removal policy: retain)")
        return self._result(op, OperationOutcome.SUCCEEDED, 0, None, message)

    def _fail(
        self,
        op: Operation,
        record: ActualStateRecord,
        message: str,
        attempts: int,
        kind: Optional[str] = None
    ) -> OperationResult:
        self.store.record_transition(op.target, record.transition(
            status=ResourceStatus.FAILED,
            kind=kind or op.resource_kind,
            message=message
        ))
        logger.error(f"{op.action} {op.target} failed: {message}")
        return self._result(op, OperationOutcome.FAILED, attempts, record.external_id, message)

    @staticmethod
    def _applied(op: Operation, record: ActualStateRecord, external_id: Optional[str]) -> ActualStateRecord:
        return record.transition(
            status=ResourceStatus.ACTIVE,
            external_id=external_id,
            checksum=op.checksum,
            kind=op.resource_kind,
            depends_on=list(op.depends_on),
            removal_policy=op.removal_policy,
            message=""
        )

    def _invoke(
        self,
        op: Operation,
        kind: Optional[str],
        capability: Callable[[ProviderAdapter], T]
    ) -> Tuple[T, int]:
        """
        Resolve the adapter for kind and call one capability under the retry policy.

        Raises:
            PermanentProviderError: For every failure scoped to this operation
            StateStoreError: Never wrapped; a broken ledger ends the run
        """
        try:
            adapter = self.registry.resolve(kind)
            return self._call_with_retry(op, lambda: capability(adapter))
        except (PermanentProviderError, StateStoreError):
            raise
        except ProviderError as e:
            raise PermanentProviderError(str(e), kind=kind, attempts=1) from e
        except Exception as e:
            logger.error(f"Unexpected error from provider during {op.action} {op.target}: {e}", exc_info=True)
            raise PermanentProviderError(f"unexpected provider error: {e}", kind=kind, attempts=1) from e

    def _call_with_retry(self, op: Operation, call: Callable[[], T]) -> Tuple[T, int]:
        """
        Invoke a provider capability under the retry policy.

        Raises:
            PermanentProviderError: On a permanent error, or once transient
                errors have used up every attempt
        """
        state = RetryState(self.retry_policy, clock=self._clock)
        while True:
            state.begin()
            try:
                return call(), state.attempt
            except TransientProviderError as e:
                if not state.fail(e):
                    raise PermanentProviderError(
                        f"gave up after {state.attempt} attempts: {e}",
                        kind=e.kind,
                        attempts=state.attempt
                    ) from e
                wait_for = state.remaining_wait()
                logger.warning(
                    f"Transient failure on {op.action} {op.target} "
                    f"(attempt {state.attempt}/{self.retry_policy.max_attempts}), retrying in {wait_for:.2f}s: {e}"
                )
                self._sleep(wait_for)
            except PermanentProviderError as e:
                e.attempts = state.attempt
                raise

    @staticmethod
    def _result(
        op: Operation,
        outcome: OperationOutcome,
        attempts: int,
        external_id: Optional[str],
        message: str
    ) -> OperationResult:
        return OperationResult(
            target=op.target,
            action=op.action,
            outcome=outcome,
            attempts=attempts,
            external_id=external_id,
            message=message
        )

"""
Optimization runner - main entry point for optimization runs.

The runner manages the run lifecycle and coordinates between:
- Validation of the run request and parameter space
- The selected search strategy (exhaustive or divide-and-conquer)
- A bounded pool of worker threads calling the backtest evaluator
- Result aggregation, minimum-trade filtering and ranking
- Progress tracking and cooperative cancellation
"""

import threading
import time
from concurrent.futures import FIRST_COMPLETED, Future, ThreadPoolExecutor, wait
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

from stratopt.configs.optimization.orchestrator import OptimizationConfig
from stratopt.configs.optimization.run_request import RunRequest, SearchMethod
from stratopt.data.historical import HistoricalDataSource
from .algorithms.base import SearchPass, SearchStrategy
from .algorithms.divide_and_conquer import DivideAndConquerSearch
from .algorithms.exhaustive import ExhaustiveSearch
from .cancellation import CancellationToken
from .evaluator import BacktestEvaluator, FunctionEvaluator, coerce_metrics
from .exceptions import EvaluationError, InvalidConfigurationError, RunnerBusyError
from .progress import ProgressCallback, ProgressReport, ProgressTracker
from .results.metrics import PerformanceMetric
from .results.result import OptimizationResult
from .results.result_set import ResultSet
from .search_space.assignment import Assignment
from .search_space.space import ParameterSpace
from utils.logger import get_logger

logger = get_logger(__name__)


class RunState(str, Enum):
    IDLE = "idle"
    VALIDATING = "validating"
    RUNNING = "running"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    FAILED = "failed"


_ACTIVE_STATES = (RunState.VALIDATING, RunState.RUNNING)


@dataclass
class OptimizationOutcome:
    """Terminal result of a run that was not aborted by an error."""
    status: RunState
    results: ResultSet
    completed: int
    total_planned: int
    metric: PerformanceMetric
    strategy: str
    elapsed_seconds: float

    @property
    def partial(self) -> bool:
        return self.status == RunState.CANCELLED

    @property
    def best(self) -> Optional[OptimizationResult]:
        return self.results[0] if len(self.results) else None

    def summary(self, top_n: int = 5) -> str:
        """Generate human-readable summary of the run."""
        lines = [
            "=" * 70,
            f"OPTIMIZATION {self.status.value.upper()}" + (" (PARTIAL RESULTS)" if self.partial else ""),
            "=" * 70,
            f"Strategy: {self.strategy}",
            f"Evaluated: {self.completed}/{self.total_planned}",
            f"Qualifying results: {len(self.results)}",
            f"Ranked by: {self.metric.display_name}",
            f"Elapsed: {self.elapsed_seconds:.1f}s",
            "",
        ]
        for rank, result in enumerate(self.results.snapshot()[:top_n], 1):
            params = ", ".join(f"{k}={v}" for k, v in result.assignment.items())
            lines.append(f"#{rank} {params} -> {self.metric.display_name}={result.value(self.metric):.4f}, "
                         f"trades={result.trade_count}")
        return "\n".join(lines)


class OptimizationRunner:
    """
    Runs one optimization at a time.

    States: IDLE -> VALIDATING -> RUNNING -> COMPLETED | CANCELLED | FAILED.
    A finished runner can be reused; starting a run while another is validating
    or running raises RunnerBusyError.

    Features:
    - Invalid requests fail before any evaluation with InvalidConfigurationError
    - Evaluations run on a fixed-size thread pool, at most ``worker_count`` in flight
    - Cancellation lets in-flight evaluations finish and returns the partial, ranked results
    - An evaluator error (or timeout) aborts the run, discards its results and is raised
    """

    def __init__(self, config: Optional[OptimizationConfig] = None):
        self.config = config or OptimizationConfig()

        # State management
        self._state = RunState.IDLE
        self._state_lock = threading.Lock()
        self._token = CancellationToken()
        self._progress_callbacks: List[ProgressCallback] = []
        self._run_callbacks: List[ProgressCallback] = []

        # Evaluation start times, keyed by assignment ordinal, for timeouts
        self._started_at: Dict[int, float] = {}
        self._timing_lock = threading.Lock()

        self._results: Optional[ResultSet] = None

    # These are used as the run may be on a background thread
    def add_progress_callback(self, callback: ProgressCallback):
        """Add callback receiving ``(completed, total_planned, status_text)``."""
        self._progress_callbacks.append(callback)

    def _notify_progress(self, report: ProgressReport):
        """Notify all progress callbacks, always from the coordinating thread."""
        if not self.config.enable_progress_tracking:
            return

        for callback in self._progress_callbacks + self._run_callbacks:
            try:
                callback(report.completed, report.total, report.status_text)
            except Exception as e:
                logger.error(f"Progress callback failed: {e}")

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def is_running(self) -> bool:
        return self._state in _ACTIVE_STATES

    def _set_state(self, state: RunState):
        with self._state_lock:
            previous, self._state = self._state, state
        logger.info(f"Runner state: {previous.value} -> {state.value}")

    def _begin(self):
        with self._state_lock:
            if self._state in _ACTIVE_STATES:
                raise RunnerBusyError(f"An optimization run is already {self._state.value}")
            self._state = RunState.VALIDATING
            self._token = CancellationToken()
            self._results = None
        logger.info("Runner state: -> validating")

    def cancel(self) -> None:
        """Request cancellation of the current run. Idempotent, callable from any thread."""
        if not self.is_running:
            logger.debug("Cancel requested with no active run")
            return
        if self._token.cancel():
            logger.info("Cancellation requested")

    def results_snapshot(self) -> List[OptimizationResult]:
        """Results accumulated so far by the current or last run."""
        results = self._results
        return results.snapshot() if results is not None else []

    def run(
        self,
        request: Union[RunRequest, Mapping[str, Any]],
        space: ParameterSpace,
        evaluator: Union[BacktestEvaluator, Callable],
        progress: Optional[ProgressCallback] = None,
    ) -> OptimizationOutcome:
        """
        Run an optimization and block until it completes, is cancelled or fails.

        Args:
            request: Run request, or a mapping of its fields
            space: Parameter space to search
            evaluator: Backtest evaluator, or a plain ``func(assignment, data_source, date_range)``
            progress: Extra progress callback for this run only

        Returns:
            OptimizationOutcome with status COMPLETED or CANCELLED and the ranked results

        Raises:
            InvalidConfigurationError: If the request or space is invalid; nothing was evaluated
            EvaluationError: If an evaluation failed; partial results are discarded
            RunnerBusyError: If another run is in progress
        """
        self._begin()
        return self._execute(request, space, evaluator, progress)

    def start(
        self,
        request: Union[RunRequest, Mapping[str, Any]],
        space: ParameterSpace,
        evaluator: Union[BacktestEvaluator, Callable],
        progress: Optional[ProgressCallback] = None,
    ) -> "Future[OptimizationOutcome]":
        """
        Same as ``run`` but on a background thread; returns a Future of the outcome.
        """
        self._begin()
        future: "Future[OptimizationOutcome]" = Future()
        future.set_running_or_notify_cancel()
        thread = threading.Thread(
            target=self._run_into_future,
            args=(future, request, space, evaluator, progress),
            name="optimizer-run",
            daemon=True,
        )
        thread.start()
        return future

    def _run_into_future(self, future, request, space, evaluator, progress):
        try:
            future.set_result(self._execute(request, space, evaluator, progress))
        except Exception as e:
            future.set_exception(e)

    def _execute(self, request, space, evaluator, progress) -> OptimizationOutcome:
        started = time.monotonic()
        self._run_callbacks = [progress] if progress else []

        try:
            request = self._validate(request, space)
            evaluator = self._coerce_evaluator(evaluator)
            strategy = self._create_strategy(request.search_method)
            strategy.initialize(space, request.metric, request.min_trades)
        except Exception as e:
            if isinstance(e, InvalidConfigurationError):
                logger.error(f"Run rejected: {e}")
            else:
                logger.exception(f"Run could not be prepared: {e}")
            self._set_state(RunState.FAILED)
            raise

        data_source = HistoricalDataSource(request.data_file)
        results = ResultSet(parameter_names=space.names)
        self._results = results
        tracker = ProgressTracker()
        token = self._token

        self._set_state(RunState.RUNNING)
        logger.info(f"Starting {strategy.name} search over {space.cardinality():,} combinations "
                    f"with {self.config.worker_count} workers, ranked by {request.metric.display_name}")

        executor = ThreadPoolExecutor(max_workers=self.config.worker_count, thread_name_prefix="optimizer-worker")
        failed = False
        try:
            while not token.is_cancelled:
                search_pass = strategy.next_pass()
                if search_pass is None:
                    break
                tracker.plan(search_pass.size, search_pass.label)
                self._notify_progress(tracker.report())

                pass_results = self._run_pass(
                    executor, strategy, search_pass, evaluator, data_source, request, results, tracker, token
                )
                if token.is_cancelled:
                    break
                strategy.end_pass(pass_results)
                if strategy.is_finished():
                    break
        except Exception as e:
            failed = True
            token.cancel()
            self._results = None
            self._set_state(RunState.FAILED)
            if isinstance(e, EvaluationError):
                logger.error(f"Run aborted after {tracker.completed} evaluations: {e}")
            else:
                logger.exception(f"Run aborted by unexpected error: {e}")
            raise
        finally:
            # A hung evaluation must not block reporting the failure or the cancellation
            executor.shutdown(wait=not (failed or token.is_cancelled), cancel_futures=True)
            with self._timing_lock:
                self._started_at.clear()

        results.freeze()
        ranked = results.sorted_by(request.metric)
        self._results = ranked

        status = RunState.CANCELLED if token.is_cancelled else RunState.COMPLETED
        outcome = OptimizationOutcome(
            status=status,
            results=ranked,
            completed=tracker.completed,
            total_planned=tracker.total,
            metric=request.metric,
            strategy=strategy.name,
            elapsed_seconds=time.monotonic() - started,
        )

        if status == RunState.CANCELLED:
            logger.info(f"Run cancelled after {tracker.completed} evaluations, {len(ranked)} partial results")
        elif not len(ranked):
            logger.warning(f"No result reached the minimum of {request.min_trades} trades")
        else:
            logger.info(f"Run completed: {tracker.completed} evaluations, {len(ranked)} qualifying results")

        tracker.label = "Optimization cancelled" if status == RunState.CANCELLED else "Optimization completed"
        self._notify_progress(tracker.report())
        self._set_state(status)
        return outcome

    def _run_pass(
        self,
        executor: ThreadPoolExecutor,
        strategy: SearchStrategy,
        search_pass: SearchPass,
        evaluator: BacktestEvaluator,
        data_source: HistoricalDataSource,
        request: RunRequest,
        results: ResultSet,
        tracker: ProgressTracker,
        token: CancellationToken,
    ) -> List[OptimizationResult]:
        """
        Evaluate one pass, keeping at most ``worker_count`` evaluations in flight.

        On cancellation no further assignments are submitted, and the in-flight
        evaluations are drained so their results are kept. An in-flight evaluation
        that exceeds the timeout after the cancel is abandoned instead of failing the run.
        """
        logger.info(f"{search_pass.label}: {search_pass.size} evaluations planned")
        workers = self.config.worker_count
        assignments = iter(search_pass.assignments)
        pending: Dict[Future, Assignment] = {}
        pass_results: List[OptimizationResult] = []
        exhausted = False

        while True:
            while not exhausted and not token.is_cancelled and len(pending) < workers:
                assignment = next(assignments, None)
                if assignment is None:
                    exhausted = True
                    break
                future = executor.submit(
                    self._evaluate_one, evaluator, assignment, data_source, request.date_range, token
                )
                pending[future] = assignment

            if not pending:
                break

            done, _ = wait(pending, timeout=self.config.poll_interval, return_when=FIRST_COMPLETED)
            for future in done:
                pending.pop(future)
                result = future.result()
                if result is None:
                    # Skipped: cancellation arrived before the evaluation started
                    continue
                strategy.record(result)
                if strategy.keeps_history:
                    pass_results.append(result)
                tracker.advance()
                if result.trade_count >= request.min_trades:
                    results.append(result)
                self._notify_progress(tracker.report())

            self._check_timeouts(pending, token)

        return pass_results

    def _evaluate_one(self, evaluator, assignment, data_source, date_range, token) -> Optional[OptimizationResult]:
        """Worker body: one backtest evaluation, unless the run was cancelled."""
        if token.is_cancelled:
            return None

        with self._timing_lock:
            self._started_at[assignment.ordinal] = time.monotonic()
        try:
            metrics = coerce_metrics(evaluator.evaluate(assignment, data_source, date_range))
        except EvaluationError as e:
            if e.assignment is None:
                raise EvaluationError(assignment, e.reason or str(e)) from e
            raise
        except Exception as e:
            raise EvaluationError(assignment, f"{type(e).__name__}: {e}") from e
        finally:
            with self._timing_lock:
                self._started_at.pop(assignment.ordinal, None)

        return OptimizationResult(assignment=assignment, metrics=metrics)

    def _check_timeouts(self, pending: Dict[Future, Assignment], token: CancellationToken):
        """
        Fail the run on an overdue evaluation, or abandon it once the run is cancelled.
        """
        timeout = self.config.timeout_per_evaluation
        if timeout is None or not pending:
            return
        now = time.monotonic()
        with self._timing_lock:
            started_at = dict(self._started_at)
        for future, assignment in list(pending.items()):
            started = started_at.get(assignment.ordinal)
            if started is None or now - started <= timeout:
                continue
            if not token.is_cancelled:
                raise EvaluationError(assignment, f"evaluation timed out after {timeout}s")
            logger.warning(f"Abandoning evaluation of {dict(assignment)} after {timeout}s, run is cancelled")
            pending.pop(future)

    def _validate(self, request, space: ParameterSpace) -> RunRequest:
        """
        Check the request and space before anything is evaluated.

        Raises:
            InvalidConfigurationError: Naming the offending field
        """
        if not isinstance(request, RunRequest):
            request = RunRequest.parse(**dict(request))

        if not request.data_file.is_file():
            raise InvalidConfigurationError(
                "data_file", f'Historical file "{request.data_file}" does not exist.'
            )
        if request.min_trades < 2:
            raise InvalidConfigurationError("min_trades", '"Minimum trades" must be greater or equal to 2.')

        date_range = request.date_range
        if date_range is not None and date_range.start and date_range.end and date_range.start > date_range.end:
            raise InvalidConfigurationError("date_range", "start must not be after end")

        space.validate()

        cardinality = space.cardinality()
        if request.search_method == SearchMethod.EXHAUSTIVE and cardinality > self.config.large_space_warning:
            logger.warning(
                f"Search space is very large ({cardinality:,} combinations). "
                f"Consider larger steps or the divide-and-conquer search."
            )
        return request

    @staticmethod
    def _coerce_evaluator(evaluator) -> BacktestEvaluator:
        if isinstance(evaluator, BacktestEvaluator):
            return evaluator
        if callable(evaluator):
            return FunctionEvaluator(evaluator)
        raise InvalidConfigurationError("evaluator", f"expected a BacktestEvaluator, got {type(evaluator).__name__}")

    def _create_strategy(self, method: SearchMethod) -> SearchStrategy:
        if method == SearchMethod.DIVIDE_AND_CONQUER:
            dc = self.config.divide_and_conquer
            return DivideAndConquerSearch(coarsen_factor=dc.coarsen_factor, max_iterations=dc.max_iterations)
        return ExhaustiveSearch()

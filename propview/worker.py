"""Background aggregation with a request/response boundary and local fallback.

Requests and responses carry only plain data (see models.to_plain). Feed
mappings are validated and coerced once, on the submitting side, and the
pool decodes the payload with PropagationSpot.from_plain, so nothing is
reinterpreted in transit. The same handle_request() runs on the pool
thread and, after a timeout or an error response, on the caller's thread,
so both paths produce identical results for the same snapshot.
"""

import itertools
import threading
from concurrent.futures import Future, ThreadPoolExecutor, TimeoutError as FuturesTimeoutError
from dataclasses import dataclass, field
from typing import Any

from . import aggregator
from .logging_utils import log_debug, log_info, log_warning
from .models import PropagationSpot, to_plain

DEFAULT_TIMEOUT = 30.0

ANALYZE_BAND_CONDITIONS = "ANALYZE_BAND_CONDITIONS"
GENERATE_MAP_MARKERS = "GENERATE_MAP_MARKERS"
GENERATE_PROPAGATION_PATHS = "GENERATE_PROPAGATION_PATHS"
CALCULATE_STATISTICS = "CALCULATE_STATISTICS"
PROCESS_ALL = "PROCESS_ALL"

HANDLERS = {
    ANALYZE_BAND_CONDITIONS: aggregator.analyze_band_conditions,
    GENERATE_MAP_MARKERS: aggregator.cluster_markers,
    GENERATE_PROPAGATION_PATHS: aggregator.build_paths,
    CALCULATE_STATISTICS: aggregator.compute_statistics,
    PROCESS_ALL: aggregator.process_all,
}

SUCCESS = "success"
ERROR = "error"


class ComputationTimeout(TimeoutError):
    """A background aggregation call missed its deadline."""


@dataclass(frozen=True)
class WorkerRequest:
    request_type: str
    payload: dict
    request_id: int


@dataclass(frozen=True)
class WorkerResponse:
    request_id: int
    status: str
    result: Any = None
    error_message: str | None = None


@dataclass
class PendingRequest:
    """A submitted request and the future its response will arrive on."""

    request: WorkerRequest
    future: Future = field(repr=False)


def handle_request(request: WorkerRequest) -> WorkerResponse:
    """Run one request and wrap the outcome in a response.

    Never raises: unknown request types and failures inside the
    computation come back as error responses.
    """
    handler = HANDLERS.get(request.request_type)
    if handler is None:
        return WorkerResponse(
            request_id=request.request_id,
            status=ERROR,
            error_message=f"Unknown request type: {request.request_type}",
        )

    try:
        spots = [PropagationSpot.from_plain(s) for s in request.payload.get("spots", [])]
        result = to_plain(handler(spots))
    except Exception as e:
        return WorkerResponse(request_id=request.request_id, status=ERROR, error_message=str(e))

    return WorkerResponse(request_id=request.request_id, status=SUCCESS, result=result)


class AggregationWorker:
    """Runs aggregation requests on a thread pool.

    Each request gets a new, increasing id. Only the most recently issued
    id is current; responses to older requests are dropped by collect().

    Usage:
        with AggregationWorker(timeout=30) as worker:
            conditions = worker.analyze_band_conditions(spots)
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, max_workers: int = 1,
                 executor: ThreadPoolExecutor | None = None):
        self.timeout = timeout
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="propview-worker"
        )
        self._ids = itertools.count(1)
        self._lock = threading.Lock()
        self._latest_id = 0

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False

    def close(self) -> None:
        """Shut down the pool if this worker created it."""
        if self._owns_executor:
            self._executor.shutdown(wait=False, cancel_futures=True)

    @property
    def latest_request_id(self) -> int:
        return self._latest_id

    def is_stale(self, request_id: int) -> bool:
        """True when a newer request has been issued since request_id."""
        return request_id != self._latest_id

    def submit(self, request_type: str, spots) -> PendingRequest:
        """Queue a request on the pool and return immediately.

        Unusable entries are skipped here with a spot_skipped warning, as
        the aggregator itself would.
        """
        with self._lock:
            request_id = next(self._ids)
            self._latest_id = request_id

        request = WorkerRequest(
            request_type=request_type,
            payload={"spots": to_plain(list(aggregator.iter_valid_spots(spots)))},
            request_id=request_id,
        )
        log_debug("worker_submit", request_id=request_id, request_type=request_type,
                  spots=len(request.payload["spots"]))
        return PendingRequest(request=request, future=self._executor.submit(handle_request, request))

    def _wait(self, pending: PendingRequest) -> WorkerResponse:
        try:
            return pending.future.result(timeout=self.timeout)
        except FuturesTimeoutError as e:
            pending.future.cancel()
            raise ComputationTimeout(
                f"request {pending.request.request_id} exceeded {self.timeout}s"
            ) from e

    def collect(self, pending: PendingRequest) -> WorkerResponse | None:
        """Wait for a response, falling back to local computation on failure.

        Returns:
            The response, or None if the request was superseded by a newer one
        """
        request = pending.request
        try:
            response = self._wait(pending)
        except ComputationTimeout as e:
            log_warning("worker_timeout", request_id=request.request_id,
                        request_type=request.request_type, error=str(e))
            response = self._fallback(request)
        else:
            if response.status == ERROR:
                log_warning("worker_error", request_id=request.request_id,
                            request_type=request.request_type, error=response.error_message)
                response = self._fallback(request)

        if self.is_stale(request.request_id):
            log_debug("worker_stale_response", request_id=request.request_id,
                      latest_request_id=self._latest_id)
            return None
        return response

    def _fallback(self, request: WorkerRequest) -> WorkerResponse:
        log_info("worker_fallback", request_id=request.request_id, request_type=request.request_type)
        return handle_request(request)

    def process(self, request_type: str, spots):
        """Submit and collect in one call.

        Returns:
            Plain result data, or None if superseded by a newer request

        Raises:
            ValueError: if the request fails on both the worker and the fallback path
        """
        response = self.collect(self.submit(request_type, spots))
        if response is None:
            return None
        if response.status == ERROR:
            raise ValueError(response.error_message)
        return response.result

    def analyze_band_conditions(self, spots):
        return self.process(ANALYZE_BAND_CONDITIONS, spots)

    def generate_map_markers(self, spots):
        return self.process(GENERATE_MAP_MARKERS, spots)

    def generate_propagation_paths(self, spots):
        return self.process(GENERATE_PROPAGATION_PATHS, spots)

    def calculate_statistics(self, spots):
        return self.process(CALCULATE_STATISTICS, spots)

    def process_all(self, spots):
        return self.process(PROCESS_ALL, spots)

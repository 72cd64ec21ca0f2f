from __future__ import annotations

"""Worker pool lifecycle and the synchronous Python API.

Flow:
1. build the shared client from the connection policy
2. start exactly `concurrency` workers on one shared queue
3. feed targets into the queue from the calling thread, then close it
4. wait until every worker has drained the queue and exited
"""

from typing import Callable, Iterable, List, Optional, Union

import httpx

from . import logger
from .policy import ConnectionPolicy, build_client
from .worker import FetchResult, FetchWorker, WorkQueue

DEFAULT_CONCURRENCY = 10


class Dispatcher:
    def __init__(
        self,
        policy: ConnectionPolicy,
        concurrency: int = DEFAULT_CONCURRENCY,
        sink: Optional[Callable[[FetchResult], None]] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.policy = policy
        self.concurrency = concurrency
        self.sink = sink or (lambda result: None)
        self.transport = transport
        self.workers: List[FetchWorker] = []
        self.enqueued = 0

    @property
    def active(self) -> int:
        """Number of workers that have not yet left their consume loop."""
        return sum(1 for worker in self.workers if worker.is_alive())

    def run(self, targets: Iterable[str]) -> None:
        """Process every target and return once all workers have exited."""
        work = WorkQueue(maxsize=self.concurrency * 2)
        with build_client(self.policy, transport=self.transport) as client:
            self.workers = [
                FetchWorker(index, work, client, self.sink, deadline=self.policy.deadline)
                for index in range(self.concurrency)
            ]
            for worker in self.workers:
                worker.start()
            logger.debug("Started %d workers", len(self.workers))
            try:
                for target in targets:
                    work.put(target)
                    self.enqueued += 1
            finally:
                work.close()
                for worker in self.workers:
                    worker.join()
        logger.debug(
            "All workers finished: %d targets, %d results",
            self.enqueued,
            sum(worker.emitted for worker in self.workers),
        )


def harvest(
    targets: Union[str, Iterable[str]],
    concurrency: int = DEFAULT_CONCURRENCY,
    timeout: float = 5.0,
    follow_redirects: bool = False,
    transport: Optional[httpx.BaseTransport] = None,
) -> List[FetchResult]:
    """Public synchronous Python API entrypoint.

    Returns results in completion order.

    Example:
    `harvest(["example.com", "1.1.1.1"], concurrency=20)`
    """
    if isinstance(targets, str):
        targets = [targets]
    results: List[FetchResult] = []
    policy = ConnectionPolicy(timeout=timeout, follow_redirects=follow_redirects)
    Dispatcher(policy, concurrency=concurrency, sink=results.append, transport=transport).run(targets)
    return results

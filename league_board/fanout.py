# league_board/fanout.py
"""
Fan-out/fan-in for independent upstream fetches.

Results are only handed back once every task has succeeded, so callers never
see (or cache) a partially fetched input set.
"""

from __future__ import annotations

import logging
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from typing import Any, Callable, Dict, Mapping

logger = logging.getLogger(__name__)


def fan_out(tasks: Mapping[str, Callable[[], Any]], max_workers: int = 8) -> Dict[str, Any]:
    """
    Run named zero-argument callables concurrently and return {name: result}.

    On the first failure, tasks that have not started are cancelled and the
    exception is re-raised. A single task runs inline.
    """
    if not tasks:
        return {}
    if len(tasks) == 1:
        name, fn = next(iter(tasks.items()))
        return {name: fn()}

    workers = max(1, min(max_workers, len(tasks)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        futures = {executor.submit(fn): name for name, fn in tasks.items()}
        done, pending = wait(futures, return_when=FIRST_EXCEPTION)

        for future in done:
            exc = future.exception()
            if exc is not None:
                for other in pending:
                    other.cancel()
                logger.warning("fetch %r failed; dropping %d sibling fetches", futures[future], len(pending))
                raise exc

        return {futures[f]: f.result() for f in futures}

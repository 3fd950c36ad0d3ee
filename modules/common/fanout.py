# modules/common/fanout.py

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


def run_parallel(app, jobs: Dict[str, Callable[[], Any]], max_workers: Optional[int] = None) -> Dict[str, Any]:
    """
    Run independent read jobs on a bounded pool and join.

    Each job runs inside its own app context (own DB session). The result
    map holds either the job's return value or the exception it raised;
    one failed job never cancels the others.
    """
    if not jobs:
        return {}
    workers = max_workers or int(app.config.get("PORTFOLIO_FETCH_WORKERS", 7))

    def _run(fn):
        with app.app_context():
            return fn()

    results = {}
    with ThreadPoolExecutor(max_workers=min(workers, len(jobs))) as pool:
        futures = {name: pool.submit(_run, fn) for name, fn in jobs.items()}
        for name, fut in futures.items():
            try:
                results[name] = fut.result()
            except Exception as e:
                logger.warning("Parallel job %s failed: %s", name, e)
                results[name] = e
    return results

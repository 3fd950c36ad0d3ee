# modules/portfolio/loader.py

import logging
from dataclasses import dataclass, field
from functools import partial
from typing import List, Optional

from modules.common.fanout import run_parallel

logger = logging.getLogger(__name__)

LIST_SECTIONS = ("skills", "education", "experience", "projects", "certificates")


@dataclass
class PortfolioSnapshot:
    """Everything the public page renders. Missing data is None or []."""

    profile: Optional[dict] = None
    skills: List[dict] = field(default_factory=list)
    education: List[dict] = field(default_factory=list)
    experience: List[dict] = field(default_factory=list)
    projects: List[dict] = field(default_factory=list)
    certificates: List[dict] = field(default_factory=list)
    stats: Optional[dict] = None
    failed: List[str] = field(default_factory=list)


def load_portfolio(client, app) -> PortfolioSnapshot:
    """
    Fetch the profile, the five lists and the stats concurrently.

    No retry: a failed fetch is logged and its section keeps its empty
    default, so one bad dataset never takes the page down.
    """
    tables = client.tables
    jobs = {"profile": partial(tables.select_single, "profile")}
    for name in LIST_SECTIONS:
        jobs[name] = partial(tables.list, name)
    jobs["stats"] = tables.portfolio_stats

    snapshot = PortfolioSnapshot()
    for name, value in run_parallel(app, jobs).items():
        if isinstance(value, Exception):
            logger.error("Error fetching %s: %s", name, value)
            snapshot.failed.append(name)
            continue
        setattr(snapshot, name, value)
    return snapshot

"""Agents package

  SurfOrchestrator - request entry point (validate, route, stitch)
  SearchMetrics    - per-process request counters
"""

from trainsurf.agents.metrics import SearchMetrics
from trainsurf.agents.orchestrator import SurfOrchestrator

__all__ = [
    "SearchMetrics",
    "SurfOrchestrator",
]

"""In-repo orchestrator for the surveillance cleaning pipeline.

Provides Task and Pipeline primitives, dependency ordering, output caching, and a Typer CLI.
"""

from .core import TaskSpec, Pipeline, task  # re-export for convenience

__all__ = ["TaskSpec", "Pipeline", "task"]

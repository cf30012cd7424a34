from __future__ import annotations

import inspect
import json
import os
import sys
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterable, Union, List

from .logging import get_logger, release_log_file
from . import cache as cache_mod


# Allow static lists or callables that build paths from params
PathSpec = Union[List[str], Callable[[dict], List[str]]]


@dataclass
class TaskSpec:
    name: str
    inputs: PathSpec
    outputs: PathSpec
    fn: Callable[..., None]


def task(name: str, inputs: PathSpec, outputs: PathSpec):
    """Decorator to declare a task on a function.

    The wrapped function should accept a single dict `params` (parsed config).
    """

    def deco(fn: Callable[..., None]):
        spec = TaskSpec(name=name, inputs=inputs, outputs=outputs, fn=fn)
        setattr(fn, "_task_spec", spec)
        return fn

    return deco


def topo_sort(nodes: Iterable[str], edges: Iterable[tuple[str, str]]) -> list[str]:
    nodes = list(nodes)
    incoming = {n: set() for n in nodes}
    outgoing = {n: set() for n in nodes}
    for u, v in edges:
        if u not in incoming or v not in incoming:
            raise ValueError(f"Edge references unknown node: {(u, v)}")
        outgoing[u].add(v)
        incoming[v].add(u)
    ordered: list[str] = []
    # Seed in declaration order so independent tasks run in a stable order
    roots = [n for n in reversed(nodes) if not incoming[n]]
    while roots:
        n = roots.pop()
        ordered.append(n)
        for m in sorted(outgoing[n], key=nodes.index, reverse=True):
            incoming[m].discard(n)
            outgoing[n].discard(m)
            if not incoming[m]:
                roots.append(m)
    if any(incoming[n] for n in nodes):
        raise ValueError("Cycle detected in DAG")
    return ordered


class Pipeline:
    def __init__(
        self,
        tasks: dict[str, TaskSpec],
        edges: list[tuple[str, str]],
        name: str = "pipeline",
    ):
        self.name = name
        self.tasks = tasks
        self.edges = edges
        self.order = topo_sort(tasks.keys(), edges)
        self.logger = get_logger(f"orchestrator.{self.name}")

    def _select_subset(
        self, from_step: str | None, until_step: str | None, only_step: str | None
    ) -> list[str]:
        if only_step:
            if only_step not in self.tasks:
                raise KeyError(f"Unknown step: {only_step}")
            return [only_step]
        ordered = self.order
        if from_step:
            if from_step not in self.tasks:
                raise KeyError(f"Unknown step: {from_step}")
            ordered = ordered[ordered.index(from_step):]
        if until_step:
            if until_step not in self.tasks:
                raise KeyError(f"Unknown step: {until_step}")
            ordered = ordered[: ordered.index(until_step) + 1]
        return ordered

    def run(
        self,
        params: dict,
        force: set[str] | None = None,
        from_step: str | None = None,
        until_step: str | None = None,
        only_step: str | None = None,
    ) -> dict:
        """Run the selected steps in dependency order and return the run state.

        A failing step is logged, recorded as `error` in the run state, and
        re-raised; later steps do not run.
        """
        force = force or set()
        run_id = time.strftime("%Y%m%d-%H%M%S")
        run_dir = (
            Path(params.get("project", {}).get("runs_dir", "runs")) / self.name / run_id
        )
        os.makedirs(run_dir, exist_ok=True)
        log_file = run_dir / "run.log"
        logger = get_logger(f"orchestrator.{self.name}", log_file=log_file)

        # Expose runtime metadata to tasks
        params = dict(params)
        params["runtime"] = {"run_id": run_id}

        state = {
            "pipeline": self.name,
            "run_id": run_id,
            "steps": [],
            "python": sys.version,
        }
        try:
            selected = self._select_subset(from_step, until_step, only_step)
            logger.info("Selected steps: %s", " → ".join(selected))
            for step_name in selected:
                self._run_step(step_name, params, force, state, run_dir)
        finally:
            release_log_file(logger, log_file)
        return state

    def _run_step(
        self, step_name: str, params: dict, force: set[str], state: dict, run_dir: Path
    ) -> None:
        spec = self.tasks[step_name]
        step_logger = get_logger(f"orchestrator.{self.name}.{step_name}")

        inputs = [Path(p) for p in _resolve_paths(spec.inputs, params)]
        outputs = [Path(p) for p in _resolve_paths(spec.outputs, params)]
        for p in outputs:
            p.parent.mkdir(parents=True, exist_ok=True)

        task_hash = cache_mod.compute_task_hash(
            name=spec.name,
            input_paths=inputs,
            code_paths=_package_sources(spec.fn),
            config=params,
        )

        if step_name not in force and cache_mod.is_cached(task_hash, outputs):
            step_logger.info("Skip (cached): %s", step_name)
            state["steps"].append({"name": step_name, "status": "cached", "hash": task_hash})
            _write_state(run_dir, state)
            return

        step_logger.info("Run: %s", step_name)
        try:
            spec.fn(params=params)
        except Exception as e:
            step_logger.exception("Step failed: %s", step_name)
            state["steps"].append({"name": step_name, "status": "error", "error": str(e)})
            _write_state(run_dir, state)
            raise
        cache_mod.write_hash_files(task_hash, outputs)
        state["steps"].append({"name": step_name, "status": "ok", "hash": task_hash})
        _write_state(run_dir, state)


def _write_state(run_dir: Path, state: dict) -> None:
    with open(run_dir / "state.json", "w", encoding="utf-8") as f:
        json.dump(state, f, indent=2)


def _resolve_paths(paths_spec: PathSpec, params: dict) -> list[str]:
    """Resolve a static list of paths or a callable(params) into a list[str]."""
    if callable(paths_spec):
        paths = paths_spec(params)
    else:
        paths = paths_spec
    if paths is None:
        return []
    return [str(p) for p in paths]


def _package_sources(fn: Callable) -> list[Path]:
    """All source files of the top-level package that defines `fn`.

    Stages are shared between tasks, so any code change invalidates the cache.
    """
    root = sys.modules.get(fn.__module__.split(".")[0])
    root_file = getattr(root, "__file__", None) or inspect.getsourcefile(fn)
    if not root_file:
        return []
    return sorted(Path(root_file).parent.rglob("*.py"))

from __future__ import annotations

import importlib
import pkgutil
from pathlib import Path
from typing import Dict

import typer
import yaml

from .core import Pipeline, TaskSpec
from .logging import get_logger


app = typer.Typer(add_completion=False, help="Surveillance cleaning pipeline CLI")
log = get_logger("orchestrator.cli")

TASKS_PACKAGE = "rsv_pipeline.tasks"

# Full run: clean the raw snapshot, then render the fit diagnostics from it.
FULL_RUN_STEPS = ["clean", "inspect_fits"]
FULL_RUN_EDGES = [("clean", "inspect_fits")]


def load_config(path: str | Path) -> dict:
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"Config file not found: {p}")
    with open(p, "r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def discover_tasks() -> Dict[str, TaskSpec]:
    """Import all modules in the tasks package and collect decorated functions."""
    specs: Dict[str, TaskSpec] = {}
    try:
        pkg = importlib.import_module(TASKS_PACKAGE)
    except ModuleNotFoundError:
        log.warning("No tasks package found.")
        return specs
    for m in pkgutil.iter_modules(pkg.__path__, prefix=f"{TASKS_PACKAGE}."):
        try:
            mod = importlib.import_module(m.name)
        except Exception as e:  # noqa: BLE001
            log.warning("Failed to import %s: %s", m.name, e)
            continue
        for attr_name in dir(mod):
            obj = getattr(mod, attr_name)
            spec = getattr(obj, "_task_spec", None)
            if isinstance(spec, TaskSpec):
                specs[spec.name] = spec
    return specs


@app.command("list")
def list_tasks():
    """List discovered tasks."""
    specs = discover_tasks()
    if not specs:
        typer.echo("No tasks discovered.")
        raise typer.Exit(code=0)
    typer.echo("Discovered tasks:")
    for name in sorted(specs.keys()):
        typer.echo(f"- {name}")


@app.command()
def run_task(
    name: str = typer.Argument(..., help="Task name to run"),
    config: str = typer.Option("configs/base.yaml", help="Path to YAML config"),
    force: bool = typer.Option(False, help="Ignore cache for this task"),
):
    """Run a single task by name."""
    specs = discover_tasks()
    if name not in specs:
        typer.echo(f"Task not found: {name}")
        raise typer.Exit(code=1)
    params = load_config(config)
    pipe = Pipeline(tasks={name: specs[name]}, edges=[], name=f"task.{name}")
    pipe.run(params=params, force={name} if force else set(), only_step=name)


@app.command()
def full_run(
    config: str = typer.Option("configs/base.yaml", help="Path to YAML config"),
    force: str = typer.Option("", help="Comma-separated tasks to force"),
    from_step: str = typer.Option("", help="Start from this step name"),
    until_step: str = typer.Option("", help="Stop after this step name"),
):
    """Run the full pipeline: clean, then fit diagnostics."""
    specs = discover_tasks()
    missing = [r for r in FULL_RUN_STEPS if r not in specs]
    if missing:
        typer.echo("Missing required tasks: " + ", ".join(missing))
        raise typer.Exit(code=1)

    params = load_config(config)
    pipe = Pipeline(
        tasks={k: specs[k] for k in FULL_RUN_STEPS}, edges=FULL_RUN_EDGES, name="full_run"
    )
    force_set = {x.strip() for x in force.split(",") if x.strip()}
    pipe.run(
        params=params,
        force=force_set,
        from_step=from_step or None,
        until_step=until_step or None,
    )


def main():  # pragma: no cover
    app()


if __name__ == "__main__":  # pragma: no cover
    main()

import json
from pathlib import Path

import pandas as pd
import pytest
import yaml
from typer.testing import CliRunner

from rsv_pipeline.orchestrator.cli import app, discover_tasks, load_config


runner = CliRunner()


@pytest.fixture
def config_path(tmp_path, params):
    path = tmp_path / "base.yaml"
    path.write_text(yaml.safe_dump(params), encoding="utf-8")
    return path


def test_discover_tasks_finds_pipeline_tasks():
    specs = discover_tasks()
    assert {"clean", "inspect_fits"} <= set(specs)


def test_list_command():
    result = runner.invoke(app, ["list"])
    assert result.exit_code == 0
    assert "- clean" in result.output
    assert "- inspect_fits" in result.output


def test_run_task_unknown():
    result = runner.invoke(app, ["run-task", "nope"])
    assert result.exit_code == 1
    assert "Task not found" in result.output


def test_run_task_clean(config_path, params):
    result = runner.invoke(app, ["run-task", "clean", "--config", str(config_path)])
    assert result.exit_code == 0, result.output
    out = pd.read_parquet(params["clean"]["output"])
    assert len(out) > 0


def test_full_run_then_cached(config_path, params, tmp_path):
    first = runner.invoke(app, ["full-run", "--config", str(config_path)])
    assert first.exit_code == 0, first.output
    index = tmp_path / "reports" / "fits" / "index.md"
    assert index.exists()
    assert list(index.parent.glob("connecticut__*.png"))

    cached_hash = (tmp_path / "processed" / "RSV-NET Infections.gz.parquet.hash").read_text()
    second = runner.invoke(app, ["full-run", "--config", str(config_path)])
    assert second.exit_code == 0, second.output
    assert (tmp_path / "processed" / "RSV-NET Infections.gz.parquet.hash").read_text() == cached_hash


def test_load_config_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "missing.yaml")


def _latest_state(tmp_path, pipeline):
    states = sorted((tmp_path / "runs" / pipeline).glob("*/state.json"))
    return json.loads(states[-1].read_text())


def test_full_run_from_step_skips_clean(config_path, params, tmp_path):
    first = runner.invoke(app, ["run-task", "clean", "--config", str(config_path)])
    assert first.exit_code == 0, first.output

    result = runner.invoke(
        app, ["full-run", "--config", str(config_path), "--from-step", "inspect_fits"]
    )
    assert result.exit_code == 0, result.output
    state = _latest_state(tmp_path, "full_run")
    assert [s["name"] for s in state["steps"]] == ["inspect_fits"]
    assert (tmp_path / "reports" / "fits" / "index.md").exists()


def test_full_run_until_step_stops_after_clean(config_path, params, tmp_path):
    result = runner.invoke(
        app, ["full-run", "--config", str(config_path), "--until-step", "clean"]
    )
    assert result.exit_code == 0, result.output
    assert pd.read_parquet(params["clean"]["output"]).shape[0] > 0
    assert not (tmp_path / "reports" / "fits" / "index.md").exists()
    state = _latest_state(tmp_path, "full_run")
    assert [s["name"] for s in state["steps"]] == ["clean"]


def test_full_run_unknown_from_step(config_path, params):
    result = runner.invoke(
        app, ["full-run", "--config", str(config_path), "--from-step", "nope"]
    )
    assert result.exit_code != 0
    assert isinstance(result.exception, KeyError)
    assert not (Path(params["clean"]["output"])).exists()


def test_run_task_has_no_retry_option(config_path):
    result = runner.invoke(
        app, ["run-task", "clean", "--config", str(config_path), "--retries", "2"]
    )
    # click usage error
    assert result.exit_code == 2

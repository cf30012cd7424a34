"""Skip-if-unchanged bookkeeping for task outputs.

A task's hash covers its input files, its source file and the parsed config.
After a successful run the hash is written next to each output as
``<output>.hash``; a later run with an identical hash is skipped.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Iterable


def sha256_bytes(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def file_digest(path: Path) -> str:
    h = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(1024 * 1024), b""):
            h.update(chunk)
    return h.hexdigest()


def _describe(path: str) -> dict:
    p = Path(path)
    if p.exists() and p.is_file():
        return {"path": path, "digest": file_digest(p), "size": p.stat().st_size}
    return {"path": path, "digest": None, "size": None}


def compute_task_hash(
    name: str, input_paths: Iterable[Path], code_paths: Iterable[Path], config: dict
) -> str:
    # `runtime` holds per-run values (run id) that must not invalidate the cache
    stable_config = {k: v for k, v in config.items() if k != "runtime"}
    payload = {
        "name": name,
        "inputs": [_describe(p) for p in sorted({str(p) for p in input_paths})],
        "code": [_describe(p) for p in sorted({str(p) for p in code_paths})],
        "config": stable_config,
    }
    data = json.dumps(payload, sort_keys=True, default=str).encode("utf-8")
    return sha256_bytes(data)


def hash_file_for_output(out_path: Path) -> Path:
    return out_path.with_suffix(out_path.suffix + ".hash")


def is_cached(task_hash: str, output_paths: Iterable[Path]) -> bool:
    outputs = list(output_paths)
    if not outputs:
        return False
    # All outputs must exist and match hash
    for p in outputs:
        hf = hash_file_for_output(p)
        if not p.exists() or not hf.exists():
            return False
        if hf.read_text(encoding="utf-8").strip() != task_hash:
            return False
    return True


def write_hash_files(task_hash: str, output_paths: Iterable[Path]) -> None:
    for p in output_paths:
        hf = hash_file_for_output(p)
        hf.parent.mkdir(parents=True, exist_ok=True)
        hf.write_text(task_hash, encoding="utf-8")

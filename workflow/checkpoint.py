"""
Durable step checkpoints.

Each run id owns one JSON file holding the output of every completed step.
A restarted run reads the file and skips straight past finished steps.
"""

import json
import logging
import os
import tempfile
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

from utils.logging import StepLogger

logger = logging.getLogger(__name__)

T = TypeVar("T")


class CheckpointStore:
    """
    File-backed store of step outputs.

    Layout:
        checkpoints/
        ├── digest-20261018.json
        └── welcome-new.user@example.com.json
    """

    def __init__(self, base_dir: Path):
        self.base_dir = Path(base_dir)
        self.base_dir.mkdir(parents=True, exist_ok=True)

    def _path(self, run_id: str) -> Path:
        safe = "".join(c if c.isalnum() or c in "-_.@" else "_" for c in run_id)
        return self.base_dir / f"{safe}.json"

    def load(self, run_id: str) -> Dict[str, Any]:
        """Return {step_name: output} for a run (empty if never started)."""
        path = self._path(run_id)
        if not path.exists():
            return {}
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            logger.warning(f"Ignoring unreadable checkpoint {path}: {e}")
            return {}
        steps = data.get("steps") if isinstance(data, dict) else None
        if not isinstance(steps, dict):
            logger.warning(f"Ignoring malformed checkpoint {path}")
            return {}
        return dict(steps)

    def completed_steps(self, run_id: str) -> List[str]:
        return list(self.load(run_id))

    def save_step(self, run_id: str, step: str, output: Any) -> None:
        """Persist one step's output. The write is atomic per file."""
        steps = self.load(run_id)
        steps[step] = output
        document = {
            "run_id": run_id,
            "updated_at": datetime.now(timezone.utc).isoformat(),
            "steps": steps,
        }

        path = self._path(run_id)
        fd, tmp_name = tempfile.mkstemp(dir=self.base_dir, prefix=".tmp-", suffix=".json")
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def clear(self, run_id: str) -> None:
        path = self._path(run_id)
        if path.exists():
            path.unlink()


async def run_step(
    store: CheckpointStore,
    run_id: str,
    step: str,
    action: Callable[[], Awaitable[T]],
    encode: Callable[[T], Any] = lambda value: value,
    decode: Callable[[Any], T] = lambda value: value,
) -> T:
    """
    Run `action` once per run id.

    If the step already has a checkpoint its decoded output is returned and
    `action` is not called. Otherwise the result is encoded, persisted and
    returned. A step that raises leaves no checkpoint, so it runs again on retry.
    """
    steps = store.load(run_id)
    if step in steps:
        logger.info(f"Run {run_id}: reusing checkpointed output of step {step}")
        return decode(steps[step])

    with StepLogger(step, run_id=run_id):
        value = await action()

    store.save_step(run_id, step, encode(value))
    return value

"""
Tests for durable step checkpoints.
"""

import asyncio

import pytest

from workflow.checkpoint import CheckpointStore, run_step


def test_step_output_is_persisted_and_reused(tmp_path):
    store = CheckpointStore(tmp_path)
    calls = []

    async def action():
        calls.append(1)
        return {"users": 2}

    first = asyncio.run(run_step(store, "run-1", "collect", action))
    second = asyncio.run(run_step(CheckpointStore(tmp_path), "run-1", "collect", action))

    assert first == second == {"users": 2}
    assert len(calls) == 1
    assert store.completed_steps("run-1") == ["collect"]


def test_failed_step_leaves_no_checkpoint(tmp_path):
    store = CheckpointStore(tmp_path)

    async def boom():
        raise RuntimeError("crash")

    with pytest.raises(RuntimeError):
        asyncio.run(run_step(store, "run-1", "fetch", boom))

    assert store.completed_steps("run-1") == []


def test_encode_and_decode_wrap_stored_value(tmp_path):
    store = CheckpointStore(tmp_path)

    async def action():
        return {3, 1, 2}

    asyncio.run(run_step(store, "r", "s", action, encode=sorted, decode=set))
    value = asyncio.run(run_step(store, "r", "s", action, encode=sorted, decode=set))

    assert store.load("r") == {"s": [1, 2, 3]}
    assert value == {1, 2, 3}


def test_runs_are_isolated_and_clearable(tmp_path):
    store = CheckpointStore(tmp_path)
    store.save_step("a", "one", 1)
    store.save_step("b", "one", 2)

    store.clear("a")

    assert store.load("a") == {}
    assert store.load("b") == {"one": 2}


def test_corrupt_checkpoint_is_treated_as_empty(tmp_path):
    store = CheckpointStore(tmp_path)
    (tmp_path / "broken.json").write_text("{not json")

    assert store.load("broken") == {}


@pytest.mark.parametrize("document", ['["collect-users"]', '{"steps": ["collect-users"]}', '"done"'])
def test_non_object_checkpoint_is_treated_as_empty(tmp_path, document):
    store = CheckpointStore(tmp_path)
    (tmp_path / "odd.json").write_text(document)

    assert store.load("odd") == {}
    store.save_step("odd", "collect-users", [])
    assert store.completed_steps("odd") == ["collect-users"]

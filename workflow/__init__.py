"""
Durable digest workflow.

Modules:
- checkpoint: per-run step checkpoints and the run_step helper
- models: step names and the data passed between steps
- orchestrator: the daily digest state machine
- welcome: welcome email for new users
- scheduler: daily cron trigger
"""

from workflow.checkpoint import CheckpointStore, run_step
from workflow.models import DigestResult, DigestRunReport, RunStatus, UserDigestTask
from workflow.orchestrator import DigestOrchestrator, default_run_id
from workflow.welcome import NewUserEvent, WelcomeWorkflow

__all__ = [
    "CheckpointStore",
    "run_step",
    "DigestResult",
    "DigestRunReport",
    "RunStatus",
    "UserDigestTask",
    "DigestOrchestrator",
    "default_run_id",
    "NewUserEvent",
    "WelcomeWorkflow",
]

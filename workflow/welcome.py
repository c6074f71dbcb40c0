"""
Welcome email for newly created users.

Two checkpointed steps: generate a personalized intro, then send it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict

from delivery.dispatcher import DeliveryResult, Dispatcher
from synthesis.digest_summarizer import DigestSummarizer
from workflow.checkpoint import CheckpointStore, run_step

logger = logging.getLogger(__name__)

GENERATE_INTRO = "generate-welcome-intro"
SEND_WELCOME = "send-welcome-email"


@dataclass(frozen=True)
class NewUserEvent:
    """Payload of a user-created event."""

    email: str
    name: str
    country: str = ""
    investment_goals: str = ""
    risk_tolerance: str = ""
    preferred_industry: str = ""

    def profile(self) -> Dict[str, Any]:
        return {
            "country": self.country,
            "investment_goals": self.investment_goals,
            "risk_tolerance": self.risk_tolerance,
            "preferred_industry": self.preferred_industry,
        }


class WelcomeWorkflow:
    """Sends one personalized welcome email per new user."""

    def __init__(self, summarizer: DigestSummarizer, dispatcher: Dispatcher, checkpoints: CheckpointStore):
        self.summarizer = summarizer
        self.dispatcher = dispatcher
        self.checkpoints = checkpoints

    async def run(self, event: NewUserEvent) -> DeliveryResult:
        run_id = f"welcome-{event.email}"

        async def generate() -> str:
            result = await self.summarizer.welcome_intro(event.profile())
            return result.text

        intro = await run_step(self.checkpoints, run_id, GENERATE_INTRO, generate)
        return await run_step(
            self.checkpoints, run_id, SEND_WELCOME,
            lambda: self.dispatcher.send_welcome(event.email, event.name, intro),
            encode=lambda d: d.to_dict(),
            decode=DeliveryResult.from_dict,
        )

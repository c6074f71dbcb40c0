"""
Durable daily digest workflow.

Steps run strictly in order and each one is checkpointed per run id:

    collect-users -> fetch-personalized-news -> summarize-news -> send-news-emails

Inside a step, users are processed concurrently under a fixed limit and each
user's failure is contained to that user. Only a missing credential or an
unreadable subscriber store stops a run.
"""

import logging
from datetime import datetime, timezone
from typing import Dict, List, Optional

from config.settings import get_settings, Settings
from data.stores import StoreError, Subscriber, SubscriberStore, WatchlistStore
from delivery.dispatcher import DeliveryResult, Dispatcher
from news.aggregator import NewsAggregator
from news.models import AggregationResult
from synthesis.digest_summarizer import DigestSummarizer, SERVICE_ERROR_MESSAGE
from utils.helpers import async_retry, format_date_today, gather_bounded
from utils.logging import StepLogger
from workflow.checkpoint import CheckpointStore, run_step
from workflow.models import (
    COLLECT_USERS,
    DIGEST_STEPS,
    DISPATCH,
    FETCH_PER_USER,
    SUMMARIZE,
    DigestResult,
    DigestRunReport,
    RunStatus,
    UserDigestTask,
)

logger = logging.getLogger(__name__)


def default_run_id(now: Optional[datetime] = None) -> str:
    """One run per UTC day, so a restart the same day resumes the same run."""
    now = now or datetime.now(timezone.utc)
    return f"digest-{now.strftime('%Y%m%d')}"


class DigestOrchestrator:
    """
    Fans the daily digest out over every subscriber.

    Collaborators are injected so the same state machine serves the cron
    trigger, the manual trigger and tests.
    """

    def __init__(
        self,
        subscribers: SubscriberStore,
        watchlists: WatchlistStore,
        aggregator: NewsAggregator,
        summarizer: DigestSummarizer,
        dispatcher: Dispatcher,
        checkpoints: CheckpointStore,
        settings: Optional[Settings] = None,
        collect_attempts: int = 3,
        collect_retry_delay: float = 1.0,
    ):
        self.subscribers = subscribers
        self.watchlists = watchlists
        self.aggregator = aggregator
        self.summarizer = summarizer
        self.dispatcher = dispatcher
        self.checkpoints = checkpoints
        self.settings = settings or get_settings()
        self.max_concurrent = self.settings.digest_concurrency
        self.collect_attempts = collect_attempts
        self.collect_retry_delay = collect_retry_delay

    async def run(self, run_id: Optional[str] = None, date: Optional[str] = None) -> DigestRunReport:
        """
        Run, or resume, one digest run.

        Raises:
            ConfigurationError: if the market data API key is missing
        """
        self.settings.require_finnhub_key()

        run_id = run_id or default_run_id()
        date = date or format_date_today()
        resumed = [s for s in self.checkpoints.completed_steps(run_id) if s in DIGEST_STEPS]
        if resumed:
            logger.info(f"Resuming run {run_id}; completed steps: {resumed}")

        try:
            users = await run_step(
                self.checkpoints, run_id, COLLECT_USERS, self._collect_users,
                encode=lambda us: [u.to_dict() for u in us],
                decode=lambda data: [Subscriber.from_dict(u) for u in data],
            )
        except StoreError as e:
            logger.error(f"Run {run_id} failed collecting users: {e}")
            return DigestRunReport(run_id, RunStatus.FAILED, f"Failed to collect users: {e}", resumed_steps=resumed)

        if not users:
            logger.info(f"Run {run_id}: no users found for news email")
            return DigestRunReport(run_id, RunStatus.DONE, "No users found for news email", resumed_steps=resumed)

        fetched = await run_step(
            self.checkpoints, run_id, FETCH_PER_USER, lambda: self._fetch_all(users),
            encode=_encode_results, decode=_decode_results,
        )
        summarized = await run_step(
            self.checkpoints, run_id, SUMMARIZE, lambda: self._summarize_all(fetched),
            encode=_encode_results, decode=_decode_results,
        )
        deliveries = await self._dispatch_step(run_id, summarized, date)

        sent = sum(1 for d in deliveries if d.sent)
        report = DigestRunReport(
            run_id=run_id,
            status=RunStatus.DONE,
            message="Daily news summary emails sent",
            users_processed=len(users),
            emails_sent=sent,
            emails_failed=len(deliveries) - sent,
            degraded_users=sum(1 for r in fetched if r.degraded),
            resumed_steps=resumed,
        )
        logger.info(
            f"Run {run_id} done: {report.users_processed} users, "
            f"{report.emails_sent} sent, {report.emails_failed} failed, "
            f"{report.degraded_users} degraded"
        )
        return report

    # =========================================================================
    # Steps
    # =========================================================================

    async def _collect_users(self) -> List[Subscriber]:
        read = async_retry(
            max_attempts=self.collect_attempts,
            delay_seconds=self.collect_retry_delay,
            exceptions=(StoreError,),
        )(self.subscribers.list_all_digest_recipients)
        users = await read()

        # One digest per address
        unique: Dict[str, Subscriber] = {}
        for user in users:
            unique.setdefault(user.email, user)
        return list(unique.values())

    async def _fetch_all(self, users: List[Subscriber]) -> List[DigestResult]:
        return await gather_bounded(users, self._fetch_for_user, self.max_concurrent)

    async def _fetch_for_user(self, user: Subscriber) -> DigestResult:
        try:
            symbols = await self.watchlists.list_symbols_for_user(user.email)
        except Exception as e:
            logger.error(f"Watchlist lookup failed for {user.email}: {e}")
            symbols = []

        task = UserDigestTask(user.id, user.email, user.name, tuple(symbols))
        logger.info(f"Fetching news for {task.email} with symbols: {list(task.symbols)}")

        try:
            result = await self.aggregator.aggregate(task.symbols)
        except Exception as e:
            logger.exception(f"Error fetching news for user {task.email}: {e}")
            result = AggregationResult(articles=(), degraded=True)

        logger.info(f"Retrieved {len(result)} articles for {task.email}")
        return DigestResult(
            user_id=task.user_id,
            email=task.email,
            articles=result.articles,
            degraded=result.degraded,
        )

    async def _summarize_all(self, fetched: List[DigestResult]) -> List[DigestResult]:
        return await gather_bounded(fetched, self._summarize_for_user, self.max_concurrent)

    async def _summarize_for_user(self, digest: DigestResult) -> DigestResult:
        try:
            summary = await self.summarizer.summarize(digest.articles)
            text = summary.text
            if not summary.ok:
                logger.warning(f"Using fallback summary for {digest.email} ({summary.failure.value})")
        except Exception as e:
            logger.exception(f"Failed to summarize news for {digest.email}: {e}")
            text = SERVICE_ERROR_MESSAGE

        return DigestResult(
            user_id=digest.user_id,
            email=digest.email,
            articles=digest.articles,
            degraded=digest.degraded,
            summary_text=text,
        )

    async def _dispatch_step(self, run_id: str, summarized: List[DigestResult], date: str) -> List[DeliveryResult]:
        """
        Send the digests, checkpointing the outcome per recipient.

        On a rerun only recipients without a successful delivery are attempted
        again. A delivered digest is never sent twice.
        """
        saved = self.checkpoints.load(run_id).get(DISPATCH) or []
        delivered = {r.email: r for r in (DeliveryResult.from_dict(d) for d in saved) if r.sent}
        pending = [d for d in summarized if d.email not in delivered]
        if not pending:
            return [delivered[d.email] for d in summarized]
        if delivered:
            logger.info(f"Run {run_id}: retrying {len(pending)} undelivered emails")

        with StepLogger(DISPATCH, run_id=run_id):
            fresh = await self._dispatch_all(pending, date)

        outcomes = {**delivered, **{r.email: r for r in fresh}}
        results = [outcomes[d.email] for d in summarized]
        self.checkpoints.save_step(run_id, DISPATCH, [r.to_dict() for r in results])
        return results

    async def _dispatch_all(self, summarized: List[DigestResult], date: str) -> List[DeliveryResult]:
        async def dispatch(digest: DigestResult) -> DeliveryResult:
            if not digest.summary_text:
                logger.info(f"Skipping email for {digest.email} - no news content")
                return DeliveryResult(email=digest.email, sent=False, error="no news content")
            return await self.dispatcher.send_news_summary(digest.email, date, digest.summary_text)

        results = await gather_bounded(summarized, dispatch, self.max_concurrent)
        logger.info(f"Email sending results: {[r.sent for r in results]}")
        return results


def _encode_results(results: List[DigestResult]) -> List[Dict]:
    return [r.to_dict() for r in results]


def _decode_results(data: List[Dict]) -> List[DigestResult]:
    return [DigestResult.from_dict(d) for d in data]

"""
Data types passed between digest workflow steps.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from news.models import Article

COLLECT_USERS = "collect-users"
FETCH_PER_USER = "fetch-personalized-news"
SUMMARIZE = "summarize-news"
DISPATCH = "send-news-emails"

DIGEST_STEPS = (COLLECT_USERS, FETCH_PER_USER, SUMMARIZE, DISPATCH)


class RunStatus(Enum):
    """Terminal states of a digest run."""

    DONE = "done"
    FAILED = "failed"


@dataclass(frozen=True)
class UserDigestTask:
    """One subscriber's work item for a run."""

    user_id: str
    email: str
    display_name: str
    symbols: Tuple[str, ...] = ()


@dataclass(frozen=True)
class DigestResult:
    """Articles and summary produced for one user in one run."""

    user_id: str
    email: str
    articles: Tuple[Article, ...] = ()
    degraded: bool = False
    summary_text: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_id": self.user_id,
            "email": self.email,
            "articles": [a.to_dict() for a in self.articles],
            "degraded": self.degraded,
            "summary_text": self.summary_text,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DigestResult":
        return cls(
            user_id=data["user_id"],
            email=data["email"],
            articles=tuple(Article.from_dict(a) for a in data.get("articles", [])),
            degraded=bool(data.get("degraded", False)),
            summary_text=data.get("summary_text"),
        )


@dataclass
class DigestRunReport:
    """Reportable outcome of a digest run."""

    run_id: str
    status: RunStatus
    message: str
    users_processed: int = 0
    emails_sent: int = 0
    emails_failed: int = 0
    degraded_users: int = 0
    resumed_steps: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return self.status == RunStatus.DONE

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "status": self.status.value,
            "message": self.message,
            "users_processed": self.users_processed,
            "emails_sent": self.emails_sent,
            "emails_failed": self.emails_failed,
            "degraded_users": self.degraded_users,
            "resumed_steps": list(self.resumed_steps),
        }

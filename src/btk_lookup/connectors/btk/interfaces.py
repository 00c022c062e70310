"""Interfaces for the BTK connector.

This module defines the data structures that flow through the lookup
pipeline and the abstract connector contract exposed to the command line and
MCP front ends.

BTK (Bilgi Teknolojileri ve İletişim Kurumu) is Turkey's telecommunications
authority; its "site sorgu" form reports whether a domain is blocked and on
the basis of which court or administrative decision.
"""

from abc import ABC, abstractmethod
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, List, Optional, Sequence, Union

from .session import Session


class QueryState(Enum):
    """States a single domain query moves through.

    Any failure while in NEED_CAPTCHA, SOLVING or SUBMITTING loops back to
    NEED_CAPTCHA until the attempt budget runs out, then goes to DONE.
    """
    NEED_CAPTCHA = "need_captcha"  # Fetch a challenge (and a session if none is held)
    SOLVING = "solving"  # Recognize the CAPTCHA text
    SUBMITTING = "submitting"  # Post the query with the solved code
    DONE = "done"  # Outcome recorded


@dataclass(frozen=True)
class CaptchaChallenge:
    """A CAPTCHA image together with the session it belongs to.

    Attributes:
        image: Raw image bytes as served by the site.
        session: Cookies at acquisition time, including any set by the
                 image response itself.
    """
    image: bytes
    session: Session


@dataclass(frozen=True)
class DecisionRecord:
    """Structured blocking decision extracted from a result page.

    Attributes:
        blocked: Whether the domain is blocked.
        decision_date: Decision date as ``DD/MM/YYYY``.
        decision_number: Full decision reference, e.g. ``2023/1234 D. İş``.
        case_number: Numeric part of the reference, e.g. ``2023/1234``.
        case_type: Case type part of the reference, e.g. ``D. İş``.
        court: Court or authority that issued the decision.
        local_description: Turkish description from the page.
        foreign_description: English description from the page.
    """
    blocked: bool = False
    decision_date: Optional[str] = None
    decision_number: Optional[str] = None
    case_number: Optional[str] = None
    case_type: Optional[str] = None
    court: Optional[str] = None
    local_description: Optional[str] = None
    foreign_description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class QuerySuccess:
    """A domain was queried and its result page was read."""
    domain: str
    record: DecisionRecord
    duration_ms: int = 0

    @property
    def ok(self) -> bool:
        return True


@dataclass(frozen=True)
class QueryFailure:
    """A domain could not be queried within the attempt budget."""
    domain: str
    reason: str

    @property
    def ok(self) -> bool:
        return False


QueryOutcome = Union[QuerySuccess, QueryFailure]


@dataclass(frozen=True)
class BatchSummary:
    """Counts for a finished batch."""
    blocked: int
    not_blocked: int
    failed: int

    @property
    def total(self) -> int:
        return self.blocked + self.not_blocked + self.failed


def summarize(outcomes: Sequence[QueryOutcome], requested: Optional[int] = None) -> BatchSummary:
    """Aggregate outcomes into blocked / not blocked / failed counts.

    Args:
        outcomes: Outcomes in request order.
        requested: Number of domains requested; defaults to ``len(outcomes)``.
                   Domains without a successful outcome count as failed.
    """
    successes = [o for o in outcomes if isinstance(o, QuerySuccess)]
    blocked = sum(1 for o in successes if o.record.blocked)
    total = len(outcomes) if requested is None else requested
    return BatchSummary(
        blocked=blocked,
        not_blocked=len(successes) - blocked,
        failed=total - len(successes),
    )


class IBTKConnector(ABC):
    """Contract of the BTK lookup connector."""

    @abstractmethod
    async def run_batch(self, domains: Sequence[str], api_key: str) -> List[QueryOutcome]:
        """Query every domain in order.

        Args:
            domains: Domains to look up; the first one validates the run.
            api_key: Recognition service API key.

        Returns:
            One outcome per domain, in request order.

        Raises:
            BootstrapError: If the first domain cannot be queried at all.
        """
        pass

    @abstractmethod
    async def query(self, domain: str, api_key: str) -> QueryOutcome:
        """Query a single domain (a batch of one)."""
        pass

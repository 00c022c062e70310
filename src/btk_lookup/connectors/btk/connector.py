"""BTK connector implementation.

This module drives the lookup flow for a batch of domains: fetch a CAPTCHA,
have it recognized, submit the query, read the result page. Each domain runs
through a small state machine with a bounded number of attempts.

Session policy: the first domain (bootstrap) always starts from a brand-new
session, and its success proves the pipeline works. Later domains reuse the
session that last produced an accepted submission. Any failure signal (a
rejected CAPTCHA or an error) drops the shared session, and the next attempt
performs a fresh handshake.
"""

import asyncio
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from btk_lookup.captcha.interfaces import ICaptchaSolver
from btk_lookup.captcha.solvers import GeminiCaptchaSolver
from btk_lookup.config.logger import logger
from btk_lookup.config.settings import LookupConfig
from btk_lookup.errors import BootstrapError, BTKLookupError
from btk_lookup.http.transport import HttpTransport
from .client import BTKSiteClient, is_captcha_rejected
from .interfaces import (
    CaptchaChallenge,
    IBTKConnector,
    QueryFailure,
    QueryOutcome,
    QueryState,
    QuerySuccess,
)
from .parser import extract_decision
from .session import Session


@dataclass
class DomainRun:
    """Mutable bookkeeping for one domain while it moves through the states."""
    domain: str
    api_key: str
    bootstrap: bool
    attempts: int = 0
    challenge: Optional[CaptchaChallenge] = None
    code: Optional[str] = None
    outcome: Optional[QueryOutcome] = None
    started_at: float = field(default_factory=time.monotonic)


class BTKConnector(IBTKConnector):
    """Orchestrates BTK lookups for a sequence of domains.

    Queries run strictly one after another on a single session, which the
    site expects and which keeps exactly one writer on the cookie state.
    """

    def __init__(
        self,
        config: LookupConfig,
        site_client: BTKSiteClient,
        solver: ICaptchaSolver,
    ):
        """Initialize the connector.

        Args:
            config: Application configuration (attempt budget, delays).
            site_client: Client for the BTK form.
            solver: Captcha recognizer.
        """
        self.config = config
        self.site = site_client
        self.solver = solver
        self._session: Optional[Session] = None
        self._handlers: Dict[QueryState, Callable[[DomainRun], Awaitable[QueryState]]] = {
            QueryState.NEED_CAPTCHA: self._handle_need_captcha,
            QueryState.SOLVING: self._handle_solving,
            QueryState.SUBMITTING: self._handle_submitting,
        }
        self.logger = logger.bind(connector="btk")

    @classmethod
    def from_transport(cls, config: LookupConfig, transport: HttpTransport) -> "BTKConnector":
        """Wire the default site client and Gemini solver onto one transport."""
        return cls(
            config,
            site_client=BTKSiteClient(transport, config),
            solver=GeminiCaptchaSolver(transport, config),
        )

    @property
    def session(self) -> Optional[Session]:
        """Session that will be reused by the next continuation query."""
        return self._session

    async def run_batch(self, domains: Sequence[str], api_key: str) -> List[QueryOutcome]:
        """Query every domain in order.

        The first domain is the bootstrap: if it cannot be queried within
        the attempt budget the whole run is aborted. Later domains that run
        out of attempts are reported as ``QueryFailure`` and the batch goes on.

        Args:
            domains: Domains to look up.
            api_key: Recognition service API key.

        Returns:
            One outcome per domain, in request order.

        Raises:
            BootstrapError: If the first domain could not be queried.
        """
        outcomes: List[QueryOutcome] = []
        self.logger.info("batch_started", domains=len(domains))

        for index, domain in enumerate(domains):
            bootstrap = index == 0
            outcome = await self._query_domain(domain, api_key, bootstrap=bootstrap)

            if bootstrap and isinstance(outcome, QueryFailure):
                self.logger.error("bootstrap_failed", domain=domain, reason=outcome.reason)
                raise BootstrapError(domain, outcome.reason)

            outcomes.append(outcome)

            # Keep under the site's rate limit
            if index < len(domains) - 1:
                await asyncio.sleep(self.config.inter_query_delay)

        self.logger.info(
            "batch_finished",
            requested=len(domains),
            succeeded=sum(1 for o in outcomes if o.ok),
        )
        return outcomes

    async def query(self, domain: str, api_key: str) -> QueryOutcome:
        """Query a single domain on a fresh session."""
        return await self._query_domain(domain, api_key, bootstrap=True)

    async def _query_domain(self, domain: str, api_key: str, bootstrap: bool) -> QueryOutcome:
        """Run one domain through the state machine until DONE."""
        run = DomainRun(domain=domain, api_key=api_key, bootstrap=bootstrap)
        state = QueryState.NEED_CAPTCHA

        while state is not QueryState.DONE:
            try:
                state = await self._handlers[state](run)
            except BTKLookupError as e:
                self.logger.warning(
                    "attempt_failed",
                    domain=domain,
                    state=state.value,
                    error_type=type(e).__name__,
                    error=str(e),
                )
                state = await self._retry_or_finish(run, str(e) or type(e).__name__)
            except Exception as e:
                self.logger.error(
                    "attempt_failed_unexpectedly",
                    domain=domain,
                    state=state.value,
                    error=str(e),
                    exc_info=True,
                )
                state = await self._retry_or_finish(run, f"Unexpected error: {e}")

        return run.outcome

    async def _handle_need_captcha(self, run: DomainRun) -> QueryState:
        # The bootstrap never trusts an earlier session
        session = None if run.bootstrap else self._session
        run.challenge = await self.site.acquire_captcha(session)
        return QueryState.SOLVING

    async def _handle_solving(self, run: DomainRun) -> QueryState:
        run.code = await self.solver.solve(run.challenge.image, run.api_key)
        return QueryState.SUBMITTING

    async def _handle_submitting(self, run: DomainRun) -> QueryState:
        body = await self.site.submit(run.domain, run.code, run.challenge.session)

        if is_captcha_rejected(body):
            self.logger.warning("captcha_rejected", domain=run.domain, code=run.code)
            return await self._retry_or_finish(run, "CAPTCHA code was rejected")

        record = extract_decision(body)
        # The challenge session may carry cookies the shared one lacks
        self._session = run.challenge.session

        duration_ms = int((time.monotonic() - run.started_at) * 1000)
        run.outcome = QuerySuccess(domain=run.domain, record=record, duration_ms=duration_ms)
        self.logger.info(
            "domain_queried",
            domain=run.domain,
            blocked=record.blocked,
            attempts=run.attempts + 1,
            duration_ms=duration_ms,
        )
        return QueryState.DONE

    async def _retry_or_finish(self, run: DomainRun, reason: str) -> QueryState:
        """Account for a failed attempt and decide where to go next.

        Drops the shared session, then either schedules another attempt or
        records the failure once the budget is spent.
        """
        self._session = None
        run.challenge = None
        run.code = None
        run.attempts += 1

        if run.attempts >= self.config.max_retries:
            run.outcome = QueryFailure(domain=run.domain, reason=reason)
            self.logger.error(
                "domain_failed",
                domain=run.domain,
                attempts=run.attempts,
                reason=reason,
            )
            return QueryState.DONE

        self.logger.info(
            "retrying",
            domain=run.domain,
            attempt=run.attempts,
            max_retries=self.config.max_retries,
        )
        await asyncio.sleep(self.config.retry_delay)
        return QueryState.NEED_CAPTCHA

"""Confidence-scored router over the agent registry."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any, Iterable, Optional

from capacitycore.core.exceptions import (
    CapacityCoreError,
    NoConfidentMatchError,
    RoutingError,
    UpstreamUnreachableError,
)
from capacitycore.registry.models import HealthStatus
from capacitycore.registry.registry import AgentRegistry
from capacitycore.routing.audit import DispatchLog
from capacitycore.routing.defaults import default_rules
from capacitycore.routing.dispatcher import AgentDispatcher
from capacitycore.routing.models import (
    DispatchRecord,
    RouteEnvelope,
    RouteErrorInfo,
    RouteHints,
    RouteMetadata,
    RouteRequest,
    RouteResult,
    RoutingDecision,
    RoutingRule,
)
from capacitycore.routing.rules import RuleScore, RuleScorer, load_rules, serialize_payload
from capacitycore.settings.router import RouterSettings

logger = logging.getLogger(__name__)


class Router:
    """
    Routes operation requests to registered agents.

    Flow:
    1. Preferred-agent hint wins outright when that agent is routable
    2. Otherwise every rule is scored; the best routable rule wins
    3. Below the rule's threshold the request is refused, never guessed
    4. Single-shot dispatch with a hard deadline, recorded in the log

    The rule table is an immutable tuple. Routing holds no other shared
    state, so concurrent callers need no locking.
    """

    def __init__(
        self,
        registry: AgentRegistry,
        rules: Optional[Iterable[RoutingRule]] = None,
        dispatcher: Optional[AgentDispatcher] = None,
        settings: Optional[RouterSettings] = None,
        dispatch_log: Optional[DispatchLog] = None,
    ):
        self._registry = registry
        self._settings = settings or RouterSettings()
        self._scorer = RuleScorer.from_settings(self._settings)
        self._dispatcher = dispatcher or AgentDispatcher(
            max_concurrent_per_agent=self._settings.max_concurrent_per_agent,
        )
        self.dispatch_log = dispatch_log or DispatchLog(self._settings.dispatch_log_size)
        self._rules: tuple[RoutingRule, ...] = ()
        self.reload_rules(rules)

    @property
    def rules(self) -> tuple[RoutingRule, ...]:
        return self._rules

    def reload_rules(self, rules: Optional[Iterable[RoutingRule]] = None) -> tuple[RoutingRule, ...]:
        """Swap in a new rule table (configured file or defaults when omitted)."""
        if rules is None:
            if self._settings.rules_path:
                rules = load_rules(self._settings.rules_path, self._settings)
            else:
                rules = default_rules(self._settings)
        self._rules = tuple(rules)
        logger.info(f"Loaded {len(self._rules)} routing rules")
        return self._rules

    async def close(self) -> None:
        await self._dispatcher.close()

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def classify(
        self,
        operation: str,
        payload: Optional[dict[str, Any]] = None,
        hints: Optional[RouteHints] = None,
    ) -> RoutingDecision:
        """Pick a target agent without dispatching.

        Raises:
            NoConfidentMatchError: Best routable rule is below its threshold
            UpstreamUnreachableError: Only rules for down agents would match
        """
        if hints and hints.preferred_agent:
            preferred = hints.preferred_agent
            if preferred in self._registry and self._registry.is_routable(preferred):
                return RoutingDecision(
                    target_agent=preferred,
                    confidence=1.0,
                    override=True,
                    reason="preferred agent hint",
                )
            logger.debug(f"Preferred agent {preferred} not routable, falling back to rules")

        payload_text = serialize_payload(payload)
        best: Optional[tuple[float, float, RuleScore]] = None
        skipped: list[RuleScore] = []

        for index, rule in enumerate(self._rules):
            scored = self._scorer.score(rule, index, operation, payload_text)
            if not scored.matched:
                continue

            status = self._registry.status(rule.target_agent)
            if status is None or not status.is_routable:
                skipped.append(scored)
                continue

            score, confidence = scored.score, scored.confidence
            if status == HealthStatus.DEGRADED:
                score *= 1.0 - self._settings.degraded_penalty
                confidence *= 1.0 - self._settings.degraded_penalty

            # Rank on score, which keeps growing past the confidence cap.
            # Strict comparison keeps the first-declared rule on ties.
            if best is None or score > best[0]:
                best = (score, confidence, scored)

        if best is not None and best[1] >= best[2].rule.min_confidence:
            _, confidence, scored = best
            return RoutingDecision(
                target_agent=scored.rule.target_agent,
                confidence=round(confidence, 4),
                rule_name=scored.rule.label,
                reason=f"{scored.pattern_hits} pattern(s), {scored.keyword_hits} keyword(s)",
            )

        blocked = [s for s in skipped if s.confidence >= s.rule.min_confidence]
        if blocked:
            target = blocked[0].rule.target_agent
            raise UpstreamUnreachableError(
                f"Operation '{operation}' matches agent '{target}', which is not routable",
                agent_name=target,
                confidence=blocked[0].confidence,
            )

        best_confidence = best[1] if best else 0.0
        raise NoConfidentMatchError(
            f"No routing rule matched '{operation}' with sufficient confidence "
            f"(best={best_confidence:.2f})",
            agent_name=best[2].rule.target_agent if best else None,
            confidence=best_confidence,
        )

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    async def route(
        self,
        operation: str,
        payload: Optional[dict[str, Any]] = None,
        hints: Optional[RouteHints] = None,
        request_id: Optional[str] = None,
    ) -> RouteResult:
        """Classify and dispatch one request.

        Taxonomy errors propagate to the caller; see :meth:`handle` for
        the envelope form.
        """
        request_id = request_id or str(uuid.uuid4())
        payload = payload or {}
        start = time.perf_counter()

        decision = self.classify(operation, payload, hints)
        agent = self._registry.require(decision.target_agent)
        timeout_ms = (hints.timeout_ms if hints else None) or self._settings.default_timeout_ms

        error_code: Optional[str] = "Cancelled"
        try:
            response = await self._dispatcher.dispatch(
                agent,
                operation,
                payload,
                request_id=request_id,
                timeout_seconds=timeout_ms / 1000,
            )
            error_code = None
        except RoutingError as e:
            e.confidence = decision.confidence
            error_code = e.code
            raise
        finally:
            self.dispatch_log.record(
                DispatchRecord(
                    request_id=request_id,
                    agent=agent.name,
                    confidence=decision.confidence,
                    processing_time_ms=(time.perf_counter() - start) * 1000,
                    success=error_code is None,
                    error_code=error_code,
                )
            )

        return RouteResult(
            request_id=request_id,
            target_agent=agent.name,
            response=response,
            confidence=decision.confidence,
            latency_ms=(time.perf_counter() - start) * 1000,
        )

    async def handle(self, request: RouteRequest) -> RouteEnvelope:
        """Route an inbound request and wrap the outcome in an envelope."""
        request_id = request.request_id or str(uuid.uuid4())
        start = time.perf_counter()

        try:
            result = await self.route(
                request.action,
                request.payload,
                request.hints,
                request_id=request_id,
            )
        except CapacityCoreError as e:
            agent_name = getattr(e, "agent_name", None)
            return RouteEnvelope(
                request_id=request_id,
                agent=agent_name,
                success=False,
                error=RouteErrorInfo(code=e.code, message=e.message),
                metadata=RouteMetadata(
                    processing_time_ms=(time.perf_counter() - start) * 1000,
                    routing_confidence=getattr(e, "confidence", 0.0),
                    routed_to=agent_name,
                ),
            )

        return RouteEnvelope(
            request_id=request_id,
            agent=result.target_agent,
            success=True,
            data=result.response,
            metadata=RouteMetadata(
                processing_time_ms=result.latency_ms,
                routing_confidence=result.confidence,
                routed_to=result.target_agent,
            ),
        )

"""Request classification and dispatch."""

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
from capacitycore.routing.router import Router
from capacitycore.routing.rules import RuleScorer, load_rules, pattern_matches

__all__ = [
    "AgentDispatcher",
    "DispatchLog",
    "DispatchRecord",
    "RouteEnvelope",
    "RouteErrorInfo",
    "RouteHints",
    "RouteMetadata",
    "RouteRequest",
    "RouteResult",
    "Router",
    "RoutingDecision",
    "RoutingRule",
    "RuleScorer",
    "default_rules",
    "load_rules",
    "pattern_matches",
]

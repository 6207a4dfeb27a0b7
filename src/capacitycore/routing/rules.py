"""Rule matching, scoring and rule-table loading."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import ValidationError

from capacitycore.core.exceptions import ConfigurationError
from capacitycore.routing.models import RoutingRule, is_prefix_pattern
from capacitycore.settings.router import RouterSettings


@lru_cache(maxsize=1024)
def _compiled(pattern: str) -> re.Pattern[str]:
    return re.compile(pattern, re.IGNORECASE)


def pattern_matches(pattern: str, operation: str) -> bool:
    """Match one rule pattern against an operation name."""
    if is_prefix_pattern(pattern):
        return operation.lower().startswith(pattern[:-1].lower())
    return _compiled(pattern).fullmatch(operation) is not None


def serialize_payload(payload: Optional[dict[str, Any]]) -> str:
    """Lower-cased, key-sorted JSON text searched for keywords."""
    if not payload:
        return ""
    return json.dumps(payload, sort_keys=True, default=str).lower()


@dataclass(frozen=True)
class RuleScore:
    rule: RoutingRule
    index: int
    pattern_hits: int
    keyword_hits: int
    score: float
    confidence: float

    @property
    def matched(self) -> bool:
        return self.score > 0


class RuleScorer:
    """Weighted pattern/keyword scoring normalized into a 0-1 confidence."""

    def __init__(
        self,
        pattern_weight: float = 1.0,
        keyword_weight: float = 0.25,
        saturation: float = 1.5,
    ):
        if saturation <= 0:
            raise ConfigurationError("confidence_saturation must be positive", config_key="confidence_saturation")
        self.pattern_weight = pattern_weight
        self.keyword_weight = keyword_weight
        self.saturation = saturation

    @classmethod
    def from_settings(cls, settings: RouterSettings) -> "RuleScorer":
        return cls(
            pattern_weight=settings.pattern_weight,
            keyword_weight=settings.keyword_weight,
            saturation=settings.confidence_saturation,
        )

    def confidence(self, score: float) -> float:
        return min(1.0, max(0.0, score / self.saturation))

    def score(self, rule: RoutingRule, index: int, operation: str, payload_text: str) -> RuleScore:
        pattern_hits = sum(1 for p in rule.patterns if pattern_matches(p, operation))
        keyword_hits = sum(1 for k in rule.keywords if k in payload_text) if payload_text else 0
        score = pattern_hits * self.pattern_weight + keyword_hits * self.keyword_weight
        return RuleScore(
            rule=rule,
            index=index,
            pattern_hits=pattern_hits,
            keyword_hits=keyword_hits,
            score=score,
            confidence=self.confidence(score),
        )


def load_rules(
    path: Union[str, Path],
    settings: Optional[RouterSettings] = None,
) -> list[RoutingRule]:
    """Load an ordered rule table from YAML (a list, or a ``rules`` key)."""
    settings = settings or RouterSettings()
    path = Path(path)
    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or []
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Cannot read routing rules {path}: {e}", config_key="rules_path") from e

    entries = raw.get("rules", []) if isinstance(raw, dict) else raw
    if not isinstance(entries, list):
        raise ConfigurationError(f"Routing rules {path} must contain a list", config_key="rules_path")

    rules = []
    for entry in entries:
        try:
            rules.append(RoutingRule.model_validate({"min_confidence": settings.min_confidence, **entry}))
        except (ValidationError, TypeError) as e:
            raise ConfigurationError(f"Invalid routing rule in {path}: {e}", config_key="rules_path") from e
    return rules

"""Built-in agent catalog for a single-facility deployment."""

from typing import Optional

from capacitycore.registry.models import AgentCategory, AgentDescriptor
from capacitycore.settings.registry import RegistrySettings

DEFAULT_BASE_URL = "http://localhost:54321/functions/v1"

# name, category, critical, operations
_CATALOG: list[tuple[str, AgentCategory, bool, list[str]]] = [
    (
        "bed-management",
        AgentCategory.DOMAIN,
        True,
        ["get_bed_board", "assign_bed", "discharge_patient", "update_bed_status", "transfer_patient"],
    ),
    (
        "bed-optimizer",
        AgentCategory.DOMAIN,
        True,
        ["predict_los", "forecast_capacity", "check_surge", "recommend_placement"],
    ),
    (
        "hl7-receive",
        AgentCategory.INTEGRATION,
        True,
        ["hl7_receive", "adt_event"],
    ),
    (
        "fhir-r4",
        AgentCategory.INTEGRATION,
        False,
        ["fhir_read", "fhir_search", "fhir_export"],
    ),
    (
        "mcp-clearinghouse-server",
        AgentCategory.INTEGRATION,
        False,
        ["claim_submit", "claim_status", "eligibility_check"],
    ),
    (
        "mcp-medical-codes-server",
        AgentCategory.INTEGRATION,
        False,
        ["code_lookup", "code_validate"],
    ),
    (
        "ai-discharge-summary",
        AgentCategory.DOMAIN,
        False,
        ["discharge_summary"],
    ),
    (
        "guardian-agent",
        AgentCategory.SYSTEM,
        True,
        ["security_scan", "system_heal"],
    ),
]


def default_agents(
    settings: Optional[RegistrySettings] = None,
    base_url: str = DEFAULT_BASE_URL,
) -> list[AgentDescriptor]:
    """Return the built-in catalog.

    Edge functions answer liveness on ``POST {"action": "health"}`` at their
    root path, so the probe is configured that way.
    """
    settings = settings or RegistrySettings()
    base_url = base_url.rstrip("/")
    return [
        AgentDescriptor(
            name=name,
            category=category,
            endpoint=f"{base_url}/{name}",
            is_critical=critical,
            poll_interval_seconds=settings.default_poll_interval_seconds,
            max_consecutive_failures=settings.default_max_consecutive_failures,
            timeout_seconds=settings.default_timeout_seconds,
            health_path="",
            health_method="POST",
            operations=operations,
        )
        for name, category, critical, operations in _CATALOG
    ]

"""Built-in routing table for the default agent catalog."""

from typing import Optional

from capacitycore.routing.models import RoutingRule
from capacitycore.settings.router import RouterSettings

# Declaration order is the tie-break order.
_RULES: list[dict] = [
    {
        "name": "bed-optimizer",
        "patterns": ["predict_los", "forecast_.*", "check_surge", "recommend_placement", "optimize_.*"],
        "keywords": ["forecast", "surge", "length of stay", "placement", "occupancy"],
        "target_agent": "bed-optimizer",
    },
    {
        "name": "bed-management",
        "patterns": ["bed_*", "assign_bed", "discharge_patient", "transfer_patient", "update_bed_status", "get_bed_board"],
        "keywords": ["bed", "unit", "room", "census", "discharge"],
        "target_agent": "bed-management",
    },
    {
        "name": "hl7",
        "patterns": ["hl7_*", "adt_.*"],
        "keywords": ["hl7", "adt", "msh|", "pid|"],
        "target_agent": "hl7-receive",
    },
    {
        "name": "fhir",
        "patterns": ["fhir_*"],
        "keywords": ["fhir", "resourcetype", "bundle", "patient/"],
        "target_agent": "fhir-r4",
    },
    {
        "name": "clearinghouse",
        "patterns": ["claim_*", "eligibility_.*"],
        "keywords": ["claim", "x12", "837", "payer"],
        "target_agent": "mcp-clearinghouse-server",
    },
    {
        "name": "medical-codes",
        "patterns": ["code_*"],
        "keywords": ["icd10", "cpt", "hcpcs", "snomed"],
        "target_agent": "mcp-medical-codes-server",
    },
    {
        "name": "discharge-summary",
        "patterns": ["discharge_summary"],
        "keywords": ["summary", "hospital course"],
        "target_agent": "ai-discharge-summary",
    },
    {
        "name": "guardian",
        "patterns": ["security_*", "system_*"],
        "keywords": ["security", "anomaly", "heal"],
        "target_agent": "guardian-agent",
    },
]


def default_rules(settings: Optional[RouterSettings] = None) -> list[RoutingRule]:
    settings = settings or RouterSettings()
    return [
        RoutingRule.model_validate({"min_confidence": settings.min_confidence, **entry})
        for entry in _RULES
    ]

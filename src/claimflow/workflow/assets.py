"""Knowledge-asset construction.

Builds the JSON-LD document published to the ledger for an analysed
claim. The standard schema.org fields make the asset discoverable; the
custom fields carry everything needed to audit the verdict later.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from .constants import WorkflowConstants
from .models import AgentIdentity, AnalysisResult


def asset_urn(claim_id: str) -> str:
    return f"urn:health-claim:{claim_id}"


def build_claim_asset(
    claim_id: str,
    claim_text: str,
    analysis: AnalysisResult,
    agent: AgentIdentity,
    context: dict[str, Any] | None = None,
    published_at: datetime | None = None,
) -> dict[str, Any]:
    """JSON-LD asset for one analysed claim.

    Args:
        claim_id: Id of the persisted claim record
        claim_text: The claim as submitted
        analysis: Analysis the claim received
        agent: Agent that submitted the claim
        context: Optional caller context, recorded verbatim
        published_at: Publication timestamp (defaults to now)
    """
    published_at = published_at or datetime.now(UTC)
    asset: dict[str, Any] = {
        "@context": "https://schema.org/",
        "@type": "MedicalWebPage",
        "@id": asset_urn(claim_id),
        "name": "Health Claim Analysis",
        "description": claim_text,
        "text": analysis.summary,
        "datePublished": published_at.isoformat(),
        "publisher": {
            "@type": "Organization",
            "name": WorkflowConstants.PUBLISHER_NAME,
        },
        # Custom properties
        "claimId": claim_id,
        "claim": claim_text,
        "agentId": agent.agent_id,
        "agentName": agent.display_name,
        "verdict": analysis.verdict.value,
        "confidence": analysis.confidence,
        "sources": list(analysis.sources),
        "analysis": analysis.to_dict(),
    }
    if context:
        asset["submissionContext"] = context
    return asset

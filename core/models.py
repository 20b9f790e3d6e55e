# =============================================================================
# core/models.py  —  Data Models (the "nouns" of the system)
# =============================================================================
#
# These dataclasses define the *shape* of every value the adapters hand
# back.  Remote JSON goes in, one of these comes out, always with the same
# snake_case field names, whatever naming the upstream API used.
#
# Nothing here is persisted.  Each value is built from a single remote call
# (or from the sample datasets) and returned to the caller.
#
# The tool layer turns these into dicts with dataclasses.asdict() before
# they go out over MCP.
# =============================================================================

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from core.normalize import lookup, to_float, to_int


# =============================================================================
# ClickUp (Task-Tracker) models
# =============================================================================

# -----------------------------------------------------------------------------
# Task: a created ClickUp task
# -----------------------------------------------------------------------------
@dataclass
class Task:
    """A task as returned by the ClickUp create call."""

    id: str
    name: str
    description: str = ""
    status: str = "to do"
    priority: int = 3                  # 1=urgent, 2=high, 3=normal, 4=low
    due_date: Optional[int] = None     # Epoch milliseconds
    assignees: list = field(default_factory=list)
    tags: list[str] = field(default_factory=list)
    url: str = ""


# -----------------------------------------------------------------------------
# Search results: a tagged union on the `type` field
# -----------------------------------------------------------------------------
@dataclass
class TaskSummary:
    """A task hit from a ClickUp search."""

    id: str
    name: str
    description: Optional[str] = None
    status: Optional[str] = None
    priority: Any = None
    due_date: Optional[str] = None
    assignees: list = field(default_factory=list)
    tags: list = field(default_factory=list)
    url: Optional[str] = None
    type: str = "task"


@dataclass
class DocSummary:
    """A doc hit from a ClickUp search."""

    id: str
    name: str
    content: Optional[str] = None
    url: Optional[str] = None
    type: str = "doc"


@dataclass
class TaskContext:
    """Flattened view of a single task, for feeding into AI queries."""

    title: str
    description: Optional[str]
    status: Optional[str]
    priority: Any
    assignees: list = field(default_factory=list)
    tags: list = field(default_factory=list)
    due_date: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


# =============================================================================
# Google Ads (Ad-Platform) models
# =============================================================================

@dataclass
class AdAccount:
    """One account reachable with the configured refresh token."""

    customer_id: str
    resource_name: str                 # "customers/1234567890"
    is_manager: bool = False
    # is_manager is POSITIONAL: the first entry of the listing gets it.
    # The listing call does not say which account is the MCC.


@dataclass
class AccountInfo:
    customer_id: str
    descriptive_name: str
    currency_code: str
    time_zone: str
    manager: bool = False
    test_account: bool = False


@dataclass
class CampaignSpend:
    """Per-campaign slice of an AdSpendSummary."""

    id: str
    name: str
    status: str
    impressions: int = 0
    clicks: int = 0
    cost: float = 0.0                  # Major units (micros / 1,000,000)
    conversions: float = 0.0
    average_cpc: float = 0.0


@dataclass
class AdSpendSummary:
    """Spend and traffic totals for a trailing window of days."""

    customer_id: str
    period: str                        # "7 days"
    total_spend: float
    total_impressions: int
    total_clicks: int
    total_conversions: float
    average_cpc: float                 # total_spend / total_clicks, 0 if no clicks
    campaigns: list[CampaignSpend] = field(default_factory=list)


@dataclass
class KeywordPerformance:
    text: str
    match_type: str
    status: str
    impressions: int = 0
    clicks: int = 0
    cost: float = 0.0
    conversions: float = 0.0
    average_cpc: float = 0.0
    quality_score: int = 0             # 0 when Google has no score yet


# -----------------------------------------------------------------------------
# Report rows: one dataclass per report kind (see QueryKind)
# -----------------------------------------------------------------------------
@dataclass
class CampaignRow:
    name: str
    status: str = ""
    id: Optional[str] = None
    channel_type: Optional[str] = None
    clicks: int = 0
    impressions: int = 0
    conversions: float = 0.0
    cost: float = 0.0
    ctr: float = 0.0
    average_cpc: float = 0.0
    conversion_rate: Optional[float] = None    # conversions / clicks, None if unknown


@dataclass
class KeywordRow:
    text: str
    match_type: str = ""
    clicks: int = 0
    impressions: int = 0
    conversions: float = 0.0
    cost: float = 0.0
    ctr: float = 0.0
    average_cpc: float = 0.0


@dataclass
class SearchTermRow:
    term: str
    clicks: int = 0
    impressions: int = 0
    conversions: float = 0.0
    cost: float = 0.0
    ctr: float = 0.0


@dataclass
class AdRow:
    id: Optional[str]
    name: Optional[str]
    headlines: list = field(default_factory=list)
    descriptions: list = field(default_factory=list)
    clicks: int = 0
    impressions: int = 0
    conversions: float = 0.0
    ctr: float = 0.0


# -----------------------------------------------------------------------------
# AdReport: what the analyzer looks at
# -----------------------------------------------------------------------------
# Leads come from a CRM export, not from Google Ads, so they stay loose
# dicts: the analyzer only reads their "date".
# -----------------------------------------------------------------------------
@dataclass
class AdReport:
    leads: list[dict] = field(default_factory=list)
    search_terms: list[SearchTermRow] = field(default_factory=list)
    campaigns: list[CampaignRow] = field(default_factory=list)
    keywords: list[KeywordRow] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Optional[Mapping]) -> "AdReport":
        """Build a report from loose JSON (CRM export + ad data)."""
        data = data or {}
        # Undated or malformed leads still count, as leads that are not recent
        leads = [
            dict(lead) if isinstance(lead, Mapping) else {"date": None, "value": lead}
            for lead in lookup(data, "leads") or []
        ]

        search_terms = []
        for item in lookup(data, "search_terms") or []:
            if isinstance(item, str):
                search_terms.append(SearchTermRow(term=item))
            elif isinstance(item, Mapping):
                search_terms.append(SearchTermRow(
                    term=str(item.get("term") or ""),
                    clicks=to_int(item.get("clicks")),
                    impressions=to_int(item.get("impressions")),
                    conversions=to_float(item.get("conversions")),
                    cost=to_float(item.get("cost")),
                    ctr=to_float(item.get("ctr")),
                ))
            else:
                search_terms.append(SearchTermRow(term="" if item is None else str(item)))

        campaigns = []
        for item in lookup(data, "campaigns") or []:
            if not isinstance(item, Mapping):
                continue
            clicks = to_int(item.get("clicks"))
            rate = lookup(item, "conversion_rate")
            if rate is None and "conversions" in item and clicks > 0:
                rate = to_float(item.get("conversions")) / clicks
            campaigns.append(CampaignRow(
                name=str(item.get("name") or ""),
                status=str(item.get("status") or ""),
                clicks=clicks,
                impressions=to_int(item.get("impressions")),
                conversions=to_float(item.get("conversions")),
                cost=to_float(item.get("cost")),
                # Missing CTR reads as "unknown", not as 0%
                ctr=to_float(item.get("ctr"), default=1.0),
                average_cpc=to_float(lookup(item, "average_cpc")),
                conversion_rate=None if rate is None else to_float(rate),
            ))

        return cls(leads=list(leads), search_terms=search_terms, campaigns=campaigns)


# -----------------------------------------------------------------------------
# AuditReport: the analyzer's output
# -----------------------------------------------------------------------------
@dataclass
class AuditReport:
    """Recommendations plus how much data they were based on."""

    recommendations: list[str]         # Never empty
    analysis_date: str                 # ISO-8601 timestamp
    data_points: dict = field(default_factory=dict)
    # data_points: total_leads / total_search_terms / total_campaigns

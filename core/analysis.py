# =============================================================================
# core/analysis.py  —  Google Ads Report Analyzer
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Looks at a report (leads + search terms + campaigns) and returns a short
#   list of recommendations for the weekly ad audit.
#
# THE RULES (all simple thresholds):
#   1. Leads present but none in the last 3 days  →  "no recent leads"
#      No leads at all                             →  "no lead data"
#      (exactly one of the two fires)
#   2. Search terms that contain none of the relevance words → one
#      recommendation naming how many were found.
#   3. Any campaign with CTR < 2% or conversion rate < 1% → one generic
#      "low performer" recommendation (campaigns are not enumerated).
#   4. If nothing fired, two default recommendations are added, so the
#      list is NEVER empty.  create_audit_task relies on that.
#
# PURE FUNCTION:
#   No I/O, no logging.  The only clock read is `now`, which tests pass in.
# =============================================================================

from datetime import datetime, timedelta, timezone
from typing import Mapping, Optional, Union

from core.models import AdReport, AuditReport

RECENT_LEAD_WINDOW = timedelta(days=3)
MIN_CTR = 0.02
MIN_CONVERSION_RATE = 0.01

RELEVANT_TERMS = ("build", "renovation", "extension", "construction", "remodel", "home improvement")

NO_RECENT_LEADS = "No leads generated in the last 3 days - review campaign performance"
NO_LEAD_DATA = "No lead data found - check data export"
LOW_PERFORMERS = "Suggest new creative for low-performing campaigns"
DEFAULT_RECOMMENDATIONS = ("Review search terms", "Check ad copy performance")


def _parse_lead_date(value) -> Optional[datetime]:
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_relevant_term(term: str) -> bool:
    term = (term or "").lower()
    return any(word in term for word in RELEVANT_TERMS)


def analyze_report(
    report: Union[AdReport, Mapping, None],
    now: Optional[datetime] = None,
) -> AuditReport:
    """Run the audit rules over a report and return the recommendations."""
    if not isinstance(report, AdReport):
        report = AdReport.from_dict(report)
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    recommendations: list[str] = []

    # --- Rule 1: lead freshness ---
    if report.leads:
        cutoff = now - RECENT_LEAD_WINDOW
        lead_dates = [_parse_lead_date(lead.get("date")) for lead in report.leads]
        recent = [when for when in lead_dates if when is not None and when >= cutoff]
        if not recent:
            recommendations.append(NO_RECENT_LEADS)
    else:
        recommendations.append(NO_LEAD_DATA)

    # --- Rule 2: unrelated search terms ---
    unrelated = [row for row in report.search_terms if not is_relevant_term(row.term)]
    if unrelated:
        recommendations.append(
            f"Found {len(unrelated)} potentially unrelated search terms - "
            f"review for negative keywords"
        )

    # --- Rule 3: low performing campaigns ---
    low = [
        c for c in report.campaigns
        if c.ctr < MIN_CTR
        or (c.conversion_rate is not None and c.conversion_rate < MIN_CONVERSION_RATE)
    ]
    if low:
        recommendations.append(LOW_PERFORMERS)

    # --- Rule 4: never return an empty list ---
    if not recommendations:
        recommendations.extend(DEFAULT_RECOMMENDATIONS)

    return AuditReport(
        recommendations=recommendations,
        analysis_date=now.isoformat(),
        data_points={
            "total_leads": len(report.leads),
            "total_search_terms": len(report.search_terms),
            "total_campaigns": len(report.campaigns),
        },
    )

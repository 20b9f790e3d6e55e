# =============================================================================
# core/sample_data.py  —  Sample Datasets for the Fallback Policy
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Holds the canned, illustrative data that core/google_ads.py serves when
#   a live Google Ads call fails (and USE_SAMPLE_FALLBACK is on).
#
#   Every builder returns the SAME dataclasses the live mappers return, so
#   downstream code (the analyzer, the tool layer) cannot tell the two
#   apart by shape.  The adapter logs a warning each time sample data is
#   served; that log line is the only signal.
#
#   The numbers are chosen to look like a small home-improvement
#   advertiser, so the analyzer produces sensible recommendations on them.
# =============================================================================

from core.models import (
    AccountInfo,
    AdSpendSummary,
    CampaignRow,
    CampaignSpend,
    KeywordPerformance,
    KeywordRow,
    SearchTermRow,
)


def sample_campaign_rows() -> list[CampaignRow]:
    return [
        CampaignRow(
            name="Kitchen Renovation - Brand",
            status="ENABLED",
            clicks=245,
            impressions=12500,
            conversions=12,
            cost=1250.50,
            ctr=0.0196,              # Just under 2%, flagged by the analyzer
            average_cpc=5.10,
            conversion_rate=12 / 245,
        ),
        CampaignRow(
            name="Bathroom Remodel - Generic",
            status="ENABLED",
            clicks=189,
            impressions=8900,
            conversions=8,
            cost=945.75,
            ctr=0.0212,
            average_cpc=5.00,
            conversion_rate=8 / 189,
        ),
    ]


def sample_keyword_rows() -> list[KeywordRow]:
    return [
        KeywordRow(
            text="kitchen renovation",
            match_type="BROAD",
            clicks=89,
            impressions=3200,
            conversions=5,
            cost=445.00,
            ctr=0.0278,
            average_cpc=5.00,
        ),
        KeywordRow(
            text="bathroom remodel",
            match_type="BROAD",
            clicks=67,
            impressions=2100,
            conversions=3,
            cost=335.50,
            ctr=0.0319,
            average_cpc=5.01,
        ),
    ]


def sample_search_term_rows() -> list[SearchTermRow]:
    return [
        SearchTermRow(term="kitchen renovation cost", clicks=45, impressions=1200,
                      conversions=3, cost=225.00, ctr=0.0375),
        SearchTermRow(term="bathroom remodel near me", clicks=38, impressions=950,
                      conversions=2, cost=190.00, ctr=0.0400),
    ]


def sample_account_info(customer_id: str) -> AccountInfo:
    return AccountInfo(
        customer_id=customer_id,
        descriptive_name="JRA Construction",
        currency_code="USD",
        time_zone="America/New_York",
        manager=False,
        test_account=False,
    )


def sample_ad_spend(customer_id: str, days: int) -> AdSpendSummary:
    return AdSpendSummary(
        customer_id=customer_id,
        period=f"{days} days",
        total_spend=1250.50,
        total_impressions=45000,
        total_clicks=1200,
        total_conversions=45,
        average_cpc=1.04,
        campaigns=[
            CampaignSpend(id="123456789", name="JRA Construction - Search", status="ENABLED",
                          impressions=25000, clicks=650, cost=675.25, conversions=25,
                          average_cpc=1.04),
            CampaignSpend(id="123456790", name="JRA Construction - Display", status="ENABLED",
                          impressions=20000, clicks=550, cost=575.25, conversions=20,
                          average_cpc=1.05),
        ],
    )


def sample_keyword_performance() -> list[KeywordPerformance]:
    return [
        KeywordPerformance(text="construction services", match_type="BROAD", status="ENABLED",
                           impressions=5000, clicks=150, cost=225.50, conversions=8,
                           average_cpc=1.50, quality_score=7),
        KeywordPerformance(text="remodeling contractor", match_type="PHRASE", status="ENABLED",
                           impressions=3500, clicks=120, cost=180.25, conversions=6,
                           average_cpc=1.50, quality_score=8),
    ]

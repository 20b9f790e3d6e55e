# =============================================================================
# core/google_ads.py  —  Google Ads (Ad-Platform) Adapter
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Runs GAQL queries through the official google-ads client library and
#   maps the rows into core/models.py dataclasses:
#
#     list_accounts            CustomerService.list_accessible_customers
#     fetch_report_data        one of four report templates (QueryKind)
#     get_account_info         customer metadata
#     get_ad_spend             campaign spend over the last N days
#     get_keyword_performance  keyword metrics over the last N days
#     analyze_live_data        three reports → core/analysis.py
#     lookup_account_id        account name → customer id under the MCC
#
# TWO LAYERS:
#   GoogleAdsQueryClient  the only code that imports google-ads.  It
#                         returns rows as plain dicts.  Blocking.
#   GoogleAdsService      async; moves the blocking calls onto a worker
#                         thread (asyncio.to_thread), validates input,
#                         maps rows, and applies the fallback policy.
#   Tests swap the query client for an in-memory fake.
#
# SAMPLE-DATA FALLBACK:
#   When a report / account / spend / keyword query fails, the service
#   returns the canned data from core/sample_data.py instead of raising,
#   so an interactive user always gets something displayable.  The result
#   has the same shape as live data; the only signal is a WARNING log line.
#   Set USE_SAMPLE_FALLBACK=false to get a TransportError instead.
#
# MICROS:
#   Google reports money in micros (millionths).  Everything leaving this
#   module is in major units: 1_250_500_000 micros → 1250.5.
# =============================================================================

import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from enum import Enum
from typing import Callable, Optional, TypeVar

from google.ads.googleads.client import GoogleAdsClient

from core.analysis import analyze_report
from core.config import Settings
from core.errors import ConfigurationError, TransportError, ValidationError
from core.models import (
    AccountInfo,
    AdAccount,
    AdReport,
    AdRow,
    AdSpendSummary,
    AuditReport,
    CampaignRow,
    CampaignSpend,
    KeywordPerformance,
    KeywordRow,
    SearchTermRow,
)
from core.normalize import lookup, micros_to_units, to_float, to_int
from core import sample_data

logger = logging.getLogger(__name__)

T = TypeVar("T")

REPORT_LIMIT = 100
KEYWORD_PERFORMANCE_LIMIT = 50

# Date-range literals accepted by GAQL's DURING operator
TIME_RANGES = (
    "TODAY",
    "YESTERDAY",
    "LAST_7_DAYS",
    "LAST_14_DAYS",
    "LAST_30_DAYS",
    "LAST_BUSINESS_WEEK",
    "LAST_WEEK_MON_SUN",
    "LAST_WEEK_SUN_SAT",
    "THIS_WEEK_MON_TODAY",
    "THIS_WEEK_SUN_TODAY",
    "THIS_MONTH",
    "LAST_MONTH",
)
_DURING_DAYS = {7, 14, 30}


# =============================================================================
# Report kinds
# =============================================================================
class QueryKind(str, Enum):
    """The four canned reports fetch_report_data can run."""

    CAMPAIGNS = "campaigns"
    KEYWORDS = "keywords"
    SEARCH_TERMS = "search_terms"
    ADS = "ads"

    @classmethod
    def parse(cls, value) -> "QueryKind":
        try:
            return cls(value)
        except ValueError:
            choices = ", ".join(kind.value for kind in cls)
            raise ValidationError(f"Unknown query type {value!r}; expected one of {choices}")


# Campaigns sort by spend; everything else by impressions.
_REPORT_QUERIES = {
    QueryKind.CAMPAIGNS: """
        SELECT
          campaign.id,
          campaign.name,
          campaign.status,
          campaign.advertising_channel_type,
          metrics.clicks,
          metrics.impressions,
          metrics.conversions,
          metrics.cost_micros,
          metrics.ctr,
          metrics.average_cpc
        FROM campaign
        WHERE segments.date DURING {time_range}
        ORDER BY metrics.cost_micros DESC
        LIMIT {limit}
    """,
    QueryKind.KEYWORDS: """
        SELECT
          ad_group_criterion.keyword.text,
          ad_group_criterion.keyword.match_type,
          metrics.clicks,
          metrics.impressions,
          metrics.conversions,
          metrics.cost_micros,
          metrics.ctr,
          metrics.average_cpc
        FROM keyword_view
        WHERE segments.date DURING {time_range}
        ORDER BY metrics.impressions DESC
        LIMIT {limit}
    """,
    QueryKind.SEARCH_TERMS: """
        SELECT
          search_term_view.search_term,
          metrics.clicks,
          metrics.impressions,
          metrics.conversions,
          metrics.cost_micros,
          metrics.ctr
        FROM search_term_view
        WHERE segments.date DURING {time_range}
        ORDER BY metrics.impressions DESC
        LIMIT {limit}
    """,
    QueryKind.ADS: """
        SELECT
          ad_group_ad.ad.id,
          ad_group_ad.ad.name,
          ad_group_ad.ad.responsive_search_ad.headlines,
          ad_group_ad.ad.responsive_search_ad.descriptions,
          metrics.clicks,
          metrics.impressions,
          metrics.conversions,
          metrics.ctr
        FROM ad_group_ad
        WHERE segments.date DURING {time_range}
        ORDER BY metrics.impressions DESC
        LIMIT {limit}
    """,
}


# -----------------------------------------------------------------------------
# Row mappers, one per QueryKind
# -----------------------------------------------------------------------------
def _campaign_row(row: dict) -> CampaignRow:
    clicks = to_int(lookup(row, "metrics.clicks"))
    conversions = to_float(lookup(row, "metrics.conversions"))
    return CampaignRow(
        id=_text(lookup(row, "campaign.id")),
        name=lookup(row, "campaign.name", ""),
        status=lookup(row, "campaign.status", ""),
        channel_type=lookup(row, "campaign.advertising_channel_type"),
        clicks=clicks,
        impressions=to_int(lookup(row, "metrics.impressions")),
        conversions=conversions,
        cost=micros_to_units(lookup(row, "metrics.cost_micros")),
        ctr=to_float(lookup(row, "metrics.ctr")),
        average_cpc=micros_to_units(lookup(row, "metrics.average_cpc")),
        conversion_rate=conversions / clicks if clicks > 0 else None,
    )


def _keyword_row(row: dict) -> KeywordRow:
    return KeywordRow(
        text=lookup(row, "ad_group_criterion.keyword.text", ""),
        match_type=lookup(row, "ad_group_criterion.keyword.match_type", ""),
        clicks=to_int(lookup(row, "metrics.clicks")),
        impressions=to_int(lookup(row, "metrics.impressions")),
        conversions=to_float(lookup(row, "metrics.conversions")),
        cost=micros_to_units(lookup(row, "metrics.cost_micros")),
        ctr=to_float(lookup(row, "metrics.ctr")),
        average_cpc=micros_to_units(lookup(row, "metrics.average_cpc")),
    )


def _search_term_row(row: dict) -> SearchTermRow:
    return SearchTermRow(
        term=lookup(row, "search_term_view.search_term", ""),
        clicks=to_int(lookup(row, "metrics.clicks")),
        impressions=to_int(lookup(row, "metrics.impressions")),
        conversions=to_float(lookup(row, "metrics.conversions")),
        cost=micros_to_units(lookup(row, "metrics.cost_micros")),
        ctr=to_float(lookup(row, "metrics.ctr")),
    )


def _ad_assets(assets) -> list[str]:
    # Responsive search ad text assets: [{"text": "...", "pinned_field": ...}]
    return [a.get("text", "") if isinstance(a, dict) else str(a) for a in assets or []]


def _ad_row(row: dict) -> AdRow:
    return AdRow(
        id=_text(lookup(row, "ad_group_ad.ad.id")),
        name=lookup(row, "ad_group_ad.ad.name"),
        headlines=_ad_assets(lookup(row, "ad_group_ad.ad.responsive_search_ad.headlines")),
        descriptions=_ad_assets(lookup(row, "ad_group_ad.ad.responsive_search_ad.descriptions")),
        clicks=to_int(lookup(row, "metrics.clicks")),
        impressions=to_int(lookup(row, "metrics.impressions")),
        conversions=to_float(lookup(row, "metrics.conversions")),
        ctr=to_float(lookup(row, "metrics.ctr")),
    )


_ROW_MAPPERS: dict[QueryKind, Callable[[dict], object]] = {
    QueryKind.CAMPAIGNS: _campaign_row,
    QueryKind.KEYWORDS: _keyword_row,
    QueryKind.SEARCH_TERMS: _search_term_row,
    QueryKind.ADS: _ad_row,
}

_SAMPLE_ROWS: dict[QueryKind, Callable[[], list]] = {
    QueryKind.CAMPAIGNS: sample_data.sample_campaign_rows,
    QueryKind.KEYWORDS: sample_data.sample_keyword_rows,
    QueryKind.SEARCH_TERMS: sample_data.sample_search_term_rows,
    QueryKind.ADS: list,
}


# =============================================================================
# Small helpers
# =============================================================================
def _text(value) -> Optional[str]:
    return None if value is None else str(value)


def clean_customer_id(customer_id) -> str:
    """'123-456-7890' → '1234567890'"""
    cleaned = str(customer_id or "").replace("-", "").strip()
    if not cleaned:
        raise ValidationError("customer_id is required")
    if not cleaned.isdigit():
        raise ValidationError(f"customer_id must contain only digits and dashes: {customer_id!r}")
    return cleaned


def date_window(days, today: Optional[date] = None) -> str:
    """GAQL condition for the trailing `days` days (today excluded)."""
    days = to_int(days, default=0)
    if days < 1:
        raise ValidationError("days must be a positive integer")
    if days in _DURING_DAYS:
        return f"segments.date DURING LAST_{days}_DAYS"
    today = today or date.today()
    start = today - timedelta(days=days)
    end = today - timedelta(days=1)
    return f"segments.date BETWEEN '{start.isoformat()}' AND '{end.isoformat()}'"


def resolve_fallback(error: Exception, use_sample: bool, sample: Callable[[], T]) -> T:
    """The fallback decision: sample data, or a TransportError.

    Configuration problems are never masked.
    """
    if isinstance(error, (ConfigurationError, ValidationError)):
        raise error
    if not use_sample:
        raise TransportError(f"Google Ads request failed: {error}") from error
    return sample()


# =============================================================================
# Query client (the google-ads boundary)
# =============================================================================
class GoogleAdsQueryClient:
    """Thin blocking wrapper around GoogleAdsClient; rows come back as dicts."""

    def __init__(self, settings: Settings):
        self.settings = settings

    def _client(self) -> GoogleAdsClient:
        required = {
            "GOOGLE_ADS_DEVELOPER_TOKEN": self.settings.google_ads_developer_token,
            "GOOGLE_ADS_CLIENT_ID": self.settings.google_ads_client_id,
            "GOOGLE_ADS_CLIENT_SECRET": self.settings.google_ads_client_secret,
            "GOOGLE_ADS_REFRESH_TOKEN": self.settings.google_ads_refresh_token,
        }
        missing = [name for name, value in required.items() if not value]
        if missing:
            raise ConfigurationError(f"Missing required env: {', '.join(missing)}")

        config = {
            "developer_token": self.settings.google_ads_developer_token,
            "client_id": self.settings.google_ads_client_id,
            "client_secret": self.settings.google_ads_client_secret,
            "refresh_token": self.settings.google_ads_refresh_token,
            "use_proto_plus": True,
        }
        if self.settings.google_ads_login_customer_id:
            config["login_customer_id"] = self.settings.google_ads_login_customer_id
        return GoogleAdsClient.load_from_dict(config)

    def search(self, customer_id: str, query: str) -> list[dict]:
        service = self._client().get_service("GoogleAdsService")
        rows = service.search(request={"customer_id": customer_id, "query": query})
        # proto-plus → dict; enums as names, int64 metrics arrive as strings
        return [type(row).to_dict(row, use_integers_for_enums=False) for row in rows]

    def list_accessible_customers(self) -> list[str]:
        service = self._client().get_service("CustomerService")
        return list(service.list_accessible_customers().resource_names)


# =============================================================================
# The adapter
# =============================================================================
class GoogleAdsService:
    """Async Google Ads adapter with the sample-data fallback policy."""

    def __init__(self, settings: Settings, query_client=None):
        self.settings = settings
        self.query_client = query_client or GoogleAdsQueryClient(settings)

    # -------------------------------------------------------------------------
    # Plumbing
    # -------------------------------------------------------------------------
    def _require_manager_id(self) -> str:
        if not self.settings.google_ads_login_customer_id:
            raise ConfigurationError("MCC Customer ID not configured (GOOGLE_ADS_LOGIN_CUSTOMER_ID)")
        return self.settings.google_ads_login_customer_id

    async def _query(self, customer_id: str, query: str) -> list[dict]:
        return await asyncio.to_thread(self.query_client.search, customer_id, query)

    def _fallback(self, what: str, error: Exception, sample: Callable[[], T]) -> T:
        value = resolve_fallback(error, self.settings.use_sample_fallback, sample)
        logger.warning("Google Ads %s failed (%s); serving sample data", what, error)
        return value

    # -------------------------------------------------------------------------
    # list_accounts
    # -------------------------------------------------------------------------
    async def list_accounts(self) -> list[AdAccount]:
        """Accounts reachable with the refresh token; [] on any failure.

        The first entry is flagged is_manager.  That is a guess based on
        ordering: the listing call does not report which one is the MCC.
        """
        try:
            names = await asyncio.to_thread(self.query_client.list_accessible_customers)
        except Exception as exc:
            logger.error("Error listing accessible accounts: %s", exc)
            return []

        return [
            AdAccount(
                customer_id=name.split("/")[-1],
                resource_name=name,
                is_manager=index == 0,
            )
            for index, name in enumerate(names or [])
        ]

    # -------------------------------------------------------------------------
    # fetch_report_data
    # -------------------------------------------------------------------------
    async def fetch_report_data(
        self,
        customer_id: str,
        time_range: str = "LAST_7_DAYS",
        query_kind="campaigns",
    ) -> dict:
        """Run one canned report; returns {<kind>: [rows], "analysis_date": ...}.

        An empty result counts as a failure and gets the sample rows.
        """
        kind = QueryKind.parse(query_kind)
        customer_id = clean_customer_id(customer_id)
        time_range = (time_range or "LAST_7_DAYS").upper()
        if time_range not in TIME_RANGES:
            raise ValidationError(f"Unsupported time range {time_range!r}")

        query = _REPORT_QUERIES[kind].format(time_range=time_range, limit=REPORT_LIMIT)
        mapper = _ROW_MAPPERS[kind]
        try:
            rows = await self._query(customer_id, query)
            if not rows:
                raise TransportError("No results in API response")
            mapped = [mapper(row) for row in rows]
        except Exception as exc:
            mapped = self._fallback(f"{kind.value} report", exc, _SAMPLE_ROWS[kind])

        return {kind.value: mapped, "analysis_date": datetime.now(timezone.utc).isoformat()}

    # -------------------------------------------------------------------------
    # get_account_info
    # -------------------------------------------------------------------------
    async def get_account_info(self, customer_id: str) -> Optional[AccountInfo]:
        self._require_manager_id()
        customer_id = clean_customer_id(customer_id)
        query = """
            SELECT
              customer.id,
              customer.descriptive_name,
              customer.currency_code,
              customer.time_zone,
              customer.manager,
              customer.test_account
            FROM customer
            LIMIT 1
        """
        try:
            rows = await self._query(customer_id, query)
        except Exception as exc:
            return self._fallback("account info", exc,
                                  lambda: sample_data.sample_account_info(customer_id))
        if not rows:
            return None

        row = rows[0]
        return AccountInfo(
            customer_id=_text(lookup(row, "customer.id")) or customer_id,
            descriptive_name=lookup(row, "customer.descriptive_name", ""),
            currency_code=lookup(row, "customer.currency_code", ""),
            time_zone=lookup(row, "customer.time_zone", ""),
            manager=bool(lookup(row, "customer.manager", False)),
            test_account=bool(lookup(row, "customer.test_account", False)),
        )

    # -------------------------------------------------------------------------
    # get_ad_spend
    # -------------------------------------------------------------------------
    async def get_ad_spend(self, customer_id: str, days: int = 7) -> AdSpendSummary:
        """Spend, clicks, and conversions per campaign plus account totals."""
        self._require_manager_id()
        customer_id = clean_customer_id(customer_id)
        days = to_int(days, default=7)
        query = f"""
            SELECT
              campaign.id,
              campaign.name,
              campaign.status,
              metrics.impressions,
              metrics.clicks,
              metrics.cost_micros,
              metrics.conversions,
              metrics.average_cpc
            FROM campaign
            WHERE {date_window(days)}
            ORDER BY metrics.cost_micros DESC
        """
        try:
            rows = await self._query(customer_id, query)
        except Exception as exc:
            return self._fallback("ad spend", exc,
                                  lambda: sample_data.sample_ad_spend(customer_id, days))

        campaigns = [
            CampaignSpend(
                id=_text(lookup(row, "campaign.id")) or "",
                name=lookup(row, "campaign.name", ""),
                status=lookup(row, "campaign.status", ""),
                impressions=to_int(lookup(row, "metrics.impressions")),
                clicks=to_int(lookup(row, "metrics.clicks")),
                cost=micros_to_units(lookup(row, "metrics.cost_micros")),
                conversions=to_float(lookup(row, "metrics.conversions")),
                average_cpc=micros_to_units(lookup(row, "metrics.average_cpc")),
            )
            for row in rows
        ]
        total_spend = sum(c.cost for c in campaigns)
        total_clicks = sum(c.clicks for c in campaigns)

        return AdSpendSummary(
            customer_id=customer_id,
            period=f"{days} days",
            total_spend=round(total_spend, 2),
            total_impressions=sum(c.impressions for c in campaigns),
            total_clicks=total_clicks,
            total_conversions=round(sum(c.conversions for c in campaigns), 2),
            average_cpc=round(total_spend / total_clicks, 2) if total_clicks > 0 else 0,
            campaigns=campaigns,
        )

    # -------------------------------------------------------------------------
    # get_keyword_performance
    # -------------------------------------------------------------------------
    async def get_keyword_performance(self, customer_id: str, days: int = 7) -> list[KeywordPerformance]:
        self._require_manager_id()
        customer_id = clean_customer_id(customer_id)
        query = f"""
            SELECT
              ad_group_criterion.keyword.text,
              ad_group_criterion.keyword.match_type,
              ad_group_criterion.status,
              metrics.impressions,
              metrics.clicks,
              metrics.cost_micros,
              metrics.conversions,
              metrics.average_cpc,
              ad_group_criterion.quality_info.quality_score
            FROM keyword_view
            WHERE {date_window(days)}
            ORDER BY metrics.cost_micros DESC
            LIMIT {KEYWORD_PERFORMANCE_LIMIT}
        """
        try:
            rows = await self._query(customer_id, query)
        except Exception as exc:
            return self._fallback("keyword performance", exc, sample_data.sample_keyword_performance)

        return [
            KeywordPerformance(
                text=lookup(row, "ad_group_criterion.keyword.text", ""),
                match_type=lookup(row, "ad_group_criterion.keyword.match_type", ""),
                status=lookup(row, "ad_group_criterion.status", ""),
                impressions=to_int(lookup(row, "metrics.impressions")),
                clicks=to_int(lookup(row, "metrics.clicks")),
                cost=round(micros_to_units(lookup(row, "metrics.cost_micros")), 2),
                conversions=to_float(lookup(row, "metrics.conversions")),
                average_cpc=round(micros_to_units(lookup(row, "metrics.average_cpc")), 2),
                quality_score=to_int(lookup(row, "ad_group_criterion.quality_info.quality_score")),
            )
            for row in rows
        ]

    # -------------------------------------------------------------------------
    # analyze_live_data
    # -------------------------------------------------------------------------
    async def analyze_live_data(self, customer_id: str, time_range: str = "LAST_7_DAYS") -> AuditReport:
        """Pull campaigns, keywords, and search terms, then run the audit rules.

        Leads live in the CRM, not in Google Ads, so the lead list is empty
        and the "no lead data" recommendation always appears.
        """
        campaigns, keywords, search_terms = await asyncio.gather(
            self.fetch_report_data(customer_id, time_range, QueryKind.CAMPAIGNS),
            self.fetch_report_data(customer_id, time_range, QueryKind.KEYWORDS),
            self.fetch_report_data(customer_id, time_range, QueryKind.SEARCH_TERMS),
        )
        report = AdReport(
            leads=[],
            campaigns=campaigns[QueryKind.CAMPAIGNS.value],
            keywords=keywords[QueryKind.KEYWORDS.value],
            search_terms=search_terms[QueryKind.SEARCH_TERMS.value],
        )
        return analyze_report(report)

    # -------------------------------------------------------------------------
    # lookup_account_id
    # -------------------------------------------------------------------------
    async def lookup_account_id(self, name: str) -> Optional[str]:
        """Find a client account id by its descriptive name (case-insensitive)."""
        if not name or not name.strip():
            raise ValidationError("name is required")
        manager_id = self._require_manager_id()
        query = """
            SELECT
              customer_client.id,
              customer_client.descriptive_name
            FROM customer_client
            WHERE customer_client.level <= 1
        """
        try:
            rows = await self._query(manager_id, query)
        except Exception as exc:
            logger.error("Error looking up account %r: %s", name, exc)
            return None

        wanted = name.strip().lower()
        for row in rows:
            if (lookup(row, "customer_client.descriptive_name") or "").lower() == wanted:
                return _text(lookup(row, "customer_client.id"))
        return None

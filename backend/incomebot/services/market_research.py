"""
Market research enrichment — industry, seasonal, economic and competitor
context for scheduled reports.

Search results come from the Google Custom Search JSON API. Snippets are split
into sentences and kept only when they mention business-relevant keywords.
Every public method falls back to curated insights when search is not
configured, fails, or yields nothing usable.
"""
import logging
import re
from dataclasses import dataclass, field
from datetime import date
from typing import Dict, List, Optional

import httpx

from incomebot.config import DEFAULT_BUSINESS_TYPE, DEFAULT_REGION, HTTP_TIMEOUT_SECONDS

logger = logging.getLogger("incomebot-market")

SEARCH_URL = "https://www.googleapis.com/customsearch/v1"

_SENTENCE_SPLIT = re.compile(r"[.!?]+")

RELEVANCE_KEYWORDS = (
    "increase", "decrease", "trend", "growth", "decline", "demand", "market",
    "consumer", "customer", "business", "service", "automotive", "revenue",
    "profit", "competition", "opportunity", "challenge", "forecast", "prediction",
)
POSITIVE_WORDS = ("increase", "growth", "opportunity", "improve", "better", "rise", "expand")
NEGATIVE_WORDS = ("decrease", "decline", "challenge", "problem", "fall", "reduce", "crisis")
SCORING_TERMS = ("automotive", "garage", "service", "business", "indonesia", "market")


@dataclass
class SearchResult:
    title: str
    snippet: str
    link: str = ""


@dataclass
class MarketInsight:
    category: str
    insights: List[str]
    sources: List[str] = field(default_factory=list)
    impact: str = "neutral"            # positive | negative | neutral
    relevance_score: float = 0.0


@dataclass
class SeasonalInsight:
    season: str
    month: int
    trends: List[str]
    business_recommendations: List[str]
    market_factors: List[str]


def season_name(month: int) -> str:
    """Indonesian business season for a 1-based calendar month."""
    if month == 12 or month <= 3:
        return "rainy"
    if month <= 6:
        return "dry"
    if month <= 9:
        return "cool dry"
    return "transition"


SEASONAL_FALLBACK: Dict[str, Dict[str, List[str]]] = {
    "rainy": {
        "trends": [
            "Increased demand for brake and tire services during rainy season",
            "Higher frequency of electrical system issues due to humidity",
            "Reduced walk-in traffic but more urgent repair needs",
        ],
        "recommendations": [
            "Promote brake inspection and tire replacement services",
            "Offer covered service areas to attract customers during rain",
            "Stock up on electrical components and wiper blades",
        ],
        "factors": [
            "Seasonal flooding may affect customer accessibility",
            "Insurance claims increase for weather-related vehicle damage",
            "Competition for indoor service bays intensifies",
        ],
    },
    "dry": {
        "trends": [
            "Peak demand for AC maintenance and cooling system services",
            "Increased long-distance travel driving service needs",
            "Higher customer traffic during dry weather conditions",
        ],
        "recommendations": [
            "Focus marketing on AC repair and coolant system maintenance",
            "Extend operating hours to accommodate higher demand",
            "Prepare for pre-holiday vehicle check-up campaigns",
        ],
        "factors": [
            "Fuel consumption patterns change affecting service intervals",
            "Tourism season drives demand for reliable vehicle maintenance",
            "Heat stress on vehicles creates opportunities for preventive services",
        ],
    },
    "cool dry": {
        "trends": [
            "Moderate weather provides optimal working conditions",
            "Balanced demand across all service categories",
            "Good period for major repair work and painting services",
        ],
        "recommendations": [
            "Schedule complex repairs during favorable weather",
            "Promote comprehensive vehicle check-ups",
            "Take advantage of good conditions for exterior work",
        ],
        "factors": [
            "Stable weather patterns support consistent business operations",
            "School calendar affects family vehicle usage patterns",
            "End-of-year budget considerations influence customer decisions",
        ],
    },
    "transition": {
        "trends": [
            "Variable weather patterns create diverse service needs",
            "Customers prepare vehicles for upcoming season changes",
            "Mixed demand for both cooling and weatherproofing services",
        ],
        "recommendations": [
            "Offer seasonal transition service packages",
            "Prepare inventory for changing weather conditions",
            "Educate customers on seasonal maintenance needs",
        ],
        "factors": [
            "Weather unpredictability affects service planning",
            "Holiday seasons influence customer spending patterns",
            "Preparation period for major seasonal changes",
        ],
    },
}


class MarketResearchService:
    def __init__(
        self,
        api_key: str = "",
        engine_id: str = "",
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.engine_id = engine_id
        self._transport = transport

    @property
    def search_enabled(self) -> bool:
        return bool(self.api_key and self.engine_id)

    async def search(self, query: str, num_results: int = 5) -> List[SearchResult]:
        """Web search; returns an empty list when unconfigured or on failure."""
        if not self.search_enabled:
            return []
        try:
            async with httpx.AsyncClient(timeout=HTTP_TIMEOUT_SECONDS, transport=self._transport) as client:
                resp = await client.get(
                    SEARCH_URL,
                    params={"key": self.api_key, "cx": self.engine_id, "q": query, "num": num_results},
                )
                resp.raise_for_status()
                items = resp.json().get("items", [])
        except (httpx.HTTPError, ValueError) as e:
            logger.warning(f"Search failed for {query!r}: {e}")
            return []
        return [
            SearchResult(title=i.get("title", ""), snippet=i.get("snippet", ""), link=i.get("link", ""))
            for i in items
        ]

    # -----------------------------------------------------------------------
    # Public insight API
    # -----------------------------------------------------------------------

    async def industry_insights(
        self,
        business_type: str = DEFAULT_BUSINESS_TYPE,
        today: Optional[date] = None,
    ) -> List[MarketInsight]:
        queries = {
            f"indonesia {business_type} industry trends": "Industry Trends",
            "automotive service business indonesia market analysis": "Market Analysis",
            f"small business {business_type} indonesia economic impact": "Economic Impact",
            "customer behavior automotive services indonesia": "Customer Behavior",
        }
        insights = []
        for query, category in queries.items():
            results = await self.search(query, 3)
            if results:
                insight = self.extract_insight(results, category)
                if insight.insights:
                    insights.append(insight)
        return insights or [self._fallback_industry(today or date.today())]

    async def seasonal_insights(self, month: int, business_type: str = DEFAULT_BUSINESS_TYPE) -> SeasonalInsight:
        season = season_name(month)
        results = await self.search(
            f"indonesia {season} season {business_type} business trends consumer behavior", 3
        )
        if results:
            extracted = self.extract_seasonal(results, month, season)
            if extracted.trends or extracted.business_recommendations or extracted.market_factors:
                return extracted
        data = SEASONAL_FALLBACK[season]
        return SeasonalInsight(
            season=season,
            month=month,
            trends=list(data["trends"]),
            business_recommendations=list(data["recommendations"]),
            market_factors=list(data["factors"]),
        )

    async def economic_factors(self, region: str = DEFAULT_REGION) -> MarketInsight:
        for query in (
            f"{region} economic indicators small business impact",
            f"inflation rate {region} consumer spending automotive",
            f"fuel prices {region} automotive industry impact",
        ):
            results = await self.search(query, 2)
            if results:
                insight = self.extract_insight(results, "Economic Factors")
                if insight.insights:
                    return insight
        return MarketInsight(
            category="Economic Factors",
            insights=[
                "Indonesia's economic recovery shows positive signs for small business growth",
                "Inflation affects spare parts pricing and customer spending power",
                "Fuel price stability is crucial for automotive service demand",
                "Government policies supporting small businesses create opportunities",
                "Rising middle class increases demand for quality automotive services",
            ],
            sources=["Economic Analysis Fallback"],
            relevance_score=0.6,
        )

    async def competitor_trends(self, business_type: str = DEFAULT_BUSINESS_TYPE) -> MarketInsight:
        for query in (
            "automotive service competition indonesia",
            f"{business_type} business market share trends indonesia",
            "car service industry competitive analysis indonesia",
        ):
            results = await self.search(query, 3)
            if results:
                insight = self.extract_insight(results, "Competitive Analysis")
                if insight.insights:
                    return insight
        return MarketInsight(
            category="Competitive Analysis",
            insights=[
                "Traditional garages face competition from authorized service centers",
                "Digital marketing and online booking systems become competitive advantages",
                "Specialization in specific vehicle brands or services differentiates businesses",
                "Customer service quality increasingly determines market positioning",
                "Price competition remains significant in local markets",
            ],
            sources=["Competitive Analysis Fallback"],
            relevance_score=0.6,
        )

    # -----------------------------------------------------------------------
    # Snippet extraction
    # -----------------------------------------------------------------------

    @staticmethod
    def _sentences(snippet: str, min_length: int) -> List[str]:
        return [s.strip() for s in _SENTENCE_SPLIT.split(snippet) if len(s.strip()) > min_length]

    def extract_insight(self, results: List[SearchResult], category: str) -> MarketInsight:
        insights: List[str] = []
        sources: List[str] = []
        for result in results:
            for sentence in self._sentences(result.snippet or "", 20):
                lowered = sentence.lower()
                if any(k in lowered for k in RELEVANCE_KEYWORDS):
                    insights.append(sentence)
            if result.title:
                sources.append(result.title)

        insights = insights[:5]
        return MarketInsight(
            category=category,
            insights=insights,
            sources=sources[:3],
            impact=self._impact(insights),
            relevance_score=self._relevance(insights),
        )

    def extract_seasonal(self, results: List[SearchResult], month: int, season: str) -> SeasonalInsight:
        trends, recommendations, factors = [], [], []
        for result in results:
            for sentence in self._sentences(result.snippet or "", 15):
                lowered = sentence.lower()
                if "trend" in lowered or "pattern" in lowered:
                    trends.append(sentence)
                elif any(w in lowered for w in ("recommend", "should", "strategy")):
                    recommendations.append(sentence)
                elif any(w in lowered for w in ("market", "demand", "consumer")):
                    factors.append(sentence)
        return SeasonalInsight(
            season=season,
            month=month,
            trends=trends[:3],
            business_recommendations=recommendations[:3],
            market_factors=factors[:3],
        )

    @staticmethod
    def _impact(insights: List[str]) -> str:
        positive = negative = 0
        for insight in insights:
            lowered = insight.lower()
            positive += sum(1 for w in POSITIVE_WORDS if w in lowered)
            negative += sum(1 for w in NEGATIVE_WORDS if w in lowered)
        if positive > negative:
            return "positive"
        if negative > positive:
            return "negative"
        return "neutral"

    @staticmethod
    def _relevance(insights: List[str]) -> float:
        if not insights:
            return 0.0
        score = sum(sum(1 for t in SCORING_TERMS if t in i.lower()) for i in insights)
        return min(score / len(insights), 1.0)

    @staticmethod
    def _fallback_industry(today: date) -> MarketInsight:
        insights = [
            "Indonesia's automotive service industry continues to grow with increasing vehicle ownership",
            "Digital transformation is reshaping customer expectations in automotive services",
            "Economic recovery shows positive trends for small automotive businesses",
            "Fuel price fluctuations continue to impact customer behavior and service demand",
        ]
        season = season_name(today.month)
        if season == "rainy":
            insights.append("Rainy season typically increases demand for brake and electrical services")
        elif season == "cool dry":
            insights.append("Dry season shows increased demand for AC and cooling system services")
        return MarketInsight(
            category="Industry Overview",
            insights=insights,
            sources=["Market Analysis Fallback"],
            relevance_score=0.7,
        )

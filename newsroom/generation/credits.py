"""
Credit metering client.

The credit ledger lives in an external service; this module only prices
operations and talks to its check/deduct endpoints.
"""

import math
from typing import Any, Dict, Mapping, Optional

import httpx

from newsroom.core.logging import get_logger
from newsroom.core.settings import Settings
from .models import CreditCheck

logger = get_logger(__name__)

CREDIT_COSTS: Dict[str, int] = {
    "article_generation": 10,
    "image_generation": 5,
    "fact_check": 2,
    "seo_optimization": 3,
    "web_search": 1,
}


def compute_article_cost(
    generate_seo: bool,
    use_web_search: bool,
    costs: Mapping[str, int] = CREDIT_COSTS,
) -> int:
    """Pre-flight cost of one article; AI image cost is added after resolution."""
    credits = costs["article_generation"]
    if generate_seo:
        credits += costs["seo_optimization"]
    if use_web_search:
        credits += costs["web_search"]
    return credits


def credits_to_quantity(credits: int, costs: Mapping[str, int] = CREDIT_COSTS) -> int:
    """The credit service prices in article units."""
    return max(1, math.ceil(credits / costs["article_generation"]))


class CreditClient:
    """HTTP client for the credit service check and deduct endpoints."""

    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str,
        platform_secret: Optional[str] = None,
        costs: Optional[Mapping[str, int]] = None,
    ):
        self.client = client
        self.base_url = base_url.rstrip("/")
        self.platform_secret = platform_secret
        self.costs = dict(costs or CREDIT_COSTS)

    @classmethod
    def from_settings(cls, settings: Settings, client: httpx.AsyncClient) -> "CreditClient":
        return cls(client=client, base_url=settings.credits_base_url, platform_secret=settings.platform_secret)

    def _headers(self) -> Dict[str, str]:
        return {"X-Platform-Secret": self.platform_secret or ""}

    async def check(self, tenant_id: str, credits: int) -> CreditCheck:
        """
        Ask whether the tenant can afford `credits`.

        A transport or protocol failure is permissive: the operation is allowed
        and creditsRemaining is reported as -1 (untracked).
        """
        payload = {
            "tenantId": tenant_id,
            "action": "article_generation",
            "quantity": credits_to_quantity(credits, self.costs),
        }
        try:
            response = await self.client.post(f"{self.base_url}/credits/check", json=payload, headers=self._headers())
            data = response.json()
            return CreditCheck(
                allowed=bool(data.get("allowed", False)),
                credits_remaining=int(data.get("creditsRemaining", 0)),
                message=data.get("message") or data.get("error"),
            )
        except (httpx.HTTPError, ValueError, TypeError) as e:
            logger.error(f"Credit check failed for tenant {tenant_id}, allowing operation: {e}")
            return CreditCheck(allowed=True, credits_remaining=-1)

    async def deduct(
        self,
        tenant_id: str,
        credits: int,
        description: str,
        article_id: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        payload = {
            "tenantId": tenant_id,
            "action": "article_generation",
            "quantity": credits_to_quantity(credits, self.costs),
            "description": description,
            "articleId": article_id,
            "metadata": metadata or {},
        }
        response = await self.client.post(f"{self.base_url}/credits/deduct", json=payload, headers=self._headers())
        response.raise_for_status()
        logger.info(f"Deducted {credits} credits from tenant {tenant_id} for article {article_id}")

"""Pricing data extracted from the pricing page and the checks run against it."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class PricingEntry(BaseModel):
    name: str
    price: str


class ExpectedPrice(BaseModel):
    name: str
    pattern: str  # regex matched against the start of the price text


class PlanCheck(BaseModel):
    name: str
    status: str  # matched, mismatch, missing
    expected_pattern: str
    found_price: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.status == "matched"


class PricingReport(BaseModel):
    tier: Optional[str] = None  # which extraction tier produced the entries
    entries: list[PricingEntry] = Field(default_factory=list)
    checks: list[PlanCheck] = Field(default_factory=list)

    @property
    def all_matched(self) -> bool:
        return bool(self.checks) and all(c.matched for c in self.checks)

    def check_for(self, name: str) -> Optional[PlanCheck]:
        for check in self.checks:
            if check.name.lower() == name.lower():
                return check
        return None


SOCIAL_FEED_EXPECTED_PRICES = [
    ExpectedPrice(name="Free", pattern=r"^\$0"),
    ExpectedPrice(name="Starter", pattern=r"^\$4\.94"),
    ExpectedPrice(name="Pro", pattern=r"^\$12\.14"),
    ExpectedPrice(name="Business", pattern=r"^\$80\.99"),
]

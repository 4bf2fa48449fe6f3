"""Schemas for POD Power usage statistics."""

from typing import Literal

from pydantic import BaseModel, Field


class RecordUsageRequest(BaseModel):
    feature: Literal["variation", "mockup"]


class UserUsageStats(BaseModel):
    user_id: int
    username: str
    variation_count: int = Field(..., ge=0)
    mockup_count: int = Field(..., ge=0)
    total_count: int = Field(..., ge=0)


class UsageStatsResponse(BaseModel):
    stats: list[UserUsageStats]

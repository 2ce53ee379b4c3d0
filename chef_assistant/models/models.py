"""Data models and schemas for the recipe suggestion service.

Defines Pydantic models for the suggestion envelope returned by the model,
the forwarder's error body, and the forwarder's injected settings.
All models use Pydantic v2 for strict validation.
"""

from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class MatchingMode(str, Enum):
    """How strictly suggested recipes must stick to the listed ingredients."""

    EXACT = "exact"
    FEW = "few"
    FLEXIBLE = "flexible"


class SuggestionRecord(BaseModel):
    """One recipe suggestion parsed from a model reply.

    Wire names follow the JSON format requested in the prompt (camelCase for
    cookingTime and matchScore). Only name and description are required;
    omitted lists default to [] and the other omitted fields to None.
    Records are immutable once constructed.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    name: Annotated[str, Field(min_length=1, description="Recipe name")]
    description: Annotated[str, Field(description="Short appetizing description")]
    ingredients: Annotated[
        List[str], Field(default_factory=list, description="Ingredients with quantities")
    ]
    instructions: Annotated[
        List[str], Field(default_factory=list, description="Ordered preparation steps")
    ]
    cooking_time: Annotated[
        Optional[str], Field(None, alias="cookingTime", description="Preparation time label, e.g. '20 minutes'")
    ]
    servings: Annotated[Optional[int], Field(None, ge=0, description="Number of servings")]
    difficulty: Annotated[Optional[str], Field(None, description="Difficulty label (open set, e.g. 'Easy')")]
    match_score: Annotated[
        Optional[int],
        Field(None, alias="matchScore", ge=0, le=100, description="How well the recipe fits the listed ingredients (0-100)"),
    ]


class SuggestionEnvelope(BaseModel):
    """Top-level JSON object the model is asked to reply with."""

    recipes: Annotated[List[SuggestionRecord], Field(description="Suggested recipes")]


class ErrorResponse(BaseModel):
    """Normalized error body returned by the forwarder on every failure."""

    error: str


class ForwarderSettings(BaseModel):
    """Configuration injected into the forwarder at construction time."""

    model_config = ConfigDict(frozen=True)

    api_key: Optional[str] = None
    upstream_url: str = "https://api.anthropic.com/v1/messages"
    api_version: str = "2023-06-01"
    cors_enabled: bool = True
    cors_allow_origin: str = "*"

    @field_validator("api_key", mode="before")
    @classmethod
    def blank_key_is_missing(cls, v: Optional[str]) -> Optional[str]:
        """Treat empty or whitespace-only keys as not configured."""
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @classmethod
    def from_config(cls, config) -> "ForwarderSettings":
        """Build settings from the environment-backed Config."""
        return cls(
            api_key=config.ANTHROPIC_API_KEY,
            upstream_url=config.ANTHROPIC_API_URL,
            api_version=config.ANTHROPIC_VERSION,
            cors_enabled=config.CORS_ENABLED,
            cors_allow_origin=config.CORS_ALLOW_ORIGIN,
        )

"""Pydantic models for URL recipe scraping."""

from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

Confidence = Literal["high", "medium", "low"]


class ExtractedRecipe(BaseModel):
    """Best-effort recipe data recovered from a page."""

    title: Optional[str] = None
    description: Optional[str] = None
    source_url: Optional[str] = None
    source_name: Optional[str] = None
    image_url: Optional[str] = None
    prep_time_minutes: Optional[int] = None
    cook_time_minutes: Optional[int] = None
    total_time_minutes: Optional[int] = None
    servings: Optional[str] = None
    yields: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    directions: Optional[str] = None
    confidence: Confidence = "low"
    raw: Dict[str, Any] = Field(default_factory=dict)


class PageMeta(BaseModel):
    """Social/meta tags read from the document head."""

    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    site_name: Optional[str] = None


class CaptionExtraction(BaseModel):
    """Caption text pulled from a short-video page and where it came from."""

    text: Optional[str] = None
    source: Optional[str] = None


class ParsedCaption(BaseModel):
    """Output of a caption heuristic parser."""

    title: Optional[str] = None
    description: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    directions: Optional[str] = None
    confidence: Confidence = "low"


class AssistedRecipe(BaseModel):
    """Fields returned by the AI caption assist after type coercion."""

    title: Optional[str] = None
    description: Optional[str] = None
    ingredients: List[str] = Field(default_factory=list)
    directions: List[str] = Field(default_factory=list)
    prep_time_minutes: Optional[int] = None
    cook_time_minutes: Optional[int] = None
    total_time_minutes: Optional[int] = None
    servings: Optional[str] = None
    yields: Optional[str] = None

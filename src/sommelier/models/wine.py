from enum import Enum
from typing import Any, List, Optional

from google.genai import types
from pydantic import BaseModel, ConfigDict, Field, field_validator


class WineStyle(str, Enum):
    RED = "Red"
    WHITE = "White"
    ROSE = "Rosé"
    SPARKLING = "Sparkling"
    SWEET = "Sweet"
    FORTIFIED = "Fortified"

    @classmethod
    def coerce(cls, value: str) -> str:
        """Return the canonical spelling of a known style, or the value unchanged."""
        folded = value.strip().casefold()
        if folded == "rose":
            return cls.ROSE.value
        for style in cls:
            if style.value.casefold() == folded:
                return style.value
        return value.strip()


CHARACTERISTIC_MIN = 1
CHARACTERISTIC_MAX = 5
DEFAULT_CHARACTERISTICS = {"body": 3, "acidity": 3, "tannin": 3, "sweetness": 1}


class WineCharacteristics(BaseModel):
    """Sensory profile on a 1-5 scale.

    Values outside the scale are clamped and values that are not numbers
    fall back to the neutral default for that axis.
    """

    body: int = DEFAULT_CHARACTERISTICS["body"]
    acidity: int = DEFAULT_CHARACTERISTICS["acidity"]
    tannin: int = DEFAULT_CHARACTERISTICS["tannin"]
    sweetness: int = DEFAULT_CHARACTERISTICS["sweetness"]

    @field_validator("body", "acidity", "tannin", "sweetness", mode="before")
    @classmethod
    def clamp(cls, value: Any, info) -> int:
        try:
            number = int(round(float(value)))
        except (TypeError, ValueError, OverflowError):
            return DEFAULT_CHARACTERISTICS[info.field_name]
        return max(CHARACTERISTIC_MIN, min(CHARACTERISTIC_MAX, number))


class Citation(BaseModel):
    title: Optional[str] = None
    uri: str

    @property
    def label(self) -> str:
        return self.title or self.uri


class WineAnalysis(BaseModel):
    """Structured answer returned by the AI service. Every field is optional."""

    name: Optional[str] = None
    winery: Optional[str] = None
    varietal: Optional[str] = None
    region: Optional[str] = None
    vintage: Optional[str] = None
    style: Optional[str] = None
    summary: Optional[str] = None
    characteristics: Optional[WineCharacteristics] = None

    @field_validator(
        "name", "winery", "varietal", "region", "vintage", "style", "summary", mode="before"
    )
    @classmethod
    def blank_to_none(cls, value: Any) -> Optional[str]:
        if value is None or isinstance(value, (dict, list)):
            return None
        text = str(value).strip()
        return text or None

    @field_validator("style")
    @classmethod
    def canonical_style(cls, value: Optional[str]) -> Optional[str]:
        return WineStyle.coerce(value) if value else value

    @field_validator("characteristics", mode="before")
    @classmethod
    def drop_malformed_characteristics(cls, value: Any) -> Any:
        if isinstance(value, (dict, WineCharacteristics)):
            return value
        return None


class WineNote(BaseModel):
    """A persisted tasting entry.

    Serialized with camelCase keys (``tastingNotes``, ``createdAt`` ...) so the
    stored JSON array keeps the journal's on-disk format.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: str
    winery: str
    varietal: str
    region: str
    vintage: str
    tasting_notes: str = Field(alias="tastingNotes")
    user_notes: str = Field(default="", alias="userNotes")
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    style: str
    characteristics: WineCharacteristics = Field(default_factory=WineCharacteristics)
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    created_at: int = Field(alias="createdAt")
    search_sources: Optional[List[Citation]] = Field(default=None, alias="searchSources")


# Structured-output schema sent with every request. Ranges and the style
# enumeration are documented to the model, not enforced by the schema.
WINE_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "name": types.Schema(type=types.Type.STRING),
        "winery": types.Schema(type=types.Type.STRING),
        "varietal": types.Schema(type=types.Type.STRING),
        "region": types.Schema(type=types.Type.STRING),
        "vintage": types.Schema(type=types.Type.STRING),
        "style": types.Schema(
            type=types.Type.STRING,
            description="One of: Red, White, Rosé, Sparkling, Sweet, Fortified",
        ),
        "summary": types.Schema(
            type=types.Type.STRING,
            description="Professional tasting notes and flavor profile summary.",
        ),
        "characteristics": types.Schema(
            type=types.Type.OBJECT,
            properties={
                "body": types.Schema(type=types.Type.INTEGER),
                "tannin": types.Schema(type=types.Type.INTEGER),
                "acidity": types.Schema(type=types.Type.INTEGER),
                "sweetness": types.Schema(type=types.Type.INTEGER),
            },
            required=["body", "tannin", "acidity", "sweetness"],
        ),
    },
    required=["name", "winery", "varietal", "region", "vintage", "summary", "characteristics", "style"],
)

import secrets
import time
from typing import List, Optional

from sommelier.models.wine import DEFAULT_CHARACTERISTICS, Citation, WineAnalysis, WineCharacteristics, WineNote

UNKNOWN_NAME = "Unknown Wine"
UNKNOWN_WINERY = "Unknown Winery"
UNKNOWN_VARIETAL = "Unknown Varietal"
UNKNOWN_REGION = "Unknown Region"
NON_VINTAGE = "N/V"
NO_TASTING_NOTES = "No AI tasting notes available."
DEFAULT_STYLE = "Red"
DEFAULT_RATING = 5


def new_note_id(created_at: int) -> str:
    """Timestamp-based id with a random suffix so two notes in the same millisecond differ."""
    return f"{created_at}-{secrets.token_hex(4)}"


def build_note(
    analysis: WineAnalysis,
    image_url: Optional[str] = None,
    sources: Optional[List[Citation]] = None,
    now: Optional[int] = None,
) -> WineNote:
    """Build a complete journal entry from an AI analysis.

    Every core field gets a readable placeholder when the analysis lacks it,
    and the rating always starts at 5 for the user to revise.
    """
    created_at = now if now is not None else int(time.time() * 1000)
    characteristics = analysis.characteristics or WineCharacteristics(**DEFAULT_CHARACTERISTICS)

    return WineNote(
        id=new_note_id(created_at),
        name=analysis.name or UNKNOWN_NAME,
        winery=analysis.winery or UNKNOWN_WINERY,
        varietal=analysis.varietal or UNKNOWN_VARIETAL,
        region=analysis.region or UNKNOWN_REGION,
        vintage=analysis.vintage or NON_VINTAGE,
        tasting_notes=analysis.summary or NO_TASTING_NOTES,
        user_notes="",
        rating=DEFAULT_RATING,
        style=analysis.style or DEFAULT_STYLE,
        characteristics=characteristics.model_copy(),
        image_url=image_url,
        created_at=created_at,
        search_sources=list(sources) if sources is not None else None,
    )

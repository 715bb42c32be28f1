import json
import logging
from typing import Any, List, NamedTuple, Optional

from google.genai import types
from pydantic import ValidationError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt, wait_exponential

from sommelier.errors import ParseError, ServiceError, SommelierError
from sommelier.models.wine import WINE_SCHEMA, Citation, WineAnalysis
from sommelier.services.image import decode_data_uri, resize_image
from sommelier.services.llm import LLMService

logger = logging.getLogger(__name__)


class ResearchResult(NamedTuple):
    analysis: WineAnalysis
    sources: List[Citation]


class WineSynthesisClient:
    """Turns a label photo or a free-text query into a structured wine analysis."""

    IMAGE_INSTRUCTION = (
        "Identify this wine. Return JSON including style (Red/White/etc) and taste summary. "
        "Use Search to be accurate."
    )
    RESEARCH_TEMPLATE = (
        "Detailed research for: {query}. Include winery, region, vintage, "
        "professional tasting notes and style category."
    )

    def __init__(
        self,
        llm: LLMService,
        max_attempts: int = 1,
        image_max_size=(1024, 1024),
        retry_wait=None,
    ):
        self.llm = llm
        self.max_attempts = max(1, max_attempts)
        self.image_max_size = image_max_size
        self.retry_wait = retry_wait or wait_exponential(multiplier=1, min=1, max=10)

    @staticmethod
    def build_config() -> types.GenerateContentConfig:
        return types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=WINE_SCHEMA,
            tools=[types.Tool(google_search=types.GoogleSearch())],
        )

    def analyze_from_image(self, image_data: str) -> WineAnalysis:
        """Identify the wine on a label photo given as a data URI."""
        client = self.llm.client

        _, raw = decode_data_uri(image_data)
        contents = [
            types.Content(
                role="user",
                parts=[
                    types.Part.from_bytes(
                        mime_type="image/jpeg",
                        data=resize_image(raw, max_size=self.image_max_size),
                    ),
                    types.Part.from_text(text=self.IMAGE_INSTRUCTION),
                ],
            )
        ]

        response = self._generate(client, contents)
        return self.parse_analysis(response.text)

    def research_from_query(self, query_text: str) -> ResearchResult:
        """Research a wine by description and collect the sources the model cited."""
        query = (query_text or "").strip()
        if not query:
            raise ValueError("Search query must not be empty")
        client = self.llm.client

        response = self._generate(client, self.RESEARCH_TEMPLATE.format(query=query))
        analysis = self.parse_analysis(response.text)
        sources = self.extract_citations(response)
        logger.info("Research for %r returned %d source(s)", query, len(sources))
        return ResearchResult(analysis=analysis, sources=sources)

    def _generate(self, client, contents) -> types.GenerateContentResponse:
        retrying = Retrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=self.retry_wait,
            retry=retry_if_exception_type(ServiceError),
            reraise=True,
        )
        for attempt in retrying:
            with attempt:
                try:
                    response = client.models.generate_content(
                        model=self.llm.model_name,
                        contents=contents,
                        config=self.build_config(),
                    )
                except SommelierError:
                    raise
                except Exception as e:
                    logger.warning(
                        "Gemini request failed (attempt %d/%d): %s",
                        attempt.retry_state.attempt_number,
                        self.max_attempts,
                        e,
                    )
                    raise ServiceError(f"AI service request failed: {e}") from e
        logger.info("Received response from model.")
        return response

    @staticmethod
    def parse_analysis(text: Optional[str]) -> WineAnalysis:
        if not isinstance(text, str) or not text.strip():
            raise ParseError("AI service returned an empty response")
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ParseError(f"AI service returned invalid JSON: {e}", raw_text=text) from e
        if not isinstance(data, dict):
            raise ParseError(
                f"Expected a JSON object, got {type(data).__name__}", raw_text=text
            )
        try:
            return WineAnalysis.model_validate(data)
        except ValidationError as e:
            raise ParseError(f"AI response does not match the wine schema: {e}", raw_text=text) from e

    @staticmethod
    def extract_citations(response: Any) -> List[Citation]:
        """Collect web sources from grounding metadata.

        Missing or malformed metadata yields an empty list rather than an error.
        """
        try:
            candidates = response.candidates or []
            if not candidates:
                return []
            metadata = candidates[0].grounding_metadata
            chunks = (metadata.grounding_chunks if metadata else None) or []
            sources = []
            for chunk in chunks:
                web = getattr(chunk, "web", None)
                uri = getattr(web, "uri", None)
                if not isinstance(uri, str) or not uri.strip():
                    continue
                title = getattr(web, "title", None)
                sources.append(
                    Citation(title=title if isinstance(title, str) else None, uri=uri.strip())
                )
            return sources
        except (AttributeError, IndexError, TypeError, ValidationError) as e:
            logger.debug("Ignoring malformed grounding metadata: %s", e)
            return []

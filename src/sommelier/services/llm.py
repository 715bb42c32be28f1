from google import genai
from abc import ABC, abstractmethod
import logging
import os

from sommelier.config import API_KEY_ENV, DEFAULT_MODEL
from sommelier.errors import CredentialMissing

logger = logging.getLogger(__name__)


class LLMService(ABC):
    model_name: str = DEFAULT_MODEL

    @property
    @abstractmethod
    def client(self) -> genai.Client:
        raise NotImplementedError


class GeminiService(LLMService):
    """Lazily builds a Gemini client.

    The key is only checked when the client is first needed, so the journal
    can start (and be browsed) without a key configured.
    """

    def __init__(self, api_key=None, model_name: str = DEFAULT_MODEL, api_key_env: str = API_KEY_ENV):
        self.api_key_env = api_key_env
        self.api_key = api_key if api_key else os.getenv(api_key_env)
        self.model_name = model_name
        self._client = None

    @property
    def client(self) -> genai.Client:
        if self._client is None:
            self._client = self.set_client()
        return self._client

    def set_client(self) -> genai.Client:
        if not self.api_key:
            raise CredentialMissing(self.api_key_env)
        logger.debug("Creating Gemini client for model %s", self.model_name)
        return genai.Client(api_key=self.api_key)

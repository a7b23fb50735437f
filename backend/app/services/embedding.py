"""
Embedding gateway.

Turns text into fixed-length vectors, either through a hosted
OpenAI-compatible embeddings endpoint or a local Sentence Transformers
model. Every call is a single attempt: no retry and no caching.
"""

import asyncio
import logging
import threading
import time
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from typing import Any, Protocol

import httpx

from backend.app.core.config import settings
from backend.app.core.exceptions import ConfigurationError, EmbeddingServiceError, ORangeException

logger = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    """Protocol for embedding backends."""

    async def embed(self, text: str) -> list[float]:
        """Return the embedding vector for ``text``."""
        ...


class OpenAIEmbeddingProvider:
    """Hosted embeddings through the OpenAI ``/embeddings`` endpoint."""

    def __init__(
        self,
        api_key: str,
        model: str = "text-embedding-3-small",
        base_url: str = "https://api.openai.com/v1",
        timeout: float = 30.0,
    ):
        """
        Initialize hosted embedding provider.

        Args:
            api_key: OpenAI API key
            model: Embedding model name
            base_url: API base URL
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.model = model
        self.url = f"{base_url.rstrip('/')}/embeddings"
        self.timeout = timeout

    async def embed(self, text: str) -> list[float]:
        """
        Embed text with the hosted model.

        Raises:
            httpx.HTTPError: If the API request fails
            KeyError: If the response payload is malformed
        """
        logger.info(f"[EMBEDDING REQUEST] Model: {self.model}, Text length: {len(text)}")
        start_time = time.time()

        async with httpx.AsyncClient() as client:
            response = await client.post(
                self.url,
                headers={
                    "Authorization": f"Bearer {self.api_key}",
                    "Content-Type": "application/json",
                },
                json={"model": self.model, "input": text},
                timeout=self.timeout,
            )

            response.raise_for_status()
            data = response.json()

        vector = data["data"][0]["embedding"]
        logger.info(f"[EMBEDDING RESPONSE] Time: {time.time() - start_time:.2f}s, Dimension: {len(vector)}")
        return vector


def _load_sentence_transformer(model_name: str) -> Any:
    """Load a Sentence Transformers model, on GPU when available."""
    from sentence_transformers import SentenceTransformer

    model = SentenceTransformer(model_name)
    try:
        import torch
        if torch.cuda.is_available():
            model = model.to("cuda")
    except ImportError:
        pass
    return model


class SentenceTransformerProvider:
    """
    Local embeddings with Sentence Transformers.

    The model is loaded lazily on first use (thread-safe) and encoding runs
    in a thread pool so the event loop is never blocked.
    """

    def __init__(self, model_name: str):
        self.model_name = model_name
        self._model: Any = None
        self._model_lock = threading.Lock()
        self._executor = ThreadPoolExecutor(max_workers=2)

    @property
    def model(self) -> Any:
        """Lazily loaded model instance."""
        if self._model is None:
            with self._model_lock:
                # Double-check after acquiring lock
                if self._model is None:
                    logger.info(f"[EMBEDDING] Loading local model {self.model_name}")
                    self._model = _load_sentence_transformer(self.model_name)
        return self._model

    def embed_sync(self, text: str) -> list[float]:
        """Encode text synchronously."""
        embedding = self.model.encode(
            text,
            normalize_embeddings=True,
            convert_to_numpy=True,
            show_progress_bar=False,
        )
        return embedding.tolist()

    async def embed(self, text: str) -> list[float]:
        """Encode text in the thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self._executor, self.embed_sync, text)

    def __del__(self):
        """Cleanup executor on deletion."""
        if hasattr(self, "_executor"):
            self._executor.shutdown(wait=False)


class EmbeddingService:
    """
    Service for generating text embeddings.

    Wraps a provider and enforces the gateway contract:
    - blank text is rejected before any call
    - provider failures surface as EmbeddingServiceError
    - every vector has the configured dimension

    Examples:
        >>> service = EmbeddingService()
        >>> vector = await service.embed("Next.jsのSSRを試した")
        >>> len(vector) == settings.embedding_dimension
        True
    """

    def __init__(
        self,
        provider: EmbeddingProvider | None = None,
        dimension: int | None = None,
    ):
        """
        Initialize embedding service.

        Args:
            provider: Embedding provider. If None, creates one from config.
            dimension: Expected vector dimension. If None, uses config.
        """
        if provider is None:
            provider = self._create_provider_from_config()
        self.provider = provider
        self.dimension = dimension or settings.embedding_dimension

    @staticmethod
    def _create_provider_from_config() -> EmbeddingProvider:
        """Create the configured embedding provider."""
        if settings.embedding_provider == "local":
            return SentenceTransformerProvider(settings.local_embedding_model)

        if not settings.openai_api_key:
            raise ConfigurationError("OPENAI_API_KEY")

        return OpenAIEmbeddingProvider(
            api_key=settings.openai_api_key,
            model=settings.embedding_model,
            base_url=settings.openai_base_url,
            timeout=settings.request_timeout,
        )

    def _preprocess_text(self, text: str) -> str:
        """
        Preprocess text before embedding.

        - Removes newlines and replaces with spaces
        - Normalizes multiple spaces to single space
        - Strips leading/trailing whitespace
        """
        text = text.replace('\n', ' ').replace('\r', ' ')
        text = ' '.join(text.split())
        return text.strip()

    async def embed(self, text: str) -> list[float]:
        """
        Generate an embedding for one text.

        Args:
            text: Text to embed

        Returns:
            Embedding vector as a list of floats

        Raises:
            ValueError: If text is blank
            EmbeddingServiceError: If the provider fails or returns a wrong dimension
        """
        text = self._preprocess_text(text)
        if not text:
            raise ValueError("Text cannot be empty")

        try:
            vector = await self.provider.embed(text)
        except ORangeException:
            raise
        except Exception as e:
            logger.error(f"[EMBEDDING] Provider call failed: {e}")
            raise EmbeddingServiceError("embed", e) from e

        if len(vector) != self.dimension:
            raise EmbeddingServiceError(
                "embed",
                ValueError(f"expected dimension {self.dimension}, got {len(vector)}"),
            )

        return [float(v) for v in vector]


# Global singleton instance
@lru_cache(maxsize=1)
def get_embedding_service() -> EmbeddingService:
    """
    Get singleton embedding service instance.

    Returns:
        Cached EmbeddingService instance

    Raises:
        ConfigurationError: If the hosted provider has no API key
    """
    return EmbeddingService()

# jobmatch/nlp/providers.py
"""
Embedding / chat providers.

A provider exposes three calls and nothing else:

    embed(text)         -> list[float] of length D
    embed_batch(texts)  -> list of vectors, same order as `texts`
    chat_json(prompt)   -> raw completion text expected to hold one JSON object

Every failure, timeouts included, surfaces as ProviderError so callers only
have one thing to catch.
"""
import logging
import time
from typing import Protocol, Sequence

import numpy as np
from openai import OpenAI, OpenAIError

from jobmatch.core.config import Settings
from jobmatch.core.errors import ProviderError

log = logging.getLogger(__name__)


class EmbeddingProvider(Protocol):
    dim: int

    def embed(self, text: str) -> list[float]: ...

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]: ...

    def chat_json(self, prompt: str) -> str: ...


class OpenAIProvider:
    """OpenAI embeddings + chat completions, bounded by a per-call timeout."""

    def __init__(
        self,
        api_key: str,
        embedding_model: str = "text-embedding-3-small",
        dim: int = 1536,
        chat_model: str = "gpt-4o-mini",
        temperature: float = 0.3,
        max_tokens: int = 200,
        timeout: float = 30.0,
        max_retries: int = 2,
    ):
        if not api_key:
            raise ProviderError("Missing OPENAI_API_KEY")
        # the SDK retries rate limits / 5xx itself; we only cap attempts and time
        self.client = OpenAI(api_key=api_key, timeout=timeout, max_retries=max_retries)
        self.embedding_model = embedding_model
        self.dim = dim
        self.chat_model = chat_model
        self.temperature = temperature
        self.max_tokens = max_tokens

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        try:
            resp = self.client.embeddings.create(model=self.embedding_model, input=list(texts))
        except OpenAIError as e:
            raise ProviderError(f"embedding request failed: {e}") from e
        # the API returns items tagged with their input index
        return [d.embedding for d in sorted(resp.data, key=lambda d: d.index)]

    def chat_json(self, prompt: str) -> str:
        try:
            resp = self.client.chat.completions.create(
                model=self.chat_model,
                messages=[{"role": "user", "content": prompt}],
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
        except OpenAIError as e:
            raise ProviderError(f"chat request failed: {e}") from e
        return resp.choices[0].message.content or ""


# ---------- Local sentence-transformers model ----------
_models: dict[str, object] = {}


def get_model(name: str):
    """Load (once per process) and return a SentenceTransformer."""
    if name not in _models:
        from sentence_transformers import SentenceTransformer
        _models[name] = SentenceTransformer(name)
    return _models[name]


class LocalProvider:
    """
    Embeddings from a local sentence-transformers model. There is no chat
    model, so skill-overlap judgment always takes the exact-match fallback.
    """

    def __init__(self, model_name: str = "sentence-transformers/all-MiniLM-L6-v2"):
        self.model_name = model_name
        self._dim: int | None = None

    @property
    def dim(self) -> int:
        if self._dim is None:
            self._dim = int(get_model(self.model_name).get_sentence_embedding_dimension())
        return self._dim

    def embed(self, text: str) -> list[float]:
        return self.embed_batch([text])[0]

    def embed_batch(self, texts: Sequence[str]) -> list[list[float]]:
        t0 = time.perf_counter()
        try:
            X = get_model(self.model_name).encode(list(texts), normalize_embeddings=True)
        except (RuntimeError, ValueError, OSError) as e:
            raise ProviderError(f"local embedding failed: {e}") from e
        log.debug("encoded %d texts locally in %.3fs", len(texts), time.perf_counter() - t0)
        return np.asarray(X, dtype=np.float32).tolist()

    def chat_json(self, prompt: str) -> str:
        raise ProviderError("local provider has no chat model")


def build_provider(cfg: Settings) -> EmbeddingProvider:
    kind = cfg.EMBEDDING_PROVIDER.lower()
    if kind == "local":
        return LocalProvider(cfg.LOCAL_EMBEDDING_MODEL)
    if kind == "openai":
        return OpenAIProvider(
            api_key=cfg.OPENAI_API_KEY,
            embedding_model=cfg.EMBEDDING_MODEL,
            dim=cfg.EMBEDDING_DIM,
            chat_model=cfg.CHAT_MODEL,
            temperature=cfg.CHAT_TEMPERATURE,
            max_tokens=cfg.CHAT_MAX_TOKENS,
            timeout=cfg.PROVIDER_TIMEOUT,
            max_retries=cfg.PROVIDER_MAX_RETRIES,
        )
    raise ValueError(f"Unknown EMBEDDING_PROVIDER: {cfg.EMBEDDING_PROVIDER!r}")

"""Shared fixtures: a fresh in-memory database per test and a fake provider
that counts its calls and can be told to misbehave."""

from __future__ import annotations

import hashlib

import numpy as np
import pytest

from jobmatch.core.errors import ProviderError
from jobmatch.db import models  # noqa: F401
from jobmatch.db.base import Base
from jobmatch.db.session import create_db_engine, make_session_factory
from jobmatch.nlp.embeddings import EmbeddingGateway
from jobmatch.services.fallback import BatchFallbackPolicy
from jobmatch.services.job_index import JobEmbeddingIndex
from jobmatch.services.matching import MatchingEngine
from jobmatch.services.resume_store import ResumeStore

DIM = 8


def unit(i: int) -> list[float]:
    v = [0.0] * DIM
    v[i] = 1.0
    return v


class FakeProvider:
    """
    Deterministic embeddings: a text containing one of `overrides`' keys gets
    that vector, anything else a hash-seeded random one.
    """

    def __init__(self, dim: int = DIM):
        self.dim = dim
        self.overrides: dict[str, list[float]] = {}
        self.embed_calls = 0
        self.batch_calls = 0
        self.chat_calls = 0
        self.batch_fail = False
        self.short_batch = False
        self.fail_texts: set[str] = set()
        self.chat_response = None  # str, callable(prompt) -> str, or None to fail

    def _vector(self, text: str) -> list[float]:
        for needle in self.fail_texts:
            if needle in text:
                raise ProviderError(f"cannot embed text containing {needle!r}")
        for key, vec in self.overrides.items():
            if key in text:
                return list(vec)
        seed = int(hashlib.sha256(text.encode("utf-8")).hexdigest()[:8], 16)
        return np.random.default_rng(seed).normal(size=self.dim).tolist()

    def embed(self, text: str) -> list[float]:
        self.embed_calls += 1
        return self._vector(text)

    def embed_batch(self, texts):
        self.batch_calls += 1
        if self.batch_fail:
            raise ProviderError("batch endpoint down")
        out = [self._vector(t) for t in texts]
        if self.short_batch:
            out = out[:-1]
        return out

    def chat_json(self, prompt: str) -> str:
        self.chat_calls += 1
        if self.chat_response is None:
            raise ProviderError("chat unavailable")
        if callable(self.chat_response):
            return self.chat_response(prompt)
        return self.chat_response

    @property
    def total_calls(self) -> int:
        return self.embed_calls + self.batch_calls + self.chat_calls


@pytest.fixture
def engine():
    eng = create_db_engine("sqlite://")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return make_session_factory(engine)


@pytest.fixture
def provider():
    return FakeProvider()


@pytest.fixture
def gateway(provider):
    return EmbeddingGateway(provider)


@pytest.fixture
def store(session_factory, gateway):
    return ResumeStore(session_factory, gateway)


@pytest.fixture
def index(session_factory, gateway):
    return JobEmbeddingIndex(session_factory, gateway, BatchFallbackPolicy(batch_size=500))


@pytest.fixture
def matcher(session_factory, gateway, index):
    return MatchingEngine(session_factory, gateway, index, enrich=True, default_limit=10, default_threshold=0.5)

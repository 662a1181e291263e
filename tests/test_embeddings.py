import json
from types import SimpleNamespace

import httpx
import openai
import pytest

from jobmatch.core.config import Settings
from jobmatch.core.errors import ProviderError, VectorShapeError
from jobmatch.nlp.embeddings import FALLBACK_REASONING, EmbeddingGateway, build_job_text, build_resume_text
from jobmatch.nlp.llm_json import extract_json_object
from jobmatch.nlp.providers import LocalProvider, OpenAIProvider, build_provider
from jobmatch.schemas.jobs import JobRecord
from jobmatch.services.fallback import BatchFallbackPolicy


def test_build_job_text_is_labeled_and_stable():
    job = JobRecord(
        id=7,
        title="Backend Engineer",
        company="Acme",
        description="Build APIs",
        required_skills=["Python", "FastAPI"],
        experience_years=3,
        location="Remote",
    )
    assert build_job_text(job) == (
        "Job Title: Backend Engineer\n"
        "Company: Acme\n"
        "Description: Build APIs\n"
        "Required Skills: Python, FastAPI\n"
        "Experience Required: 3 years\n"
        "Location: Remote"
    )
    assert job.id == "7"


def test_build_job_text_uses_catalog_text_when_only_text_given():
    assert build_job_text(JobRecord(id="x", text="  prebuilt  ")) == "prebuilt"


def test_build_resume_text_appends_summary():
    out = build_resume_text("Jane Doe", ["Python", "AWS"], 4.5, ["MBA"])
    assert out == "Jane Doe\n\nKey Technical Skills: Python, AWS\nTotal Experience: 4.5 years\nEducation: MBA"
    assert build_resume_text("Jane Doe") == "Jane Doe"


def test_embed_validates_dimension(gateway, provider):
    provider.overrides["short"] = [1.0, 2.0]
    with pytest.raises(VectorShapeError):
        gateway.embed("short text")


def test_skill_overlap_from_fenced_json(gateway, provider):
    payload = {
        "directMatches": ["Python"],
        "relatedMatches": [{"candidateSkill": "Flask", "jobSkill": "FastAPI", "reasoning": "similar"}],
        "missingSkills": ["Kubernetes"],
        "matchScore": 70,
        "reasoning": "Good fit",
    }
    provider.chat_response = "Here you go:\n```json\n" + json.dumps(payload) + "\n```"
    out = gateway.analyze_skill_overlap(["Python", "Flask"], ["Python", "FastAPI", "Kubernetes"])
    assert out.match_score == 70
    assert out.matched_skills == ["Python", "Flask"]
    assert out.related_matches[0].job_skill == "FastAPI"
    assert not out.fallback


def test_skill_overlap_falls_back_on_malformed_json(gateway, provider):
    provider.chat_response = "not json at all"
    out = gateway.analyze_skill_overlap(["python", "Go"], ["Python", "Rust", "Docker", "AWS"])
    assert out.fallback
    assert out.direct_matches == ["python"]
    assert out.missing_skills == ["Rust", "Docker", "AWS"]
    assert out.match_score == 25.0
    assert out.reasoning == FALLBACK_REASONING


def test_skill_overlap_falls_back_on_provider_error(gateway, provider):
    provider.chat_response = None
    out = gateway.analyze_skill_overlap(["Python"], ["Python"])
    assert out.fallback and out.match_score == 100.0
    assert provider.chat_calls == 1


def test_no_required_skills_scores_zero_without_a_call(gateway, provider):
    out = gateway.analyze_skill_overlap(["Python"], [])
    assert out.match_score == 0.0
    assert provider.chat_calls == 0


def test_extract_json_object_rejects_arrays():
    with pytest.raises(ValueError):
        extract_json_object("[1, 2]")
    assert extract_json_object('prefix {"a": 1} suffix') == {"a": 1}


# ---------- OpenAI adapter ----------

def _timeout(*args, **kwargs):
    raise openai.APITimeoutError(request=httpx.Request("POST", "https://api.openai.com/v1/embeddings"))


def _item(index, vec):
    return SimpleNamespace(index=index, embedding=vec)


@pytest.fixture
def openai_provider():
    return OpenAIProvider(api_key="sk-test", dim=3, timeout=1.0, max_retries=0)


def test_openai_batch_comes_back_in_input_order(openai_provider, monkeypatch):
    def create(model, input):
        assert input == ["first", "second", "third"]
        return SimpleNamespace(data=[_item(2, [0.0, 0.0, 1.0]), _item(0, [1.0, 0.0, 0.0]), _item(1, [0.0, 1.0, 0.0])])

    monkeypatch.setattr(openai_provider.client.embeddings, "create", create)
    out = openai_provider.embed_batch(["first", "second", "third"])
    assert out == [[1.0, 0.0, 0.0], [0.0, 1.0, 0.0], [0.0, 0.0, 1.0]]


def test_openai_timeout_becomes_provider_error(openai_provider, monkeypatch):
    monkeypatch.setattr(openai_provider.client.embeddings, "create", _timeout)
    monkeypatch.setattr(openai_provider.client.chat.completions, "create", _timeout)
    with pytest.raises(ProviderError):
        openai_provider.embed("hello")
    with pytest.raises(ProviderError):
        openai_provider.chat_json("{}")


def test_openai_batch_timeout_degrades_to_single_calls(openai_provider, monkeypatch):
    def create(model, input):
        if len(input) > 1:
            _timeout()
        return SimpleNamespace(data=[_item(0, [1.0, 0.0, 0.0])])

    monkeypatch.setattr(openai_provider.client.embeddings, "create", create)
    gw = EmbeddingGateway(openai_provider)
    out = BatchFallbackPolicy(batch_size=10).run(["a", "b"], to_text=str,
                                                 embed_batch=gw.embed_batch, embed_one=gw.embed)
    assert out.degraded_batches == 1
    assert [item for item, _ in out.succeeded] == ["a", "b"]
    assert out.skipped == []


def test_openai_chat_timeout_falls_back_to_exact_overlap(openai_provider, monkeypatch):
    monkeypatch.setattr(openai_provider.client.chat.completions, "create", _timeout)
    overlap = EmbeddingGateway(openai_provider).analyze_skill_overlap(["Python", "Go"], ["python", "Rust"])
    assert overlap.fallback
    assert overlap.match_score == 50.0


def test_openai_chat_returns_message_content(openai_provider, monkeypatch):
    msg = SimpleNamespace(message=SimpleNamespace(content='{"matchScore": 80}'))
    monkeypatch.setattr(openai_provider.client.chat.completions, "create",
                        lambda **kw: SimpleNamespace(choices=[msg]))
    assert openai_provider.chat_json("prompt") == '{"matchScore": 80}'


def test_openai_requires_api_key():
    with pytest.raises(ProviderError):
        OpenAIProvider(api_key="")


def test_build_provider_picks_backend():
    assert isinstance(build_provider(Settings(EMBEDDING_PROVIDER="local")), LocalProvider)
    p = build_provider(Settings(EMBEDDING_PROVIDER="OpenAI", OPENAI_API_KEY="sk-test", EMBEDDING_DIM=3))
    assert isinstance(p, OpenAIProvider) and p.dim == 3
    with pytest.raises(ProviderError):
        build_provider(Settings(EMBEDDING_PROVIDER="openai", OPENAI_API_KEY=""))
    with pytest.raises(ValueError):
        build_provider(Settings(EMBEDDING_PROVIDER="cohere"))

class MatchingError(Exception):
    """Base class for errors raised by the matching core."""


class ResumeNotFoundError(MatchingError):
    def __init__(self, resume_id: int, tenant_id: str):
        super().__init__(f"Resume {resume_id} not found for tenant {tenant_id!r}")
        self.resume_id = resume_id
        self.tenant_id = tenant_id


class ProviderError(MatchingError):
    """Any failure (including timeouts) reported by the embedding/LLM provider."""


class VectorShapeError(MatchingError):
    def __init__(self, expected: int, got: int):
        super().__init__(f"Expected vector of dimension {expected}, got {got}")
        self.expected = expected
        self.got = got

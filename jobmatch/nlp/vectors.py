# jobmatch/nlp/vectors.py
import numpy as np

from jobmatch.core.errors import VectorShapeError


def as_vector(values, dim: int | None = None) -> np.ndarray:
    """
    Coerce provider output to a 1-D float32 array. When `dim` is given the
    length must match it, otherwise VectorShapeError.
    """
    v = np.asarray(values, dtype=np.float32).reshape(-1)
    if dim is not None and v.shape[0] != dim:
        raise VectorShapeError(dim, int(v.shape[0]))
    return v


def to_blob(v: np.ndarray) -> bytes:
    return np.asarray(v, dtype=np.float32).tobytes()


def from_blob(blob: bytes | None, dim: int | None = None) -> np.ndarray | None:
    """Stored bytes -> vector; None when absent or the stored length is not `dim`."""
    if not blob:
        return None
    v = np.frombuffer(blob, dtype=np.float32)
    if dim is not None and v.shape[0] != dim:
        return None
    return v


def cosine_similarity(a, b) -> float:
    # 0.0 for absent, empty, length-mismatched or zero-norm inputs
    if a is None or b is None:
        return 0.0
    a = np.asarray(a, dtype=np.float32).reshape(-1)
    b = np.asarray(b, dtype=np.float32).reshape(-1)
    if a.size == 0 or a.shape != b.shape:
        return 0.0
    na = float(np.linalg.norm(a))
    nb = float(np.linalg.norm(b))
    if na == 0.0 or nb == 0.0:
        return 0.0
    return float(np.dot(a, b) / (na * nb))

import numpy as np
import pytest

from jobmatch.core.errors import VectorShapeError
from jobmatch.nlp.vectors import as_vector, cosine_similarity, from_blob, to_blob


def test_cosine_of_vector_with_itself_is_one():
    v = [0.3, -1.2, 4.0]
    assert cosine_similarity(v, v) == pytest.approx(1.0, abs=1e-6)


@pytest.mark.parametrize("a,b", [
    ([1.0, 2.0], [1.0, 2.0, 3.0]),
    ([0.0, 0.0], [1.0, 2.0]),
    ([], []),
    (None, [1.0]),
])
def test_degenerate_inputs_give_zero(a, b):
    assert cosine_similarity(a, b) == 0.0


def test_orthogonal_is_zero():
    assert cosine_similarity([1, 0], [0, 1]) == 0.0


def test_as_vector_checks_dimension():
    assert as_vector([1, 2, 3], 3).dtype == np.float32
    with pytest.raises(VectorShapeError):
        as_vector([1, 2, 3], 4)


def test_blob_round_trip_rejects_wrong_dim():
    blob = to_blob(np.array([1.0, 2.0, 3.0]))
    assert from_blob(blob, 3).tolist() == [1.0, 2.0, 3.0]
    assert from_blob(blob, 4) is None
    assert from_blob(b"", 3) is None

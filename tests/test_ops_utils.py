import numpy as np

from bmmPriors.src.core.utils import ops_utils as utils
from .conftest import make_component


def test_normalise_columns_unit_sum_or_zero():
    cm = np.array([[1, 0, 2],
                   [3, 0, 2]])
    out = utils.normalise_columns(cm)
    np.testing.assert_allclose(out[:, 0], [0.25, 0.75])
    np.testing.assert_array_equal(out[:, 1], [0, 0])
    np.testing.assert_allclose(out.sum(axis=0), [1, 0, 1])
    assert not np.isnan(out).any()


def test_extract_gene_matrix_pads_short_counts():
    components = [make_component([1, 3]), make_component([0, 0, 4]), make_component([0, 0, 0, 0], n_samples=0)]
    cm = utils.extract_gene_matrix(components, 4, normalise=False)
    assert cm.shape == (4, 3)
    np.testing.assert_array_equal(cm[:, 0], [1, 3, 0, 0])
    np.testing.assert_array_equal(cm[:, 1], [0, 0, 4, 0])

    cm_norm = utils.extract_gene_matrix(components, 4)
    np.testing.assert_allclose(cm_norm.sum(axis=0), [1, 1, 0])


def test_extract_gene_matrix_keeps_long_counts():
    cm = utils.extract_gene_matrix([make_component([1, 1, 1, 1, 1])], 3, normalise=False)
    assert cm.shape == (5, 1)


def test_count_matrix_from_molecules():
    cm = utils.count_matrix_from_molecules(np.array([0, 1, 1, 2]), np.array([0, 0, 1, -1]), 3, 2)
    np.testing.assert_array_equal(cm, [[1, 0], [1, 1], [0, 0]])


def test_gene_probs_identity_for_disjoint_cells():
    cm = np.array([[5.0, 0.0],
                   [0.0, 7.0]])
    probs = utils.estimate_gene_probs_given_single_transcript(cm, np.array([5, 7]))
    np.testing.assert_allclose(probs, np.eye(2))


def test_gene_probs_bounds_and_zero_column():
    cm = np.array([[4, 1, 0],
                   [2, 6, 3],
                   [0, 0, 0]])
    probs = utils.estimate_gene_probs_given_single_transcript(cm, cm.sum(axis=0))
    assert probs.shape == (3, 3)
    assert not np.isnan(probs).any()
    assert (probs >= 0).all() and (probs <= 1).all()
    # gene 2 is never observed
    np.testing.assert_array_equal(probs[:, 2], [0, 0, 0])


def test_gene_probs_hand_computed():
    cm = np.array([[1.0, 1.0],
                   [1.0, 3.0]])
    n = np.array([1, 3])
    probs = utils.estimate_gene_probs_given_single_transcript(cm, n)

    cm_norm = cm / cm.sum(axis=0)
    prior = n / n.sum()
    joint = cm_norm[0] * prior
    expected = (cm_norm[1] * joint).sum() / joint.sum()
    np.testing.assert_allclose(probs[1, 0], expected)


def test_gene_probs_no_molecules():
    probs = utils.estimate_gene_probs_given_single_transcript(np.ones([3, 2]), np.array([0, 0]))
    np.testing.assert_array_equal(probs, np.zeros([3, 3]))


def test_trimmed_mean_per_dim():
    values = np.array([[1, 10],
                       [2, 10],
                       [3, 10],
                       [4, 10],
                       [100, 10]])
    np.testing.assert_allclose(utils.trimmed_mean_per_dim(values, 0.2), [3, 10])
    np.testing.assert_allclose(utils.trimmed_mean_per_dim(values, 0.0), [22, 10])


def test_split_indices_covers_range_in_order():
    chunks = utils.split_indices(10, 3)
    assert len(chunks) == 3
    np.testing.assert_array_equal(np.concatenate(chunks), np.arange(10))
    assert len(utils.split_indices(2, 8)) == 2
    assert utils.split_indices(0, 4) == []

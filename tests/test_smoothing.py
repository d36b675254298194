import logging

import numpy as np
import pandas as pd

from bmmPriors.src.core import smoothing
from bmmPriors.src.core.datatypes import Dataset
from bmmPriors.src.core.main import update_priors
from .conftest import make_component, make_dataset

NO_SMOOTHING = {
    'use_cell_type_size_prior': False,
    'use_global_size_prior': False,
    'smooth_expression': False,
}


def test_gene_count_prior_is_sum_of_neighbour_counts():
    components = [
        make_component([1, 0, 2]),
        make_component([0, 3, 0, 1]),
        make_component([2, 2, 2, 2]),
    ]
    neighb_inds = [np.array([0, 1]), np.array([1, 2]), np.array([0, 1, 2])]

    priors = smoothing.knn_gene_count_priors(components, neighb_inds, 4)

    assert priors.shape == (4, 3)
    np.testing.assert_array_equal(priors[:, 0], [1, 3, 2, 1])
    np.testing.assert_array_equal(priors[:, 1], [2, 5, 2, 3])
    np.testing.assert_array_equal(priors[:, 2], [3, 5, 4, 3])


def test_gene_count_prior_overwrites_previous_value():
    c = make_component([1, 1])
    c.gene_count_prior = np.array([100.0, 100.0])
    update_priors([make_dataset([c], n_genes=2)], {'n_neighbors': 1})
    np.testing.assert_array_equal(c.gene_count_prior, [1, 1])


def test_knn_shape_priors_trimmed_mean():
    eig = [(1, 10), (2, 20), (3, 30), (4, 40), (100, 1000)]
    components = [make_component([1], eigen_values=e) for e in eig]
    neighb_inds = [np.arange(5), np.array([0, 1]), np.array([], dtype=int), np.array([4]), np.array([3, 4])]

    priors = smoothing.knn_shape_priors(components, neighb_inds, trim_fraction=0.2)
    np.testing.assert_allclose(priors[0], [3, 30])
    np.testing.assert_allclose(priors[1], [1.5, 15])
    assert priors[2] is None
    np.testing.assert_allclose(priors[3], [100, 1000])


def test_global_shape_prior_is_median_of_central_band():
    # molecule counts 0, 10, 20, 30, 100 -> threshold 1, band [1, 99]
    components = [
        make_component([0, 0], n_samples=0, eigen_values=(100, 100)),
        make_component([10], n_samples=10, eigen_values=(1, 2)),
        make_component([20], n_samples=20, eigen_values=(3, 4)),
        make_component([30], n_samples=30, eigen_values=(5, 6)),
        make_component([100], n_samples=100, eigen_values=(50, 60)),
    ]
    prior = smoothing.global_shape_prior(components, np.array([0, 10, 20, 30, 100]))
    np.testing.assert_allclose(prior, [3, 4])


def test_global_shape_prior_uses_molecule_table_counts():
    x = pd.DataFrame({'gene': np.zeros(16, dtype=int), 'assignment': [0] + [1] * 5 + [2] * 9 + [-1]})
    d = Dataset(x, [make_component([1], n_samples=0, eigen_values=(1, 1)),
                    make_component([1], n_samples=0, eigen_values=(2, 2)),
                    make_component([1], n_samples=0, eigen_values=(3, 3))])
    n = d.num_of_molecules_per_cell()
    np.testing.assert_array_equal(n, [1, 5, 9])
    # threshold 0.08 -> only the middle cell is within the band
    np.testing.assert_allclose(smoothing.global_shape_prior(d.components, n), [2, 2])


def test_global_shape_prior_falls_back_to_all_cells(caplog):
    components = [make_component([0], n_samples=0, eigen_values=(1, 1)),
                  make_component([10], n_samples=10, eigen_values=(3, 5))]
    with caplog.at_level(logging.WARNING):
        prior = smoothing.global_shape_prior(components, np.array([0, 10]))
    np.testing.assert_allclose(prior, [2, 3])
    assert 'estimated from all 2 cells' in caplog.text


def test_global_shape_prior_without_cells():
    assert smoothing.global_shape_prior([], np.array([], dtype=np.int64)) is None
    d = make_dataset([], n_genes=2)
    update_priors([d])
    assert d.distribution_sampler.shape_prior is None


def test_shape_prior_targets():
    components = [make_component([1]), make_component([0], n_samples=0), make_component([2])]
    n = np.array([1, 0, 2])
    assert smoothing.shape_prior_targets(components, n) == [components[1]]
    assert smoothing.shape_prior_targets(components, n, set_individual_priors=True) == components


def test_global_prior_only_replaces_empty_cells():
    empty = make_component([0, 0], n_samples=0, eigen_values=(1, 1), prior=(-1, -1))
    populated = make_component([4, 6], eigen_values=(3, 5), prior=(7, 7))
    d = make_dataset([empty, populated], n_genes=2)

    update_priors([d], NO_SMOOTHING)

    np.testing.assert_allclose(empty.shape_prior.eigen_values, [2, 3])
    np.testing.assert_allclose(populated.shape_prior.eigen_values, [7, 7])
    np.testing.assert_allclose(d.distribution_sampler.shape_prior.eigen_values, [2, 3])


def test_global_prior_replaces_all_cells_when_requested():
    empty = make_component([0, 0], n_samples=0, eigen_values=(1, 1), prior=(-1, -1))
    populated = make_component([4, 6], eigen_values=(3, 5), prior=(7, 7))
    d = make_dataset([empty, populated], n_genes=2)

    update_priors([d], {'use_cell_type_size_prior': False, 'use_global_size_prior': True})

    np.testing.assert_allclose(empty.shape_prior.eigen_values, [2, 3])
    np.testing.assert_allclose(populated.shape_prior.eigen_values, [2, 3])


def test_global_prior_keeps_prior_stds_and_strength():
    c = make_component([4, 6], n_samples=0, eigen_values=(3, 5))
    c.shape_prior.eigen_value_stds = np.array([0.5, 0.5])
    c.shape_prior.n_samples = 10
    update_priors([make_dataset([c], n_genes=2)])
    np.testing.assert_allclose(c.shape_prior.eigen_values, [3, 5])
    np.testing.assert_allclose(c.shape_prior.eigen_value_stds, [0.5, 0.5])
    assert c.shape_prior.n_samples == 10

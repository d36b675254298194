import numpy as np
import pandas as pd
import pytest
import scipy.sparse

from bmmPriors.src.core.datatypes import Component, Dataset, ShapePrior


def make_component(counts, n_samples=None, eigen_values=(1.0, 2.0), prior=None):
    if not scipy.sparse.issparse(counts):
        counts = np.asarray(counts)
    if n_samples is None:
        n_samples = int(counts.sum())
    shape_prior = ShapePrior(prior) if prior is not None else None
    return Component(counts, n_samples=n_samples, eigen_values=np.asarray(eigen_values), shape_prior=shape_prior)


def make_dataset(components, n_genes):
    x = pd.DataFrame({'gene': np.arange(n_genes)})
    return Dataset(x, components)


@pytest.fixture
def rng():
    return np.random.default_rng(42)


@pytest.fixture
def two_datasets():
    """Two datasets with distinct expression profiles and one empty cell each"""
    d1 = make_dataset([
        make_component([30, 2, 0, 0], eigen_values=(4.0, 9.0)),
        make_component([25, 5, 1, 0], eigen_values=(5.0, 10.0)),
        make_component([0, 0, 0, 0], n_samples=0, eigen_values=(1.0, 1.0), prior=(-1.0, -1.0)),
    ], n_genes=4)
    d2 = make_dataset([
        make_component([0, 1, 40, 3], eigen_values=(16.0, 25.0)),
        make_component([1, 0, 20, 12], eigen_values=(14.0, 20.0)),
        make_component([0, 0, 0], n_samples=0, eigen_values=(1.0, 1.0), prior=(-1.0, -1.0)),
    ], n_genes=4)
    return [d1, d2]


@pytest.fixture
def expression_means():
    genes = [f'gene_{i}' for i in range(6)]
    return pd.DataFrame({
        'A': [20, 10, 5, 0.1, 0.1, 0.1],
        'B': [0.1, 0.1, 0.1, 15, 15, 5],
    }, index=genes)

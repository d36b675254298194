# Standard library imports
import logging
from typing import Optional

# Third party imports
import numpy as np

sampler_logger = logging.getLogger(__name__)


class ShapePrior(object):
    """
    Prior on the size and shape of a cell, expressed through the eigenvalues of the
    cell's covariance matrix.

    Attributes:
        eigen_values (np.array): Expected eigenvalues (ascending order).
        eigen_value_stds (np.array): Spread of the eigenvalues around their expected value.
        n_samples (int): Pseudo-count, ie the confidence in the prior.
    """

    def __init__(self, eigen_values, eigen_value_stds=None, n_samples: int = 0):
        self._eigen_values = None
        self.eigen_values = eigen_values
        if eigen_value_stds is None:
            eigen_value_stds = np.zeros_like(self._eigen_values)
        self.eigen_value_stds = np.asarray(eigen_value_stds, dtype=np.float64)
        self.n_samples = n_samples

    def __repr__(self):
        return f'ShapePrior(eigen_values={self.eigen_values.tolist()}, n_samples={self.n_samples})'

    @property
    def eigen_values(self) -> np.ndarray:
        return self._eigen_values

    @eigen_values.setter
    def eigen_values(self, val):
        self._eigen_values = np.asarray(val, dtype=np.float64).copy()


class DistributionSampler(object):
    """
    Dataset-level state used when new components are spawned. Only the default
    shape prior is kept here.
    """

    def __init__(self, shape_prior: Optional[ShapePrior] = None):
        self.shape_prior = shape_prior

    def set_shape_prior(self, eigen_values: np.ndarray) -> None:
        """Sets the expected eigenvalues of the default prior, keeping its stds and strength"""
        if self.shape_prior is None:
            self.shape_prior = ShapePrior(eigen_values)
        else:
            self.shape_prior.eigen_values = eigen_values

# Standard library imports
import logging
from typing import List, Optional

# Third party imports
import numpy as np
import pandas as pd

from .component import Component
from .sampler import DistributionSampler

dataset_logger = logging.getLogger(__name__)


class Dataset(object):
    """
    One replicate (or field of view): the molecules, the cells they are assigned to and
    the dataset-level state shared by these cells.

    Attributes:
        x (pd.DataFrame): Molecule table. Only the 'gene' column (0-based gene id) and the
            optional 'assignment' column (cell index, negative for noise) are used.
        components (list): The cells of the dataset, in order.
        distribution_sampler (DistributionSampler): Holds the default shape prior.
        _gene_probs_given_single_transcript (np.array): Gene co-occurrence probabilities.
    """

    def __init__(self,
                 x: pd.DataFrame,
                 components: List[Component],
                 distribution_sampler: Optional[DistributionSampler] = None):
        if not isinstance(x, pd.DataFrame):
            raise TypeError('The molecule table must be a dataframe')
        if 'gene' not in x.columns:
            raise ValueError("The molecule table must have a 'gene' column")

        self.x = x
        self._components = []
        for c in components:
            self.add_component(c)
        self.distribution_sampler = distribution_sampler or DistributionSampler()
        self._gene_probs_given_single_transcript = None

    def __repr__(self):
        return f'Dataset(n_molecules={self.x.shape[0]}, n_components={len(self._components)})'

    # -------- PROPERTIES -------- #
    @property
    def components(self) -> List[Component]:
        """Returns the cells of the dataset."""
        return self._components

    @property
    def nC(self) -> int:
        """Returns the number of cells."""
        return len(self._components)

    @property
    def gene_probs_given_single_transcript(self) -> np.ndarray:
        """Returns the gene co-occurrence probabilities: p(g_i | t_k) = P[i, k]"""
        return self._gene_probs_given_single_transcript

    @gene_probs_given_single_transcript.setter
    def gene_probs_given_single_transcript(self, val: np.ndarray):
        """Replaces the gene co-occurrence probabilities."""
        self._gene_probs_given_single_transcript = val

    # -------- METHODS -------- #
    def add_component(self, c: Component) -> None:
        """Appends a cell to the dataset. A cell can only belong to one dataset."""
        if c.dataset is not None and c.dataset is not self:
            raise ValueError('Component already belongs to another dataset')
        c.dataset = self
        self._components.append(c)

    def max_gene_id(self) -> int:
        """Returns the largest gene id of the molecule table, -1 if there are no molecules."""
        if self.x.shape[0] == 0:
            return -1
        return int(self.x['gene'].max())

    def num_of_molecules_per_cell(self) -> np.ndarray:
        """
        Counts the molecules assigned to each cell. If the molecule table has no
        'assignment' column the cells' own counters are used.

        Returns:
            np.array: Integer array of size nC.
        """
        if 'assignment' not in self.x.columns:
            return np.array([c.n_samples for c in self._components], dtype=np.int64)

        assignment = self.x['assignment'].values.astype(np.int64)
        assignment = assignment[assignment >= 0]
        out = np.bincount(assignment, minlength=self.nC)
        if out.shape[0] > self.nC:
            dataset_logger.warning(f'{out.shape[0] - self.nC} assignment(s) point to cells that do not exist. '
                                   f'They are ignored')
            out = out[:self.nC]
        return out.astype(np.int64)

    def eigen_values(self) -> np.ndarray:
        """Returns an array nC-by-d with the eigenvalues of the cells' covariance matrices."""
        return np.array([c.shape_eigen_values for c in self._components], dtype=np.float64)

# Standard library imports
import logging
from typing import Optional

# Third party imports
import numpy as np
import scipy.sparse

from .sampler import ShapePrior

component_logger = logging.getLogger(__name__)


class Component(object):
    """
    One element of the spatial mixture, ie a cell (or an empty cell waiting to be
    populated). Keeps together all the per-cell statistics the prior update reads
    and the two priors it writes.

    Attributes:
        _composition_counts (np.array): Gene counts of the molecules assigned to the cell.
        _gene_count_prior (np.array): Pseudo-counts added to the composition counts by the sampler.
        shape_prior (ShapePrior): Prior on the eigenvalues of the cell's covariance.
        _cov (np.array): Covariance matrix of the cell's molecule cloud.
        _eig_vals (np.array): Eigenvalues of the covariance matrix.
        n_samples (int): Number of molecules assigned to the cell.
        dataset: Dataset that owns the component (set by the dataset).
    """

    def __init__(self,
                 composition_counts,
                 n_samples: int,
                 cov: Optional[np.ndarray] = None,
                 eigen_values: Optional[np.ndarray] = None,
                 shape_prior: Optional[ShapePrior] = None,
                 gene_count_prior: Optional[np.ndarray] = None):
        """
        Parameters:
            composition_counts: Gene counts, dense or a scipy.sparse vector.
            n_samples (int): Number of molecules assigned to the cell.
            cov (np.array): Covariance of the cell. Either this or eigen_values must be given.
            eigen_values (np.array): Eigenvalues of the covariance, used when cov is None.
            shape_prior (ShapePrior): Initial shape prior. Defaults to the cell's own eigenvalues.
            gene_count_prior (np.array): Initial gene count prior. Defaults to zeros.
        """
        if cov is None and eigen_values is None:
            raise ValueError('Either the covariance or its eigenvalues must be provided')

        self._composition_counts = None
        self.composition_counts = composition_counts
        self.n_samples = int(n_samples)
        self._cov = None
        self._eig_vals = None
        if cov is not None:
            self.cov = cov
        else:
            self._eig_vals = np.sort(np.asarray(eigen_values, dtype=np.float64))

        if shape_prior is None:
            shape_prior = ShapePrior(self._eig_vals)
        self.shape_prior = shape_prior

        if gene_count_prior is None:
            gene_count_prior = np.zeros(self._composition_counts.shape[0], dtype=np.float64)
        self._gene_count_prior = np.asarray(gene_count_prior, dtype=np.float64)
        self.dataset = None

    def __repr__(self):
        return f'Component(n_samples={self.n_samples}, n_genes={self.n_genes})'

    # -------- PROPERTIES -------- #
    @property
    def composition_counts(self) -> np.ndarray:
        """Returns the gene counts of the cell as a dense vector."""
        return self._composition_counts

    @composition_counts.setter
    def composition_counts(self, val):
        """Sets the gene counts. Sparse vectors are densified."""
        if scipy.sparse.issparse(val):
            val = val.toarray()
        val = np.asarray(val).ravel()
        if np.any(val < 0):
            raise ValueError('Composition counts must be non-negative')
        self._composition_counts = val

    @property
    def n_genes(self) -> int:
        """Length of the composition vector. Can be shorter than the gene panel."""
        return self._composition_counts.shape[0]

    @property
    def gene_count_prior(self) -> np.ndarray:
        """Returns the gene count prior."""
        return self._gene_count_prior

    @gene_count_prior.setter
    def gene_count_prior(self, val: np.ndarray):
        """Sets the gene count prior."""
        self._gene_count_prior = np.asarray(val, dtype=np.float64)

    @property
    def cov(self) -> np.ndarray:
        """Returns the covariance matrix of the cell."""
        return self._cov

    @cov.setter
    def cov(self, val: np.ndarray):
        """Sets the covariance matrix and refreshes the eigenvalues."""
        self._cov = np.asarray(val, dtype=np.float64)
        self._eig_vals = np.linalg.eigvalsh(self._cov)

    @property
    def shape_eigen_values(self) -> np.ndarray:
        """Returns the eigenvalues of the covariance matrix (ascending)."""
        return self._eig_vals

    # -------- METHODS -------- #
    @staticmethod
    def _zero_pad(val: np.ndarray, n: int) -> np.ndarray:
        out = np.zeros(max(n, val.shape[0]), dtype=np.float64)
        out[:val.shape[0]] = val
        return out

    def padded_counts(self, n_genes: int) -> np.ndarray:
        """
        Returns the composition counts zero-padded up to n_genes.

        Parameters:
            n_genes (int): Size of the gene panel.

        Returns:
            np.array: Float vector of length max(n_genes, self.n_genes).
        """
        return self._zero_pad(self._composition_counts, n_genes)

    def padded_gene_count_prior(self, n_genes: int) -> np.ndarray:
        """Same as padded_counts, for the gene count prior"""
        return self._zero_pad(self._gene_count_prior, n_genes)

    def set_shape_prior(self, eigen_values: np.ndarray) -> None:
        """Sets the expected eigenvalues of the shape prior, keeping its stds and strength"""
        self.shape_prior.eigen_values = eigen_values

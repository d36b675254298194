"""
Smoothing of the cell priors over neighbours in expression space, and the global
shape prior shared by all datasets.

These functions only compute the new values; PriorUpdater stages and writes them.
A cell is empty when no molecules are assigned to it, ie its entry in the molecule
counts (Dataset.num_of_molecules_per_cell) is zero.
"""
import logging
from typing import List, Optional, Sequence

import numpy as np

from .datatypes import Component
from .utils import ops_utils as utils

smoothing_logger = logging.getLogger(__name__)


# -------------------------------------------------------------------- #
def knn_gene_count_priors(components: Sequence[Component],
                          neighb_inds: Sequence[np.ndarray],
                          n_genes: int) -> np.ndarray:
    """
    Sum of the gene counts of the neighbours of each cell.

    Returns:
        Array of shape (G, C); column i is the new gene count prior of cell i
    """
    count_matrix = utils.extract_gene_matrix(components, n_genes, normalise=False)
    out = np.zeros([count_matrix.shape[0], len(neighb_inds)], dtype=np.float64)
    for i, inds in enumerate(neighb_inds):
        out[:, i] = count_matrix[:, inds].sum(axis=1)
    return out


# -------------------------------------------------------------------- #
def knn_shape_priors(components: Sequence[Component],
                     neighb_inds: Sequence[np.ndarray],
                     trim_fraction: float = 0.2) -> List[Optional[np.ndarray]]:
    """
    Trimmed mean of the neighbours' eigenvalues, per eigen-dimension.

    Returns:
        List of size C. Entry i is None when cell i has no neighbours.
    """
    eig_vals = np.array([c.shape_eigen_values for c in components], dtype=np.float64)
    out = []
    for inds in neighb_inds:
        if len(inds) == 0:
            out.append(None)
        else:
            out.append(utils.trimmed_mean_per_dim(eig_vals[inds], trim_fraction))
    return out


# -------------------------------------------------------------------- #
def global_shape_prior(components: Sequence[Component],
                       n_molecules_per_cell: np.ndarray,
                       band_fraction: float = 0.01) -> Optional[np.ndarray]:
    """
    Median shape over the cells, leaving out the cells with the fewest and the most molecules.

    With n_min, n_max the smallest and largest molecule counts and
    threshold = band_fraction * (n_max - n_min), only cells with
    n_min + threshold <= n <= n_max - threshold contribute.

    Args:
        components: All cells of all datasets
        n_molecules_per_cell: Molecule counts, aligned with components

    Returns:
        Array of shape (d,), or None if there are no cells at all
    """
    if len(components) == 0:
        smoothing_logger.warning('No cells found. The global shape prior cannot be estimated')
        return None

    sizes_per_cell = np.array([c.shape_eigen_values for c in components], dtype=np.float64)
    n_mols_per_cell = np.asarray(n_molecules_per_cell)

    n_min, n_max = n_mols_per_cell.min(), n_mols_per_cell.max()
    threshold = band_fraction * (n_max - n_min)
    mask = (n_mols_per_cell >= n_min + threshold) & (n_mols_per_cell <= n_max - threshold)

    if not mask.any():
        smoothing_logger.warning(f'No cells with molecule counts in [{n_min + threshold}, {n_max - threshold}]. '
                                 f'The global shape prior is estimated from all {mask.size} cells')
        mask[:] = True

    return np.median(sizes_per_cell[mask], axis=0)


def shape_prior_targets(components: Sequence[Component],
                        n_molecules_per_cell: np.ndarray,
                        set_individual_priors: bool = False) -> List[Component]:
    """The cells that receive the global shape prior: all of them, or the empty ones only"""
    return [c for c, n in zip(components, n_molecules_per_cell) if set_individual_priors or n == 0]

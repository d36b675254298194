"""Nearest neighbours of the cells in expression space."""
import logging
from typing import List

import joblib
import numpy as np
from sklearn.decomposition import PCA
from sklearn.neighbors import NearestNeighbors

from .ops_utils import normalise_columns, split_indices

neighbours_logger = logging.getLogger(__name__)


def expression_embedding(count_matrix: np.ndarray, n_prin_comps: int = 0) -> np.ndarray:
    """
    Returns the coordinates of the cells in the space the neighbours are searched in.

    Args:
        count_matrix: Array of shape (G, C). Normalised here.
        n_prin_comps: If positive, the profiles are projected on that many principal components

    Returns:
        Array of shape (C, D), one row per cell. D = G if n_prin_comps is zero.
    """
    count_matrix_norm = normalise_columns(count_matrix)

    # sklearn wants samples as rows
    neighbourhood_matrix = count_matrix_norm.T
    if n_prin_comps > 0 and neighbourhood_matrix.shape[0] < 2:
        neighbours_logger.warning(f'PCA needs at least 2 cells, got {neighbourhood_matrix.shape[0]}. '
                                  f'Using the normalised expression profiles')
    elif n_prin_comps > 0:
        max_comps = min(neighbourhood_matrix.shape)
        if n_prin_comps > max_comps:
            neighbours_logger.warning(f'Requested {n_prin_comps} principal components but the data support '
                                      f'at most {max_comps}. Using {max_comps}')
            n_prin_comps = max_comps
        pca = PCA(n_components=n_prin_comps)
        neighbourhood_matrix = pca.fit_transform(neighbourhood_matrix)
    return neighbourhood_matrix


def knn_by_expression(count_matrix: np.ndarray,
                      n_molecules_per_cell: np.ndarray,
                      k: int = 15,
                      min_molecules_per_cell: int = 10,
                      n_prin_comps: int = 0,
                      n_jobs: int = 1) -> List[np.ndarray]:
    """
    For every cell find its k nearest cells in expression space. Only cells with at
    least min_molecules_per_cell molecules can be neighbours.

    Args:
        count_matrix: Array of shape (G, C) with the gene counts of each cell
        n_molecules_per_cell: Array of shape (C,)
        k: Number of neighbours. A cell can be its own neighbour.
        min_molecules_per_cell: Threshold for a cell to be a neighbour. Reset to 1 if no cell passes it
        n_prin_comps: Number of principal components, 0 to skip the projection
        n_jobs: Number of threads for the queries

    Returns:
        List of size C. Entry i holds the indices (into the C cells) of the neighbours of cell i,
        closest first.
    """
    n_molecules_per_cell = np.asarray(n_molecules_per_cell)
    nC = count_matrix.shape[1]
    if nC == 0:
        return []

    neighbourhood_matrix = expression_embedding(count_matrix, n_prin_comps)

    if n_molecules_per_cell.max() < min_molecules_per_cell:
        neighbours_logger.warning(f'No cells pass min_molecules threshold ({min_molecules_per_cell}). Resetting it to 1')
        min_molecules_per_cell = 1

    real_cell_inds = np.flatnonzero(n_molecules_per_cell >= min_molecules_per_cell)
    if real_cell_inds.size == 0:
        neighbours_logger.warning('All cells are empty. No neighbours can be assigned')
        return [np.array([], dtype=np.int64) for _ in range(nC)]

    if real_cell_inds.size < k:
        neighbours_logger.warning(f'Number of large cells ({real_cell_inds.size}) is lower than the requested '
                                  f'number of nearest neighbors ({k})')
        k = real_cell_inds.size

    nbrs = NearestNeighbors(n_neighbors=k, algorithm='kd_tree').fit(neighbourhood_matrix[real_cell_inds])

    def query(inds):
        return nbrs.kneighbors(neighbourhood_matrix[inds], return_distance=False)

    if n_jobs == 1:
        neighb_inds = query(np.arange(nC))
    else:
        n_parts = joblib.cpu_count() if n_jobs < 0 else n_jobs
        chunks = split_indices(nC, n_parts)
        # the fitted tree is only read, results come back in the order of the chunks
        results = joblib.Parallel(n_jobs=n_jobs, backend='threading')(
            joblib.delayed(query)(inds) for inds in chunks
        )
        neighb_inds = np.vstack(results)

    # positions within the reference cells -> cell indices
    return [real_cell_inds[inds] for inds in neighb_inds]

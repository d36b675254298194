"""Statistical calculation utilities."""
import numpy as np
import numpy_groupies as npg
from typing import List, Sequence
import logging
import opt_einsum as oe
from scipy import stats

# Configure logging
ops_utils_logger = logging.getLogger(__name__)


def normalise_columns(count_matrix: np.ndarray) -> np.ndarray:
    """
    Scale each column to unit sum. Columns that sum to zero are returned as zeros.

    Args:
        count_matrix: Array of shape (G, C)

    Returns:
        Array of shape (G, C) with float values
    """
    count_matrix = np.asarray(count_matrix, dtype=np.float64)
    col_totals = count_matrix.sum(axis=0)
    return np.divide(
        count_matrix,
        col_totals,
        out=np.zeros_like(count_matrix),
        where=col_totals != 0
    )


def extract_gene_matrix(components: Sequence, n_genes: int, normalise: bool = True) -> np.ndarray:
    """
    Stack the composition counts of the cells into a genes-by-cells matrix.

    Counts shorter than the gene panel are zero-padded. If a cell carries counts for more
    genes than n_genes, the matrix is widened to keep them.

    Args:
        components: List of cells
        n_genes: Size of the gene panel
        normalise: If True each column is scaled to unit sum

    Returns:
        Array of shape (G, C)
    """
    nG = max([n_genes] + [c.n_genes for c in components])
    count_matrix = np.zeros([nG, len(components)], dtype=np.float64)
    for j, c in enumerate(components):
        count_matrix[:, j] = c.padded_counts(nG)

    if normalise:
        count_matrix = normalise_columns(count_matrix)
    return count_matrix


def count_matrix_from_molecules(gene_id: np.ndarray, assignment: np.ndarray, n_genes: int, n_cells: int) -> np.ndarray:
    """
    Count the molecules of each gene within each cell.

    Args:
        gene_id: Array of shape (nM,) with the gene of each molecule
        assignment: Array of shape (nM,) with the cell of each molecule. Negative means noise
        n_genes: Size of the gene panel
        n_cells: Number of cells

    Returns:
        Array of shape (G, C) where the entry at (g, c) is the number of molecules of gene g
        in cell c
    """
    gene_id = np.asarray(gene_id, dtype=np.int64)
    assignment = np.asarray(assignment, dtype=np.int64)
    mask = assignment >= 0
    if not mask.any():
        return np.zeros([n_genes, n_cells], dtype=np.int64)
    group_idx = np.vstack((gene_id[mask], assignment[mask]))
    return npg.aggregate(group_idx, np.ones(mask.sum(), dtype=np.int64), size=(n_genes, n_cells))


def estimate_gene_probs_given_single_transcript(cm: np.ndarray, n_molecules_per_cell: np.ndarray) -> np.ndarray:
    """
    Probability of a gene being present in a cell given that a single transcript of
    another gene has been observed in it: p(g_i | t_k) = P[i, k]

    The cell prior is proportional to the cell size, p(c) = n_c / sum(n). Observing a transcript
    of gene k updates it to p(c | t_k) ~ cm[k, c] * p(c). Then
        P[i, k] = sum_c cm[i, c] * p(c | t_k)

    Args:
        cm: Array of shape (G, C) with the gene counts per cell. Normalised here.
        n_molecules_per_cell: Array of shape (C,)

    Returns:
        Array of shape (G, G). Column k is all zeros if gene k has no mass in any cell.
    """
    cm = normalise_columns(cm)
    n_molecules_per_cell = np.asarray(n_molecules_per_cell, dtype=np.float64)
    nG = cm.shape[0]

    total = n_molecules_per_cell.sum()
    if total <= 0:
        ops_utils_logger.warning('No molecules assigned to any cell. Gene probabilities are set to zero')
        return np.zeros([nG, nG], dtype=np.float64)

    prior_cell_probs = n_molecules_per_cell / total

    # numer[i, k] = sum_c cm[i, c] * cm[k, c] * p(c)
    numer = oe.contract('ic, kc, c -> ik', cm, cm, prior_cell_probs, optimize='optimal')
    denom = cm @ prior_cell_probs

    is_zero = denom <= 0
    if np.any(is_zero):
        ops_utils_logger.warning(f'{is_zero.sum()} gene(s) have zero prior mass. '
                                 f'Their columns in the gene probability matrix are set to zero')

    probs = np.divide(
        numer,
        denom[None, :],
        out=np.zeros_like(numer),
        where=~is_zero[None, :]
    )
    # rounding can push values marginally past 1
    return np.clip(probs, 0.0, 1.0)


def trimmed_mean_per_dim(values: np.ndarray, proportiontocut: float) -> np.ndarray:
    """
    Trimmed mean along the rows, computed independently for each column.

    Args:
        values: Array of shape (n, d)
        proportiontocut: Fraction cut from each tail

    Returns:
        Array of shape (d,)
    """
    return stats.trim_mean(np.asarray(values, dtype=np.float64), proportiontocut, axis=0)


def split_indices(n: int, n_parts: int) -> List[np.ndarray]:
    """Split range(n) into at most n_parts contiguous chunks, in order."""
    n_parts = max(1, min(n_parts, n))
    return [d for d in np.array_split(np.arange(n), n_parts) if d.size > 0]

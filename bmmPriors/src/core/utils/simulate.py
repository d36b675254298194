import pandas as pd
import numpy as np
import logging

from .ops_utils import count_matrix_from_molecules
from ..datatypes import Component, Dataset

simulate_logger = logging.getLogger(__name__)


def simulate_nb_matrix(expression_matrix, cfg):
    """
    Generate a simulated gene count matrix assuming a negative binomial model.

    Parameters:
    - expression_matrix: pandas DataFrame with genes as rows and cells as columns.
      Each element is assumed to be the mean (μ) count.
    - cfg: dictionary with
        'r': dispersion parameter of the negative binomial distribution
        'inefficiency': scaling of the counts, 1 to switch it off
        'rGene': the gene efficiencies are drawn from Gamma(rGene, 1/rGene)
        'rng': numpy random generator

    Returns:
    - A pandas DataFrame with integer counts, with the same shape and labels as the input.
    """
    r = cfg['r']
    rng = cfg['rng']
    inefficiency = cfg.get('inefficiency', 1.0)
    rGene = cfg.get('rGene', 20)

    mu_values = expression_matrix.values.astype(float)

    # Compute p for every element: p = r/(r + μ)
    p_values = r / (r + mu_values)

    nG = mu_values.shape[0]
    sim_counts = rng.negative_binomial(r, p_values)

    # apply the inefficiency
    if inefficiency != 1:
        eta = rng.gamma(rGene, 1 / rGene, nG)
        sim_counts = np.round(inefficiency * eta[:, None] * sim_counts).astype(np.int64)

    return pd.DataFrame(sim_counts, index=expression_matrix.index, columns=expression_matrix.columns)


def simulate_dataset(expression_matrix, cell_classes, cfg):
    """
    Build a dataset whose cells are gaussian clouds of molecules with negative binomial
    gene counts.

    Parameters:
    - expression_matrix: pandas DataFrame, genes as rows and cell classes as columns (mean counts).
      Gene ids are the row positions.
    - cell_classes: list with the class of each cell, one entry per cell
    - cfg: dictionary with the keys of simulate_nb_matrix plus
        'mcr': mean cell radius
        'radius_sd': relative spread of the cell radius across cells (default 0.2)
        'n_empty': number of empty cells appended after the simulated ones (default 0)

    Returns:
    - Dataset
    """
    rng = cfg['rng']
    mcr = cfg['mcr']
    radius_sd = cfg.get('radius_sd', 0.2)
    n_empty = cfg.get('n_empty', 0)
    nG = expression_matrix.shape[0]

    counts = simulate_nb_matrix(expression_matrix[list(cell_classes)], cfg)

    all_data = []
    for cell_idx in range(counts.shape[1]):
        gene_counts = counts.iloc[:, cell_idx].values
        genes_expanded = np.repeat(np.arange(nG), gene_counts)
        r = mcr * max(0.1, 1 + radius_sd * rng.standard_normal())
        centre = rng.uniform(0, 100 * mcr, size=2)
        points = rng.normal(loc=centre, scale=r, size=(genes_expanded.size, 2))
        all_data.append(pd.DataFrame({
            'x': points[:, 0],
            'y': points[:, 1],
            'gene': genes_expanded,
            'assignment': cell_idx,
        }))

    if all_data:
        x = pd.concat(all_data, ignore_index=True)
    else:
        x = pd.DataFrame({'x': [], 'y': [], 'gene': [], 'assignment': []})
    x = x.astype({'gene': np.int64, 'assignment': np.int64})

    nC = counts.shape[1]
    cm = count_matrix_from_molecules(x.gene.values, x.assignment.values, nG, nC)

    components = []
    for cell_idx in range(nC):
        xy = x.loc[x.assignment == cell_idx, ['x', 'y']].values
        if xy.shape[0] > 2:
            cov = np.cov(xy, rowvar=False)
        else:
            cov = mcr * mcr * np.eye(2)
        components.append(Component(cm[:, cell_idx], n_samples=xy.shape[0], cov=cov))

    for _ in range(n_empty):
        components.append(Component(np.zeros(nG, dtype=np.int64), n_samples=0, cov=mcr * mcr * np.eye(2)))

    simulate_logger.info(f'Simulated {nC} cells and {x.shape[0]} molecules')
    return Dataset(x, components)

import numpy as np
import pandas as pd
import logging

summary_logger = logging.getLogger(__name__)


def priors_summary(datasets, top_n=3):
    '''
    returns a dataframe summarising the priors of each cell, ie the size of the gene count
    prior, the genes with the largest prior counts and the shape prior
    :param datasets: list of Dataset objects
    :param top_n: number of genes to report per cell
    :return: dataframe with one row per cell
    '''
    tol = 0.001
    rows = []
    for d_idx, d in enumerate(datasets):
        for c_idx, c in enumerate(d.components):
            prior = c.gene_count_prior
            iCounts = np.argsort(-1 * prior)[:top_n]
            isCount_nonZero = prior[iCounts] > tol

            rows.append({
                'Dataset': d_idx,
                'Cell_Num': c_idx,
                'n_samples': c.n_samples,
                'gene_prior_total': float(prior.sum()),
                'top_prior_genes': iCounts[isCount_nonZero].tolist(),
                'shape_prior': ((c.shape_prior.eigen_values * 1000).astype(np.int64) / 1000).tolist(),
            })

    summary_logger.info('Collected prior summary for %d cells' % len(rows))
    return pd.DataFrame(rows, columns=['Dataset', 'Cell_Num', 'n_samples', 'gene_prior_total',
                                       'top_prior_genes', 'shape_prior'])

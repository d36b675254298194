"""
hyperparameters for the prior update step of bmmPriors
"""

DEFAULT = {

    # If True, the shape prior of every non-empty cell is replaced by the trimmed mean of the
    # eigenvalues of its nearest neighbours in expression space. Cells that look alike
    # (similar cell types) are expected to have a similar size and shape.
    'use_cell_type_size_prior': True,

    # If True, and 'use_cell_type_size_prior' is False, the global shape prior (a robust median
    # over all cells of all datasets) overwrites the shape prior of every cell. If False, the
    # global prior is only given to the empty cells (cells with no molecules assigned) as a
    # starting value. The dataset-level default prior is always set to the global value.
    'use_global_size_prior': True,

    # If True, the gene count prior of every non-empty cell is set to the sum of the gene counts
    # of its nearest neighbours in expression space
    'smooth_expression': True,

    # Cells with fewer molecules than this are not used as neighbours. They still get neighbours
    # assigned to them. If no cell passes the threshold, it is reset to 1
    'min_molecules_per_cell': 10,

    # Number of principal components used for the neighbour search. Set it to 0 to search
    # directly on the normalised expression profiles. Values larger than the number of cells
    # or genes are clamped.
    'n_prin_comps': 0,

    # Number of nearest neighbours (the cell itself included) used for smoothing. Reduced
    # automatically if fewer cells pass the 'min_molecules_per_cell' threshold
    'n_neighbors': 15,

    # Fraction of values cut from each tail, per eigen-dimension, when averaging the
    # neighbours' shapes. Must lie in [0, 0.5). A value of 0 gives the plain mean.
    #
    # Example: with 15 neighbours and 0.2, the 3 smallest and the 3 largest eigenvalues
    # are discarded and the remaining 9 are averaged.
    'size_prior_trim_fraction': 0.2,

    # Width of the band, as a fraction of the range of molecule counts, that is cut from
    # both ends of that range before the global shape prior is calculated. Very small and very
    # large cells are usually badly segmented and should not drive the global prior.
    #
    # Example: if cells have between 0 and 200 molecules and the band is 0.01, only cells
    # with 2 to 198 molecules contribute to the global prior
    'global_prior_band': 0.01,

    # Number of threads used by the neighbour queries. 1 runs them inline, -1 uses all cores
    'n_jobs': 1,

    # If True, a summary of the updated priors is written to the log after each update
    'log_summary': False,
}

"""
Prior Update Module for bmmPriors

This module implements the update of the cell priors that runs between two iterations
of the mixture model sampler, primarily through the PriorUpdater class. A single
update:
1. Collects the gene counts and molecule counts of the non-empty cells of all datasets
2. Finds the nearest neighbours of each cell in expression space
3. Smooths the shape priors and the gene count priors over these neighbours
4. Estimates a global shape prior shared by all datasets
5. Recomputes the gene co-occurrence probabilities

Key Components:
-------------
PriorUpdate:
    Staging area for the new priors. Nothing is written to the cells or the
    datasets before every value has been computed; commit() then applies them
    in one go.

PriorUpdater:
    Sequences the steps above according to the configuration flags:
    - use_cell_type_size_prior: knn smoothing of the shape priors
    - smooth_expression: knn smoothing of the gene count priors
    - use_global_size_prior: global shape prior for all cells instead of the empty ones only

Notes:
-----
- Empty cells do not take part in the neighbour search, they only get the global shape prior
- The gene co-occurrence table is the same object for all datasets of one update
- Neighbour queries can run on several threads (config['n_jobs'])
"""
import logging
from typing import Dict, List, Optional, Sequence, Any

import numpy as np

from .datatypes import Component, Dataset
from .smoothing import knn_gene_count_priors, knn_shape_priors, global_shape_prior, shape_prior_targets
from .summary import priors_summary
from .utils import ops_utils as utils
from .utils.neighbours import knn_by_expression
from ..validation.config_manager import ConfigManager

# Configure logging
main_logger = logging.getLogger(__name__)


class PriorUpdate:
    """
    New values for the priors, waiting to be written. Shape priors are keyed on the
    cell object, so a later assignment (eg the global prior) replaces an earlier one
    (eg the knn prior) for the same cell.
    """

    def __init__(self) -> None:
        self.gene_count_priors: Dict[int, np.ndarray] = {}
        self.shape_priors: Dict[int, np.ndarray] = {}
        self.sampler_shape_prior: Optional[np.ndarray] = None
        self.gene_probs: Optional[np.ndarray] = None
        self._components: Dict[int, Component] = {}

    def set_gene_count_prior(self, c: Component, val: np.ndarray) -> None:
        self._components[id(c)] = c
        self.gene_count_priors[id(c)] = val

    def set_shape_prior(self, c: Component, val: np.ndarray) -> None:
        self._components[id(c)] = c
        self.shape_priors[id(c)] = val

    def commit(self, datasets: Sequence[Dataset]) -> None:
        """Writes all staged values into the cells and the datasets."""
        for key, val in self.gene_count_priors.items():
            self._components[key].gene_count_prior = val

        for key, val in self.shape_priors.items():
            self._components[key].set_shape_prior(val)

        for d in datasets:
            if self.sampler_shape_prior is not None:
                d.distribution_sampler.set_shape_prior(self.sampler_shape_prior)
            if self.gene_probs is not None:
                d.gene_probs_given_single_transcript = self.gene_probs


class PriorUpdater:
    """
    Recomputes the priors of the cells of one or more datasets.

    Args:
        datasets: Datasets updated jointly. They share the gene co-occurrence table and
            the global shape prior.
        config: ConfigManager, or a dictionary with overrides of the default configuration
    """

    def __init__(self,
                 datasets: Sequence[Dataset],
                 config: Optional[Any] = None) -> None:
        if not isinstance(config, ConfigManager):
            config = ConfigManager.from_opts(config)
        self.config = config
        self.datasets = list(datasets)

        # Placeholders, populated by run()
        self.all_components: List[Component] = []
        self.all_molecules_per_cell: Optional[np.ndarray] = None
        self.components: List[Component] = []
        self.n_molecules_per_cell: Optional[np.ndarray] = None
        self.nG = None
        self.count_matrix = None
        self.neighb_inds = None

    # -------------------------------------------------------------------- #
    def run(self) -> List[Dataset]:
        update = self.prepare()
        update.commit(self.datasets)

        if self.config.log_summary:
            for d_idx, d in enumerate(self.datasets):
                main_logger.info('Prior summary for dataset %d:\n%s' % (d_idx, priors_summary([d]).to_string()))
        return self.datasets

    # -------------------------------------------------------------------- #
    def prepare(self) -> PriorUpdate:
        """
        Computes the new priors without modifying the cells or the datasets.

        Returns:
            PriorUpdate: The staged values
        """
        cfg = self.config
        update = PriorUpdate()

        self.collect_cells()
        main_logger.info(f'Updating priors: {len(self.components)} non-empty cells, {self.nG} genes, '
                         f'{len(self.datasets)} dataset(s)')

        self.count_matrix = utils.extract_gene_matrix(self.all_components, self.nG)
        self.nG = self.count_matrix.shape[0]
        self.count_matrix = self.count_matrix[:, self.all_molecules_per_cell > 0]

        # every cell leaves with a gene count prior of length nG, smoothed or not
        self.gene_count_prior_pad(update)

        if cfg.needs_neighbours:
            self.neighb_inds = knn_by_expression(self.count_matrix, self.n_molecules_per_cell,
                                                 k=cfg.n_neighbors,
                                                 min_molecules_per_cell=cfg.min_molecules_per_cell,
                                                 n_prin_comps=cfg.n_prin_comps,
                                                 n_jobs=cfg.n_jobs)

            if cfg.use_cell_type_size_prior:
                self.size_prior_knn_upd(update)

            if cfg.smooth_expression:
                self.gene_count_prior_upd(update)

        self.size_prior_global_upd(update)
        self.gene_probs_upd(update)
        return update

    # -------------------------------------------------------------------- #
    def collect_cells(self) -> None:
        """
        Gathers the cells of all datasets and their molecule counts. A cell is empty when
        its count is zero; self.components keeps the non-empty ones only. The gene panel
        size is set from the largest gene id across the molecule tables.
        """
        self.all_molecules_per_cell = np.concatenate(
            [d.num_of_molecules_per_cell() for d in self.datasets] or [np.array([], dtype=np.int64)]
        )
        self.all_components = [c for d in self.datasets for c in d.components]

        is_populated = self.all_molecules_per_cell > 0
        self.components = [c for c, keep in zip(self.all_components, is_populated) if keep]
        self.n_molecules_per_cell = self.all_molecules_per_cell[is_populated]
        self.nG = max([d.max_gene_id() for d in self.datasets] + [-1]) + 1

    # -------------------------------------------------------------------- #
    def gene_count_prior_pad(self, update: PriorUpdate) -> None:
        """Stages the current gene count prior of each cell, zero-padded to the gene panel size"""
        for c in self.all_components:
            update.set_gene_count_prior(c, c.padded_gene_count_prior(self.nG))

    # -------------------------------------------------------------------- #
    def size_prior_knn_upd(self, update: PriorUpdate) -> None:
        """Stages the trimmed mean shape of the neighbours as the shape prior of each cell"""
        priors = knn_shape_priors(self.components, self.neighb_inds, self.config.size_prior_trim_fraction)
        for prior_means, c in zip(priors, self.components):
            if prior_means is not None:
                update.set_shape_prior(c, prior_means)

    # -------------------------------------------------------------------- #
    def gene_count_prior_upd(self, update: PriorUpdate) -> None:
        """Stages the summed gene counts of the neighbours as the gene count prior of each cell"""
        priors = knn_gene_count_priors(self.components, self.neighb_inds, self.nG)
        for i, c in enumerate(self.components):
            update.set_gene_count_prior(c, priors[:, i])

    # -------------------------------------------------------------------- #
    def size_prior_global_upd(self, update: PriorUpdate) -> None:
        """
        Stages the global shape prior as the datasets' default prior and as the prior of the
        empty cells. When the knn size prior is off but the global one is on, every cell gets it.
        """
        mean_prior = global_shape_prior(self.all_components, self.all_molecules_per_cell,
                                        self.config.global_prior_band)
        if mean_prior is None:
            return

        update.sampler_shape_prior = mean_prior
        for c in shape_prior_targets(self.all_components, self.all_molecules_per_cell,
                                     self.config.set_individual_priors):
            update.set_shape_prior(c, mean_prior)

    # -------------------------------------------------------------------- #
    def gene_probs_upd(self, update: PriorUpdate) -> None:
        """Stages the gene co-occurrence probabilities, shared by all datasets"""
        update.gene_probs = utils.estimate_gene_probs_given_single_transcript(self.count_matrix,
                                                                              self.n_molecules_per_cell)


def update_priors(datasets: Sequence[Dataset], opts: Optional[Dict] = None) -> List[Dataset]:
    """
    Recomputes the priors of the cells of the datasets and returns the datasets.

    Args:
        datasets: List of Dataset objects, updated jointly
        opts: Dictionary with overrides of bmmPriors.config.DEFAULT

    Returns:
        The same datasets, updated in place
    """
    return PriorUpdater(datasets, opts).run()

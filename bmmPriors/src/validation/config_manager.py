from dataclasses import dataclass
from typing import Dict, Optional
import logging
from bmmPriors import config
config_manager_logger = logging.getLogger(__name__)


@dataclass
class ConfigManager:
    use_cell_type_size_prior: bool
    use_global_size_prior: bool
    smooth_expression: bool
    min_molecules_per_cell: int
    n_prin_comps: int
    n_neighbors: int
    size_prior_trim_fraction: float
    global_prior_band: float
    n_jobs: int
    log_summary: bool

    @classmethod
    def from_opts(cls, opts: Optional[Dict] = None) -> 'ConfigManager':
        """Create configuration from default values and optional overrides"""
        if opts is None:
            opts = config.DEFAULT.copy()

        # Start with default configuration
        cfg_dict = config.DEFAULT.copy()

        # Override with user options if provided
        for key in opts:
            if key in cfg_dict:
                cfg_dict[key] = opts[key]
                config_manager_logger.info(f'{key} is set to {opts[key]}')
            else:
                config_manager_logger.warning(f"Unrecognized configuration option: '{key}'! "
                                              f"Valid options are: {', '.join(sorted(cfg_dict.keys()))}")

        # Create instance
        instance = cls(**cfg_dict)
        instance._validate()
        return instance

    def to_dict(self) -> Dict:
        """Convert configuration back to dictionary format"""
        return {k: v for k, v in self.__dict__.items() if not k.startswith('_')}

    @property
    def set_individual_priors(self) -> bool:
        """
        True when the global shape prior must overwrite the prior of every cell, ie
        when the cell-type (knn) size prior is off and the global one is on
        """
        return (not self.use_cell_type_size_prior) and self.use_global_size_prior

    @property
    def needs_neighbours(self) -> bool:
        return self.use_cell_type_size_prior or self.smooth_expression

    def _validate(self) -> None:
        """
        Check types and ranges of the configuration values.

        Raises:
            TypeError: If a flag is not a bool or a count is not an int
            ValueError: If a value is out of its valid range
        """
        for name in ['use_cell_type_size_prior', 'use_global_size_prior', 'smooth_expression', 'log_summary']:
            if not isinstance(getattr(self, name), bool):
                raise TypeError(f"'{name}' must be either True or False, got {getattr(self, name)!r}")

        for name in ['min_molecules_per_cell', 'n_prin_comps', 'n_neighbors', 'n_jobs']:
            val = getattr(self, name)
            # bool is a subclass of int, reject it explicitly
            if isinstance(val, bool) or not isinstance(val, int):
                raise TypeError(f"'{name}' must be an integer, got {val!r}")

        if self.min_molecules_per_cell < 1:
            raise ValueError(f"'min_molecules_per_cell' must be at least 1, got {self.min_molecules_per_cell}")
        if self.n_prin_comps < 0:
            raise ValueError(f"'n_prin_comps' must be non-negative, got {self.n_prin_comps}")
        if self.n_neighbors < 1:
            raise ValueError(f"'n_neighbors' must be at least 1, got {self.n_neighbors}")
        if self.n_jobs == 0:
            raise ValueError("'n_jobs' cannot be zero")
        if not 0 <= self.size_prior_trim_fraction < 0.5:
            raise ValueError(f"'size_prior_trim_fraction' must lie in [0, 0.5), "
                             f"got {self.size_prior_trim_fraction}")
        if not 0 <= self.global_prior_band < 0.5:
            raise ValueError(f"'global_prior_band' must lie in [0, 0.5), got {self.global_prior_band}")

from bmmPriors.src.core.logger import setup_logger
from bmmPriors.src.core.datatypes import Component, Dataset, DistributionSampler, ShapePrior
from bmmPriors.src.core.main import PriorUpdater, update_priors
from bmmPriors.src.core.summary import priors_summary
from bmmPriors.src.validation.config_manager import ConfigManager

__version__ = '0.1.0'

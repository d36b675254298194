from .main import PriorUpdater, PriorUpdate, update_priors

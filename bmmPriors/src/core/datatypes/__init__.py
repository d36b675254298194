from .sampler import ShapePrior, DistributionSampler
from .component import Component
from .dataset import Dataset

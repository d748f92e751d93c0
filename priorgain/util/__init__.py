from .errors import ConfigurationError, MissingPriorError, ComputationError, UndefinedProbabilityError
from .histogram import ClassHistogram, debug_check_partition

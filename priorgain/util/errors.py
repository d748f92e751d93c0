class ConfigurationError(ValueError):
    """Raised when class priors / training counts cannot be turned into a configuration.
    """


class MissingPriorError(ConfigurationError, KeyError):
    """A label present in the training counts has no entry in the supplied priors.
    """

    def __init__(self, label):
        self.label = label
        super().__init__(f'no prior probability supplied for class {label!r}')

    def __str__(self):
        # KeyError quotes its message otherwise
        return self.args[0]


class ComputationError(ArithmeticError):
    pass


class UndefinedProbabilityError(ComputationError):
    """A node probability needed as a divisor is zero (or not finite).
    """

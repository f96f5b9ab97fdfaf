"""Exception types raised by motifem."""


class MotifError(Exception):
    """Base class for all motifem errors."""


class InvalidConfiguration(MotifError, ValueError):
    """Configuration or input data that cannot be used for inference.

    Raised before any computation begins; nothing is silently corrected.
    """


class NumericalDegenerate(MotifError, RuntimeError):
    """A column distribution would have summed to zero before normalisation.

    The pseudo-count floor makes this impossible in a correct run, so seeing it
    means an internal invariant was broken.
    """

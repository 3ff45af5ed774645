"""Exception types raised by hyperforge containers and algorithms.

Every error derives from HypergraphError and from the built-in exception a
caller would naturally catch (KeyError for missing ids, ValueError for bad
arguments, IndexError for out-of-range positions), so existing handlers keep
working.
"""


class HypergraphError(Exception):
    """Base class for all hyperforge errors."""


class NotFoundError(HypergraphError, KeyError):
    """A node or edge id is not registered in the container."""

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0]) if self.args else ""


class InvalidNodeError(HypergraphError, ValueError):
    """An edge referenced a node outside the container's universe."""


class OutOfRangeError(HypergraphError, IndexError):
    """A bit position or matrix index exceeds the configured capacity."""


class ZeroWeightError(HypergraphError, ValueError):
    """An edge was given a weight of exactly zero."""


class ExhaustedError(HypergraphError, ValueError):
    """A structural constraint cannot be satisfied (e.g. subset size > node count)."""


class WeightNormalizationError(HypergraphError, ArithmeticError):
    """Edge weights could not be normalized into selection probabilities."""


class IndexCorruptionError(HypergraphError, RuntimeError):
    """An adjacency index disagrees with the edge registry.

    This signals a broken container invariant, not a caller mistake.
    """

"""Fee and gas estimation for bridge hops."""

from .estimator import BASIS_POINTS, FeeEstimator

__all__ = ["FeeEstimator", "BASIS_POINTS"]

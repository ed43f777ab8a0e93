from .orientation import OrientationEstimator

__all__ = ["OrientationEstimator"]

"""
p3psolve: closed-form absolute camera pose from three correspondences.

This package provides Kneip's P3P solver and the closed-form quartic solver it
is built on, as plain Python functions operating on numpy arrays. It is meant
to be used as a minimal-sample hypothesis generator inside a larger pipeline.
"""


__version__ = "0.1.0"

# Import main classes and functions
from .core import (
    # Data types
    WorldPoint,
    ProjectionPoint,
    CameraMatrix,
    CandidatePose,

    # Functions
    compute_p3p_poses,
    estimate_pose_candidates,
    solve_quartic,
    filter_candidates,
    project_point,

    # Configuration
    SolverOptions,
    P3PStatus,
    NUM_CANDIDATES,

    # Exceptions
    P3PError,
    InvalidInputError,
    DegenerateConfigurationError,
    BehindCameraError,
)

# Make everything available at package level
__all__ = [
    # Version
    "__version__",

    # Data types
    "WorldPoint",
    "ProjectionPoint",
    "CameraMatrix",
    "CandidatePose",

    # Functions
    "compute_p3p_poses",
    "estimate_pose_candidates",
    "solve_quartic",
    "filter_candidates",
    "project_point",

    # Configuration
    "SolverOptions",
    "P3PStatus",
    "NUM_CANDIDATES",

    # Exceptions
    "P3PError",
    "InvalidInputError",
    "DegenerateConfigurationError",
    "BehindCameraError",
]

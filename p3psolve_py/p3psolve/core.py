"""
Core functionality for the p3psolve Python package.

This module provides the public interface to the closed-form P3P solver:
data types, exceptions, solver options and the functions operating on them.
"""

import logging
import math
import numpy as np
from enum import IntEnum
from typing import List, Optional, Sequence, Tuple
from dataclasses import dataclass

from .kneip import compute_poses, P3P_SUCCESS, P3P_ERROR_COLLINEAR_POINTS
from .quartic import solve_quartic as _solve_quartic

logger = logging.getLogger(__name__)


# ============================================================================
# Exception Classes
# ============================================================================

class P3PError(Exception):
    """Base exception for P3P solver errors."""
    pass


class InvalidInputError(P3PError):
    """Raised when input arrays or parameters are malformed."""
    pass


class DegenerateConfigurationError(P3PError):
    """Raised when the three world points are collinear."""
    pass


class BehindCameraError(P3PError):
    """Raised when a bearing points behind the camera."""
    pass


# ============================================================================
# Enums and Constants
# ============================================================================

class P3PStatus(IntEnum):
    """Outcome of a P3P solve."""
    SUCCESS = P3P_SUCCESS
    COLLINEAR_WORLD_POINTS = P3P_ERROR_COLLINEAR_POINTS


# Number of candidates produced by a non-degenerate solve
NUM_CANDIDATES = 4


# ============================================================================
# Python Data Classes
# ============================================================================

@dataclass
class WorldPoint:
    """
    3D point in the world coordinate system.

    Attributes:
        x, y, z: Coordinates in world units
    """
    x: float
    y: float
    z: float

    def to_array(self) -> np.ndarray:
        """Convert to a numpy vector."""
        return np.array([self.x, self.y, self.z], dtype=np.float64)

    @classmethod
    def from_array(cls, values) -> 'WorldPoint':
        """Create from a 3-element sequence."""
        x, y, z = (float(v) for v in values)
        return cls(x, y, z)


@dataclass
class ProjectionPoint:
    """
    2D point in image coordinates (pixels).

    Attributes:
        x: Horizontal image coordinate (pixels)
        y: Vertical image coordinate (pixels)
    """
    x: float
    y: float

    def to_array(self) -> np.ndarray:
        """Convert to a numpy vector."""
        return np.array([self.x, self.y], dtype=np.float64)

    @classmethod
    def from_array(cls, values) -> 'ProjectionPoint':
        """Create from a 2-element sequence."""
        x, y = (float(v) for v in values)
        return cls(x, y)


@dataclass
class CameraMatrix:
    """
    Intrinsic matrix of a calibrated pinhole camera.

    Used to turn pixel observations into the unit bearing vectors the solver
    expects, and back.

    Attributes:
        matrix: 3x3 camera matrix (list of lists, row-major order)
    """
    matrix: List[List[float]]

    def __post_init__(self):
        """Validate camera matrix parameters."""
        self.validate()

    def validate(self) -> None:
        """Validate camera matrix configuration."""
        if len(self.matrix) != 3:
            raise ValueError("Camera matrix must be 3x3")
        for i, row in enumerate(self.matrix):
            if len(row) != 3:
                raise ValueError(f"Row {i} of camera matrix must have 3 elements")

        for i, row in enumerate(self.matrix):
            for j, val in enumerate(row):
                if not math.isfinite(val):
                    raise ValueError(f"Matrix element [{i}][{j}] must be finite")

        bottom_row = self.matrix[2]
        if abs(bottom_row[0]) > 1e-10 or abs(bottom_row[1]) > 1e-10 or abs(bottom_row[2] - 1.0) > 1e-10:
            raise ValueError("Bottom row of camera matrix must be [0, 0, 1]")

        if abs(self.matrix[0][0]) < 1e-10 or abs(self.matrix[1][1]) < 1e-10:
            raise ValueError("Focal length components (matrix[0][0], matrix[1][1]) must be non-zero")

    def to_array(self) -> np.ndarray:
        return np.array(self.matrix, dtype=np.float64)

    def pixel_to_bearing(self, pixel: ProjectionPoint) -> np.ndarray:
        """
        Back-project a pixel to a unit bearing vector in the camera frame.

        Args:
            pixel: Image observation

        Returns:
            Unit 3-vector pointing from the optical centre through the pixel
        """
        ray = np.linalg.solve(self.to_array(), np.array([pixel.x, pixel.y, 1.0]))
        return ray / np.linalg.norm(ray)

    def bearing_to_pixel(self, bearing) -> ProjectionPoint:
        """
        Project a camera-frame bearing (or point) to pixel coordinates.

        Raises:
            BehindCameraError: If the bearing has a non-positive z component
        """
        bearing = np.asarray(bearing, dtype=np.float64)
        if bearing[2] <= 0:
            raise BehindCameraError("Bearing points behind the camera")
        uvw = self.to_array() @ bearing
        return ProjectionPoint(float(uvw[0] / uvw[2]), float(uvw[1] / uvw[2]))


@dataclass
class SolverOptions:
    """
    Options for the P3P solver.

    Attributes:
        collinearity_tolerance: World points whose cross product norm
            |(P1 - P0) x (P2 - P0)| is at most this value are reported as
            degenerate. The default 0.0 only rejects exactly collinear points;
            near-collinear inputs are then solved and may yield NaN candidates.
    """
    collinearity_tolerance: float = 0.0

    def __post_init__(self):
        """Validate solver options."""
        self.validate()

    def validate(self) -> None:
        if not math.isfinite(self.collinearity_tolerance):
            raise ValueError("Collinearity tolerance must be finite")
        if self.collinearity_tolerance < 0:
            raise ValueError("Collinearity tolerance must be non-negative")


@dataclass
class CandidatePose:
    """
    One pose hypothesis returned by the solver.

    Attributes:
        rotation: 3x3 matrix rotating camera-frame vectors into the world frame
        translation: Camera centre in world coordinates

    A world point X and its camera-frame coordinates x are related by
    X = rotation @ x + translation. Candidates are not checked by the solver;
    use is_valid_rotation() or filter_candidates() before trusting one.
    """
    rotation: np.ndarray
    translation: np.ndarray

    def is_finite(self) -> bool:
        """True if no entry is NaN or infinite."""
        return bool(np.all(np.isfinite(self.rotation)) and np.all(np.isfinite(self.translation)))

    def is_valid_rotation(self, atol: float = 1e-6) -> bool:
        """True if finite, orthonormal and with determinant +1 (within atol)."""
        if not self.is_finite():
            return False
        orthonormal = np.allclose(self.rotation.T @ self.rotation, np.eye(3), atol=atol)
        return bool(orthonormal and abs(np.linalg.det(self.rotation) - 1.0) <= atol)

    def as_matrix(self) -> np.ndarray:
        """3x4 matrix [rotation | translation]."""
        return np.hstack((self.rotation, self.translation.reshape(3, 1)))

    def camera_to_world(self, points) -> np.ndarray:
        """Map camera-frame points (one per row, or a single 3-vector) to the world frame."""
        points = np.asarray(points, dtype=np.float64)
        return points @ self.rotation.T + self.translation

    def world_to_camera(self, points) -> np.ndarray:
        """Map world points (one per row, or a single 3-vector) to the camera frame."""
        points = np.asarray(points, dtype=np.float64)
        return (points - self.translation) @ self.rotation


# ============================================================================
# Input Validation
# ============================================================================

def _as_triple(values, name: str) -> np.ndarray:
    """Convert an array-like of three 3-vectors to a (3, 3) float array."""
    try:
        array = np.asarray(values, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"{name} must be numeric: {e}") from e
    if array.shape != (3, 3):
        raise InvalidInputError(f"{name} must have shape (3, 3), got {array.shape}")
    return array


def _handle_status(status: int) -> None:
    """Convert a solver status code to the appropriate Python exception."""
    if status == P3PStatus.SUCCESS:
        return
    elif status == P3PStatus.COLLINEAR_WORLD_POINTS:
        raise DegenerateConfigurationError("World points are collinear")
    else:
        raise P3PError(f"Unknown status code: {status}")


# ============================================================================
# Main API Functions
# ============================================================================

def solve_quartic(coefficients: Sequence[float]) -> np.ndarray:
    """
    Solve A*x^4 + B*x^3 + C*x^2 + D*x + E = 0.

    Args:
        coefficients: (A, B, C, D, E), highest degree first, A non-zero

    Returns:
        Real parts of the four roots in the fixed sign order of the closed
        form; never sorted and never filtered

    Raises:
        InvalidInputError: If the coefficients are not five numbers
    """
    try:
        factors = np.asarray(coefficients, dtype=np.float64)
    except (TypeError, ValueError) as e:
        raise InvalidInputError(f"Coefficients must be numeric: {e}") from e
    if factors.shape != (5,):
        raise InvalidInputError(f"Expected 5 coefficients, got shape {factors.shape}")
    return _solve_quartic(factors)


def _solve(
    feature_vectors,
    world_points,
    options: Optional[SolverOptions],
) -> Tuple[int, List[CandidatePose]]:
    features = _as_triple(feature_vectors, "feature_vectors")
    points = _as_triple(world_points, "world_points")
    if options is None:
        options = SolverOptions()

    status, solutions = compute_poses(features, points, options.collinearity_tolerance)
    return status, [CandidatePose(rotation=R, translation=C) for R, C in solutions]


def compute_p3p_poses(
    feature_vectors,
    world_points,
    options: Optional[SolverOptions] = None
) -> Tuple[bool, List[CandidatePose]]:
    """
    Compute the candidate camera poses from three bearing/world-point pairs.

    Args:
        feature_vectors: Three unit bearing vectors in the camera frame, one
            per row (shape (3, 3)). They are not renormalized.
        world_points: The three corresponding world points, one per row
        options: Optional solver options (default: exact collinearity test)

    Returns:
        (ok, poses). ok is False iff the world points are collinear, in which
        case poses is empty. Otherwise poses holds exactly four candidates in
        the order of the quartic roots; some may contain NaN or inf values.

    Raises:
        InvalidInputError: If inputs do not have shape (3, 3)

    Example:
        >>> ok, poses = compute_p3p_poses(bearings, points)
        >>> if ok:
        ...     valid = filter_candidates(poses)
    """
    status, poses = _solve(feature_vectors, world_points, options)
    return status == P3PStatus.SUCCESS, poses


def estimate_pose_candidates(
    feature_vectors,
    world_points,
    options: Optional[SolverOptions] = None
) -> List[CandidatePose]:
    """
    Same as compute_p3p_poses, but reports degenerate input by raising.

    Returns:
        Exactly four candidate poses (unfiltered)

    Raises:
        InvalidInputError: If inputs do not have shape (3, 3)
        DegenerateConfigurationError: If the world points are collinear
    """
    status, poses = _solve(feature_vectors, world_points, options)
    _handle_status(status)
    return poses


def filter_candidates(poses: Sequence[CandidatePose], atol: float = 1e-6) -> List[CandidatePose]:
    """
    Keep the candidates whose rotation is finite and a proper rotation.

    The order of the surviving candidates is preserved.
    """
    valid = [pose for pose in poses if pose.is_valid_rotation(atol=atol)]
    if len(valid) < len(poses):
        logger.debug("Discarded %d of %d pose candidates", len(poses) - len(valid), len(poses))
    return valid


def project_point(rotation, translation, world_point) -> np.ndarray:
    """
    Unit bearing of a world point seen from a camera-to-world pose.

    Args:
        rotation: 3x3 rotation from camera frame to world frame
        translation: Camera centre in world coordinates
        world_point: 3-vector or WorldPoint

    Returns:
        Unit 3-vector in the camera frame
    """
    if isinstance(world_point, WorldPoint):
        world_point = world_point.to_array()
    rotation = np.asarray(rotation, dtype=np.float64)
    translation = np.asarray(translation, dtype=np.float64)
    direction = rotation.T @ (np.asarray(world_point, dtype=np.float64) - translation)
    return direction / np.linalg.norm(direction)

"""
P3P pose solver after Kneip, Scaramuzza and Siegwart.

Reference: "A Novel Parametrization of the Perspective-Three-Point Problem for
a Direct Computation of Absolute Camera Position and Orientation", CVPR 2011.

The functions here work on plain numpy arrays. Input validation, status
mapping and result wrapping live in :mod:`p3psolve.core`.
"""

import logging
from typing import List, Tuple

import numpy as np

from .quartic import solve_quartic

logger = logging.getLogger(__name__)

# Status codes returned by compute_poses (see core.P3PStatus)
P3P_SUCCESS = 0
P3P_ERROR_COLLINEAR_POINTS = -1


def _intermediate_frame(first: np.ndarray, second: np.ndarray) -> np.ndarray:
    """Rotation whose rows are an orthonormal basis with `first` as x-axis and
    the normal of (first, second) as z-axis."""
    e1 = first
    e3 = np.cross(first, second)
    e3 = e3 / np.linalg.norm(e3)
    e2 = np.cross(e3, e1)
    return np.vstack((e1, e2, e3))


def _camera_frame(feature_vectors: np.ndarray, world_points: np.ndarray):
    """
    Build the intermediate camera frame from the first two feature vectors.

    The first two correspondences are swapped when the third feature vector
    ends up with a positive z coordinate, so that theta lies in [0, pi].

    Returns:
        (f1, f2, T, f3_in_frame, P1, P2, P3)
    """
    f1, f2, f3 = feature_vectors
    P1, P2, P3 = world_points

    T = _intermediate_frame(f1, f2)
    f3_t = T @ f3

    if f3_t[2] > 0:
        f1, f2 = f2, f1
        P1, P2 = P2, P1
        T = _intermediate_frame(f1, f2)
        f3_t = T @ f3

    return f1, f2, T, f3_t, P1, P2, P3


def _world_frame(P1: np.ndarray, P2: np.ndarray, P3: np.ndarray) -> np.ndarray:
    """Intermediate world frame anchored at P1, x-axis towards P2, z-axis
    normal to the plane of the three points."""
    n1 = P2 - P1
    n1 = n1 / np.linalg.norm(n1)
    n3 = np.cross(n1, P3 - P1)
    n3 = n3 / np.linalg.norm(n3)
    n2 = np.cross(n3, n1)
    return np.vstack((n1, n2, n3))


def quartic_coefficients(f_1, f_2, p_1, p_2, d_12, b) -> np.ndarray:
    """
    Coefficients of the quartic in cos(theta), highest degree first.

    Args:
        f_1, f_2: x/z and y/z of the third feature vector in the camera frame
        p_1, p_2: x and y of the third world point in the world frame
        d_12: distance between the first two world points
        b: cot(beta), beta being the angle between the first two feature vectors
    """
    f_1_pw2 = f_1 ** 2
    f_2_pw2 = f_2 ** 2

    p_1_pw2 = p_1 ** 2
    p_1_pw3 = p_1_pw2 * p_1
    p_1_pw4 = p_1_pw3 * p_1

    p_2_pw2 = p_2 ** 2
    p_2_pw3 = p_2_pw2 * p_2
    p_2_pw4 = p_2_pw3 * p_2

    d_12_pw2 = d_12 ** 2
    b_pw2 = b ** 2

    a_4 = -f_2_pw2 * p_2_pw4 - p_2_pw4 * f_1_pw2 - p_2_pw4

    a_3 = (2 * p_2_pw3 * d_12 * b
           + 2 * f_2_pw2 * p_2_pw3 * d_12 * b
           - 2 * f_2 * p_2_pw3 * f_1 * d_12)

    a_2 = (-f_2_pw2 * p_2_pw2 * p_1_pw2
           - f_2_pw2 * p_2_pw2 * d_12_pw2 * b_pw2
           - f_2_pw2 * p_2_pw2 * d_12_pw2
           + f_2_pw2 * p_2_pw4
           + p_2_pw4 * f_1_pw2
           + 2 * p_1 * p_2_pw2 * d_12
           + 2 * f_1 * f_2 * p_1 * p_2_pw2 * d_12 * b
           - p_2_pw2 * p_1_pw2 * f_1_pw2
           + 2 * p_1 * p_2_pw2 * f_2_pw2 * d_12
           - p_2_pw2 * d_12_pw2 * b_pw2
           - 2 * p_1_pw2 * p_2_pw2)

    a_1 = (2 * p_1_pw2 * p_2 * d_12 * b
           + 2 * f_2 * p_2_pw3 * f_1 * d_12
           - 2 * f_2_pw2 * p_2_pw3 * d_12 * b
           - 2 * p_1 * p_2 * d_12_pw2 * b)

    a_0 = (-2 * f_2 * p_2_pw2 * f_1 * p_1 * d_12 * b
           + f_2_pw2 * p_2_pw2 * d_12_pw2
           + 2 * p_1_pw3 * d_12
           - p_1_pw2 * d_12_pw2
           + f_2_pw2 * p_2_pw2 * p_1_pw2
           - p_1_pw4
           - 2 * f_2_pw2 * p_2_pw2 * p_1 * d_12
           + p_2_pw2 * f_1_pw2 * p_1_pw2
           + f_2_pw2 * p_2_pw2 * d_12_pw2 * b_pw2)

    return np.array([a_4, a_3, a_2, a_1, a_0], dtype=np.float64)


def _back_substitute(cos_theta, f_1, f_2, p_1, p_2, d_12, b, P1, N, T):
    """Rotation and camera centre for one root of the quartic."""
    cot_alpha = ((-f_1 * p_1 / f_2 - cos_theta * p_2 + d_12 * b)
                 / (-f_1 * cos_theta * p_2 / f_2 + p_1 - d_12))

    sin_theta = np.sqrt(1 - cos_theta ** 2)
    sin_alpha = np.sqrt(1 / (cot_alpha ** 2 + 1))
    cos_alpha = np.sqrt(1 - sin_alpha ** 2)

    if cot_alpha < 0:
        cos_alpha = -cos_alpha

    scale = d_12 * (sin_alpha * b + cos_alpha)
    C = np.array([
        cos_alpha * scale,
        cos_theta * sin_alpha * scale,
        sin_theta * sin_alpha * scale,
    ])
    C = P1 + N.T @ C

    Q = np.array([
        [-cos_alpha, -sin_alpha * cos_theta, -sin_alpha * sin_theta],
        [sin_alpha, -cos_alpha * cos_theta, -cos_alpha * sin_theta],
        [0.0, -sin_theta, cos_theta],
    ])
    R = N.T @ Q.T @ T

    return R, C


def compute_poses(
    feature_vectors: np.ndarray,
    world_points: np.ndarray,
    collinearity_tolerance: float = 0.0,
) -> Tuple[int, List[Tuple[np.ndarray, np.ndarray]]]:
    """
    Compute the candidate poses of a camera from three correspondences.

    Args:
        feature_vectors: (3, 3) array, one unit bearing vector per row, in the
            camera frame. Bearings are used as given (no renormalization).
        world_points: (3, 3) array, one world point per row.
        collinearity_tolerance: World points whose spanned parallelogram area
            is at most this value are rejected. 0.0 rejects exactly collinear
            points only.

    Returns:
        (status, solutions). status is P3P_SUCCESS or
        P3P_ERROR_COLLINEAR_POINTS. On success, solutions holds exactly four
        (R, C) pairs, one per quartic root, where R rotates camera-frame
        vectors into the world frame and C is the camera centre in world
        coordinates. Solutions from non-physical roots contain NaN or inf and
        are returned anyway.
    """
    feature_vectors = np.asarray(feature_vectors, dtype=np.float64)
    world_points = np.asarray(world_points, dtype=np.float64)

    with np.errstate(all="ignore"):
        P1, P2, P3 = world_points
        area = np.linalg.norm(np.cross(P2 - P1, P3 - P1))
        if area <= collinearity_tolerance:
            logger.debug("World points are collinear (area %g <= %g)", area, collinearity_tolerance)
            return P3P_ERROR_COLLINEAR_POINTS, []

        f1, f2, T, f3, P1, P2, P3 = _camera_frame(feature_vectors, world_points)

        N = _world_frame(P1, P2, P3)
        P3 = N @ (P3 - P1)

        d_12 = np.linalg.norm(P2 - P1)
        f_1 = f3[0] / f3[2]
        f_2 = f3[1] / f3[2]
        p_1 = P3[0]
        p_2 = P3[1]

        cos_beta = np.dot(f1, f2)
        b = np.sqrt(1.0 / (1.0 - cos_beta ** 2) - 1.0)
        if cos_beta < 0:
            b = -b

        factors = quartic_coefficients(f_1, f_2, p_1, p_2, d_12, b)
        roots = solve_quartic(factors)

        solutions = [
            _back_substitute(root, f_1, f_2, p_1, p_2, d_12, b, P1, N, T)
            for root in roots
        ]

    return P3P_SUCCESS, solutions

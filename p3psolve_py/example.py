import numpy as np
from p3psolve import (
    compute_p3p_poses, filter_candidates, project_point, CameraMatrix, ProjectionPoint,
    SolverOptions
)

# Three reference points in world coordinates (meters)
world_points = np.array([
    [0.0, 0.0, 0.0],      # corner
    [2.0, 0.0, 0.0],      # along x
    [0.0, 1.5, 0.0],      # along y
])

# Observed pixels of these points
pixels = [
    ProjectionPoint(302.1, 270.4),
    ProjectionPoint(455.8, 262.9),
    ProjectionPoint(318.7, 151.3),
]

camera_matrix = CameraMatrix(matrix=[
    [800.0, 0.0, 320.0],
    [0.0, 800.0, 240.0],
    [0.0, 0.0, 1.0]
])

# Unit bearing vectors in the camera frame
bearings = np.array([camera_matrix.pixel_to_bearing(p) for p in pixels])

ok, poses = compute_p3p_poses(bearings, world_points, SolverOptions(collinearity_tolerance=1e-9))
if not ok:
    raise SystemExit("World points are collinear")

# The solver always returns four candidates; keep the proper rotations
# with all three points in front of the camera
for pose in filter_candidates(poses):
    if pose.world_to_camera(world_points)[:, 2].min() <= 0:
        continue
    reprojected = [
        camera_matrix.bearing_to_pixel(project_point(pose.rotation, pose.translation, point))
        for point in world_points
    ]
    print(f"camera centre={pose.translation}, reprojection={reprojected}")

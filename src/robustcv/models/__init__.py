# Andy Zhao
"""
Model fitters for the robust estimator.

Each model is a module of plain functions plus a frozen dataclass adapter
implementing the ModelFitter protocol.
"""

from .euclidean2d import (
    EuclideanTransform2D, fit_euclidean2d, apply_euclidean2d, residuals_euclidean2d,
)
from .euclidean2d_fitter import EuclideanTransform2DFitter

from .euclidean3d import (
    EuclideanTransform3D, fit_euclidean3d, apply_euclidean3d, residuals_euclidean3d,
)
from .euclidean3d_fitter import EuclideanTransform3DFitter

from .affine2d import (
    fit_affine_minimal, fit_affine_least_squares, apply_T, residuals_L2,
)
from .affine2d_fitter import AffineTransform2DFitter

from .homography2d import (
    fit_homography_minimal, fit_homography_least_squares, apply_homography, residuals_transfer,
)
from .homography2d_fitter import ProjectiveTransform2DFitter

from .dual_quadric import (
    DualQuadric, fit_dual_quadric, residuals_dual_quadric, dual_quadric_from_matrix,
)
from .dual_quadric_fitter import DualQuadricFitter

from .pinhole import (
    CameraPose, fit_camera_dlt, project_points, residuals_reprojection, decompose_camera,
    fit_pose_epnp, residuals_pose,
)
from .dlt_pinhole_fitter import DLTPinholeCameraFitter
from .epnp_fitter import EPnPPinholeCameraFitter

__all__ = [
    "EuclideanTransform2D", "fit_euclidean2d", "apply_euclidean2d", "residuals_euclidean2d",
    "EuclideanTransform2DFitter",
    "EuclideanTransform3D", "fit_euclidean3d", "apply_euclidean3d", "residuals_euclidean3d",
    "EuclideanTransform3DFitter",
    "fit_affine_minimal", "fit_affine_least_squares", "apply_T", "residuals_L2",
    "AffineTransform2DFitter",
    "fit_homography_minimal", "fit_homography_least_squares", "apply_homography", "residuals_transfer",
    "ProjectiveTransform2DFitter",
    "DualQuadric", "fit_dual_quadric", "residuals_dual_quadric", "dual_quadric_from_matrix",
    "DualQuadricFitter",
    "CameraPose", "fit_camera_dlt", "project_points", "residuals_reprojection", "decompose_camera",
    "fit_pose_epnp", "residuals_pose",
    "DLTPinholeCameraFitter", "EPnPPinholeCameraFitter",
]

import argparse

import numpy as np

from robustcv.models.affine2d import apply_T
from robustcv.models.affine2d_fitter import AffineTransform2DFitter
from robustcv.ransac import (
    RobustEstimator, RobustEstimatorError, RobustEstimatorListener, RobustMethod, RobustParams,
)


class ProgressPrinter(RobustEstimatorListener):
    def on_estimate_start(self, estimator):
        print(f"[{estimator.method.value}] start")

    def on_estimate_progress_change(self, estimator, progress):
        print(f"[{estimator.method.value}] progress {progress:.0%}")

    def on_estimate_end(self, estimator):
        print(f"[{estimator.method.value}] end")


def make_data(rng: np.random.Generator, n_in: int, n_out: int, noise: float):
    # True affine transform
    T_true = np.array(
        [[1.05, 0.02, 15.0],
         [-0.01, 0.98, -8.0],
         [0.0,  0.0,  1.0]],
        dtype=np.float64,
    )

    # Inliers with pixel noise
    pts0 = rng.uniform([0, 0], [640, 480], size=(n_in, 2))
    pts1 = apply_T(T_true, pts0) + rng.normal(0.0, noise, size=(n_in, 2))

    # Outliers (wrong matches)
    o0 = rng.uniform([0, 0], [640, 480], size=(n_out, 2))
    o1 = rng.uniform([0, 0], [640, 480], size=(n_out, 2))

    pts0_all = np.vstack([pts0, o0])
    pts1_all = np.vstack([pts1, o1])

    # Matching quality: good for inliers, poor for outliers
    quality = np.concatenate([rng.uniform(0.6, 1.0, n_in), rng.uniform(0.0, 0.7, n_out)])
    return T_true, pts0_all, pts1_all, quality


def main() -> None:
    parser = argparse.ArgumentParser(description="Robust affine estimation on synthetic matches")
    parser.add_argument("--inliers", type=int, default=200)
    parser.add_argument("--outliers", type=int, default=80)
    parser.add_argument("--noise", type=float, default=0.8)
    parser.add_argument("--threshold", type=float, default=3.0)
    parser.add_argument("--seed", type=int, default=42)
    args = parser.parse_args()

    rng = np.random.default_rng(args.seed)
    T_true, pts0, pts1, quality = make_data(rng, args.inliers, args.outliers, args.noise)
    print("T_true:\n", T_true)

    for method in RobustMethod:
        estimator = RobustEstimator(
            AffineTransform2DFitter(), method, pts0, pts1,
            quality_scores=quality,
            listener=ProgressPrinter(),
            params=RobustParams(
                threshold=args.threshold,
                stop_threshold=args.noise,
                progress_delta=0.25,
                keep_covariance=True,
                seed=args.seed,
            ),
        )
        try:
            T_est = estimator.estimate()
        except RobustEstimatorError as e:
            print(f"[{method.value}] failed: {e}")
            continue

        result = estimator.last_result
        print("T_est:\n", T_est)
        print("num_inliers:", result.inliers_data.num_inliers, "/", pts0.shape[0])
        print("iterations:", result.iterations, "refined:", result.refined)
        if result.covariance is not None:
            print("param std:", np.sqrt(np.diag(result.covariance)))


if __name__ == "__main__":
    main()

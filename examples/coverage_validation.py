"""
Coverage Validation of Smooth Derivative Intervals

Checks by simulation that the intervals have their nominal coverage when
the coefficient estimates really are Gaussian with the stated covariance.
The smooth is a cubic B-spline basis and its derivative matrix is taken
by central differences.

1. POINT-WISE COVERAGE: each point of the true derivative lies inside
   the point-wise band ~95% of the time
2. SIMULTANEOUS COVERAGE: the whole true derivative curve lies inside
   the simultaneous band ~95% of the time
3. POINT-WISE BANDS ARE NOT SIMULTANEOUS: the whole curve lies inside the
   point-wise band much less often
4. QUANTILE CONVENTION: type 8 quantiles agree with numpy's
   median_unbiased method
"""

from dataclasses import dataclass

import numpy as np
from sklearn.preprocessing import SplineTransformer

from gam_confint import Derivatives, TermFunctional, confint, type8_quantile


@dataclass
class ValidationResult:
    """Result of a validation check."""
    test_name: str
    passed: bool
    metric: float
    threshold: float
    details: str


class GaussianPosterior:
    """Minimal model exposing a coefficient covariance."""

    def __init__(self, Vb: np.ndarray):
        self.Vb = Vb

    def vcov(self, unconditional: bool = False) -> np.ndarray:
        return self.Vb


def derivative_design(x: np.ndarray, n_knots: int = 8, eps: float = 1e-5) -> np.ndarray:
    """Central difference derivative of a cubic B-spline basis."""
    spline = SplineTransformer(n_knots=n_knots, degree=3, extrapolation="linear")
    spline.fit(x.reshape(-1, 1))
    upper = spline.transform((x + eps).reshape(-1, 1))
    lower = spline.transform((x - eps).reshape(-1, 1))
    return (upper - lower) / (2 * eps)


def setup_problem(seed: int = 0):
    rng = np.random.default_rng(seed)
    x = np.linspace(0, 1, 100)
    Xi = derivative_design(x)
    p = Xi.shape[1]
    beta_true = np.sin(np.linspace(0, 3, p)) * 2

    A = rng.standard_normal((p, p))
    Vb = 0.02 * (A @ A.T / p + 0.1 * np.eye(p))
    return Xi, beta_true, Vb, rng


def simulate_coverage(n_rep: int = 300, level: float = 0.95, nsim: int = 2000):
    Xi, beta_true, Vb, rng = setup_problem()
    truth = Xi @ beta_true
    se = np.sqrt(np.sum((Xi @ Vb) * Xi, axis=1))
    model = GaussianPosterior(Vb)

    pointwise_hits = np.zeros_like(truth)
    whole_curve_pointwise = 0
    whole_curve_simultaneous = 0

    for rep in range(n_rep):
        beta_hat = rng.multivariate_normal(beta_true, Vb)
        fd = Derivatives(
            {"x": TermFunctional(est=Xi @ beta_hat, se=se, Xi=Xi)},
            model=model,
        )
        ci = confint(fd, level=level, type="confidence")
        si = confint(fd, level=level, type="simultaneous", nsim=nsim, random_state=rep)

        inside_ci = (ci.lower <= truth) & (truth <= ci.upper)
        inside_si = (si.lower <= truth) & (truth <= si.upper)
        pointwise_hits += inside_ci
        whole_curve_pointwise += inside_ci.all()
        whole_curve_simultaneous += inside_si.all()

    return (
        pointwise_hits / n_rep,
        whole_curve_pointwise / n_rep,
        whole_curve_simultaneous / n_rep,
    )


def test_coverage() -> list[ValidationResult]:
    print("\n" + "="*70)
    print("TESTS 1-3: COVERAGE OF POINT-WISE AND SIMULTANEOUS BANDS")
    print("="*70)

    pointwise, curve_pw, curve_sim = simulate_coverage()

    print(f"  Point-wise coverage range: [{pointwise.min():.1%}, {pointwise.max():.1%}]")
    print(f"  Mean point-wise coverage: {pointwise.mean():.1%}")
    print(f"  Whole-curve coverage, point-wise band: {curve_pw:.1%}")
    print(f"  Whole-curve coverage, simultaneous band: {curve_sim:.1%}")

    return [
        ValidationResult(
            test_name="Point-wise coverage",
            passed=abs(pointwise.mean() - 0.95) < 0.03,
            metric=float(pointwise.mean()),
            threshold=0.03,
            details=f"mean coverage {pointwise.mean():.1%}",
        ),
        ValidationResult(
            test_name="Simultaneous coverage",
            passed=abs(curve_sim - 0.95) < 0.04,
            metric=float(curve_sim),
            threshold=0.04,
            details=f"whole-curve coverage {curve_sim:.1%}",
        ),
        ValidationResult(
            test_name="Point-wise is not simultaneous",
            passed=curve_pw < curve_sim,
            metric=float(curve_pw),
            threshold=float(curve_sim),
            details=f"{curve_pw:.1%} < {curve_sim:.1%}",
        ),
    ]


def test_quantile_convention() -> ValidationResult:
    print("\n" + "="*70)
    print("TEST 4: TYPE 8 QUANTILE CONVENTION")
    print("="*70)

    rng = np.random.default_rng(1)
    errors = []
    for n in (1, 2, 5, 17, 1000):
        sample = rng.standard_normal(n)
        probs = np.linspace(0, 1, 41)
        ours = type8_quantile(sample, probs)
        reference = np.quantile(sample, probs, method="median_unbiased")
        errors.append(np.max(np.abs(ours - reference)))
        print(f"  n={n:4d}: max abs difference = {errors[-1]:.2e}")

    max_error = float(max(errors))
    passed = max_error < 1e-12
    print(f"  Result: {'PASS' if passed else 'FAIL'}")

    return ValidationResult(
        test_name="Quantile convention",
        passed=passed,
        metric=max_error,
        threshold=1e-12,
        details=f"max abs difference {max_error:.1e}",
    )


def run_full_validation():
    """Run all validation checks and produce summary report."""
    print("\n" + "="*70)
    print("SMOOTH INTERVAL COVERAGE VALIDATION")
    print("="*70)

    results = test_coverage() + [test_quantile_convention()]

    print("\n" + "="*70)
    print("VALIDATION SUMMARY")
    print("="*70)

    n_passed = sum(r.passed for r in results)
    n_total = len(results)

    print(f"\n{'Test':<32} {'Result':<10} {'Details'}")
    print("-" * 70)
    for r in results:
        status = "PASS" if r.passed else "FAIL"
        print(f"{r.test_name:<32} {status:<10} {r.details}")
    print("-" * 70)
    print(f"\nOverall: {n_passed}/{n_total} checks passed")

    return results


if __name__ == "__main__":
    results = run_full_validation()

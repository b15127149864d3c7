"""Tests for intervals of smooth term values."""

import numpy as np
import pandas as pd
import pytest

from gam_confint import (
    InvalidCovarianceError,
    InvalidLevelError,
    ParameterShapeWarning,
    UnknownTermError,
    confint_smooth,
)
from gam_confint.smooths import smooth_label, term_design

Z_975 = 1.959964


class TestConfidence:
    """Point-wise intervals on fitted smooths."""

    def test_link_scale(self, toy_model):
        """Untransformed limits are fit -/+ crit * se."""
        ci = confint_smooth(toy_model, parm="x0", transform=False)
        pred = toy_model.predict_terms(toy_model.data)

        np.testing.assert_allclose(ci.est, pred.fit["s(x0)"])
        np.testing.assert_allclose(ci.lower, pred.fit["s(x0)"] - Z_975 * pred.se_fit["s(x0)"], atol=1e-5)
        np.testing.assert_allclose(ci.upper, pred.fit["s(x0)"] + Z_975 * pred.se_fit["s(x0)"], atol=1e-5)

    def test_x_column(self, toy_model):
        ci = confint_smooth(toy_model, parm="x1", transform=False)
        np.testing.assert_array_equal(ci.x, toy_model.data["x1"])
        assert list(ci.to_frame().columns) == ["term", "x", "lower", "est", "upper"]

    def test_inverse_link(self, toy_model):
        """transform=True applies the model's inverse link."""
        link = confint_smooth(toy_model, parm="x0", transform=False)
        response = confint_smooth(toy_model, parm="x0", transform=True)
        np.testing.assert_allclose(response.est, np.exp(link.est))
        np.testing.assert_allclose(response.lower, np.exp(link.lower))
        np.testing.assert_allclose(response.upper, np.exp(link.upper))

    def test_named_and_callable_transform(self, toy_model):
        named = confint_smooth(toy_model, parm="x0", transform="logistic")
        func = confint_smooth(toy_model, parm="x0", transform=lambda eta: 1 / (1 + np.exp(-eta)))
        np.testing.assert_allclose(named.est, func.est)

    def test_shift_adds_constant(self, toy_model):
        """Shift is applied to estimate and limits before the transform."""
        plain = confint_smooth(toy_model, parm="x0", transform=False)
        shifted = confint_smooth(toy_model, parm="x0", transform=False, shift=True)
        const = toy_model.coef[0]
        np.testing.assert_allclose(shifted.est, plain.est + const)
        np.testing.assert_allclose(shifted.lower, plain.lower + const)
        np.testing.assert_allclose(shifted.upper, plain.upper + const)

        response = confint_smooth(toy_model, parm="x0", transform=True, shift=True)
        np.testing.assert_allclose(response.est, np.exp(plain.est + const))

    def test_newdata(self, toy_model):
        newdata = pd.DataFrame({"x0": [0.2, 0.5, 0.8], "x1": [0.3, 0.3, 0.3]})
        ci = confint_smooth(toy_model, parm="x0", newdata=newdata)
        assert len(ci) == 3
        np.testing.assert_array_equal(ci.x, [0.2, 0.5, 0.8])

    def test_newdata_mapping(self, toy_model):
        ci = confint_smooth(toy_model, parm="x0", newdata={"x0": [0.5], "x1": [0.5]})
        assert len(ci) == 1

    def test_multiple_terms(self, toy_model):
        ci = confint_smooth(toy_model, parm=["x1", "x0"])
        n = len(toy_model.data)
        assert len(ci) == 2 * n
        assert ci.terms == ["x1", "x0"]
        np.testing.assert_array_equal(ci.x[:n], toy_model.data["x1"])


class TestSimultaneous:
    """Simultaneous intervals on fitted smooths."""

    def test_wider_than_confidence(self, toy_model):
        ci = confint_smooth(toy_model, parm="x0", transform=False)
        si = confint_smooth(
            toy_model, parm="x0", type="simultaneous", transform=False,
            nsim=2000, random_state=0,
        )
        assert si.critical_values["x0"] > ci.critical_values["x0"]
        assert np.all(si.lower <= ci.lower)
        assert np.all(si.upper >= ci.upper)

    def test_reproducible(self, toy_model):
        kwargs = dict(parm=["x0", "x1"], type="simultaneous", nsim=300, random_state=9)
        s1 = confint_smooth(toy_model, **kwargs)
        s2 = confint_smooth(toy_model, **kwargs)
        np.testing.assert_array_equal(s1.lower, s2.lower)
        np.testing.assert_array_equal(s1.upper, s2.upper)

    def test_unconditional_flag(self, toy_model):
        confint_smooth(
            toy_model, parm="x0", type="simultaneous", nsim=50,
            unconditional=True, random_state=0,
        )
        assert toy_model.vcov_calls == [True]

    def test_shift_adds_constant(self, toy_model):
        """Shift applies to simultaneous limits too."""
        kwargs = dict(
            parm="x0", type="simultaneous", transform=False,
            nsim=500, random_state=4,
        )
        plain = confint_smooth(toy_model, **kwargs)
        shifted = confint_smooth(toy_model, shift=True, **kwargs)
        const = toy_model.coef[0]
        np.testing.assert_allclose(shifted.est, plain.est + const)
        np.testing.assert_allclose(shifted.lower, plain.lower + const)
        np.testing.assert_allclose(shifted.upper, plain.upper + const)

    def test_invalid_covariance(self, toy_model):
        """A non-symmetric model covariance aborts the call."""
        Vb = toy_model.Vb.copy()
        Vb[0, 1] += 1.0
        toy_model.Vb_unconditional = Vb
        with pytest.raises(InvalidCovarianceError):
            confint_smooth(
                toy_model, parm="x0", type="simultaneous", nsim=10,
                unconditional=True, random_state=0,
            )

    def test_term_design_matches_standard_errors(self, toy_model):
        """The rebuilt mapping reproduces the model's standard errors."""
        X = toy_model.predict_matrix(toy_model.data)
        Xi = term_design(X, toy_model.term_columns("x1"))
        se = np.sqrt(np.sum((Xi @ toy_model.Vb) * Xi, axis=1))
        pred = toy_model.predict_terms(toy_model.data)
        np.testing.assert_allclose(se, pred.se_fit["s(x1)"])


class TestTermDesign:
    """Tests for restricting the linear predictor matrix to a term."""

    def test_zero_outside_columns(self):
        X = np.arange(12, dtype=float).reshape(3, 4)
        Xi = term_design(X, np.array([1, 2]))
        np.testing.assert_array_equal(Xi[:, [0, 3]], 0.0)
        np.testing.assert_array_equal(Xi[:, [1, 2]], X[:, [1, 2]])

    def test_slice_columns(self):
        X = np.ones((2, 5))
        Xi = term_design(X, slice(3, 5))
        assert Xi.sum() == 4.0

    def test_smooth_label(self):
        assert smooth_label("x1") == "s(x1)"


class TestValidation:
    """Argument validation."""

    def test_parm_required(self, toy_model):
        with pytest.raises(ValueError, match="parm"):
            confint_smooth(toy_model)

    def test_unknown_term(self, toy_model):
        with pytest.raises(UnknownTermError, match="x9"):
            confint_smooth(toy_model, parm=["x0", "x9"])

    def test_invalid_transform(self, toy_model):
        with pytest.raises(ValueError):
            confint_smooth(toy_model, parm="x0", transform="sqrt")

    def test_level_sequence_warns(self, toy_model):
        with pytest.warns(ParameterShapeWarning):
            ci = confint_smooth(toy_model, parm="x0", level=[0.9, 0.99])
        assert ci.level == 0.9

    @pytest.mark.parametrize("level", [0.0, 1.2, "high"])
    def test_invalid_level(self, toy_model, level):
        with pytest.raises(InvalidLevelError):
            confint_smooth(toy_model, parm="x0", level=level)

"""Pytest fixtures for confidence interval tests."""

import numpy as np
import pandas as pd
import pytest

from gam_confint import Derivatives, TermFunctional, TermPrediction


class ToyAdditiveModel:
    """
    Additive model with a cubic polynomial smooth per covariate.

    Coefficients are laid out as [intercept, x0^1..3, x1^1..3, ...] and
    the covariance is a fixed positive definite matrix.
    """

    degree = 3

    def __init__(self, data, coef, Vb, Vb_unconditional=None, linkinv=np.exp):
        self.data = data
        self.coef = np.asarray(coef, dtype=np.float64)
        self.Vb = np.asarray(Vb, dtype=np.float64)
        self.Vb_unconditional = (
            self.Vb if Vb_unconditional is None else np.asarray(Vb_unconditional)
        )
        self._linkinv = linkinv
        self.vcov_calls = []

    def smooth_terms(self):
        return list(self.data.columns)

    def term_columns(self, term):
        k = self.smooth_terms().index(term)
        start = 1 + k * self.degree
        return np.arange(start, start + self.degree)

    def predict_matrix(self, newdata):
        cols = [np.ones(len(newdata))]
        for term in self.smooth_terms():
            x = newdata[term].to_numpy(dtype=np.float64)
            cols.extend(x**power for power in range(1, self.degree + 1))
        return np.column_stack(cols)

    def derivative_matrix(self, newdata, term):
        Xi = np.zeros((len(newdata), self.coef.size))
        x = newdata[term].to_numpy(dtype=np.float64)
        cols = self.term_columns(term)
        for power, col in enumerate(cols, start=1):
            Xi[:, col] = power * x ** (power - 1)
        return Xi

    def predict_terms(self, newdata):
        X = self.predict_matrix(newdata)
        fit, se_fit = {}, {}
        for term in self.smooth_terms():
            cols = self.term_columns(term)
            Xc = X[:, cols]
            fit[f"s({term})"] = Xc @ self.coef[cols]
            V = self.Vb[np.ix_(cols, cols)]
            se_fit[f"s({term})"] = np.sqrt(np.sum((Xc @ V) * Xc, axis=1))
        return TermPrediction(
            fit=pd.DataFrame(fit, index=newdata.index),
            se_fit=pd.DataFrame(se_fit, index=newdata.index),
            constant=float(self.coef[0]),
        )

    def vcov(self, unconditional=False):
        self.vcov_calls.append(unconditional)
        return self.Vb_unconditional if unconditional else self.Vb

    def linkinv(self, eta):
        return self._linkinv(eta)

    def derivatives(self, newdata=None, unconditional=False):
        newdata = self.data if newdata is None else newdata
        functionals = {}
        for term in self.smooth_terms():
            Xi = self.derivative_matrix(newdata, term)
            functionals[term] = TermFunctional(
                est=Xi @ self.coef,
                se=np.sqrt(np.sum((Xi @ self.Vb) * Xi, axis=1)),
                Xi=Xi,
            )
        return Derivatives(functionals, model=self, unconditional=unconditional)


@pytest.fixture
def random_state():
    """Fixed random state for reproducibility."""
    return np.random.RandomState(42)


@pytest.fixture
def spd_covariance(random_state):
    """Well-conditioned 7x7 covariance matrix."""
    A = random_state.randn(7, 7)
    return A @ A.T / 7 + 0.05 * np.eye(7)


@pytest.fixture
def toy_model(random_state, spd_covariance):
    """Two-term additive model with a log link."""
    n = 40
    data = pd.DataFrame(
        {
            "x0": np.sort(random_state.uniform(0.1, 1.0, n)),
            "x1": np.sort(random_state.uniform(0.1, 1.0, n)),
        }
    )
    coef = np.array([0.5, 1.0, -2.0, 1.5, -0.5, 0.8, 0.3])
    return ToyAdditiveModel(data, coef, spd_covariance)


@pytest.fixture
def toy_derivatives(toy_model):
    """Derivatives of the toy model's smooths at its data."""
    return toy_model.derivatives()


@pytest.fixture
def two_term_derivatives():
    """Term A with three points and unit standard errors, term B with two."""
    return Derivatives(
        {
            "A": TermFunctional(est=[0.0, 1.0, 2.0], se=[1.0, 1.0, 1.0]),
            "B": TermFunctional(est=[-1.0, 0.5], se=[0.5, 2.0]),
        }
    )

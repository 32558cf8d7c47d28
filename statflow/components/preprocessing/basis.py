"""Basis expansions learnt on training data and replayed on new data.

Orthogonal polynomials follow the classic three-term recurrence: the centring
constants (``alpha``) and squared norms (``norm2``) are learnt once, then any
new ``x`` is expanded with the same recurrence, so training columns are
orthonormal and new data lands on the same basis.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np
from sklearn.preprocessing import SplineTransformer

from statflow.errors import ConfigurationError, InsufficientDataError


@dataclass(frozen=True)
class OrthoPolyCoefs:
    alpha: np.ndarray
    norm2: np.ndarray
    degree: int


def fit_ortho_poly(x: np.ndarray, degree: int) -> OrthoPolyCoefs:
    x = np.asarray(x, dtype=float).ravel()
    n_unique = np.unique(x).size
    if degree >= n_unique:
        raise InsufficientDataError(
            f"Polynomial degree {degree} needs more than {degree} distinct values; got {n_unique}."
        )
    xbar = float(np.mean(x))
    xc = x - xbar
    V = np.vander(xc, N=degree + 1, increasing=True)
    Q, R = np.linalg.qr(V)
    # Q * diag(R) is sign-invariant, unlike Q alone
    Z = Q * np.diag(R)[None, :]
    norm2 = np.sum(Z**2, axis=0)
    alpha = (np.sum(xc[:, None] * Z**2, axis=0) / norm2 + xbar)[:degree]
    return OrthoPolyCoefs(alpha=alpha, norm2=np.concatenate([[1.0], norm2]), degree=int(degree))


def apply_ortho_poly(x: np.ndarray, coefs: OrthoPolyCoefs) -> np.ndarray:
    x = np.asarray(x, dtype=float).ravel()
    d = coefs.degree
    alpha, norm2 = coefs.alpha, coefs.norm2
    Z = np.ones((x.shape[0], d + 1), dtype=float)
    Z[:, 1] = x - alpha[0]
    for i in range(1, d):
        Z[:, i + 1] = (x - alpha[i]) * Z[:, i] - (norm2[i + 1] / norm2[i]) * Z[:, i - 1]
    Z = Z / np.sqrt(norm2[1:])[None, :]
    return Z[:, 1:]


def raw_poly(x: np.ndarray, degree: int) -> np.ndarray:
    x = np.asarray(x, dtype=float).ravel()
    return np.column_stack([x**p for p in range(1, degree + 1)])


@dataclass(frozen=True)
class SplineBasis:
    transformer: SplineTransformer
    center: Optional[np.ndarray]
    rotation: Optional[np.ndarray]
    deg_free: int

    def apply(self, x: np.ndarray) -> np.ndarray:
        B = self.transformer.transform(np.asarray(x, dtype=float).reshape(-1, 1))
        if self.rotation is None:
            return B
        return (B - self.center[None, :]) @ self.rotation


def fit_spline(x: np.ndarray, deg_free: int, degree: int = 3, *, raw: bool = False) -> SplineBasis:
    """B-spline basis with ``deg_free`` columns and quantile knots.

    ``raw=False`` rotates the centred training basis by the inverse of its
    QR factor, giving orthonormal training columns.
    """
    x = np.asarray(x, dtype=float).reshape(-1, 1)
    deg_free = int(deg_free)
    if deg_free < degree:
        raise ConfigurationError(f"deg_free ({deg_free}) must be >= spline degree ({degree}).")
    # without the bias column: n_out = n_knots + degree - 2
    n_knots = deg_free - degree + 2
    n_unique = np.unique(x).size
    if n_unique < n_knots:
        raise InsufficientDataError(
            f"Spline with {deg_free} degrees of freedom needs at least {n_knots} distinct values; got {n_unique}."
        )
    st = SplineTransformer(
        n_knots=n_knots,
        degree=degree,
        knots="quantile",
        extrapolation="linear",
        include_bias=False,
    )
    B = st.fit_transform(x)
    if raw:
        return SplineBasis(transformer=st, center=None, rotation=None, deg_free=deg_free)
    center = B.mean(axis=0)
    _, R = np.linalg.qr(B - center[None, :])
    rotation = np.linalg.pinv(R)
    return SplineBasis(transformer=st, center=center, rotation=rotation, deg_free=deg_free)


__all__ = [
    "OrthoPolyCoefs",
    "fit_ortho_poly",
    "apply_ortho_poly",
    "raw_poly",
    "SplineBasis",
    "fit_spline",
]

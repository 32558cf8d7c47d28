"""Closed-form inference for unpenalised linear-family fits.

Ordinary least squares gets t-tests, confidence intervals for the mean and
prediction intervals for a new observation. Unpenalised logistic regression
gets Wald z-tests from the inverse Fisher information.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Sequence, Tuple

import numpy as np
import pandas as pd
from scipy import stats


def _with_intercept(X: np.ndarray, intercept: bool) -> np.ndarray:
    if not intercept:
        return X
    return np.column_stack([np.ones(X.shape[0]), X])


@dataclass(frozen=True)
class OLSInference:
    terms: Tuple[str, ...]
    beta: np.ndarray
    xtx_inv: np.ndarray
    sigma2: float
    df_resid: int
    intercept: bool
    r_squared: float
    n_obs: int

    @classmethod
    def from_fit(
        cls,
        X: np.ndarray,
        y: np.ndarray,
        beta: np.ndarray,
        predictors: Sequence[str],
        *,
        intercept: bool,
    ) -> "OLSInference":
        X1 = _with_intercept(X, intercept)
        resid = y - X1 @ beta
        rank = int(np.linalg.matrix_rank(X1))
        df = int(X1.shape[0] - rank)
        rss = float(resid @ resid)
        centre = float(np.mean(y)) if intercept else 0.0
        tss = float(np.sum((y - centre) ** 2))
        terms = (("(Intercept)",) if intercept else ()) + tuple(predictors)
        return cls(
            terms=terms,
            beta=np.asarray(beta, dtype=float),
            xtx_inv=np.linalg.pinv(X1.T @ X1),
            sigma2=rss / df if df > 0 else float("nan"),
            df_resid=df,
            intercept=intercept,
            r_squared=1.0 - rss / tss if tss > 0 else float("nan"),
            n_obs=int(X1.shape[0]),
        )

    def coefficient_table(self) -> pd.DataFrame:
        se = np.sqrt(self.sigma2 * np.diag(self.xtx_inv))
        with np.errstate(divide="ignore", invalid="ignore"):
            t = self.beta / se
        p = 2.0 * stats.t.sf(np.abs(t), self.df_resid)
        return pd.DataFrame(
            {
                "term": list(self.terms),
                "estimate": self.beta,
                "std_error": se,
                "statistic": t,
                "p_value": p,
            }
        )

    def intervals(self, X: np.ndarray, *, level: float, prediction: bool) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        X1 = _with_intercept(X, self.intercept)
        fit = X1 @ self.beta
        var_fit = self.sigma2 * np.einsum("ij,jk,ik->i", X1, self.xtx_inv, X1)
        var = var_fit + self.sigma2 if prediction else var_fit
        q = stats.t.ppf(0.5 + level / 2.0, self.df_resid)
        half = q * np.sqrt(var)
        return fit, fit - half, fit + half

    def summary(self) -> Dict[str, float]:
        p = len(self.terms) - (1 if self.intercept else 0)
        adj = (
            1.0 - (1.0 - self.r_squared) * (self.n_obs - 1) / self.df_resid
            if self.df_resid > 0
            else float("nan")
        )
        return {
            "n_obs": float(self.n_obs),
            "df_model": float(p),
            "df_residual": float(self.df_resid),
            "sigma": float(np.sqrt(self.sigma2)),
            "r_squared": float(self.r_squared),
            "adj_r_squared": float(adj),
        }


@dataclass(frozen=True)
class LogisticInference:
    terms: Tuple[str, ...]
    beta: np.ndarray
    cov: np.ndarray
    log_lik: float
    n_obs: int

    @classmethod
    def from_fit(
        cls,
        X: np.ndarray,
        y01: np.ndarray,
        beta: np.ndarray,
        predictors: Sequence[str],
    ) -> "LogisticInference":
        X1 = _with_intercept(X, True)
        eta = X1 @ beta
        p = 1.0 / (1.0 + np.exp(-eta))
        w = p * (1.0 - p)
        fisher = X1.T @ (X1 * w[:, None])
        eps = np.finfo(float).tiny
        ll = float(np.sum(y01 * np.log(p + eps) + (1 - y01) * np.log(1 - p + eps)))
        return cls(
            terms=("(Intercept)",) + tuple(predictors),
            beta=np.asarray(beta, dtype=float),
            cov=np.linalg.pinv(fisher),
            log_lik=ll,
            n_obs=int(X1.shape[0]),
        )

    def coefficient_table(self) -> pd.DataFrame:
        se = np.sqrt(np.diag(self.cov))
        with np.errstate(divide="ignore", invalid="ignore"):
            z = self.beta / se
        return pd.DataFrame(
            {
                "term": list(self.terms),
                "estimate": self.beta,
                "std_error": se,
                "statistic": z,
                "p_value": 2.0 * stats.norm.sf(np.abs(z)),
            }
        )

    def summary(self) -> Dict[str, float]:
        k = len(self.terms)
        return {
            "n_obs": float(self.n_obs),
            "df_residual": float(self.n_obs - k),
            "log_lik": self.log_lik,
            "deviance": -2.0 * self.log_lik,
            "aic": -2.0 * self.log_lik + 2.0 * k,
        }


__all__ = ["OLSInference", "LogisticInference"]

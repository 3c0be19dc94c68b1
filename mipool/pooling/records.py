"""Shared data records for Rubin's-rules pooling."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional


@dataclass(frozen=True)
class AnalysisResult:
    """Single coefficient row reported by one completed-data analysis."""

    term: str
    estimate: float
    std_error: float
    df_residual: Optional[float] = None


@dataclass(frozen=True)
class PooledResult:
    """Pooled estimate and variance decomposition for one model term.

    Attributes follow Rubin (1987) and Barnard & Rubin (1999):
    ``qbar`` is the pooled estimate, ``ubar`` the mean within-imputation
    variance, ``b`` the between-imputation variance and ``t`` the total
    variance. ``r`` is the relative increase in variance due to nonresponse,
    ``lambda_`` the proportion of variance attributable to missingness and
    ``fmi`` the fraction of missing information. ``df`` is the degrees of
    freedom to use for inference; ``df_old`` and ``df_obs`` are its classical
    and observed-data components.
    """

    term: str
    m: int
    qbar: float
    ubar: float
    b: float
    t: float
    r: float
    lambda_: float
    dfcom: float
    df_old: float
    df_obs: float
    df: float
    fmi: float

    def as_dict(self) -> Dict[str, object]:
        """Return the row keyed by the conventional column names."""
        return {
            "term": self.term,
            "m": self.m,
            "qbar": self.qbar,
            "ubar": self.ubar,
            "b": self.b,
            "t": self.t,
            "r": self.r,
            "lambda": self.lambda_,
            "dfcom": self.dfcom,
            "df_old": self.df_old,
            "df_obs": self.df_obs,
            "df": self.df,
            "fmi": self.fmi,
        }


POOLED_COLUMNS = (
    "term",
    "m",
    "qbar",
    "ubar",
    "b",
    "t",
    "r",
    "lambda",
    "dfcom",
    "df_old",
    "df_obs",
    "df",
    "fmi",
)

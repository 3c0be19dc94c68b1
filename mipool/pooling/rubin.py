"""Rubin's rules with the Barnard-Rubin small-sample degrees of freedom.

References:
    Rubin, D.B. (1987). Multiple Imputation for Nonresponse in Surveys. Wiley.
    Barnard, J. and Rubin, D.B. (1999). Small sample degrees of freedom with
    multiple imputation. Biometrika, 86, 948-955.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, List, Literal, Optional, Sequence, Tuple, Union

import numpy as np
import pandas as pd

from .accessors import FitAccessor
from .builders import DEFAULT_DFCOM, as_analyses, build_stacked, table_to_records, tidy_analysis
from .errors import SingleAnalysisWarning
from .records import POOLED_COLUMNS, AnalysisResult, PooledResult

logger = logging.getLogger(__name__)

DfMethod = Literal["smallsample", "rubin"]
KNOWN_METHODS: Tuple[str, ...] = ("smallsample", "rubin")


@dataclass(frozen=True)
class PoolingConfig:
    """Configuration for `RubinPooler`.

    ``method`` selects the degrees of freedom: ``"smallsample"`` applies the
    Barnard-Rubin adjustment, every other string gives the classical Rubin
    (1987) value. ``dfcom`` overrides the complete-data residual degrees of
    freedom that would otherwise be read from the first analysis.
    """

    method: DfMethod = "smallsample"
    dfcom: Optional[float] = None
    dfcom_default: float = DEFAULT_DFCOM

    def validate(self) -> None:
        if not isinstance(self.method, str):
            raise ValueError(f"method must be a string, got {type(self.method).__name__}.")
        if self.dfcom is not None and not (np.isfinite(self.dfcom) and self.dfcom > 0):
            raise ValueError("dfcom must be a positive finite number.")
        if not self.dfcom_default > 0:
            raise ValueError("dfcom_default must be strictly positive.")


def rubin_rules(stacked: pd.DataFrame, dfcom: float, method: str = "smallsample") -> pd.DataFrame:
    """Apply Rubin's rules to stacked tidy rows, one output row per term.

    Terms keep the order of their first appearance. Degenerate variances
    produce inf/NaN rather than errors, and a missing estimate or standard
    error turns its whole term row into NaN while ``m`` still counts every row.
    """
    within = stacked.assign(within=stacked["std_error"] ** 2)
    grouped = within.groupby("term", sort=False)

    m = grouped.size()
    terms = m.index
    m_arr = m.to_numpy(dtype=float)
    qbar = grouped["estimate"].agg(lambda s: s.mean(skipna=False)).to_numpy(dtype=float)
    ubar = grouped["within"].agg(lambda s: s.mean(skipna=False)).to_numpy(dtype=float)
    b = grouped["estimate"].agg(lambda s: s.var(ddof=1, skipna=False)).to_numpy(dtype=float)

    with np.errstate(divide="ignore", invalid="ignore"):
        inflated_b = (1.0 + 1.0 / m_arr) * b
        t = ubar + inflated_b
        r = inflated_b / ubar
        lam = inflated_b / t
        df_old = (m_arr - 1.0) / lam**2
        df_obs = (dfcom + 1.0) / (dfcom + 3.0) * dfcom * (1.0 - lam)
        if method == "smallsample":
            # Same as df_old * df_obs / (df_old + df_obs), but df_old = inf yields df_obs.
            df = df_obs / (1.0 + df_obs / df_old)
        else:
            df = df_old
        fmi = (r + 2.0 / (df + 3.0)) / (r + 1.0)

    return pd.DataFrame(
        {
            "term": terms.astype(str),
            "m": m.to_numpy(dtype=int),
            "qbar": qbar,
            "ubar": ubar,
            "b": b,
            "t": t,
            "r": r,
            "lambda": lam,
            "dfcom": np.full(len(terms), float(dfcom)),
            "df_old": df_old,
            "df_obs": df_obs,
            "df": df,
            "fmi": fmi,
        },
        columns=list(POOLED_COLUMNS),
    )


def frame_to_pooled(frame: pd.DataFrame) -> List[PooledResult]:
    """Convert a pooled frame into `PooledResult` rows."""
    results: List[PooledResult] = []
    for row in frame.to_dict(orient="records"):
        results.append(
            PooledResult(
                term=str(row["term"]),
                m=int(row["m"]),
                qbar=float(row["qbar"]),
                ubar=float(row["ubar"]),
                b=float(row["b"]),
                t=float(row["t"]),
                r=float(row["r"]),
                lambda_=float(row["lambda"]),
                dfcom=float(row["dfcom"]),
                df_old=float(row["df_old"]),
                df_obs=float(row["df_obs"]),
                df=float(row["df"]),
                fmi=float(row["fmi"]),
            )
        )
    return results


class RubinPooler:
    """Pools m completed-data analyses into one result per model term."""

    def __init__(
        self,
        config: Optional[PoolingConfig] = None,
        accessor: Optional[FitAccessor] = None,
    ) -> None:
        self.config = config or PoolingConfig()
        self.accessor = accessor

    def pool(
        self, analyses: Any, *, stacklevel: int = 2
    ) -> Union[Sequence[PooledResult], Sequence[AnalysisResult]]:
        """Pool ``analyses``.

        With a single analysis nothing is pooled: a `SingleAnalysisWarning` is
        issued and that analysis's coefficient rows are returned unchanged.
        ``stacklevel`` is relative to this method, as in `warnings.warn`.
        """
        frame, pooled = self._run(analyses, stacklevel + 1)
        if not pooled:
            return table_to_records(frame)
        return frame_to_pooled(frame)

    def pool_frame(self, analyses: Any, *, stacklevel: int = 2) -> pd.DataFrame:
        """Like `pool`, but return the result as a DataFrame."""
        frame, _ = self._run(analyses, stacklevel + 1)
        return frame

    def _run(self, analyses: Any, stacklevel: int) -> Tuple[pd.DataFrame, bool]:
        self.config.validate()
        collection = as_analyses(analyses, accessor=self.accessor)

        if collection.m == 1:
            warnings.warn(
                "Number of multiple imputations m = 1. No pooling done.",
                SingleAnalysisWarning,
                stacklevel=stacklevel,
            )
            return tidy_analysis(collection, 0), False

        method = self.config.method
        if method not in KNOWN_METHODS:
            logger.warning("Unknown df method %r; using classical Rubin degrees of freedom.", method)

        stacked = build_stacked(collection, dfcom=self.config.dfcom, dfcom_default=self.config.dfcom_default)
        logger.debug("Pooling %d terms over m=%d analyses with method=%s.", len(stacked.terms), stacked.m, method)
        return rubin_rules(stacked.table, stacked.dfcom, method), True

"""Public entry point for pooling multiply imputed analyses."""

from __future__ import annotations

from typing import Any, Iterable, Optional, Sequence, Union

import pandas as pd

from .accessors import FitAccessor
from .records import POOLED_COLUMNS, AnalysisResult, PooledResult
from .rubin import DfMethod, PoolingConfig, RubinPooler


def pool(
    analyses: Any,
    method: DfMethod = "smallsample",
    dfcom: Optional[float] = None,
    accessor: Optional[FitAccessor] = None,
) -> Union[Sequence[PooledResult], Sequence[AnalysisResult]]:
    """Combine m completed-data analyses with Rubin's rules in one call.

    Args:
        analyses: List-like of per-imputation fits: tidy DataFrames, lists of
            `AnalysisResult`, statsmodels results, or anything ``accessor`` reads.
        method: ``"smallsample"`` for Barnard-Rubin degrees of freedom; any
            other string gives the classical Rubin (1987) degrees of freedom.
        dfcom: Complete-data residual degrees of freedom. When omitted it is
            read from the first analysis, falling back to 99999.
        accessor: Custom `FitAccessor` used for every analysis.

    Returns:
        One `PooledResult` per term in first-appearance order, or the
        unchanged rows of the only analysis when m == 1.
    """
    pooler = RubinPooler(PoolingConfig(method=method, dfcom=dfcom), accessor=accessor)
    return pooler.pool(analyses, stacklevel=3)


def pooled_to_frame(results: Iterable[PooledResult]) -> pd.DataFrame:
    """Tabulate pooled results with one row per term."""
    return pd.DataFrame([result.as_dict() for result in results], columns=list(POOLED_COLUMNS))

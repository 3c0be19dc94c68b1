"""Fit accessors that read coefficient tables out of fitted models."""

from __future__ import annotations

from typing import Any, Optional, Protocol, Sequence, Tuple

import numpy as np
import pandas as pd

from .errors import InvalidInputError
from .records import AnalysisResult

TIDY_COLUMNS: Tuple[str, ...] = ("term", "estimate", "std_error")
DF_RESIDUAL_COLUMN = "df_residual"

# Column spellings produced by broom-style tidy()/glance() tables and camelCase exports.
COLUMN_ALIASES = {
    "std.error": "std_error",
    "stdError": "std_error",
    "df.residual": DF_RESIDUAL_COLUMN,
    "residualDf": DF_RESIDUAL_COLUMN,
    "df_resid": DF_RESIDUAL_COLUMN,
}


class FitAccessor(Protocol):
    """Minimal surface a fitted model must expose to be pooled."""

    def tidy(self, fit: Any) -> pd.DataFrame:
        """Return one row per term with ``term``, ``estimate`` and ``std_error`` columns."""
        ...

    def df_residual(self, fit: Any) -> Optional[float]:
        """Return the residual degrees of freedom of ``fit``, or None when unknown."""
        ...


class TidyFrameAccessor:
    """Treats the fit itself as an already tidied coefficient table."""

    def tidy(self, fit: pd.DataFrame) -> pd.DataFrame:
        if not isinstance(fit, pd.DataFrame):
            raise InvalidInputError(f"Expected a DataFrame, got {type(fit).__name__}.")
        return normalize_tidy_frame(fit)

    def df_residual(self, fit: pd.DataFrame) -> Optional[float]:
        return first_df_residual(self.tidy(fit))


class RecordAccessor:
    """Reads a sequence of ``AnalysisResult`` rows."""

    def tidy(self, fit: Sequence[AnalysisResult]) -> pd.DataFrame:
        rows = list(fit)
        if not rows or not all(isinstance(row, AnalysisResult) for row in rows):
            raise InvalidInputError("Record analyses must be a non-empty sequence of AnalysisResult.")
        frame = pd.DataFrame(
            {
                "term": [row.term for row in rows],
                "estimate": [row.estimate for row in rows],
                "std_error": [row.std_error for row in rows],
                DF_RESIDUAL_COLUMN: [row.df_residual for row in rows],
            }
        )
        return normalize_tidy_frame(frame)

    def df_residual(self, fit: Sequence[AnalysisResult]) -> Optional[float]:
        return first_df_residual(self.tidy(fit))


class StatsmodelsAccessor:
    """Duck-typed accessor for results objects exposing ``params``, ``bse`` and ``df_resid``."""

    def tidy(self, fit: Any) -> pd.DataFrame:
        params = getattr(fit, "params", None)
        bse = getattr(fit, "bse", None)
        if params is None or bse is None:
            raise InvalidInputError("Fitted model does not expose 'params' and 'bse'.")

        estimates = np.asarray(params, dtype=float).ravel()
        std_errors = np.asarray(bse, dtype=float).ravel()
        if estimates.shape != std_errors.shape:
            raise InvalidInputError(
                f"Coefficient and standard error counts differ ({estimates.size} vs {std_errors.size})."
            )

        return pd.DataFrame(
            {
                "term": _term_names(fit, params, estimates.size),
                "estimate": estimates,
                "std_error": std_errors,
            }
        )

    def df_residual(self, fit: Any) -> Optional[float]:
        value = getattr(fit, "df_resid", None)
        if value is None:
            return None
        value = float(value)
        return value if np.isfinite(value) else None


def resolve_accessor(fit: Any) -> FitAccessor:
    """Pick the built-in accessor able to read ``fit``."""
    if isinstance(fit, pd.DataFrame):
        return TidyFrameAccessor()
    if hasattr(fit, "params") and hasattr(fit, "bse"):
        return StatsmodelsAccessor()
    if isinstance(fit, (list, tuple)) and fit and all(isinstance(row, AnalysisResult) for row in fit):
        return RecordAccessor()
    raise InvalidInputError(
        f"Cannot extract a coefficient table from {type(fit).__name__}; "
        "pass a tidy DataFrame, a list of AnalysisResult, a statsmodels result, or a custom accessor."
    )


def normalize_tidy_frame(frame: pd.DataFrame) -> pd.DataFrame:
    """Rename alias columns, check required ones and coerce dtypes."""
    renamed = frame.rename(columns={alias: name for alias, name in COLUMN_ALIASES.items() if alias in frame.columns})
    missing = [column for column in TIDY_COLUMNS if column not in renamed.columns]
    if missing:
        raise InvalidInputError(f"Coefficient table is missing required columns: {', '.join(missing)}")

    columns = list(TIDY_COLUMNS)
    if DF_RESIDUAL_COLUMN in renamed.columns:
        columns.append(DF_RESIDUAL_COLUMN)
    tidy = renamed.loc[:, columns].reset_index(drop=True)

    try:
        tidy["estimate"] = pd.to_numeric(tidy["estimate"]).astype(float)
        tidy["std_error"] = pd.to_numeric(tidy["std_error"]).astype(float)
    except (TypeError, ValueError) as exc:
        raise InvalidInputError(f"Coefficient table holds non-numeric estimates: {exc}") from exc
    tidy["term"] = tidy["term"].astype(str)
    if DF_RESIDUAL_COLUMN in tidy.columns:
        tidy[DF_RESIDUAL_COLUMN] = pd.to_numeric(tidy[DF_RESIDUAL_COLUMN], errors="coerce").astype(float)
    return tidy


def first_df_residual(tidy: pd.DataFrame) -> Optional[float]:
    """First non-missing residual df reported in a tidy table, if any."""
    if DF_RESIDUAL_COLUMN not in tidy.columns:
        return None
    reported = tidy[DF_RESIDUAL_COLUMN].dropna()
    if reported.empty:
        return None
    return float(reported.iloc[0])


def _term_names(fit: Any, params: Any, count: int) -> list[str]:
    if isinstance(params, pd.Series):
        return [str(name) for name in params.index]
    exog_names = getattr(getattr(fit, "model", None), "exog_names", None)
    if exog_names is not None and len(exog_names) == count:
        return [str(name) for name in exog_names]
    return [f"x{idx}" for idx in range(count)]

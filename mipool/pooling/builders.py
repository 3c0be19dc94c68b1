"""Input coercion helpers: analyses collections, tidy tables and stacked frames."""

from __future__ import annotations

import collections.abc
import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

import numpy as np
import pandas as pd

from .accessors import (
    DF_RESIDUAL_COLUMN,
    TIDY_COLUMNS,
    FitAccessor,
    first_df_residual,
    normalize_tidy_frame,
    resolve_accessor,
)
from .errors import InvalidInputError
from .records import AnalysisResult

logger = logging.getLogger(__name__)

# Stand-in for infinite complete-data degrees of freedom that keeps the df formulas finite.
DEFAULT_DFCOM = 99999.0


@dataclass(frozen=True)
class MultipleAnalyses:
    """Ordered collection of m completed-data analyses (one per imputation)."""

    analyses: Tuple[Any, ...]
    accessor: Optional[FitAccessor] = None

    @property
    def m(self) -> int:
        return len(self.analyses)

    def get_fit(self, index: int) -> Any:
        """Return the fitted model (or table) of analysis ``index`` (0-based)."""
        return self.analyses[index]

    def accessor_for(self, index: int) -> FitAccessor:
        if self.accessor is not None:
            return self.accessor
        return resolve_accessor(self.analyses[index])

    def __len__(self) -> int:
        return len(self.analyses)


@dataclass(frozen=True)
class StackedAnalyses:
    """Tidy rows of every analysis stacked into one frame, ready for pooling."""

    table: pd.DataFrame
    m: int
    dfcom: float
    dfcom_source: str
    terms: Tuple[str, ...]


def as_analyses(obj: Any, accessor: Optional[FitAccessor] = None) -> MultipleAnalyses:
    """Convert a list-like of fits or tables into ``MultipleAnalyses``."""
    if isinstance(obj, MultipleAnalyses):
        return obj if accessor is None else MultipleAnalyses(obj.analyses, accessor)
    if obj is None or isinstance(obj, (str, bytes, pd.DataFrame, pd.Series, np.ndarray)):
        raise InvalidInputError(f"Analyses must be a list-like collection, got {type(obj).__name__}.")
    if isinstance(obj, (collections.abc.Mapping, collections.abc.Set, collections.abc.MappingView)):
        raise InvalidInputError(f"Analyses must be ordered; {type(obj).__name__} has no defined order.")
    if not isinstance(obj, collections.abc.Iterable):
        raise InvalidInputError(f"Analyses must be a list-like collection, got {type(obj).__name__}.")

    analyses = tuple(obj)
    if not analyses:
        raise InvalidInputError("No analyses supplied for pooling.")
    return MultipleAnalyses(analyses=analyses, accessor=accessor)


def tidy_analysis(analyses: MultipleAnalyses, index: int) -> pd.DataFrame:
    """Return the tidy coefficient table of analysis ``index``."""
    table = normalize_tidy_frame(analyses.accessor_for(index).tidy(analyses.get_fit(index)))
    duplicated = table["term"][table["term"].duplicated()].unique()
    if len(duplicated):
        raise InvalidInputError(
            f"Analysis {index + 1} reports duplicate terms: {', '.join(map(str, duplicated))}"
        )
    return table


def resolve_dfcom(
    analyses: MultipleAnalyses,
    first_table: pd.DataFrame,
    override: Optional[float] = None,
    default: float = DEFAULT_DFCOM,
) -> Tuple[float, str]:
    """Determine the complete-data residual degrees of freedom and where it came from."""
    if override is not None:
        return float(override), "override"

    reported = first_df_residual(first_table)
    if reported is not None:
        return reported, "table"

    from_fit = analyses.accessor_for(0).df_residual(analyses.get_fit(0))
    if from_fit is not None:
        return float(from_fit), "fit"

    return float(default), "default"


def build_stacked(
    analyses: MultipleAnalyses,
    dfcom: Optional[float] = None,
    dfcom_default: float = DEFAULT_DFCOM,
) -> StackedAnalyses:
    """Tidy every analysis and stack the rows in analysis order."""
    tables = [tidy_analysis(analyses, idx) for idx in range(analyses.m)]
    resolved_dfcom, source = resolve_dfcom(analyses, tables[0], override=dfcom, default=dfcom_default)

    reference = set(tables[0]["term"])
    for idx, table in enumerate(tables[1:], start=2):
        terms = set(table["term"])
        if terms != reference:
            logger.warning(
                "Analysis %d reports a different term set than analysis 1 (missing: %s, extra: %s); "
                "affected terms are pooled over the analyses that report them.",
                idx,
                sorted(reference - terms),
                sorted(terms - reference),
            )

    stacked = pd.concat(
        [table.loc[:, list(TIDY_COLUMNS)].assign(analysis=idx) for idx, table in enumerate(tables)],
        ignore_index=True,
    )
    terms = tuple(pd.unique(stacked["term"]))
    logger.debug(
        "Stacked %d analyses with %d terms (dfcom=%s from %s).",
        analyses.m,
        len(terms),
        resolved_dfcom,
        source,
    )
    return StackedAnalyses(
        table=stacked,
        m=analyses.m,
        dfcom=resolved_dfcom,
        dfcom_source=source,
        terms=terms,
    )


def analyses_from_long_frame(frame: pd.DataFrame, imputation_col: str = "imputation") -> List[pd.DataFrame]:
    """Split a long table (one row per imputation and term) into per-analysis tables.

    Analyses are returned in the order their imputation id first appears.
    """
    if not isinstance(frame, pd.DataFrame):
        raise InvalidInputError(f"Expected a DataFrame, got {type(frame).__name__}.")
    if imputation_col not in frame.columns:
        raise InvalidInputError(f"Long-format table has no '{imputation_col}' column.")
    if frame.empty:
        raise InvalidInputError("Long-format table has no rows.")

    tables: List[pd.DataFrame] = []
    for _, group in frame.groupby(imputation_col, sort=False):
        tables.append(group.drop(columns=[imputation_col]).reset_index(drop=True))
    return tables


def table_to_records(table: pd.DataFrame) -> List[AnalysisResult]:
    """Convert a tidy table back into ``AnalysisResult`` rows without altering values."""
    has_df = DF_RESIDUAL_COLUMN in table.columns
    records: List[AnalysisResult] = []
    for row in table.itertuples(index=False):
        df_residual = getattr(row, DF_RESIDUAL_COLUMN) if has_df else None
        records.append(
            AnalysisResult(
                term=str(row.term),
                estimate=float(row.estimate),
                std_error=float(row.std_error),
                df_residual=None if df_residual is None or pd.isna(df_residual) else float(df_residual),
            )
        )
    return records

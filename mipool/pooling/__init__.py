"""Rubin's-rules pooling of estimates from multiply imputed datasets."""

from .accessors import FitAccessor, RecordAccessor, StatsmodelsAccessor, TidyFrameAccessor, resolve_accessor
from .builders import DEFAULT_DFCOM, MultipleAnalyses, analyses_from_long_frame, as_analyses
from .errors import InvalidInputError, SingleAnalysisWarning
from .pooling import pool, pooled_to_frame
from .records import AnalysisResult, PooledResult
from .rubin import DfMethod, PoolingConfig, RubinPooler, rubin_rules

__all__ = [
    "DEFAULT_DFCOM",
    "AnalysisResult",
    "DfMethod",
    "FitAccessor",
    "InvalidInputError",
    "MultipleAnalyses",
    "PooledResult",
    "PoolingConfig",
    "RecordAccessor",
    "RubinPooler",
    "SingleAnalysisWarning",
    "StatsmodelsAccessor",
    "TidyFrameAccessor",
    "analyses_from_long_frame",
    "as_analyses",
    "pool",
    "pooled_to_frame",
    "resolve_accessor",
    "rubin_rules",
]

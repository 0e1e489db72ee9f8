"""Pattern index, predictor and range classifier."""

from boom_oracle.patterns.index import PatternIndex, PatternIndexCache, build_pattern_index, pattern_key
from boom_oracle.patterns.predictor import predict
from boom_oracle.patterns.ranges import RangeClassifier

__all__ = [
    "PatternIndex",
    "PatternIndexCache",
    "RangeClassifier",
    "build_pattern_index",
    "pattern_key",
    "predict",
]

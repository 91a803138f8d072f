"""Computed (scoring) processors."""

from formgate.computed.results import AggregateOutcome, CategoryScore, ComputedOutcome
from formgate.computed.exact_match import ExactMatchProcessor
from formgate.computed.array_match import ArrayMatchProcessor
from formgate.computed.numeric_match import NumericMatchProcessor
from formgate.computed.keyword_match import KeywordMatchProcessor
from formgate.computed.aggregate import AggregateProcessor

__all__ = [
    "AggregateOutcome",
    "CategoryScore",
    "ComputedOutcome",
    "ExactMatchProcessor",
    "ArrayMatchProcessor",
    "NumericMatchProcessor",
    "KeywordMatchProcessor",
    "AggregateProcessor",
]

"""Deterministic extraction and schema-repair core.

The runner (``schemalift.pipeline.runner``) is not re-exported here: it
depends on the language-model collaborators, which themselves import this
package.
"""

from schemalift.pipeline.cleaner import clean
from schemalift.pipeline.flatten import flatten
from schemalift.pipeline.merge import MergeResult, merge, merge_with_stats
from schemalift.pipeline.models import (
    ContentBundle,
    FlattenedText,
    RejectedEntity,
    ValidatedEntity,
    ValidationReport,
)
from schemalift.pipeline.repairs import repair_date, repair_price, repair_url
from schemalift.pipeline.validator import validate
from schemalift.pipeline.visible_text import (
    ExhaustiveHarvest,
    ParagraphHarvest,
    VisibleTextStrategy,
    get_strategy,
)

__all__ = [
    "clean",
    "flatten",
    "merge",
    "merge_with_stats",
    "MergeResult",
    "validate",
    "repair_price",
    "repair_url",
    "repair_date",
    "ContentBundle",
    "FlattenedText",
    "ValidatedEntity",
    "RejectedEntity",
    "ValidationReport",
    "VisibleTextStrategy",
    "ExhaustiveHarvest",
    "ParagraphHarvest",
    "get_strategy",
]

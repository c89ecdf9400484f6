from __future__ import annotations

from typing import Mapping, Optional, Sequence

from diligencemachine.catalog.bank import load_catalog
from diligencemachine.models.catalog import (
    ORDINAL_DIMENSIONS,
    SET_DIMENSIONS,
    QuestionCondition,
)
from diligencemachine.models.inputs import UserInputs


def _default_brackets() -> Mapping[str, Sequence[str]]:
    return load_catalog().brackets


def meets_minimum_bracket(
    order: Sequence[str],
    value: Optional[str],
    minimum: str,
) -> bool:
    """
    True if value sits at or above minimum in the bracket order.
    An absent value, or either value missing from the order, is a miss.
    """
    if value is None or value not in order or minimum not in order:
        return False
    return order.index(value) >= order.index(minimum)


def _set_dimension_matches(allowed: Sequence[str], value) -> bool:
    if value is None:
        return False
    if isinstance(value, list):
        return any(v in allowed for v in value)
    return value in allowed


def matches(
    inputs: UserInputs,
    condition: QuestionCondition,
    brackets: Optional[Mapping[str, Sequence[str]]] = None,
) -> bool:
    """
    AND across dimensions, OR within a dimension.

    Wildcards only come from the condition side: a dimension the user has not
    answered yet never satisfies a condition that names it.
    """
    excluded = condition.exclude_transaction_types
    if excluded is not None and inputs.transaction_type in excluded:
        return False

    for cond_field, input_field in SET_DIMENSIONS:
        allowed = getattr(condition, cond_field)
        if allowed is None:
            continue
        if not _set_dimension_matches(allowed, getattr(inputs, input_field)):
            return False

    needs_brackets = any(getattr(condition, c) is not None for c, _ in ORDINAL_DIMENSIONS)
    if needs_brackets:
        if brackets is None:
            brackets = _default_brackets()
        for cond_field, input_field in ORDINAL_DIMENSIONS:
            minimum = getattr(condition, cond_field)
            if minimum is None:
                continue
            order = brackets.get(input_field, ())
            if not meets_minimum_bracket(order, getattr(inputs, input_field), minimum):
                return False

    return True

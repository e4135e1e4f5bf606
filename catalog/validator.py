# catalog/validator.py

"""Declarative field validation.

A rule table maps a field's wire name to an ordered list of ``Rule`` entries::

    CATEGORY_RULES = {
        "name": rules("required,min=3,max=100"),
        "description": rules("omitempty"),
    }

``Validator.validate`` runs every table entry against a mapping of wire names
to values. Within a field evaluation stops at the first failing rule; across
fields every failure is collected.
"""

from __future__ import annotations

from typing import Any, Dict, List, Mapping, NamedTuple, Optional

from .errors import FailedValidationError


class Rule(NamedTuple):
    kind: str
    param: str = ""


KNOWN_RULES = frozenset(
    {
        "required",
        "omitempty",
        "dive",
        "min",
        "max",
        "lte",
        "gte",
        "oneof",
    }
)


def rules(text: str) -> List[Rule]:
    """Build a rule list from a compact ``kind=param,kind`` string."""
    parsed = []
    for item in text.split(","):
        kind, _, param = item.strip().partition("=")
        if kind not in KNOWN_RULES:
            raise ValueError(f"unknown validation rule: {kind!r}")
        parsed.append(Rule(kind, param))
    return parsed


def is_empty(value: Any) -> bool:
    """Zero values: None, empty strings and containers, 0 and False."""
    if value is None:
        return True
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value) == 0
    if isinstance(value, (bool, int, float)):
        return not value
    return False


def _size(value: Any) -> float:
    """The quantity that length and comparison rules look at."""
    if value is None:
        return 0
    if isinstance(value, (str, list, tuple, dict, set)):
        return len(value)
    return value


def _number(param: str) -> float:
    return float(param)


def _sized_message(value: Any, bound: str, param: str) -> str:
    if isinstance(value, str):
        return f"must be {bound} {param} characters long"
    if isinstance(value, (list, tuple, set)):
        return f"must contain {bound} {param} items"
    return f"must be {bound} {param}"


def check(rule: Rule, value: Any) -> Optional[str]:
    """Return the failure message for ``rule`` or None when it holds."""
    kind, param = rule

    if kind == "required":
        return "is required" if is_empty(value) else None

    if kind == "min":
        if _size(value) < _number(param):
            return _sized_message(value, "at least", param)
        return None

    if kind == "max":
        if _size(value) > _number(param):
            return _sized_message(value, "at most", param)
        return None

    if kind == "lte":
        if _size(value) <= _number(param):
            return None
        return f"must be less than or equal to {param}"

    if kind == "gte":
        if _size(value) >= _number(param):
            return None
        return f"must be greater than or equal to {param}"

    if kind == "oneof":
        choices = param.split()
        if str(value) in choices:
            return None
        return f"must be one of [{' '.join(choices)}]"

    raise ValueError(f"unknown validation rule: {kind!r}")


class Validator:
    """Evaluates rule tables. Stateless; one instance is shared by the handlers."""

    def validate(
        self, values: Mapping[str, Any], table: Mapping[str, List[Rule]]
    ) -> Dict[str, str]:
        errors: Dict[str, str] = {}
        for field, field_rules in table.items():
            self._check_field(field, values.get(field), field_rules, errors)
        return errors

    def check(self, values: Mapping[str, Any], table: Mapping[str, List[Rule]]) -> None:
        """Like ``validate`` but raises ``FailedValidationError`` on failure."""
        errors = self.validate(values, table)
        if errors:
            raise FailedValidationError(errors)

    def _check_field(self, field, value, field_rules, errors):
        for index, rule in enumerate(field_rules):
            if rule.kind == "omitempty":
                if is_empty(value):
                    return
                continue

            if rule.kind == "dive":
                element_rules = field_rules[index + 1 :]
                for position, element in enumerate(value or []):
                    self._check_field(f"{field}[{position}]", element, element_rules, errors)
                return

            message = check(rule, value)
            if message is not None:
                errors[field] = message
                return

"""
odata_builder.query.expression - Boolean filter expressions
============================================================

Immutable predicate tree rendered to $filter text:

- Comparison: ``Name eq 'Bread'``
- Combination: ``(Name eq 'Bread' and Price gt 5)``
- Negation: ``not (Name eq 'Bread')``

Combining never mutates an existing node; ``and_``/``or_``/``not_`` return
new nodes, so a chain stays left-associative.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from odata_builder.core.errors import InvalidExpressionError
from odata_builder.query.escape import Identifier, Literal, escape
from odata_builder.query.lambdas import Lambda

OPERATOR_ALIASES = {
    "=": "eq",
    "==": "eq",
    "!=": "ne",
    "<>": "ne",
    ">": "gt",
    ">=": "ge",
    "<": "lt",
    "<=": "le",
}

# Rendered as function calls: op(field,value)
FUNCTION_OPERATORS = frozenset({"startswith", "endswith", "contains", "substringof"})

COMBINATORS = ("and", "or")

_MISSING = object()


class Expression:
    """Base class for filter expression nodes."""

    def render(self) -> str:
        raise NotImplementedError

    def and_(self, other: "Expression") -> "Combination":
        return Combination(self, "and", other)

    def or_(self, other: "Expression") -> "Combination":
        return Combination(self, "or", other)

    def not_(self) -> "Negation":
        return Negation(self)

    def __and__(self, other: "Expression") -> "Combination":
        return self.and_(other)

    def __or__(self, other: "Expression") -> "Combination":
        return self.or_(other)

    def __invert__(self) -> "Negation":
        return self.not_()

    def __str__(self) -> str:
        return self.render()


def _render_field(field: Any) -> str:
    if isinstance(field, (Identifier, Literal)):
        return escape(field)
    return escape(field, identifier=True)


def _render_value(operator: str, value: Any) -> str:
    if operator == "in" and isinstance(value, (list, tuple)):
        return "(" + ",".join(escape(v) for v in value) + ")"
    return escape(value)


@dataclass(frozen=True, eq=False)
class Comparison(Expression):
    """
    A single comparison between a field and a value.

    Parameters
    ----------
    field : str, Identifier, Literal or Lambda
        Left operand; plain values are identifiers
    operator : str
        OData operator token or a symbolic alias such as ``>=``
    value : Any
        Right operand; plain values are literals, ``None`` renders ``null``

    Raises
    ------
    InvalidExpressionError
        If the field, operator or value is missing
    """
    field: Any = None
    operator: Any = None
    value: Any = _MISSING

    def __post_init__(self) -> None:
        bare = self.field.value if isinstance(self.field, Identifier) else self.field
        if bare is None or bare == "":
            raise InvalidExpressionError("comparison requires a field")
        if not isinstance(self.operator, str) or not self.operator.strip():
            raise InvalidExpressionError(f"comparison on {self.field!s} requires an operator")
        if self.value is _MISSING:
            raise InvalidExpressionError(f"comparison {self.field!s} {self.operator} requires a value")
        token = self.operator.strip()
        object.__setattr__(self, "operator", OPERATOR_ALIASES.get(token, token.lower()))

    def _predicate(self, target: str) -> str:
        value = _render_value(self.operator, self.value)
        if self.operator == "substringof":
            return f"substringof({value},{target})"
        if self.operator in FUNCTION_OPERATORS:
            return f"{self.operator}({target},{value})"
        return f"{target} {self.operator} {value}"

    def render(self) -> str:
        if isinstance(self.field, Lambda):
            return self.field.render(self._predicate)
        return self._predicate(_render_field(self.field))


@dataclass(frozen=True, eq=False)
class Combination(Expression):
    left: Expression
    combinator: str
    right: Expression

    def __post_init__(self) -> None:
        if self.combinator not in COMBINATORS:
            raise InvalidExpressionError(f"combinator must be 'and' or 'or', got {self.combinator!r}")
        for side in (self.left, self.right):
            if not isinstance(side, Expression):
                raise InvalidExpressionError(f"cannot combine {type(side).__name__} with an expression")

    def render(self) -> str:
        return f"({self.left.render()} {self.combinator} {self.right.render()})"


@dataclass(frozen=True, eq=False)
class Negation(Expression):
    inner: Expression

    def __post_init__(self) -> None:
        if not isinstance(self.inner, Expression):
            raise InvalidExpressionError(f"cannot negate {type(self.inner).__name__}")

    def render(self) -> str:
        text = self.inner.render()
        if isinstance(self.inner, Combination):
            return f"not {text}"
        return f"not ({text})"


def expression(field: Any, operator: Any = None, value: Any = _MISSING) -> Comparison:
    """
    Build a standalone comparison for later combination.

    Examples
    --------
    >>> str(expression("Name", "eq", "Bread").or_(expression("Name", "eq", "Milk")))
    "(Name eq 'Bread' or Name eq 'Milk')"
    """
    return Comparison(field, operator, value)

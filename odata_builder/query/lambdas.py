"""
odata_builder.query.lambdas - Quantified (any/all) expressions
===============================================================
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Union

from odata_builder.core.errors import InvalidExpressionError

QUANTIFIERS = ("any", "all")


@dataclass(frozen=True)
class Lambda:
    """
    A quantified predicate over a collection navigation property.

    A Lambda is consumed as the field of a comparison; the comparison text
    is placed inside the lambda body.

    Parameters
    ----------
    quantifier : str
        "any" or "all"
    navigation : str
        Collection navigation property, e.g. "Items"
    variable : str
        Bound variable name, unique per builder
    inner_property : str, Lambda or None
        Property of the bound variable to compare. None compares the
        variable itself (collections of primitives). A nested Lambda
        quantifies over a collection reached from the variable.

    Examples
    --------
    >>> lam = Lambda("any", "Items", "p0", "Price")
    >>> lam.render(lambda target: f"{target} gt 10")
    'Items/any(p0:p0/Price gt 10)'
    """
    quantifier: str
    navigation: str
    variable: str
    inner_property: Union[str, "Lambda", None] = None

    def __post_init__(self) -> None:
        if self.quantifier not in QUANTIFIERS:
            raise InvalidExpressionError(
                f"quantifier must be one of {QUANTIFIERS}, got {self.quantifier!r}"
            )
        if not self.navigation:
            raise InvalidExpressionError("lambda requires a navigation property")
        if not self.variable:
            raise InvalidExpressionError("lambda requires a bound variable")

    @property
    def target(self) -> str:
        """The operand the inner comparison applies to."""
        if self.inner_property:
            return f"{self.variable}/{self.inner_property}"
        return self.variable

    def render(self, predicate: Callable[[str], str], scope: Optional[str] = None) -> str:
        navigation = f"{scope}/{self.navigation}" if scope else self.navigation
        if isinstance(self.inner_property, Lambda):
            body = self.inner_property.render(predicate, scope=self.variable)
        else:
            body = predicate(self.target)
        return f"{navigation}/{self.quantifier}({self.variable}:{body})"

    def __str__(self) -> str:
        return f"{self.navigation}/{self.quantifier}({self.variable})"

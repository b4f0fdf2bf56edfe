"""
odata_builder.query - Query construction and serialization
===========================================================

- escape / Identifier / Literal: value rendering
- Expression nodes: Comparison, Combination, Negation
- Lambda: any/all quantified predicates
- Key / CompositeKey: resource keys
- ODataQuery: the fluent builder

"""

from odata_builder.query.escape import (
    Identifier,
    Literal,
    identifier,
    literal,
    escape,
    escape_odata_literal,
    encode_component,
)
from odata_builder.query.expression import (
    Expression,
    Comparison,
    Combination,
    Negation,
    expression,
)
from odata_builder.query.lambdas import Lambda
from odata_builder.query.resource import Key, CompositeKey, key, composite_key
from odata_builder.query.builder import ODataQuery

__all__ = [
    "Identifier",
    "Literal",
    "identifier",
    "literal",
    "escape",
    "escape_odata_literal",
    "encode_component",
    "Expression",
    "Comparison",
    "Combination",
    "Negation",
    "expression",
    "Lambda",
    "Key",
    "CompositeKey",
    "key",
    "composite_key",
    "ODataQuery",
]

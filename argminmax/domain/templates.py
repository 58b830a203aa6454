"""
Parametrized definitions of the arg_min/arg_max aggregate family.

Postgres aggregates need a concrete state type, so there is no way to
declare one arg_min for every argument type. Instead every definition below
is written once with placeholders and instantiated per type (and, for the
reducers and aggregates, per direction):

* ``@T@`` the argument type, e.g. ``int4``
* ``@SCHEMA@`` the schema the composite type is created in
* ``@DIR@`` ``min`` or ``max``
* ``@KEEP_LEFT@`` the comparison under which the reducer keeps its left operand
* ``@EXTREME@`` ``smallest`` or ``largest``, for the aggregate comment
"""

import re

from argminmax.core.exceptions import TemplateError
from argminmax.domain.ranked_value import AggregateDirection

_PLACEHOLDER_PATTERN = re.compile(r"@[A-Z_]+@")

HEADER = "-- This file was generated by argminmax-generate, do not edit it by hand."

SET_SEARCH_PATH = "set search_path = @SCHEMA@;"

COMPOSITE_TYPE = """\
create type @SCHEMA@.@T@_and_value as (
  arg @T@,
  value int8
);"""

# The reducer doubles as the combine function, so it must be commutative and
# associative up to ties. Either operand with a null arg is the identity.
REDUCER = """\
create or replace function arg_@DIR@_agg_@T@ (a @T@_and_value, b @T@_and_value)
  returns @T@_and_value
  language sql immutable strict parallel safe as
'select case when a.arg is null then b
             when b.arg is null then a
             when a.value @KEEP_LEFT@ b.value then a
             else b end';"""

PROJECTION = """\
create function arg_from_@T@_and_value(a @T@_and_value)
  returns @T@
  language sql immutable strict parallel safe as
'select a.arg';"""

AGGREGATE = """\
create aggregate arg_@DIR@_@T@ (@T@_and_value) (
  sfunc       = arg_@DIR@_agg_@T@,
  stype       = @T@_and_value,
  finalfunc   = arg_from_@T@_and_value,
  combinefunc = arg_@DIR@_agg_@T@,
  parallel    = safe
);"""

AGGREGATE_COMMENT = """\
comment on aggregate arg_@DIR@_@T@(@T@_and_value) is
'For ''select arg_@DIR@_@T@((arg, value)) from ..'' return the arg for the @EXTREME@ value';"""

DROP_AGGREGATE = "drop aggregate arg_@DIR@_@T@(@T@_and_value);"

DROP_PROJECTION = "drop function arg_from_@T@_and_value(@T@_and_value);"

DROP_REDUCER = "drop function arg_@DIR@_agg_@T@(@T@_and_value, @T@_and_value);"

DROP_COMPOSITE_TYPE = "drop type @T@_and_value;"


def substitute(template: str, **tokens: str) -> str:
    """Replace every ``@NAME@`` placeholder for which a token is given."""
    for name, value in tokens.items():
        template = template.replace(f"@{name.upper()}@", value)
    return template


def ensure_instantiated(text: str) -> str:
    """Raise TemplateError if any placeholder survived substitution."""
    leftover = sorted(set(_PLACEHOLDER_PATTERN.findall(text)))
    if leftover:
        msg = f"Template has unreplaced placeholders: {', '.join(leftover)}."
        raise TemplateError(msg, placeholders=leftover)
    return text


def instantiate(template: str, type_name: str, **tokens: str) -> str:
    """Monomorphize a template for a single type."""
    return ensure_instantiated(substitute(template, t=type_name, **tokens))


def direction_tokens(direction: AggregateDirection) -> dict[str, str]:
    """Tokens that specialize a template to one aggregate direction."""
    return {
        "dir": direction.value,
        "keep_left": direction.keep_left_operator,
        "extreme": direction.extreme,
    }


def object_names(type_name: str) -> dict[str, list[str]]:
    """Names of the schema objects generated for one type, by kind."""
    return {
        "type": [instantiate("@T@_and_value", type_name)],
        "function": [
            *(
                instantiate("arg_@DIR@_agg_@T@", type_name, dir=direction.value)
                for direction in AggregateDirection
            ),
            instantiate("arg_from_@T@_and_value", type_name),
        ],
        "aggregate": [
            instantiate("arg_@DIR@_@T@", type_name, dir=direction.value)
            for direction in AggregateDirection
        ],
    }


def preamble_statements(schema: str) -> list[str]:
    """Statements shared by the apply and revert artifacts."""
    return [ensure_instantiated(substitute(SET_SEARCH_PATH, schema=schema))]


def apply_statements(type_name: str, schema: str) -> list[str]:
    """
    Every definition one type needs, in dependency order.

    The composite type comes first, then the reducers and the projection
    that take it as an argument, then the aggregates that use them.
    """
    statements = [
        instantiate(COMPOSITE_TYPE, type_name, schema=schema),
        *(
            instantiate(REDUCER, type_name, **direction_tokens(direction))
            for direction in AggregateDirection
        ),
        instantiate(PROJECTION, type_name),
    ]
    for direction in AggregateDirection:
        tokens = direction_tokens(direction)
        statements.append(instantiate(AGGREGATE, type_name, **tokens))
        statements.append(instantiate(AGGREGATE_COMMENT, type_name, **tokens))
    return statements


def revert_statements(type_name: str) -> list[str]:
    """The drops for one type, in exact reverse dependency order."""
    return [
        *(
            instantiate(DROP_AGGREGATE, type_name, **direction_tokens(direction))
            for direction in AggregateDirection
        ),
        instantiate(DROP_PROJECTION, type_name),
        *(
            instantiate(DROP_REDUCER, type_name, **direction_tokens(direction))
            for direction in reversed(AggregateDirection)
        ),
        instantiate(DROP_COMPOSITE_TYPE, type_name),
    ]

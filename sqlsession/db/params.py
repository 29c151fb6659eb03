"""Positional parameter checking and placeholder rewriting."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Sequence, Tuple, Union

from sqlsession.exceptions import BindError, PreparationError

Scalar = Union[str, int, float, bool, bytes, bytearray, memoryview, None]
Parameters = Union[Tuple[Scalar, ...], Dict[str, Scalar]]

# text, integer, floating point, boolean, binary, null
BINDABLE_TYPES = (str, int, float, bool, bytes, bytearray, memoryview, type(None))

PLACEHOLDER = "?"

_QUOTES = ("'", '"', "`")

_PLACEHOLDER_STYLES: Dict[str, Callable[[int], str]] = {
    "qmark": lambda position: "?",
    "format": lambda position: "%s",
    "pyformat": lambda position: "%s",
    "numeric": lambda position: f":{position}",
    "numeric_dollar": lambda position: f"${position}",
    "named": lambda position: f":p{position}",
}


@dataclass(frozen=True)
class PreparedStatement:
    """SQL rewritten for the driver together with its bound parameters."""

    sql: str
    parameters: Parameters

    @property
    def parameter_count(self) -> int:
        return len(self.parameters)


def split_placeholders(sql: str) -> List[str]:
    """Split ``sql`` around every ``?`` placeholder token.

    Question marks inside quoted literals, quoted identifiers and comments
    are not placeholders. A doubled quote inside a literal reads as two
    adjacent literals, which leaves the split unchanged.

    Returns:
        The SQL fragments between placeholders; there is always one more
        fragment than there are placeholders.
    """
    fragments = []
    start = 0
    i = 0
    length = len(sql)

    while i < length:
        char = sql[i]
        if char in _QUOTES:
            end = sql.find(char, i + 1)
            i = length if end == -1 else end + 1
        elif sql.startswith("--", i):
            end = sql.find("\n", i)
            i = length if end == -1 else end + 1
        elif sql.startswith("/*", i):
            end = sql.find("*/", i + 2)
            i = length if end == -1 else end + 2
        elif char == PLACEHOLDER:
            fragments.append(sql[start:i])
            i += 1
            start = i
        else:
            i += 1

    fragments.append(sql[start:])
    return fragments


def count_placeholders(sql: str) -> int:
    """Return the number of ``?`` placeholders in ``sql``."""
    return len(split_placeholders(sql)) - 1


def check_parameters(params: Sequence[Scalar]) -> Tuple[Scalar, ...]:
    """Ensure every parameter is one of the bindable scalar kinds.

    Raises:
        BindError: naming the 1-based position of the first bad value.
    """
    for index, value in enumerate(params):
        if not isinstance(value, BINDABLE_TYPES):
            raise BindError(
                f"Parameter {index + 1} has unsupported type "
                f"{type(value).__name__}"
            )
    return tuple(params)


def prepare(
    sql: str,
    params: Sequence[Scalar],
    paramstyle: str = "qmark",
) -> PreparedStatement:
    """Check ``params`` against ``sql`` and rewrite it for ``paramstyle``.

    Parameters bind strictly by position: the first value goes to the first
    placeholder, and so on. Either a complete PreparedStatement is returned
    or an error is raised; nothing is partially bound.

    Args:
        sql: Statement text with zero or more ``?`` placeholders.
        params: One value per placeholder, in order.
        paramstyle: DBAPI paramstyle of the target driver.

    Raises:
        PreparationError: unknown paramstyle or count mismatch.
        BindError: a value of an unsupported type.
    """
    if not isinstance(sql, str) or not sql.strip():
        raise PreparationError("SQL statement is empty")

    try:
        placeholder = _PLACEHOLDER_STYLES[paramstyle]
    except KeyError:
        raise PreparationError(f"Unsupported driver paramstyle: {paramstyle}") from None

    fragments = split_placeholders(sql)
    expected = len(fragments) - 1
    if expected != len(params):
        raise PreparationError(
            f"Statement has {expected} placeholder(s) but "
            f"{len(params)} parameter(s) were supplied"
        )

    values = check_parameters(params)

    if paramstyle == "qmark":
        return PreparedStatement(sql=sql, parameters=values)

    if paramstyle in ("format", "pyformat"):
        fragments = [fragment.replace("%", "%%") for fragment in fragments]

    rewritten = fragments[0]
    for position, fragment in enumerate(fragments[1:], start=1):
        rewritten += placeholder(position) + fragment

    if paramstyle == "named":
        return PreparedStatement(
            sql=rewritten,
            parameters={f"p{position}": value for position, value in enumerate(values, start=1)},
        )
    return PreparedStatement(sql=rewritten, parameters=values)

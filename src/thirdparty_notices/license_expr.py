"""Lenient SPDX license expression parsing and allow-list evaluation.

Expressions are tokenized with ``license-expression``'s plain parser and every
identifier is then mapped onto the SPDX index that ships with the same library,
so deprecated ids and aliases (``GPL-2.0+``, lower-case ids) resolve to the
current canonical id. ``/`` is accepted as an ``OR`` separator since several
ecosystems still publish ``MIT/Apache-2.0``.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, List, Optional, Union

from license_expression import (
    ExpressionError,
    LicenseSymbol,
    LicenseWithExceptionSymbol,
    Licensing,
    get_spdx_licensing,
)

from .errors import ConfigError, LicenseNotAllowedError, LicenseParseError
from .types_license import LicenseRequirement

_parser = Licensing()

SLASH_SEPARATOR_RE = re.compile(r"\s*/\s*")

LICENSE_REF_PREFIX = "LicenseRef-"


@lru_cache(maxsize=1)
def spdx_index() -> dict[str, tuple[str, bool]]:
    """Map lower-cased SPDX ids and aliases to ``(canonical id, is_exception)``.

    ScanCode's own ``LicenseRef-*`` keys are left out: the SPDX text corpus
    has nothing for them.
    """

    symbols = {
        key: symbol
        for key, symbol in get_spdx_licensing().known_symbols.items()
        if not key.startswith(LICENSE_REF_PREFIX)
    }
    index: dict[str, tuple[str, bool]] = {
        key.lower(): (key, bool(getattr(symbol, "is_exception", False))) for key, symbol in symbols.items()
    }
    for key, symbol in symbols.items():
        for alias in getattr(symbol, "aliases", None) or ():
            alias = str(alias)
            if alias.startswith(LICENSE_REF_PREFIX):
                continue
            index.setdefault(alias.lower(), index[key.lower()])
    return index


@dataclass(frozen=True)
class _Clause:
    operator: str
    operands: tuple["_Node", ...]


_Node = Union[_Clause, LicenseRequirement]


@dataclass(frozen=True)
class RequirementOutcome:
    requirement: LicenseRequirement
    allowed: bool


@dataclass
class ExpressionEvaluation:
    satisfied: bool
    outcomes: List[RequirementOutcome] = field(default_factory=list)

    @property
    def failures(self) -> List[LicenseRequirement]:
        failed: list[LicenseRequirement] = []
        for outcome in self.outcomes:
            if not outcome.allowed and outcome.requirement not in failed:
                failed.append(outcome.requirement)
        return failed


def _lookup(token: str) -> tuple[Optional[tuple[str, bool]], bool]:
    index = spdx_index()
    entry = index.get(token.lower())
    if entry:
        return entry, False
    if token.endswith("+"):
        entry = index.get(token[:-1].lower())
        if entry:
            return entry, True
    return None, False


def _canonical_id(token: str, expression: str, exception: bool = False) -> tuple[str, bool]:
    """Resolve ``token`` to a canonical SPDX id and its or-later flag.

    ``exception`` says whether the token sits after ``WITH``; license ids and
    exception ids are not interchangeable.
    """

    entry, or_later = _lookup(token)
    if entry is None:
        raise LicenseParseError(expression, f"unknown license identifier {token!r}")
    canonical, is_exception = entry
    if exception and not is_exception:
        raise LicenseParseError(expression, f"{token!r} is a license, not a license exception")
    if not exception and is_exception:
        raise LicenseParseError(expression, f"{token!r} is a license exception, not a license")
    if exception and or_later:
        raise LicenseParseError(expression, f"license exception {token!r} cannot take '+'")
    return canonical, or_later


def _convert(node: object, expression: str) -> _Node:
    if isinstance(node, LicenseWithExceptionSymbol):
        license_id, or_later = _canonical_id(node.license_symbol.key, expression)
        exception_id, _ = _canonical_id(node.exception_symbol.key, expression, exception=True)
        return LicenseRequirement(license_id, exception=exception_id, or_later=or_later)
    if isinstance(node, LicenseSymbol):
        license_id, or_later = _canonical_id(node.key, expression)
        return LicenseRequirement(license_id, or_later=or_later)
    if isinstance(node, _parser.AND):
        return _Clause("AND", tuple(_convert(arg, expression) for arg in node.args))
    if isinstance(node, _parser.OR):
        return _Clause("OR", tuple(_convert(arg, expression) for arg in node.args))
    raise LicenseParseError(expression, f"unsupported expression element {node!r}")


def _render(node: _Node, nested: bool = False) -> str:
    if isinstance(node, LicenseRequirement):
        return str(node)
    rendered = f" {node.operator} ".join(_render(operand, nested=True) for operand in node.operands)
    return f"({rendered})" if nested else rendered


class LicenseExpression:
    def __init__(self, source: str, root: _Node) -> None:
        self.source = source
        self._root = root

    def __str__(self) -> str:
        return _render(self._root)

    def __repr__(self) -> str:
        return f"LicenseExpression({self.source!r})"

    def requirements(self) -> List[LicenseRequirement]:
        found: list[LicenseRequirement] = []

        def _walk(node: _Node) -> None:
            if isinstance(node, LicenseRequirement):
                found.append(node)
                return
            for operand in node.operands:
                _walk(operand)

        _walk(self._root)
        return found

    def evaluate(self, allowed: Iterable[LicenseRequirement]) -> ExpressionEvaluation:
        """Evaluate against ``allowed``, testing every leaf so all failures are reported."""

        allowed_set = frozenset(allowed)
        outcomes: list[RequirementOutcome] = []

        def _eval(node: _Node) -> bool:
            if isinstance(node, LicenseRequirement):
                is_allowed = node in allowed_set
                outcomes.append(RequirementOutcome(node, is_allowed))
                return is_allowed
            results = [_eval(operand) for operand in node.operands]
            if node.operator == "AND":
                return all(results)
            return any(results)

        satisfied = _eval(self._root)
        return ExpressionEvaluation(satisfied=satisfied, outcomes=outcomes)


def parse_expression(text: str) -> LicenseExpression:
    cleaned = SLASH_SEPARATOR_RE.sub(" OR ", text.strip()) if text else ""
    if not cleaned:
        raise LicenseParseError(text, "empty expression")

    try:
        tree = _parser.parse(cleaned)
    except ExpressionError as exc:
        raise LicenseParseError(text, str(exc)) from exc
    if tree is None:
        raise LicenseParseError(text, "empty expression")

    return LicenseExpression(text, _convert(tree, text))


def parse_requirement(text: str) -> LicenseRequirement:
    """Parse an allow-list entry, which must name exactly one requirement."""

    try:
        expression = parse_expression(str(text))
    except LicenseParseError as exc:
        raise ConfigError(str(exc)) from exc

    requirements = expression.requirements()
    if len(requirements) != 1:
        raise ConfigError(f"License must be a single requirement: {text!r}")
    return requirements[0]


def check_license(text: str, allowed: Iterable[LicenseRequirement]) -> LicenseExpression:
    expression = parse_expression(text)
    evaluation = expression.evaluate(allowed)
    if not evaluation.satisfied:
        raise LicenseNotAllowedError(evaluation.failures)
    return expression

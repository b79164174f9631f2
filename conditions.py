"""
Condition Evaluator

Boolean expression trees evaluated against a Context Map. Used by clause
selection and conditional placeholders.

Node shapes (stored as JSON in the clause library):

    {"operator": "AND", "conditions": [ ...nodes... ]}
    {"field": "aantal_kinderen", "operator": ">", "value": 1}
    {"field": "woonplaats_partij1", "operator": "!=", "compare_field": "woonplaats_partij2"}

Evaluation never raises: unknown operators, malformed nodes, cycles and
over-deep trees evaluate to False and are logged.
"""

import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Mapping, Optional, Union

from config import MAX_CONDITION_DEPTH, MAX_NESTED_PLACEHOLDER_DEPTH
from context_map import ContextMap

logger = logging.getLogger(__name__)


class ConditionParseError(ValueError):
    """Stored condition JSON does not describe a valid node."""
    pass


class Operator(Enum):
    EQUALS = "="
    NOT_EQUALS = "!="
    GREATER = ">"
    GREATER_OR_EQUAL = ">="
    LESS = "<"
    LESS_OR_EQUAL = "<="
    CONTAINS = "contains"
    STARTS_WITH = "starts-with"
    ENDS_WITH = "ends-with"
    IN = "in"
    NOT_IN = "not-in"
    EMPTY = "empty"
    NOT_EMPTY = "not-empty"


OPERATOR_ALIASES = {
    "==": Operator.EQUALS,
    "eq": Operator.EQUALS,
    "<>": Operator.NOT_EQUALS,
    "ne": Operator.NOT_EQUALS,
    "gt": Operator.GREATER,
    "gte": Operator.GREATER_OR_EQUAL,
    "lt": Operator.LESS,
    "lte": Operator.LESS_OR_EQUAL,
    "bevat": Operator.CONTAINS,
    "begint_met": Operator.STARTS_WITH,
    "eindigt_met": Operator.ENDS_WITH,
    "niet_in": Operator.NOT_IN,
    "leeg": Operator.EMPTY,
    "niet_leeg": Operator.NOT_EMPTY,
}

NUMERIC_OPERATORS = {
    Operator.GREATER, Operator.GREATER_OR_EQUAL, Operator.LESS, Operator.LESS_OR_EQUAL,
}

TRUE_TOKENS = {"true", "ja", "yes", "1", "waar"}
FALSE_TOKENS = {"false", "nee", "no", "0", "onwaar"}


def parse_operator(value: Union[str, Operator, None]) -> Optional[Operator]:
    """Map an operator spelling to an Operator, or None when unknown."""
    if isinstance(value, Operator):
        return value
    if not value:
        return None
    token = str(value).strip().lower()
    if token in OPERATOR_ALIASES:
        return OPERATOR_ALIASES[token]
    try:
        return Operator(token.replace("_", "-"))
    except ValueError:
        return None


# =============================================================================
# Node types
# =============================================================================

@dataclass(eq=False)
class ConditionLeaf:
    field: str
    operator: str = "="
    value: Any = None
    compare_field: Optional[str] = None


@dataclass(eq=False)
class ConditionGroup:
    operator: str = "AND"
    children: List[Any] = field(default_factory=list)


ConditionNode = Union[ConditionGroup, ConditionLeaf]


def parse_condition(data: Any) -> ConditionNode:
    """
    Build a node tree from its stored dict form.

    Accepts English keys and the Dutch keys used by the clause library
    (veld, waarde, voorwaarden, vergelijk_veld).
    """
    if isinstance(data, (ConditionGroup, ConditionLeaf)):
        return data
    if not isinstance(data, dict):
        raise ConditionParseError(f"Condition must be an object, got {type(data).__name__}")

    children = None
    for key in ("conditions", "voorwaarden", "children"):
        if key in data:
            children = data[key]
            break

    if children is not None:
        if not isinstance(children, list):
            raise ConditionParseError("Group conditions must be a list")
        operator = str(data.get("operator") or data.get("type") or "AND").strip().upper()
        if operator in ("EN",):
            operator = "AND"
        elif operator in ("OF",):
            operator = "OR"
        if operator not in ("AND", "OR"):
            raise ConditionParseError(f"Unknown group operator: {operator}")
        return ConditionGroup(operator=operator, children=[parse_condition(c) for c in children])

    field_name = data.get("field") or data.get("veld")
    if not field_name:
        raise ConditionParseError("Condition leaf has no field")
    return ConditionLeaf(
        field=str(field_name),
        operator=str(data.get("operator", "=")),
        value=data.get("value", data.get("waarde")),
        compare_field=data.get("compare_field") or data.get("vergelijk_veld"),
    )


# =============================================================================
# Evaluation
# =============================================================================

def build_evaluation_context(values: Mapping[str, Any]) -> ContextMap:
    """Normalize a plain mapping once so leaf lookups stay simple."""
    if isinstance(values, ContextMap):
        return values
    context = ContextMap(values)
    context.register_aliases()
    return context


def parse_number(value: Any) -> Optional[float]:
    """Parse '1.234,56', '12,5', '€ 300' or '42'; None when not numeric."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    text = str(value).strip().replace("€", "").replace(" ", "")
    if not text:
        return None
    if "," in text and "." in text:
        text = text.replace(".", "").replace(",", ".")
    elif "," in text:
        text = text.replace(",", ".")
    try:
        return float(text)
    except ValueError:
        return None


def _normalize_bool(value: str) -> Optional[bool]:
    token = value.strip().lower()
    if token in TRUE_TOKENS:
        return True
    if token in FALSE_TOKENS:
        return False
    return None


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def values_equal(actual: Any, expected: Any) -> bool:
    """Numeric when both sides are numbers, boolean-aware, otherwise case-insensitive."""
    left, right = _as_text(actual).strip(), _as_text(expected).strip()
    left_num, right_num = parse_number(left), parse_number(right)
    if left_num is not None and right_num is not None:
        return left_num == right_num
    left_bool, right_bool = _normalize_bool(left), _normalize_bool(right)
    if left_bool is not None and right_bool is not None:
        return left_bool == right_bool
    return left.lower() == right.lower()


def _split_values(value: Any) -> List[str]:
    if isinstance(value, (list, tuple, set)):
        items = [_as_text(v) for v in value]
    else:
        items = _as_text(value).split(",")
    return [item.strip().lower() for item in items if item.strip()]


def _evaluate_leaf(leaf: ConditionLeaf, context: ContextMap) -> bool:
    operator = parse_operator(leaf.operator)
    if operator is None:
        logger.warning("Unknown condition operator %r on field %s", leaf.operator, leaf.field)
        return False

    actual = context.lookup(leaf.field)
    if leaf.compare_field:
        expected = context.lookup(leaf.compare_field)
    else:
        expected = leaf.value

    if operator == Operator.EMPTY:
        return actual is None or not actual.strip()
    if operator == Operator.NOT_EMPTY:
        return actual is not None and bool(actual.strip())

    if operator == Operator.EQUALS:
        return values_equal(actual, expected)
    if operator == Operator.NOT_EQUALS:
        return not values_equal(actual, expected)

    if operator in NUMERIC_OPERATORS:
        left, right = parse_number(actual), parse_number(expected)
        if left is None or right is None:
            return False
        if operator == Operator.GREATER:
            return left > right
        if operator == Operator.GREATER_OR_EQUAL:
            return left >= right
        if operator == Operator.LESS:
            return left < right
        return left <= right

    if operator in (Operator.IN, Operator.NOT_IN):
        member = _as_text(actual).strip().lower() in _split_values(expected)
        return member if operator == Operator.IN else not member

    # String operators fail closed on a missing field
    if actual is None:
        return False
    haystack = actual.lower()
    needle = _as_text(expected).lower()
    if operator == Operator.CONTAINS:
        return needle in haystack
    if operator == Operator.STARTS_WITH:
        return haystack.startswith(needle)
    if operator == Operator.ENDS_WITH:
        return haystack.endswith(needle)
    return False


def _evaluate(node: Any, context: ContextMap, depth: int, path: set) -> bool:
    if depth > MAX_CONDITION_DEPTH:
        logger.warning("Condition tree exceeds maximum depth %d", MAX_CONDITION_DEPTH)
        return False
    if id(node) in path:
        logger.warning("Cyclic condition tree detected")
        return False

    if isinstance(node, ConditionLeaf):
        if not isinstance(node.field, str) or not node.field.strip():
            logger.warning("Condition leaf has no field: %r", node)
            return False
        if node.compare_field is not None and not isinstance(node.compare_field, str):
            logger.warning("Condition leaf has a non-text compare_field: %r", node)
            return False
        return _evaluate_leaf(node, context)

    if isinstance(node, ConditionGroup):
        operator = str(node.operator or "").upper()
        if operator not in ("AND", "OR"):
            logger.warning("Unknown group operator %r", node.operator)
            return False
        if not node.children:
            return True
        path.add(id(node))
        try:
            if operator == "AND":
                return all(_evaluate(c, context, depth + 1, path) for c in node.children)
            return any(_evaluate(c, context, depth + 1, path) for c in node.children)
        finally:
            path.discard(id(node))

    logger.warning("Malformed condition node: %r", node)
    return False


def evaluate(node: Any, context: Mapping[str, Any]) -> bool:
    """
    Evaluate a condition tree (or its stored dict form) against a context.

    AND/OR short-circuit; an empty group is True.
    """
    if isinstance(node, dict):
        try:
            node = parse_condition(node)
        except ConditionParseError as e:
            logger.warning("Invalid condition: %s", e)
            return False
    return _evaluate(node, build_evaluation_context(context), 0, set())


# =============================================================================
# Diagnostics
# =============================================================================

def describe(node: Any, _depth: int = 0) -> str:
    """Human-readable rendering of a condition tree."""
    if _depth > MAX_CONDITION_DEPTH:
        return "..."
    if isinstance(node, dict):
        try:
            node = parse_condition(node)
        except ConditionParseError as e:
            return f"<invalid: {e}>"
    if isinstance(node, ConditionLeaf):
        operator = parse_operator(node.operator)
        symbol = operator.value if operator else node.operator
        if operator in (Operator.EMPTY, Operator.NOT_EMPTY):
            return f"{node.field} is {'empty' if operator == Operator.EMPTY else 'not empty'}"
        if node.compare_field:
            return f"{node.field} {symbol} {node.compare_field}"
        return f"{node.field} {symbol} {node.value!r}"
    if isinstance(node, ConditionGroup):
        if not node.children:
            return "TRUE"
        joiner = f" {str(node.operator).upper()} "
        return "(" + joiner.join(describe(c, _depth + 1) for c in node.children) + ")"
    return f"<malformed: {node!r}>"


# =============================================================================
# Rule configurations (conditional placeholders)
# =============================================================================

@dataclass
class RuleResult:
    """Outcome of a rule configuration; matched_rule is 1-based, None for default."""
    raw_result: str = ""
    matched_rule: Optional[int] = None

    @property
    def used_default(self) -> bool:
        return self.matched_rule is None


def evaluate_rules(config: Any, context: Mapping[str, Any]) -> RuleResult:
    """
    First matching rule wins, otherwise the default.

    config: {"rules": [{"condition": {...}, "result": "..."}], "default": "..."}
    (Dutch keys regels / conditie / resultaat / standaard accepted).
    """
    context = build_evaluation_context(context)
    if not isinstance(config, dict):
        logger.warning("Rule configuration must be an object, got %s", type(config).__name__)
        return RuleResult()
    rules = config.get("rules", config.get("regels")) or []
    if not isinstance(rules, list):
        logger.warning("Rule list must be an array, got %s", type(rules).__name__)
        rules = []
    for index, rule in enumerate(rules, start=1):
        if not isinstance(rule, dict):
            logger.warning("Skipping rule %d: not an object", index)
            continue
        condition = rule.get("condition", rule.get("conditie"))
        if condition is None:
            continue
        if evaluate(condition, context):
            return RuleResult(
                raw_result=_as_text(rule.get("result", rule.get("resultaat"))),
                matched_rule=index,
            )
    return RuleResult(raw_result=_as_text(config.get("default", config.get("standaard"))))


_NESTED_TOKEN = re.compile(r'\[\[([^\[\]]+?)\]\]')


def resolve_nested_placeholders(
    text: str,
    replacements: Mapping[str, Any],
    max_depth: int = MAX_NESTED_PLACEHOLDER_DEPTH,
) -> str:
    """Replace [[X]] tokens repeatedly, at most max_depth passes."""
    if not text:
        return ""
    lookup = build_evaluation_context(replacements)
    for _ in range(max_depth):
        changed = False

        def substitute(match):
            nonlocal changed
            value = lookup.lookup(match.group(1).strip())
            if value is None:
                return match.group(0)
            changed = True
            return value

        text = _NESTED_TOKEN.sub(substitute, text)
        if not changed:
            break
    return text

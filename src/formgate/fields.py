"""Field tree and rule structure helpers.

Form configurations are plain JSON-compatible dicts. A field node is either a
container (has ``items``) or a data field (has a ``name`` or ``dataField``).
Validation rules are dicts tagged by ``type``; rule groups combine rules under
``and``/``or``/``not`` in either the legacy ``{"operator": ..., "rules": [...]}``
form or the keyed ``{"or": [...]}`` form.
"""

from enum import Enum
from typing import Any


class RuleKind(str, Enum):
    REQUIRED = "required"
    EMAIL = "email"
    NUMERIC = "numeric"
    STRING_LENGTH = "stringLength"
    ARRAY_LENGTH = "arrayLength"
    RANGE = "range"
    PATTERN = "pattern"
    COMPARE = "compare"
    CUSTOM = "custom"
    ASYNC = "async"
    CROSS_FIELD = "crossField"
    COMPUTED = "computed"
    TEMPORAL = "temporal"
    PLUGIN = "plugin"


class GroupOperator(str, Enum):
    AND = "and"
    OR = "or"
    NOT = "not"


class ComputedSubtype(str, Enum):
    EXACT_MATCH = "exactMatch"
    ARRAY_MATCH = "arrayMatch"
    NUMERIC_MATCH = "numericMatch"
    KEYWORD_MATCH = "keywordMatch"
    CUSTOM = "custom"


CONTAINER_TYPES = frozenset({"group", "tabbed", "tab", "form", "grid", "tree"})
NON_DATA_TYPES = frozenset({"button", "empty"})
CONDITION_SLOTS = ("visibleIf", "disabledIf", "readonlyIf", "requiredIf")
LOGICAL_KEYS = frozenset(op.value for op in GroupOperator)

# Value substituted for a field that is absent from the input data
TYPE_DEFAULTS: dict[str, Any] = {
    "text": "", "email": "", "password": "", "url": "", "tel": "", "color": "",
    "textarea": "", "select": "", "dropdown": "", "autocomplete": "", "tagbox": "",
    "number": 0, "range": 0, "rating": 0,
    "boolean": False, "switch": False, "checkbox": False,
    "date": None, "datetime": None, "time": None,
    "array": [], "multiselect": [], "list": [],
    "object": {}, "json": {},
    "file": None, "image": None,
}


def default_for_type(field_type: str | None) -> Any:
    """Type-appropriate default for a missing value (fresh copy for containers)"""
    value = TYPE_DEFAULTS.get(field_type or "", "")
    if isinstance(value, (list, dict)):
        return type(value)()
    return value


# =========================================================================
# Field tree
# =========================================================================

def is_container_field(item: dict) -> bool:
    return item.get("type") in CONTAINER_TYPES


def is_data_field(item: dict) -> bool:
    return not is_container_field(item) and item.get("type") not in NON_DATA_TYPES


def get_nested_items(item: dict) -> list[dict] | None:
    items = item.get("items")
    if isinstance(items, list):
        return items
    return None


def get_field_name(item: dict) -> str | None:
    return item.get("name") or item.get("dataField") or None


def excludes_from_path(item: dict) -> bool:
    """Only containers may suppress their own name from child paths"""
    return is_container_field(item) and item.get("excludeFromPath") is True


def build_path(item: dict, parent_path: str = "") -> str:
    """Dot-joined path of a field below ``parent_path``"""
    name = get_field_name(item)
    if not name or excludes_from_path(item):
        return parent_path
    return f"{parent_path}.{name}" if parent_path else name


def next_parent_path(item: dict, current_path: str) -> str:
    """Path handed down to the children of a container"""
    return build_path(item, current_path)


def build_field_path_map(items: list[dict], parent_path: str = "") -> dict[str, str]:
    """Map every named field to its full path; the first declaration wins"""
    path_map: dict[str, str] = {}

    def walk(nodes: list[dict], parent: str) -> None:
        for node in nodes:
            if not isinstance(node, dict):
                continue
            name = get_field_name(node)
            if name:
                path_map.setdefault(name, build_path(node, parent))
            nested = get_nested_items(node) if is_container_field(node) else None
            if nested:
                walk(nested, next_parent_path(node, parent))

    walk(items, parent_path)
    return path_map


# =========================================================================
# Rules and rule groups
# =========================================================================

def is_validation_rule(rule: Any) -> bool:
    return isinstance(rule, dict) and isinstance(rule.get("type"), str)


def is_validation_rule_group(rule: Any) -> bool:
    if not isinstance(rule, dict):
        return False
    if rule.get("operator") in LOGICAL_KEYS:
        return True
    return "type" not in rule and any(key in rule for key in LOGICAL_KEYS)


def get_group_rules(group: dict) -> list[dict]:
    if isinstance(group.get("rules"), list):
        return group["rules"]
    if isinstance(group.get("or"), list):
        return group["or"]
    if isinstance(group.get("and"), list):
        return group["and"]
    if group.get("not"):
        return [group["not"]]
    return []


def get_group_operator(group: dict) -> GroupOperator:
    operator = group.get("operator")
    if operator in LOGICAL_KEYS:
        return GroupOperator(operator)
    for key in ("or", "and", "not"):
        if key in group:
            return GroupOperator(key)
    return GroupOperator.AND


def get_group_message(group: dict) -> str | None:
    return group.get("groupMessage") or group.get("message")


def flatten_rules(rules: list[dict]) -> list[dict]:
    """All leaf rules of a rule list, groups expanded in order"""
    flat = []
    for rule in rules:
        if is_validation_rule(rule):
            flat.append(rule)
        elif is_validation_rule_group(rule):
            flat.extend(flatten_rules(get_group_rules(rule)))
    return flat


def has_rule_kind(rules: list[dict], kind: RuleKind) -> bool:
    return any(rule.get("type") == kind.value for rule in flatten_rules(rules))


def extract_conditional_fields(expression: Any) -> list[str]:
    """Field names read by a conditional expression (both leaf and shorthand forms)"""
    fields: list[str] = []

    def add(name: Any) -> None:
        if isinstance(name, str) and name not in fields:
            fields.append(name)

    def walk(expr: Any) -> None:
        if isinstance(expr, list):
            for sub in expr:
                walk(sub)
            return
        if not isinstance(expr, dict):
            return
        if "field" in expr:
            add(expr["field"])
        for key in ("and", "or", "not"):
            if expr.get(key) is not None:
                walk(expr[key])
        if "field" not in expr:
            for key in expr:
                if key not in LOGICAL_KEYS:
                    add(key)

    walk(expression)
    return fields


def extract_rule_references(rules: list[dict], include_when: bool = True) -> list[str]:
    """Field names read by compare/crossField rules (and ``when`` clauses)"""
    fields: list[str] = []
    for rule in flatten_rules(rules):
        refs: list[str] = []
        if rule.get("type") == RuleKind.COMPARE.value and rule.get("comparisonTarget"):
            refs.append(rule["comparisonTarget"])
        if rule.get("type") == RuleKind.CROSS_FIELD.value:
            refs.extend(rule.get("targetFields") or [])
        if include_when and rule.get("when"):
            refs.extend(extract_conditional_fields(rule["when"]))
        for ref in refs:
            if ref not in fields:
                fields.append(ref)
    return fields

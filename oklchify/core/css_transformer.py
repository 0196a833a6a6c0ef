from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Set, Tuple

from .colors import FEATURE_GATE_CONDITION, FEATURE_GATE_NAME, hex_to_oklch, is_hex_color
from .logger import get_logger
from .stylesheet import (
    AtRule,
    Declaration,
    Document,
    Rule,
    DEFAULT_INDENT_UNIT,
    line_indent,
    parse_stylesheet,
)

log = get_logger(__name__)

__all__ = [
    "ROOT_SELECTOR",
    "ConvertedDeclaration",
    "RuleGroup",
    "CssScan",
    "CssTransformResult",
    "is_feature_gate",
    "is_inside_feature_gate",
    "scan_stylesheet",
    "transform_stylesheet",
    "transform_css",
    "eligible_pairs",
]

ROOT_SELECTOR = ":root"


@dataclass(frozen=True)
class ConvertedDeclaration:
    decl: Declaration
    oklch: str


@dataclass
class RuleGroup:
    """Eligible set of one rule: its hex declarations that converted."""

    rule: Rule
    items: List[ConvertedDeclaration] = field(default_factory=list)


@dataclass
class CssScan:
    rule_groups: List[RuleGroup] = field(default_factory=list)
    root_items: List[ConvertedDeclaration] = field(default_factory=list)
    skipped_rules: int = 0
    failures: List[str] = field(default_factory=list)
    root_already_paired: bool = False

    @property
    def colors_found(self) -> int:
        return sum(len(g.items) for g in self.rule_groups) + len(self.root_items)


@dataclass
class CssTransformResult:
    output: str
    rules_converted: int = 0
    colors_converted: int = 0
    root_colors_converted: int = 0
    skipped_rules: int = 0
    failures: List[str] = field(default_factory=list)
    already_processed: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.rules_converted or self.root_colors_converted)


def is_feature_gate(node) -> bool:
    return isinstance(node, AtRule) and node.lower_name == FEATURE_GATE_NAME


def is_inside_feature_gate(node) -> bool:
    return any(is_feature_gate(ancestor) for ancestor in node.ancestors())


def _is_inside_keyframes(rule: Rule) -> bool:
    return any(
        isinstance(a, AtRule) and a.lower_name.endswith("keyframes")
        for a in rule.ancestors()
    )


def _gate_selectors(node) -> List[str]:
    if not is_feature_gate(node) or not node.has_block:
        return []
    return [child.selector for child in node.children if isinstance(child, Rule)]


def _is_already_paired(rule: Rule) -> bool:
    """True when the rule is directly followed by a gate for the same selector."""
    return rule.selector in _gate_selectors(rule.next_sibling())


def _root_gate_props(document: Document) -> Set[str]:
    """Properties already declared by top-level gated ``:root`` rules."""
    props: Set[str] = set()
    for child in document.children:
        if not is_feature_gate(child) or child.params != FEATURE_GATE_CONDITION:
            continue
        for rule in child.children:
            if isinstance(rule, Rule) and rule.selector == ROOT_SELECTOR:
                props.update(decl.prop for decl in rule.declarations())
    return props


def _convert(decl: Declaration, failures: List[str]) -> Optional[ConvertedDeclaration]:
    if not is_hex_color(decl.value):
        return None
    oklch = hex_to_oklch(decl.value)
    if oklch is None:
        failures.append(f"{decl.prop}: {decl.value}")
        return None
    return ConvertedDeclaration(decl, oklch)


def scan_stylesheet(document: Document) -> CssScan:
    """Collect eligible sets without touching the tree."""
    scan = CssScan()

    for rule in document.walk_rules():
        if is_inside_feature_gate(rule) or _is_inside_keyframes(rule):
            continue
        group = RuleGroup(rule)
        for decl in rule.declarations():
            converted = _convert(decl, scan.failures)
            if converted is not None:
                group.items.append(converted)
        if not group.items:
            continue
        if _is_already_paired(rule):
            log.debug("Skipping %s: already followed by a %s block", rule.selector, FEATURE_GATE_NAME)
            scan.skipped_rules += 1
            continue
        scan.rule_groups.append(group)

    for decl in document.declarations():
        converted = _convert(decl, scan.failures)
        if converted is not None:
            scan.root_items.append(converted)
    if scan.root_items:
        paired = _root_gate_props(document)
        scan.root_already_paired = all(item.decl.prop in paired for item in scan.root_items)

    return scan


def _indent_unit(rule: Rule, base: str, default: str) -> str:
    source = rule.root().source
    for decl in rule.declarations():
        indent = line_indent(source, decl.start)
        if indent.startswith(base) and len(indent) > len(base):
            return indent[len(base):]
    return default


def _build_gate(selector: str, items: List[ConvertedDeclaration]) -> AtRule:
    gate = AtRule(FEATURE_GATE_NAME, FEATURE_GATE_CONDITION)
    generated = Rule(selector)
    for item in items:
        generated.append(
            Declaration(item.decl.prop, item.oklch, important=item.decl.important)
        )
    gate.append(generated)
    return gate


def transform_stylesheet(
    document: Document, indent_unit: str = DEFAULT_INDENT_UNIT
) -> CssTransformResult:
    """Insert a gated ``oklch()`` sibling after every rule holding hex colours.

    Top-level declarations are gathered into one ``:root`` block appended at
    the end of the document.
    """
    scan = scan_stylesheet(document)
    result = CssTransformResult(
        output="",
        skipped_rules=scan.skipped_rules,
        failures=list(scan.failures),
    )

    for group in scan.rule_groups:
        rule = group.rule
        base = line_indent(document.source, rule.start)
        gate = _build_gate(rule.selector, group.items)
        gate.before = "\n"
        gate.indent = base
        gate.unit = _indent_unit(rule, base, indent_unit)
        rule.parent.insert_after(rule, gate)
        result.rules_converted += 1
        result.colors_converted += len(group.items)

    if scan.root_items and not scan.root_already_paired:
        gate = _build_gate(ROOT_SELECTOR, scan.root_items)
        gate.before = "\n"
        gate.unit = indent_unit
        document.append(gate)
        result.root_colors_converted = len(scan.root_items)
        result.colors_converted += len(scan.root_items)

    result.already_processed = not result.changed and (
        scan.skipped_rules > 0 or scan.root_already_paired
    )
    result.output = document.to_string()
    return result


def transform_css(source: str, indent_unit: str = DEFAULT_INDENT_UNIT) -> CssTransformResult:
    """Parse, transform and serialize CSS text. Raises ``ParseFailure``."""
    return transform_stylesheet(parse_stylesheet(source), indent_unit=indent_unit)


def eligible_pairs(scan: CssScan) -> List[Tuple[str, str, str, str]]:
    """Flatten a scan into ``(scope, prop, hex, oklch)`` rows."""
    rows: List[Tuple[str, str, str, str]] = []
    for group in scan.rule_groups:
        for item in group.items:
            rows.append((group.rule.selector, item.decl.prop, item.decl.value, item.oklch))
    for item in scan.root_items:
        rows.append((ROOT_SELECTOR, item.decl.prop, item.decl.value, item.oklch))
    return rows

"""
Cross-phase violation merging.

Identity is ``(rule_id, node.html)``: violations are expanded per node, the
first occurrence of each pair wins (component tag included), and surviving
nodes are regrouped under ``(rule_id, component)`` in first-seen order.
"""

from collections import Counter
from typing import Dict, Iterable, List, Optional, Set, Tuple

from .models import IMPACT_ORDER, UNKNOWN_IMPACT, Violation, ViolationNode


def violation_keys(violation: Violation) -> List[Tuple[str, str]]:
    return [(violation.rule_id, node.html) for node in violation.nodes]


def merge(violation_sets: Iterable[Iterable[Violation]]) -> List[Violation]:
    seen: Set[Tuple[str, str]] = set()
    groups: Dict[Tuple[str, Optional[str]], Violation] = {}
    nodes: Dict[Tuple[str, Optional[str]], List[ViolationNode]] = {}

    for violations in violation_sets:
        for violation in violations:
            for node in violation.nodes:
                key = (violation.rule_id, node.html)
                if key in seen:
                    continue
                seen.add(key)
                group = (violation.rule_id, violation.component)
                if group not in groups:
                    groups[group] = violation
                    nodes[group] = []
                nodes[group].append(node)

    return [groups[g].with_nodes(nodes[g]) for g in groups]


def tally(violations: Iterable[Violation]) -> Dict[str, int]:
    """Node counts per impact, highest severity first."""
    counts = Counter()
    for v in violations:
        counts[v.impact] += len(v.nodes)
    ordered = [i for i in IMPACT_ORDER if counts.get(i)]
    if counts.get(UNKNOWN_IMPACT):
        ordered.append(UNKNOWN_IMPACT)
    return {impact: counts[impact] for impact in ordered}

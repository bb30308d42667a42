from dataclasses import dataclass, field, replace
from typing import Any, Dict, FrozenSet, List, Optional


IMPACT_ORDER = ("critical", "serious", "moderate", "minor")
UNKNOWN_IMPACT = "unknown"


def normalize_impact(value: Optional[str]) -> str:
    impact = (value or "").strip().lower()
    return impact if impact in IMPACT_ORDER else UNKNOWN_IMPACT


def impact_rank(impact: Optional[str]) -> int:
    """Lower ranks sort first; unknown impacts go last."""
    normalized = normalize_impact(impact)
    if normalized == UNKNOWN_IMPACT:
        return len(IMPACT_ORDER)
    return IMPACT_ORDER.index(normalized)


@dataclass(frozen=True)
class ViolationNode:
    html: str
    failure_summary: str = ""
    target: tuple = ()

    @classmethod
    def from_axe(cls, data: Dict[str, Any]) -> "ViolationNode":
        target = data.get("target") or []
        return cls(
            html=data.get("html") or "",
            failure_summary=data.get("failureSummary") or "",
            target=tuple(str(t) for t in target),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "html": self.html,
            "failureSummary": self.failure_summary,
            "target": list(self.target),
        }


@dataclass
class Violation:
    rule_id: str
    impact: str
    help: str = ""
    help_url: str = ""
    description: str = ""
    tags: FrozenSet[str] = frozenset()
    nodes: List[ViolationNode] = field(default_factory=list)
    component: Optional[str] = None

    @classmethod
    def from_axe(cls, data: Dict[str, Any]) -> "Violation":
        return cls(
            rule_id=data.get("id") or "",
            impact=normalize_impact(data.get("impact")),
            help=data.get("help") or "",
            help_url=data.get("helpUrl") or "",
            description=data.get("description") or "",
            tags=frozenset(data.get("tags") or []),
            nodes=[ViolationNode.from_axe(n) for n in data.get("nodes") or []],
            component=data.get("component"),
        )

    def with_component(self, component: str) -> "Violation":
        return replace(self, component=component, nodes=list(self.nodes))

    def with_nodes(self, nodes: List[ViolationNode]) -> "Violation":
        return replace(self, nodes=list(nodes))

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "id": self.rule_id,
            "impact": self.impact,
            "help": self.help,
            "helpUrl": self.help_url,
            "description": self.description,
            "tags": sorted(self.tags),
            "nodes": [n.to_dict() for n in self.nodes],
        }
        if self.component is not None:
            data["component"] = self.component
        return data


@dataclass(frozen=True)
class Island:
    id: str
    framework: str
    markup: str

    @property
    def component_tag(self) -> str:
        return f"island({self.framework}): {self.id}"

"""
Report engine: ranks merged violations, attaches remediation guidance and
documentation links, and produces an immutable ``AggregatedReport``.
"""

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple

from .aggregate import tally
from .models import UNKNOWN_IMPACT, Violation, ViolationNode, impact_rank


NO_VIOLATIONS_MESSAGE = "No accessibility violations found"

IMPACT_LABELS = {
    "critical": "Critical - Must Fix",
    "serious": "Serious - Should Fix",
    "moderate": "Moderate - Consider Fixing",
    "minor": "Minor - Consider Fixing",
    UNKNOWN_IMPACT: "Unknown Impact",
}

REMEDIATIONS = {
    "image-alt": 'Add an alt attribute to the image describing its content or purpose. If the image is decorative, use alt="".',
    "button-name": "Add text content to the button or use aria-label/aria-labelledby to provide an accessible name.",
    "color-contrast": "Increase the contrast between the text and its background. Use a color contrast checker to verify.",
    "landmark-one-main": 'Add exactly one <main> element or element with role="main" to identify the main content.',
    "page-has-heading-one": "Add an <h1> element at the beginning of your main content.",
    "region": "Wrap content in appropriate landmark regions like <main>, <nav>, <aside>, etc.",
    "document-title": "Add a descriptive <title> element in the <head> of your document.",
    "html-has-lang": "Add a lang attribute to the <html> element specifying the page language.",
    "label": "Associate form controls with labels using the for attribute or by nesting.",
    "link-name": "Ensure links have accessible names through text content or aria-label.",
    "list": "Use appropriate list markup: <ul> for unordered lists, <ol> for ordered lists.",
    "listitem": "List items (<li>) must be contained within <ul> or <ol> elements.",
    "aria-required-attr": "Add the required ARIA attributes for this role.",
    "aria-roles": "Use only valid ARIA roles and ensure they are appropriate for the element.",
}

GENERIC_REMEDIATION = "Review the element and ensure it follows accessibility best practices."

DOCS_URLS = {
    "wcag2a": "https://www.w3.org/WAI/WCAG21/quickref/?versions=2.0#principle1",
    "wcag2aa": "https://www.w3.org/WAI/WCAG21/quickref/?versions=2.0#principle1",
    "wcag21a": "https://www.w3.org/WAI/WCAG21/quickref/#principle1",
    "wcag21aa": "https://www.w3.org/WAI/WCAG21/quickref/#principle1",
    "mdn-alt-text": "https://developer.mozilla.org/en-US/docs/Web/HTML/Element/img#alt",
    "mdn-headings": "https://developer.mozilla.org/en-US/docs/Web/HTML/Element/Heading_Elements",
    "mdn-aria": "https://developer.mozilla.org/en-US/docs/Web/Accessibility/ARIA",
    "mdn-forms": "https://developer.mozilla.org/en-US/docs/Web/Accessibility/ARIA/forms",
    "mdn-landmarks": "https://developer.mozilla.org/en-US/docs/Web/Accessibility/ARIA/Roles/landmark_role",
    "a11y-contrast": "https://www.a11yproject.com/posts/what-is-color-contrast/",
    "a11y-aria": "https://www.a11yproject.com/posts/aria-landmark-roles/",
    "a11y-alt-text": "https://www.a11yproject.com/posts/how-to-write-better-alt-text/",
    "webaim-contrast": "https://webaim.org/articles/contrast/",
    "webaim-aria": "https://webaim.org/techniques/aria/",
    "webaim-forms": "https://webaim.org/techniques/forms/",
    "deque-aria": "https://dequeuniversity.com/rules/axe/4.6/aria-required-attr",
    "deque-contrast": "https://dequeuniversity.com/rules/axe/4.6/color-contrast",
    "deque-forms": "https://dequeuniversity.com/rules/axe/4.6/label",
}

# Rule-id keyword -> documentation keys, checked in order.
DOC_KEYWORDS: Sequence[Tuple[Tuple[str, ...], Tuple[str, ...]]] = (
    (("image", "alt"), ("mdn-alt-text", "a11y-alt-text")),
    (("aria",), ("mdn-aria", "webaim-aria", "deque-aria")),
    (("contrast",), ("a11y-contrast", "webaim-contrast", "deque-contrast")),
    (("label", "form"), ("mdn-forms", "webaim-forms", "deque-forms")),
    (("heading",), ("mdn-headings",)),
    (("landmark", "region"), ("mdn-landmarks", "a11y-aria")),
)

SUMMARY_ENHANCEMENTS = {
    "region": (
        "Some page content is not contained by landmarks",
        'Content must be inside a landmark region (use <main>, <nav>, etc. or elements with role="main", role="navigation", etc.)',
    ),
    "landmark-one-main": (
        "Document does not have a main landmark",
        'Document must have exactly one <main> element or an element with role="main"',
    ),
}


def remediation_for(violation: Violation) -> str:
    if violation.rule_id in REMEDIATIONS:
        return REMEDIATIONS[violation.rule_id]
    # Longest key first so the most specific partial match wins.
    for key in sorted(REMEDIATIONS, key=len, reverse=True):
        if key in violation.rule_id:
            return REMEDIATIONS[key]
    return violation.description or violation.help or GENERIC_REMEDIATION


def docs_for(violation: Violation) -> List[str]:
    docs: List[str] = []
    for tag in sorted(violation.tags):
        if tag in DOCS_URLS:
            docs.append(DOCS_URLS[tag])
    rule = violation.rule_id.lower()
    for keywords, keys in DOC_KEYWORDS:
        if any(k in rule for k in keywords):
            docs.extend(DOCS_URLS[k] for k in keys)
    if violation.help_url:
        docs.append(violation.help_url)
    return list(dict.fromkeys(d for d in docs if d))


def clean_html(html: Optional[str]) -> str:
    if not html:
        return "Unknown element"
    text = re.sub(r"\s+", " ", html)
    text = re.sub(r"\s*([<>])\s*", r"\1", text)
    text = re.sub(r"\s+/>", "/>", text)
    return text.strip()


def clean_failure_summary(violation: Violation, node: ViolationNode) -> str:
    summary = node.failure_summary or ""
    if violation.rule_id in SUMMARY_ENHANCEMENTS:
        old, new = SUMMARY_ENHANCEMENTS[violation.rule_id]
        summary = summary.replace(old, new)
    summary = re.sub(r"^Fix (any|all) of the following:\s*", "", summary, flags=re.MULTILINE)
    return "\n".join(line.strip() for line in summary.split("\n") if line.strip())


@dataclass(frozen=True)
class ReportEntry:
    label: str
    rule_id: str
    impact: str
    impact_label: str
    help: str
    element: str
    fixes: str
    remediation: str
    docs: Tuple[str, ...]
    component: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "ruleId": self.rule_id,
            "impact": self.impact,
            "help": self.help,
            "element": self.element,
            "fixes": self.fixes,
            "remediation": self.remediation,
            "docs": list(self.docs),
            "component": self.component,
        }


@dataclass(frozen=True)
class ImpactGroup:
    impact: str
    label: str
    count: int
    violations: Tuple[Violation, ...]


@dataclass(frozen=True)
class AggregatedReport:
    groups: Tuple[ImpactGroup, ...] = ()
    violations: Tuple[Violation, ...] = ()
    entries: Tuple[ReportEntry, ...] = ()

    @property
    def is_clean(self) -> bool:
        return not self.violations

    @property
    def total(self) -> int:
        return sum(g.count for g in self.groups)

    @property
    def counts(self) -> Dict[str, int]:
        return {g.impact: g.count for g in self.groups}

    @property
    def message(self) -> str:
        if self.is_clean:
            return NO_VIOLATIONS_MESSAGE
        word = "violation" if len(self.violations) == 1 else "violations"
        return f"{len(self.violations)} accessibility {word} found"

    @property
    def summary_line(self) -> str:
        if self.is_clean:
            return self.message
        word = "violation" if self.total == 1 else "violations"
        counts = ", ".join(f"{g.impact} {g.count}" for g in self.groups)
        return f"{self.total} {word}: {counts}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "message": self.message,
            "summaryLine": self.summary_line,
            "summary": self.counts,
            "violations": [v.to_dict() for v in self.violations],
            "issues": [e.to_dict() for e in self.entries],
        }


class ReportEngine:
    def build(self, violations: Sequence[Violation]) -> AggregatedReport:
        if not violations:
            return AggregatedReport()

        ordered = sorted(violations, key=lambda v: impact_rank(v.impact))
        counts = tally(ordered)
        groups = tuple(
            ImpactGroup(
                impact=impact,
                label=IMPACT_LABELS.get(impact, IMPACT_LABELS[UNKNOWN_IMPACT]),
                count=count,
                violations=tuple(v for v in ordered if v.impact == impact),
            )
            for impact, count in counts.items()
        )
        return AggregatedReport(groups=groups, violations=tuple(ordered), entries=tuple(self.entries(ordered)))

    def entries(self, violations: Sequence[Violation]) -> List[ReportEntry]:
        entries = []
        for index, violation in enumerate(violations, start=1):
            remediation = remediation_for(violation)
            docs = tuple(docs_for(violation))
            for node_index, node in enumerate(violation.nodes, start=1):
                label = f"Issue {index}" if node_index == 1 else f"Issue {index}.{node_index}"
                entries.append(
                    ReportEntry(
                        label=label,
                        rule_id=violation.rule_id,
                        impact=violation.impact,
                        impact_label=IMPACT_LABELS.get(violation.impact, IMPACT_LABELS[UNKNOWN_IMPACT]),
                        help=violation.help,
                        element=clean_html(node.html),
                        fixes=clean_failure_summary(violation, node) or remediation,
                        remediation=remediation,
                        docs=docs,
                        component=violation.component,
                    )
                )
        return entries

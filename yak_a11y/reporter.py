"""
Terminal and JSON rendering of an ``AggregatedReport``.
"""

import json
from pathlib import Path
from typing import Any, List, Union

from colorama import Fore, Style, init

from .report import AggregatedReport, ReportEntry


init()

BOX_WIDTH = 76
RULE = "━" * 40

IMPACT_COLORS = {
    "critical": Fore.RED + Style.BRIGHT,
    "serious": Fore.YELLOW,
    "moderate": Fore.CYAN,
    "minor": Fore.GREEN,
}


def color_for(impact: str) -> str:
    return IMPACT_COLORS.get(impact, Fore.WHITE)


def wrap_text(text: str, width: int) -> List[str]:
    if not text:
        return [""]
    lines: List[str] = []
    for paragraph in text.split("\n"):
        current = ""
        for word in paragraph.split(" "):
            if len(word) > width:
                if current:
                    lines.append(current)
                    current = ""
                lines.extend(word[i:i + width] for i in range(0, len(word), width))
                continue
            candidate = f"{current} {word}" if current else word
            if len(candidate) <= width:
                current = candidate
            else:
                lines.append(current)
                current = word
        if current:
            lines.append(current)
    return lines


def block(content: str, indent: int = 0) -> List[str]:
    pad = " " * indent
    return [f"{pad}{line}" for line in wrap_text(content, BOX_WIDTH - indent)]


def render_entry(entry: ReportEntry, verbose: bool) -> List[str]:
    color = color_for(entry.impact)
    out = ["", f"{Style.BRIGHT}{entry.label}{Style.RESET_ALL}", "─" * BOX_WIDTH]
    out += block(f"{Style.BRIGHT}Priority:{Style.RESET_ALL} {color}{entry.impact_label}{Style.RESET_ALL}", 1)
    out.append("")
    out += block(f"{Style.BRIGHT}Issue:{Style.RESET_ALL} {entry.help}", 1)
    out.append("")
    if entry.component:
        out += block(f"{Style.BRIGHT}Component:{Style.RESET_ALL} {entry.component}", 1)
        out.append("")
    out += block(f"{Style.BRIGHT}Element:{Style.RESET_ALL} {entry.element}", 1)
    out.append("")
    out += block(f"{Style.BRIGHT}Try these fixes:{Style.RESET_ALL}", 1)
    out += block(entry.fixes, 3)
    if verbose and entry.docs:
        out.append("")
        out += block(f"{Style.BRIGHT}Detailed Documentation:{Style.RESET_ALL}", 1)
        for url in entry.docs:
            out += block(url, 3)
    return out


def render_report(report: AggregatedReport, verbose: bool = False) -> str:
    if report.is_clean:
        return f"\n{Fore.GREEN}✓ {report.message}{Style.RESET_ALL}\n"

    out = [f"\n{Style.BRIGHT}{report.message}:{Style.RESET_ALL}", "", "Summary", RULE]
    for group in report.groups:
        noun = "issue" if group.count == 1 else "issues"
        out.append(f"{color_for(group.impact)}■{Style.RESET_ALL} {group.label}: {group.count} {noun}")

    out += ["", "Detailed Issues", RULE]
    for entry in report.entries:
        out += render_entry(entry, verbose)
    return "\n".join(out) + "\n"


def print_report(report: AggregatedReport, verbose: bool = False) -> None:
    print(render_report(report, verbose))


def write_json(path: Union[str, Path], data: Any) -> None:
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)


def write_json_report(path: Union[str, Path], results: List[Any]) -> Path:
    out = Path(path)
    write_json(out, {
        "passed": all(r.passed for r in results),
        "results": [r.to_dict() for r in results],
    })
    return out

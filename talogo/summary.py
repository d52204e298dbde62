from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Iterable

from .models import Session, chain_prefix


INDENT = "  "


@dataclass
class TaskNode:
    name: str
    own_duration: timedelta = timedelta(0)
    total_duration: timedelta = timedelta(0)
    children: dict[str, TaskNode] = field(default_factory=dict)

    def sorted_children(self) -> list[TaskNode]:
        return [self.children[name] for name in sorted(self.children)]


DailyForest = dict[date, dict[str, TaskNode]]


def aggregate(sessions: Iterable[Session]) -> DailyForest:
    """Fold sessions into one task tree per local start date.

    Every node on a session's chain gains the session's duration in
    `total_duration`; only the deepest node gains it in `own_duration`.
    """

    forest: DailyForest = {}
    arena: dict[tuple[date, tuple[str, ...]], TaskNode] = {}
    for session in sessions:
        chain = chain_prefix(session.titles)
        if not chain:
            continue
        day = session.start.date()
        roots = forest.setdefault(day, {})
        duration = session.duration
        node: TaskNode | None = None
        for depth in range(1, len(chain) + 1):
            key = (day, chain[:depth])
            child = arena.get(key)
            if child is None:
                child = TaskNode(name=chain[depth - 1])
                arena[key] = child
                siblings = roots if node is None else node.children
                siblings[child.name] = child
            child.total_duration += duration
            node = child
        node.own_duration += duration
    return forest


def day_total(roots: dict[str, TaskNode]) -> timedelta:
    return sum((node.total_duration for node in roots.values()), timedelta(0))


def format_hours(value: timedelta) -> str:
    return f"{value.total_seconds() / 3600:.2f} hs"


def render_report(forest: DailyForest) -> str:
    lines: list[str] = []
    for day in sorted(forest):
        roots = forest[day]
        lines.append(f"Date: {day.isoformat()}")
        lines.append(f"Total: {format_hours(day_total(roots))}")
        for name in sorted(roots):
            _render_node(roots[name], depth=1, lines=lines)
        lines.append("")
    if not lines:
        return ""
    return "\n".join(lines) + "\n"


def _render_node(node: TaskNode, *, depth: int, lines: list[str]) -> None:
    lines.append(f"{INDENT * depth}{node.name}: {format_hours(node.total_duration)}")
    for child in node.sorted_children():
        _render_node(child, depth=depth + 1, lines=lines)

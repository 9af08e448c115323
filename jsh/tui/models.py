"""Data models for the package selector."""

from dataclasses import dataclass, field
from enum import Enum


class PackageKind(Enum):
    FORMULA = "formula"
    CASK = "cask"

    @property
    def plural(self) -> str:
        return "formulae" if self is PackageKind.FORMULA else "casks"

    @property
    def title(self) -> str:
        return "Formulae" if self is PackageKind.FORMULA else "Casks"

    @property
    def marker(self) -> str:
        return "●" if self is PackageKind.FORMULA else "■"

    @property
    def color(self) -> str:
        return "cyan" if self is PackageKind.FORMULA else "yellow"


class Action(Enum):
    """Per-item decision, cycled in the fixed order skip -> declare -> decom."""
    SKIP = "skip"
    DECLARE = "declare"
    DECOMMISSION = "decom"

    def next(self) -> "Action":
        return ACTION_CYCLE[(ACTION_CYCLE.index(self) + 1) % len(ACTION_CYCLE)]

    def previous(self) -> "Action":
        return ACTION_CYCLE[(ACTION_CYCLE.index(self) - 1) % len(ACTION_CYCLE)]

    @property
    def color(self) -> str:
        return ACTION_COLORS[self]


ACTION_CYCLE = (Action.SKIP, Action.DECLARE, Action.DECOMMISSION)

ACTION_COLORS = {
    Action.SKIP: "cyan",
    Action.DECLARE: "green",
    Action.DECOMMISSION: "red",
}


@dataclass
class SelectorItem:
    label: str
    kind: PackageKind
    action: Action = Action.SKIP


@dataclass
class SelectionPlan:
    """Items grouped by what should happen to them."""
    declare: dict[PackageKind, list[str]] = field(
        default_factory=lambda: {kind: [] for kind in PackageKind}
    )
    decommission: dict[PackageKind, list[str]] = field(
        default_factory=lambda: {kind: [] for kind in PackageKind}
    )

    @classmethod
    def from_items(cls, items: list[SelectorItem]) -> "SelectionPlan":
        plan = cls()
        for item in items:
            if item.action is Action.DECLARE:
                plan.declare[item.kind].append(item.label)
            elif item.action is Action.DECOMMISSION:
                plan.decommission[item.kind].append(item.label)
        return plan

    @property
    def total(self) -> int:
        return sum(len(v) for v in self.declare.values()) + sum(
            len(v) for v in self.decommission.values()
        )

    @property
    def empty(self) -> bool:
        return self.total == 0


@dataclass
class ApplyResult:
    label: str
    kind: PackageKind
    action: Action
    ok: bool
    error: str = ""


__all__ = [
    "PackageKind",
    "Action",
    "ACTION_CYCLE",
    "ACTION_COLORS",
    "SelectorItem",
    "SelectionPlan",
    "ApplyResult",
]

"""Full-screen interactive list selector.

Each installed-but-undeclared package gets an action (skip, declare or
decom). The user browses and filters the list, cycles actions, then confirms
before anything is applied.
"""

import logging
import re
import sys
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, TextIO

import click

from .capability import CapabilityDetector, get_detector
from .keys import ESCAPE_TIMEOUT, CharSource, Key, KeyEvent, TerminalInput, read_key
from .models import Action, ApplyResult, PackageKind, SelectionPlan, SelectorItem
from .prompts import select_actions_prompt
from .render import truncate
from .terminal import CLEAR_SCREEN, DEFAULT_COLS, DEFAULT_ROWS, HOME, TerminalGuard

_logging = logging.getLogger(__name__)

# Header box, column header and footer take this many rows
CHROME_ROWS = 13
BOX_WIDTH = 72
ACTION_WIDTH = 7
LEGACY_SUBMIT_KEYS = ("x", "X")
FILTER_CHAR = re.compile(r"[A-Za-z0-9_.\-]")

TITLE = "Package Alignment"
KEY_HELP = "↑/↓ move  ←/→/space change action  enter apply  esc cancel"

Collaborator = Callable[[str, PackageKind], bool]


class SelectorPhase(Enum):
    BROWSING = "browsing"
    FILTERING = "filtering"
    CONFIRMING = "confirming"
    APPLYING = "applying"
    DONE = "done"
    CANCELLED = "cancelled"


def visible_rows_for(rows: int) -> int:
    return max(1, rows - CHROME_ROWS)


class SelectorSession:
    """Selection state: items, filter, cursor and viewport.

    The cursor indexes into the filtered list, and the viewport always
    contains the cursor.
    """

    def __init__(self, items: list[SelectorItem], visible_rows: int = 10):
        seen: set[str] = set()
        for item in items:
            if item.label in seen:
                raise ValueError(f"Duplicate selector label: {item.label}")
            seen.add(item.label)

        self.items = list(items)
        self.filter_text = ""
        self.filtered_indices = list(range(len(self.items)))
        self.cursor_index = 0
        self.scroll_offset = 0
        self.visible_rows = max(1, visible_rows)
        self.phase = SelectorPhase.BROWSING

    @property
    def cancelled(self) -> bool:
        return self.phase is SelectorPhase.CANCELLED

    @property
    def running(self) -> bool:
        return self.phase in (SelectorPhase.BROWSING, SelectorPhase.FILTERING)

    @property
    def current(self) -> SelectorItem | None:
        if not self.filtered_indices:
            return None
        return self.items[self.filtered_indices[self.cursor_index]]

    def visible(self) -> list[tuple[int, SelectorItem]]:
        """(position in filtered list, item) for each row in the viewport."""
        window = self.filtered_indices[
            self.scroll_offset:self.scroll_offset + self.visible_rows
        ]
        return [
            (self.scroll_offset + offset, self.items[index])
            for offset, index in enumerate(window)
        ]

    # Navigation

    def move(self, delta: int) -> None:
        self.cursor_index += delta
        self._clamp()

    def resize(self, visible_rows: int) -> None:
        self.visible_rows = max(1, visible_rows)
        self._clamp()

    def _clamp(self) -> None:
        count = len(self.filtered_indices)
        if count == 0:
            self.cursor_index = 0
            self.scroll_offset = 0
            return
        self.cursor_index = min(max(self.cursor_index, 0), count - 1)
        if self.cursor_index < self.scroll_offset:
            self.scroll_offset = self.cursor_index
        elif self.cursor_index >= self.scroll_offset + self.visible_rows:
            self.scroll_offset = self.cursor_index - self.visible_rows + 1
        # Keep the viewport full after the list shrinks
        self.scroll_offset = max(0, min(self.scroll_offset, count - self.visible_rows))

    # Actions

    def cycle(self, direction: int = 1) -> None:
        item = self.current
        if item is None:
            return
        item.action = item.action.next() if direction > 0 else item.action.previous()

    # Filtering

    def append_filter(self, ch: str) -> None:
        self.set_filter(self.filter_text + ch)

    def backspace(self) -> None:
        if self.filter_text:
            self.set_filter(self.filter_text[:-1])

    def set_filter(self, text: str) -> None:
        self.filter_text = text
        self.filtered_indices = [
            index for index, item in enumerate(self.items) if text in item.label
        ]
        self.phase = SelectorPhase.FILTERING if text else SelectorPhase.BROWSING
        self._clamp()

    # Phase changes

    def submit(self) -> None:
        self.phase = SelectorPhase.CONFIRMING

    def cancel(self) -> None:
        for item in self.items:
            item.action = Action.SKIP
        self.phase = SelectorPhase.CANCELLED

    def plan(self) -> SelectionPlan:
        return SelectionPlan.from_items(self.items)

    def handle(self, event: KeyEvent) -> None:
        """Apply one key event to the session."""
        key = event.key
        if key is Key.UP:
            self.move(-1)
        elif key is Key.DOWN:
            self.move(1)
        elif key in (Key.RIGHT, Key.SPACE):
            self.cycle(1)
        elif key is Key.LEFT:
            self.cycle(-1)
        elif key is Key.ENTER:
            self.submit()
        elif key is Key.ESCAPE:
            self.cancel()
        elif key is Key.BACKSPACE:
            self.backspace()
        elif key is Key.CHAR:
            if event.char in LEGACY_SUBMIT_KEYS:
                self.submit()
            elif FILTER_CHAR.fullmatch(event.char):
                self.append_filter(event.char)


# Rendering

def _box_line(inner_width: int, plain: str, styled: str | None = None) -> str:
    border = click.style("║", fg="cyan")
    padding = " " * max(0, inner_width - len(plain))
    return border + (plain if styled is None else styled) + padding + border


def _rule(inner_width: int, left: str, right: str) -> str:
    return click.style(left + "═" * inner_width + right, fg="cyan")


def render_screen(session: SelectorSession, cols: int = DEFAULT_COLS) -> list[str]:
    """Lines making up one frame of the selector."""
    inner = max(20, min(cols, BOX_WIDTH) - 2)
    label_width = max(1, inner - ACTION_WIDTH - 6)

    search = session.filter_text or "(type to filter)"
    legend = (
        "  "
        + click.style(PackageKind.FORMULA.marker, fg=PackageKind.FORMULA.color)
        + " formula  "
        + click.style(PackageKind.CASK.marker, fg=PackageKind.CASK.color)
        + " cask"
    )
    lines = [
        _rule(inner, "╔", "╗"),
        _box_line(inner, f"  {TITLE}", "  " + click.style(TITLE, bold=True)),
        _box_line(inner, "  " + truncate(KEY_HELP, inner - 2)),
        _box_line(inner, "  ● formula  ■ cask", legend),
        _box_line(inner, "  " + truncate(f"Search: {search}", inner - 2)),
        _rule(inner, "╚", "╝"),
        "",
        "    " + click.style("PACKAGE".ljust(label_width) + " ACTION", bold=True),
        "─" * min(cols, BOX_WIDTH),
    ]

    rows = session.visible()
    for position, item in rows:
        selected = position == session.cursor_index
        pointer = click.style("▶", fg="green") if selected else " "
        marker = click.style(item.kind.marker, fg=item.kind.color)
        label = truncate(item.label, label_width).ljust(label_width)
        if selected:
            label = click.style(label, bold=True)
        action = click.style(item.action.value, fg=item.action.color)
        lines.append(f" {pointer} {marker} {label} {action}")
    lines.extend([""] * (session.visible_rows - len(rows)))

    lines.append("")
    lines.append(
        f"Showing {len(session.filtered_indices)} of {len(session.items)} packages"
    )
    return lines


# Confirm and apply

@dataclass
class SelectionOutcome:
    phase: SelectorPhase
    plan: SelectionPlan = field(default_factory=SelectionPlan)
    results: list[ApplyResult] = field(default_factory=list)
    declined: bool = False

    @property
    def failures(self) -> list[ApplyResult]:
        return [r for r in self.results if not r.ok]

    @property
    def cancelled(self) -> bool:
        return self.phase is SelectorPhase.CANCELLED


def print_plan(plan: SelectionPlan, output: TextIO | None = None) -> None:
    click.echo("", file=output)
    click.secho("Proposed Changes Summary:", fg="yellow", bold=True, file=output)
    for kind in PackageKind:
        names = plan.declare[kind]
        if names:
            click.secho(f"  Declare {kind.title} ({len(names)}):", fg="green", file=output)
            for name in names:
                click.echo(f"    + {name}", file=output)
    for kind in PackageKind:
        names = plan.decommission[kind]
        if names:
            click.secho(f"  Decommission {kind.title} ({len(names)}):", fg="red", file=output)
            for name in names:
                click.echo(f"    - {name}", file=output)
    click.echo("", file=output)


def read_confirmation(output: TextIO | None = None) -> str:
    click.echo("Apply these changes? [y/N] ", nl=False, file=output)
    try:
        answer = click.getchar()
    except KeyboardInterrupt:
        click.echo("", file=output)
        _print_cancelled(output)
        sys.exit(130)
    click.echo(answer, file=output)
    return answer


def _apply_one(
    collaborator: Collaborator, label: str, kind: PackageKind, action: Action
) -> ApplyResult:
    try:
        ok = bool(collaborator(label, kind))
        error = "" if ok else "command reported failure"
    except Exception as e:
        _logging.debug(f"{action.value} {label} raised: {e}")
        ok, error = False, str(e)
    return ApplyResult(label=label, kind=kind, action=action, ok=ok, error=error)


def apply_plan(
    plan: SelectionPlan,
    declare: Collaborator,
    uninstall: Collaborator,
    output: TextIO | None = None,
) -> list[ApplyResult]:
    """Run declarations first, then uninstalls. Failures do not stop the batch."""
    steps = [
        (Action.DECLARE, declare, plan.declare, "Declaring"),
        (Action.DECOMMISSION, uninstall, plan.decommission, "Uninstalling"),
    ]
    results = []
    for action, collaborator, grouped, verb in steps:
        for kind in PackageKind:
            for label in grouped[kind]:
                click.echo(f"{verb} {kind.value}: {label}", file=output)
                result = _apply_one(collaborator, label, kind, action)
                if not result.ok:
                    click.secho(
                        f"  ✗ Failed to {action.value} {label}: {result.error}",
                        fg="red",
                        file=output,
                    )
                results.append(result)
    return results


def confirm_and_apply(
    plan: SelectionPlan,
    declare: Collaborator,
    uninstall: Collaborator,
    confirm: Callable[[], str] | None = None,
    output: TextIO | None = None,
    session: SelectorSession | None = None,
) -> SelectionOutcome:
    """Show the plan, ask once, then apply it.

    When a session is given its phase follows along (APPLYING while the
    collaborators run).
    """
    if plan.empty:
        click.echo("No changes selected.", file=output)
        return SelectionOutcome(phase=SelectorPhase.DONE, plan=plan)

    print_plan(plan, output)
    answer = confirm() if confirm is not None else read_confirmation(output)
    if answer not in ("y", "Y"):
        click.secho("Changes cancelled.", fg="yellow", file=output)
        return SelectionOutcome(phase=SelectorPhase.DONE, plan=plan, declined=True)

    _logging.debug(f"applying {plan.total} changes")
    if session is not None:
        session.phase = SelectorPhase.APPLYING
    results = apply_plan(plan, declare, uninstall, output)
    outcome = SelectionOutcome(phase=SelectorPhase.DONE, plan=plan, results=results)
    failed = len(outcome.failures)
    if failed:
        click.secho(f"! {failed} of {len(results)} changes failed", fg="yellow", file=output)
    else:
        click.secho("✓ Changes applied successfully", fg="green", file=output)
    return outcome


def _print_cancelled(output: TextIO | None) -> None:
    click.secho("Cancelled. No changes made.", fg="yellow", file=output)


# Full-screen session

class InteractiveSelector:
    """Run a selection session in the alternate screen, then confirm and apply."""

    def __init__(
        self,
        items: list[SelectorItem],
        declare: Collaborator,
        uninstall: Collaborator,
        guard: TerminalGuard | None = None,
        keys: CharSource | None = None,
        confirm: Callable[[], str] | None = None,
        output: TextIO | None = None,
        escape_timeout: float = ESCAPE_TIMEOUT,
    ):
        self.guard = guard or TerminalGuard(output=output)
        self.output = output if output is not None else self.guard.output
        self.session = SelectorSession(items)
        self.declare = declare
        self.uninstall = uninstall
        self.keys = keys
        self.confirm = confirm
        self.escape_timeout = escape_timeout

    def draw(self) -> None:
        geometry = self.guard.geometry
        cols = geometry.cols if geometry else DEFAULT_COLS
        self.guard.write(CLEAR_SCREEN + HOME + "\n".join(render_screen(self.session, cols)))

    def _browse(self) -> None:
        with self.guard.fullscreen() as guard:
            geometry = guard.geometry
            self.session.resize(visible_rows_for(geometry.rows if geometry else DEFAULT_ROWS))
            keys = self.keys or TerminalInput(guard.input_fd)
            while self.session.running:
                self.draw()
                try:
                    event = read_key(keys, self.escape_timeout)
                except EOFError:
                    _logging.debug("input closed, cancelling selection")
                    self.session.cancel()
                    break
                self.session.handle(event)

    def run(self) -> SelectionOutcome:
        if not self.session.items:
            click.echo("No packages to review.", file=self.output)
            return SelectionOutcome(phase=SelectorPhase.DONE)

        self._browse()
        _logging.debug(f"selection finished: {self.session.phase.value}")

        if self.session.cancelled:
            _print_cancelled(self.output)
            return SelectionOutcome(phase=SelectorPhase.CANCELLED)

        outcome = confirm_and_apply(
            self.session.plan(),
            self.declare,
            self.uninstall,
            confirm=self.confirm,
            output=self.output,
            session=self.session,
        )
        self.session.phase = outcome.phase
        return outcome


def select_and_apply(
    items: list[SelectorItem],
    declare: Collaborator,
    uninstall: Collaborator,
    detector: CapabilityDetector | None = None,
    output: TextIO | None = None,
) -> SelectionOutcome:
    """Pick actions for items with the best interface the terminal allows."""
    if not sys.stdin.isatty():
        raise RuntimeError("Interactive selection requires a TTY")

    detector = detector or get_detector()
    if detector.is_supported():
        return InteractiveSelector(items, declare, uninstall, output=output).run()

    _logging.debug("full-screen selector unavailable, prompting per item")
    chosen = select_actions_prompt(items)
    if chosen is None:
        _print_cancelled(output)
        return SelectionOutcome(phase=SelectorPhase.CANCELLED)
    return confirm_and_apply(
        SelectionPlan.from_items(chosen),
        declare,
        uninstall,
        confirm=lambda: "y" if click.confirm("Apply these changes?", default=False) else "n",
        output=output,
    )


__all__ = [
    "CHROME_ROWS",
    "SelectorPhase",
    "SelectorSession",
    "SelectionOutcome",
    "InteractiveSelector",
    "visible_rows_for",
    "render_screen",
    "print_plan",
    "apply_plan",
    "confirm_and_apply",
    "select_and_apply",
]

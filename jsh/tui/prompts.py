"""Line-by-line prompts used when the full-screen selector is unavailable."""

import questionary
from prompt_toolkit.styles import Style

from .models import Action, SelectorItem

PROMPT_STYLE = Style(
    [
        ("skip", "fg:ansicyan"),
        ("declare", "fg:ansigreen"),
        ("decom", "fg:ansired"),
    ]
)

ACTION_DESCRIPTIONS = {
    Action.SKIP: "skip (leave as is)",
    Action.DECLARE: "declare (add to taskfile)",
    Action.DECOMMISSION: "decom (uninstall)",
}


def _action_choices() -> list[questionary.Choice]:
    return [
        questionary.Choice(
            title=[(f"class:{action.value}", ACTION_DESCRIPTIONS[action])],
            value=action,
        )
        for action in Action
    ]


def select_actions_prompt(items: list[SelectorItem]) -> list[SelectorItem] | None:
    """Ask for each item's action in turn.

    Args:
        items: Candidates; their action fields are updated in place

    Returns:
        The same items with actions chosen, or None if the user cancelled
        (Ctrl+C or Escape). On cancel no action is kept.
    """
    chosen: dict[str, Action] = {}

    for item in items:
        try:
            answer = questionary.select(
                f"{item.kind.marker} {item.label} ({item.kind.value}):",
                choices=_action_choices(),
                default=None,
                style=PROMPT_STYLE,
            ).ask()
        except KeyboardInterrupt:
            return None

        if answer is None:
            return None
        chosen[item.label] = answer

    for item in items:
        item.action = chosen[item.label]
    return items


__all__ = [
    "select_actions_prompt",
]

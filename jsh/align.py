"""Compare installed packages with the declared ones."""

from typing import Iterable

from .tui.models import PackageKind, SelectorItem


def find_extras(
    installed: dict[PackageKind, Iterable[str]],
    declared: dict[PackageKind, Iterable[str]],
) -> list[SelectorItem]:
    """Installed but undeclared packages, sorted case-insensitively.

    A name installed as both a formula and a cask is only offered once, as a
    formula, since selector labels must be unique.

    Examples:
        >>> extras = find_extras(
        ...     {PackageKind.FORMULA: ["jq", "Wget"], PackageKind.CASK: ["slack"]},
        ...     {PackageKind.FORMULA: ["wget"], PackageKind.CASK: []},
        ... )
        >>> [(item.label, item.kind.value) for item in extras]
        [('jq', 'formula'), ('slack', 'cask'), ('Wget', 'formula')]
    """
    extras: dict[str, SelectorItem] = {}
    for kind in PackageKind:
        known = set(declared.get(kind, ()))
        for name in installed.get(kind, ()):
            if name in known or name in extras:
                continue
            extras[name] = SelectorItem(label=name, kind=kind)
    return sorted(extras.values(), key=lambda item: item.label.lower())


__all__ = [
    "find_extras",
]

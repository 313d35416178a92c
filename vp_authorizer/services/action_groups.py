"""
Action-group governance: every schema action should start with a canonical group prefix.
"""
from typing import Iterable, List, Sequence

from vp_authorizer.config import DEFAULT_ACTION_GROUPS, normalize_mode
from vp_authorizer.errors import ActionGroupViolation
from vp_authorizer.logging_config import create_logger

logger = create_logger("services.action_groups")


class ActionGroupGovernor:
    """Checks action names against an immutable catalog of group prefixes."""

    def __init__(self, catalog: Sequence[str] = DEFAULT_ACTION_GROUPS):
        self.catalog = tuple(catalog)

    def is_compliant(self, action: str) -> bool:
        # Exact, case-sensitive prefix: "GetX" and "Getfoo" both belong to "Get".
        return any(action.startswith(group) for group in self.catalog)

    def violations(self, actions: Iterable[str]) -> List[str]:
        return [a for a in actions if not self.is_compliant(a)]

    def enforce(self, actions: Iterable[str], mode: str) -> List[str]:
        """
        off   -> no-op, returns []
        warn  -> returns violators, logs a warning
        error -> raises ActionGroupViolation carrying every violator and the catalog
        """
        mode = normalize_mode(mode)
        if mode == "off":
            return []
        bad = self.violations(actions)
        if not bad:
            return []
        if mode == "error":
            raise ActionGroupViolation(bad, self.catalog)
        logger.warning(
            f"actions not aligned to canonical action groups [{', '.join(self.catalog)}]: {', '.join(bad)}"
        )
        return bad


default_governor = ActionGroupGovernor()


def enforce_action_groups(actions: Iterable[str], mode: str) -> List[str]:
    return default_governor.enforce(actions, mode)

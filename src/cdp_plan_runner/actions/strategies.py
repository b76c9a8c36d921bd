"""Ordered fallback strategies tried by interaction handlers."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from ..errors import AutomationError, CommandTimeout, ConnectionClosed
from ..models import Step
from .base import ActionContext

LOGGER = logging.getLogger(__name__)

StrategyFn = Callable[[ActionContext, str, str, Step], bool]


@dataclass(frozen=True)
class Strategy:
    """A named interaction mechanism.

    ``run(ctx, session_id, selector, step)`` returns True when the interaction took
    effect.
    """

    name: str
    run: StrategyFn


def run_strategies(
    strategies: Sequence[Strategy],
    ctx: ActionContext,
    session_id: str,
    selector: str,
    step: Step,
) -> Optional[str]:
    """Try ``strategies`` in order and return the name of the first that succeeds.

    Failures of a single strategy are logged and swallowed. Connection loss and
    command timeouts propagate.
    """

    for strategy in strategies:
        try:
            if strategy.run(ctx, session_id, selector, step):
                LOGGER.info("%s on %s succeeded via %s", step.action.value, selector, strategy.name)
                return strategy.name
            LOGGER.warning("Strategy %s had no effect on %s", strategy.name, selector)
        except (ConnectionClosed, CommandTimeout):
            raise
        except AutomationError as exc:
            LOGGER.warning("Strategy %s failed on %s: %s", strategy.name, selector, exc)
    return None

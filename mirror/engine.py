"""
Rule engine: apply every registered rule to one state bundle and
concatenate the candidates, in registry order.

Stateless. No I/O. The reference day is pinned once per evaluation so
that every rule sees the same "today".
"""

import logging
from dataclasses import replace
from typing import List

from mirror.config import MirrorConfig
from mirror.models import AlertCandidate, EngineState
from mirror.rules import RULES


logger = logging.getLogger(__name__)


def compute_alerts(
    state: EngineState,
    cfg: MirrorConfig | None = None,
) -> List[AlertCandidate]:
    """Evaluate all rules; identical inputs give identical candidate lists."""
    if cfg is None:
        cfg = MirrorConfig()

    if state.today is None:
        state = replace(state, today=state.reference_day)

    candidates: List[AlertCandidate] = []
    for rule_name, rule_fn in RULES:
        produced = rule_fn(state, cfg)
        logger.debug("rule %s produced %d candidate(s)", rule_name, len(produced))
        candidates.extend(produced)

    return candidates

"""
Alert store: advisory alerts keyed by their deterministic id.

Lifecycle contract:
    - an id seen for the first time is inserted active, stamped `now`
    - an id already present is never touched by a sync, whether it is
      still active (text is not refreshed) or dismissed (it stays dismissed)
    - `dismiss` is the only user-facing mutation
    - `clear_dismissed` forgets dismissed rows, after which a condition
      that still holds fires again as a brand-new alert
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

from mirror.models import AdvisoryAlert, AlertCandidate


logger = logging.getLogger(__name__)


class AlertStore:
    def __init__(self, alerts: Optional[Iterable[AdvisoryAlert]] = None) -> None:
        self._alerts: Dict[str, AdvisoryAlert] = {}
        for alert in alerts or ():
            self._alerts[alert.id] = alert

    def __len__(self) -> int:
        return len(self._alerts)

    def __contains__(self, alert_id: str) -> bool:
        return alert_id in self._alerts

    def get(self, alert_id: str) -> Optional[AdvisoryAlert]:
        return self._alerts.get(alert_id)

    # -- Mutations ----------------------------------------------------------

    def add(self, candidate: AlertCandidate, now: Optional[datetime] = None) -> str:
        """Unconditional put: replaces any existing row with a fresh active one."""
        self._alerts[candidate.id] = AdvisoryAlert.from_candidate(candidate, now or datetime.now())
        return candidate.id

    def bulk_sync(
        self,
        candidates: Iterable[AlertCandidate],
        now: Optional[datetime] = None,
    ) -> List[AdvisoryAlert]:
        """Insert candidates with unseen ids; return the newly created alerts."""
        now = now or datetime.now()
        created: List[AdvisoryAlert] = []
        for candidate in candidates:
            if candidate.id in self._alerts:
                continue
            alert = AdvisoryAlert.from_candidate(candidate, now)
            self._alerts[candidate.id] = alert
            created.append(alert)
        if created:
            logger.info("synced %d new alert(s): %s", len(created), [a.id for a in created])
        return created

    def dismiss(self, alert_id: str, now: Optional[datetime] = None) -> bool:
        alert = self._alerts.get(alert_id)
        if alert is None:
            logger.warning("cannot dismiss unknown alert %r", alert_id)
            return False
        alert.dismissed_at = now or datetime.now()
        logger.info("dismissed alert %s", alert_id)
        return True

    def clear_dismissed(self) -> int:
        ids = [a.id for a in self._alerts.values() if not a.is_active]
        for alert_id in ids:
            del self._alerts[alert_id]
        return len(ids)

    # -- Queries ------------------------------------------------------------

    def all_alerts(self) -> List[AdvisoryAlert]:
        return sorted(self._alerts.values(), key=lambda a: (a.created_at, a.id))

    def active_alerts(self) -> List[AdvisoryAlert]:
        return [a for a in self.all_alerts() if a.is_active]

    # -- Persistence --------------------------------------------------------

    def save(self, filepath: Union[str, Path]) -> None:
        path = Path(filepath)
        with open(path, "w") as f:
            json.dump([a.to_dict() for a in self.all_alerts()], f, indent=2)

    @classmethod
    def load(cls, filepath: Union[str, Path]) -> "AlertStore":
        """Read a saved store; a missing file is an empty store."""
        path = Path(filepath)
        if not path.exists():
            return cls()
        with open(path, "r") as f:
            data = json.load(f)
        return cls(AdvisoryAlert.from_dict(row) for row in data or [])

"""
Debounced SOS latch driven by button release edges.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import config

logger = logging.getLogger(__name__)


@dataclass
class SosLatch:
    """
    IDLE/ACTIVE latch. One accepted edge activates; two accepted edges are
    needed to clear an active latch. Edges closer than the debounce interval
    to the previously accepted edge are dropped.
    """

    debounce: float = config.SOS_DEBOUNCE_SECONDS
    deactivation_presses: int = config.SOS_DEACTIVATION_PRESSES
    active: bool = False
    pending_presses: int = 0
    last_edge_at: Optional[float] = None

    def _debounced(self, at: float) -> bool:
        return self.last_edge_at is None or at - self.last_edge_at >= self.debounce

    def register_edge(self, at: float) -> bool:
        """Feed one release edge observed at time `at`. Returns True if it was accepted."""
        if not self._debounced(at):
            return False
        self.last_edge_at = at

        if not self.active:
            self.active = True
            self.pending_presses = 0
            logger.warning("SOS latched")
            return True

        self.pending_presses += 1
        if self.pending_presses >= self.deactivation_presses:
            self.active = False
            self.pending_presses = 0
            logger.info("SOS cleared")
        else:
            logger.info("SOS clear requested (%d/%d)", self.pending_presses, self.deactivation_presses)
        return True

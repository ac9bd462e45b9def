#!/usr/bin/env python3
"""
Draft-body lifecycle.

A draft is a body the user is still aiming: while the pointer is dragged, a fresh
draft is built on every population pass from the current drag vector, so its
trajectory preview always matches the latest input. Releasing the pointer finalizes
the draft, after which it is an ordinary body.

States
- UNCOMMITTED: no draft exists
- PREVIEWING: a draft exists and is rebuilt every pass
- FINALIZED: the draft was just committed; nothing is left to rebuild
"""
import enum
import logging
from dataclasses import dataclass
from typing import Optional, Tuple

from .constants import DRAFT_NAME_PREFIX
from .data_models import Body, Epoch
from .vector_utils import vec_scale, vec_sub

logger = logging.getLogger(__name__)


class DraftPhase(enum.Enum):
    UNCOMMITTED = "uncommitted"
    PREVIEWING = "previewing"
    FINALIZED = "finalized"


@dataclass(frozen=True)
class DraftRequest:
    """What to build a draft from: body properties plus the current drag vector."""
    mass: float
    radius: float
    anchor: Tuple[float, float]
    current: Tuple[float, float]
    velocity_scale: float

    @property
    def velocity(self) -> Tuple[float, float]:
        # Slingshot: pulling away from the anchor launches the body the other way.
        return vec_scale(vec_sub(self.anchor, self.current), 1.0 / self.velocity_scale)


class DraftLifecycle:
    """Tracks the single draft body of a timeline across population passes."""

    def __init__(self, prefix: str = DRAFT_NAME_PREFIX):
        self.prefix = prefix
        self.phase = DraftPhase.UNCOMMITTED
        self.name: Optional[str] = None
        self._serial = 0

    def apply(self, epoch: Epoch, t: float, request: Optional[DraftRequest],
              finalize: bool) -> Optional[Body]:
        """
        Run one pass of the lifecycle against the current epoch.

        Finalizing happens first so a committed body is never rebuilt as a draft.
        Returns the new draft body, if one was built.
        """
        if finalize:
            committed = [b for b in epoch.bodies if b.is_draft]
            for body in committed:
                body.is_draft = False
                logger.info("Finalized body '%s'", body.name)
            if committed:
                self.phase = DraftPhase.FINALIZED

        if self.phase is DraftPhase.FINALIZED:
            self._reset()

        epoch.bodies[:] = [b for b in epoch.bodies if not b.is_draft]

        if request is None:
            if self.phase is DraftPhase.PREVIEWING:
                logger.debug("Discarded draft '%s'", self.name)
                self._reset()
            return None

        if self.phase is DraftPhase.UNCOMMITTED:
            self.name = self._next_name(epoch)
            self.phase = DraftPhase.PREVIEWING

        draft = Body.create(self.name, request.mass, request.radius,
                            request.anchor, request.velocity, t=t, is_draft=True)
        epoch.bodies.append(draft)
        return draft

    def _reset(self) -> None:
        self.phase = DraftPhase.UNCOMMITTED
        self.name = None

    def _next_name(self, epoch: Epoch) -> str:
        taken = set(epoch.names())
        while True:
            self._serial += 1
            name = f"{self.prefix} {self._serial}"
            if name not in taken:
                return name

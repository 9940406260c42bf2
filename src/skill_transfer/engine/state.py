from __future__ import annotations

from enum import Enum


class LifecycleState(str, Enum):
    """Lifecycle of the knowledge manager. Transitions only move forward.

    - CREATED: constructed, nothing loaded yet.
    - INITIALIZED: documents loaded and detector wired, no features acquired.
    - OBTAINING_KNOWLEDGE: feature acquisition in progress.
    - READY: service endpoints registered; terminal state.
    """

    CREATED = "Created"
    INITIALIZED = "Initialized"
    OBTAINING_KNOWLEDGE = "ObtainingKnowledge"
    READY = "Ready"


ALLOWED_TRANSITIONS: dict[LifecycleState, LifecycleState] = {
    LifecycleState.CREATED: LifecycleState.INITIALIZED,
    LifecycleState.INITIALIZED: LifecycleState.OBTAINING_KNOWLEDGE,
    LifecycleState.OBTAINING_KNOWLEDGE: LifecycleState.READY,
}

from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, Optional

from ..sim.core.world import FlockingSystem
from ..sim.utils.math2d import _fits_float32

logger = logging.getLogger(__name__)


class ControlEvent(str, Enum):
    STOP = "stop"
    RANDOMISE = "randomise"
    ZEROISE = "zeroise"
    CENTRALISE = "centralise"
    RESIZE = "resize"
    MOUSE_MOVE = "mouse_move"
    MOUSE_PRESS = "mouse_press"
    MOUSE_RELEASE = "mouse_release"


KEY_BINDINGS: Dict[str, ControlEvent] = {
    "r": ControlEvent.RANDOMISE,
    "f": ControlEvent.ZEROISE,
    "c": ControlEvent.CENTRALISE,
    "q": ControlEvent.STOP,
    "escape": ControlEvent.STOP,
}


def translate_key(key: str) -> Optional[ControlEvent]:
    return KEY_BINDINGS.get(key.strip().lower())


def apply_event(system: FlockingSystem, event: ControlEvent, *args: float) -> None:
    """Forward one input event to the matching flocking call. STOP is left to the driver."""
    if event is ControlEvent.RANDOMISE:
        system.randomise()
    elif event is ControlEvent.ZEROISE:
        system.zeroise()
    elif event is ControlEvent.CENTRALISE:
        system.centralise()
    elif event is ControlEvent.RESIZE:
        width, height = args
        system.resize(width, height)
    elif event is ControlEvent.MOUSE_MOVE:
        x, y = args
        system.set_mouse(x, y)
    elif event is ControlEvent.MOUSE_PRESS:
        system.enable_mouse_attraction()
    elif event is ControlEvent.MOUSE_RELEASE:
        system.enable_mouse_repulsion()


def _coords(payload: Dict[str, Any], first: str, second: str) -> Optional[tuple[float, float]]:
    a = payload.get(first)
    b = payload.get(second)
    if isinstance(a, bool) or isinstance(b, bool):
        return None
    if not isinstance(a, (int, float)) or not isinstance(b, (int, float)):
        return None
    if not _fits_float32(a) or not _fits_float32(b):
        return None
    return float(a), float(b)


def handle_message(system: FlockingSystem, payload: Dict[str, Any]) -> Optional[ControlEvent]:
    """
    Apply a client message such as ``{"type": "key", "key": "r"}`` or
    ``{"type": "mouse_move", "x": 10, "y": 20}``.

    Returns the event that was applied, or None when the message was ignored.
    """

    kind = payload.get("type")
    args: tuple[float, ...] = ()
    if kind == "key":
        key = payload.get("key")
        event = translate_key(key) if isinstance(key, str) else None
    elif kind == ControlEvent.MOUSE_MOVE.value:
        coords = _coords(payload, "x", "y")
        event = ControlEvent.MOUSE_MOVE if coords else None
        args = coords or ()
    elif kind == ControlEvent.RESIZE.value:
        coords = _coords(payload, "width", "height")
        if coords and coords[0] > 0 and coords[1] > 0:
            event = ControlEvent.RESIZE
            args = coords
        else:
            event = None
    elif kind in (ControlEvent.MOUSE_PRESS.value, ControlEvent.MOUSE_RELEASE.value):
        event = ControlEvent(kind)
    else:
        event = None

    if event is None:
        logger.debug("ignoring control message %r", payload)
        return None
    apply_event(system, event, *args)
    return event

from blinker import Signal
from typing import Dict

class EventBus:
    """Simple event bus leveraging blinker Signal objects."""
    def __init__(self):
        self._signals: Dict[str, Signal] = {}

    def subscribe(self, name: str, fn):
        sig = self._signals.setdefault(name, Signal(name))
        # Use weak=False to retain strong reference to bound methods so systems not kept in a variable still receive events.
        sig.connect(fn, weak=False)

    def unsubscribe(self, name: str, fn):
        sig = self._signals.get(name)
        if sig:
            sig.disconnect(fn)

    def emit(self, name: str, **payload):
        sig = self._signals.get(name)
        if sig:
            sig.send(self, **payload)


# ============================================================================
# PLAYER ACTIONS
# ============================================================================
EVENT_SWAP_REQUEST = "swap_request"                  # payload: src=(r,c), dst=(r,c)
EVENT_FREE_SWAP_REQUEST = "free_swap_request"        # payload: src=(r,c), dst=(r,c)
EVENT_POINT_BLANK_REQUEST = "point_blank_request"    # payload: target=(r,c)
EVENT_HINT_REQUEST = "hint_request"                  # payload: none


# ============================================================================
# RESOLUTION
# ============================================================================
EVENT_SWAP_INVALID = "swap_invalid"                  # payload: action=str, src, dst, reason=FailureReason
EVENT_COMBO_TRIGGERED = "combo_triggered"            # payload: src, dst, rule=str, positions=[(r,c),...]
EVENT_MATCH_FOUND = "match_found"                    # payload: depth=int, groups=[MatchGroup,...], positions=[(r,c),...]
EVENT_SPECIAL_CREATED = "special_created"            # payload: depth=int, special=CreatedSpecial
EVENT_MATCH_CLEARED = "match_cleared"                # payload: depth=int, positions=[(r,c),...], kinds=[(r,c,kind),...]
EVENT_CASCADE_STEP = "cascade_step"                  # payload: step=CascadeStep
EVENT_CASCADE_COMPLETE = "cascade_complete"          # payload: action=str, result=ResolutionResult
EVENT_BOARD_RESHUFFLED = "board_reshuffled"          # payload: action=str


# ============================================================================
# BOARD
# ============================================================================
EVENT_BOARD_RESET = "board_reset"                    # payload: rows=int, cols=int
EVENT_BOARD_CHANGED = "board_changed"                # payload: reason=str


# ============================================================================
# HINTS
# ============================================================================
EVENT_HINT_FOUND = "hint_found"                      # payload: hint=Hint
EVENT_HINT_NONE = "hint_none"                        # payload: none

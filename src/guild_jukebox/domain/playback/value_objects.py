"""Immutable value objects for the playback bounded context."""

from __future__ import annotations

from enum import Enum


class SessionState(Enum):
    """Playback state of a guild session with enforced transitions.

    State transitions:
    - IDLE -> PLAYING (first track starts)
    - PLAYING -> PLAYING (next track or loop replay)
    - PLAYING -> PAUSED (pause)
    - PAUSED -> PLAYING (resume, or skip to the next track)
    - PLAYING/PAUSED -> DRAINING (queue exhausted, teardown armed)
    - DRAINING -> PLAYING (playback restarts before teardown)
    """

    IDLE = "idle"
    PLAYING = "playing"
    PAUSED = "paused"
    DRAINING = "draining"

    def can_transition_to(self, target: SessionState) -> bool:
        """Check if transition to target state is valid."""
        valid_transitions = {
            SessionState.IDLE: {SessionState.PLAYING, SessionState.DRAINING},
            SessionState.PLAYING: {
                SessionState.PLAYING,
                SessionState.PAUSED,
                SessionState.DRAINING,
            },
            SessionState.PAUSED: {SessionState.PLAYING, SessionState.DRAINING},
            SessionState.DRAINING: {SessionState.PLAYING},
        }
        return target in valid_transitions.get(self, set())

    @property
    def is_active(self) -> bool:
        """True while a track is loaded in the player (playing or paused)."""
        return self in {SessionState.PLAYING, SessionState.PAUSED}


class ControlOp(Enum):
    """Control operations the command layer can route to a session."""

    SKIP = "skip"
    STOP = "stop"
    LEAVE = "leave"
    PAUSE = "pause"
    RESUME = "resume"
    TOGGLE_LOOP = "toggle_loop"


class PlayerEventKind(Enum):
    """Notifications a player emits about one playback."""

    IDLE = "idle"
    PLAYING = "playing"
    ERROR = "error"


class SessionDestroyReason(Enum):
    """Reasons a session can be destroyed."""

    IDLE_TIMEOUT = "idle_timeout"
    STOPPED = "stopped"
    LEFT = "left"
    PLAYER_FAILURE = "player_failure"
    EMPTY_QUEUE = "empty_queue"
    SHUTDOWN = "shutdown"

    @property
    def releases_voice(self) -> bool:
        """Whether the voice connection is dropped along with the player."""
        return self is not SessionDestroyReason.STOPPED

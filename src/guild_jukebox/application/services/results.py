"""Result values returned by the session manager.

Every operation answers with one of these instead of raising, so the
command layer can render any outcome from ``result.message``.
"""

from __future__ import annotations

from typing import ClassVar

from pydantic import BaseModel, ConfigDict

from ...domain.playback.entities import Track
from ...domain.playback.value_objects import SessionState
from ...domain.shared.messages import UserMessages
from ...domain.shared.types import (
    ChannelIdField,
    DiscordSnowflake,
    QueuePositionInt,
    VolumeFloat,
)


class SessionResult(BaseModel):
    """Base class for operation outcomes."""

    model_config = ConfigDict(frozen=True)

    ok: ClassVar[bool] = True

    @property
    def message(self) -> str:
        return UserMessages.DONE if self.ok else UserMessages.FAILED


# === Successful outcomes ===


class Started(SessionResult):
    track: Track

    @property
    def message(self) -> str:
        return UserMessages.NOW_PLAYING.format(title=self.track.display_title)


class Queued(SessionResult):
    track: Track
    position: QueuePositionInt

    @property
    def message(self) -> str:
        return UserMessages.ADDED_TO_QUEUE.format(
            title=self.track.display_title, position=self.position
        )


class Skipped(SessionResult):
    skipped: Track
    next_track: Track | None = None

    @property
    def message(self) -> str:
        if self.next_track is None:
            return UserMessages.SKIPPED.format(skipped=self.skipped.title)
        return UserMessages.SKIPPED_TO.format(
            skipped=self.skipped.title, next=self.next_track.title
        )


class Stopped(SessionResult):
    @property
    def message(self) -> str:
        return UserMessages.STOPPED


class Left(SessionResult):
    @property
    def message(self) -> str:
        return UserMessages.LEFT


class Paused(SessionResult):
    track: Track

    @property
    def message(self) -> str:
        return UserMessages.PAUSED.format(title=self.track.title)


class Resumed(SessionResult):
    track: Track

    @property
    def message(self) -> str:
        return UserMessages.RESUMED.format(title=self.track.title)


class LoopToggled(SessionResult):
    enabled: bool

    @property
    def message(self) -> str:
        return UserMessages.LOOP_ENABLED if self.enabled else UserMessages.LOOP_DISABLED


class VolumeChanged(SessionResult):
    volume: VolumeFloat

    @property
    def message(self) -> str:
        return UserMessages.VOLUME_CHANGED.format(percent=round(self.volume * 100))


# === Rejected operations ===


class SessionError(SessionResult):
    ok: ClassVar[bool] = False


class NotConnectedToVoice(SessionError):
    @property
    def message(self) -> str:
        return UserMessages.NOT_CONNECTED


class NoActiveSession(SessionError):
    guild_id: DiscordSnowflake

    @property
    def message(self) -> str:
        return UserMessages.NO_ACTIVE_SESSION


class ChannelConflict(SessionError):
    bound_channel_id: ChannelIdField

    @property
    def message(self) -> str:
        return UserMessages.CHANNEL_IN_USE.format(channel_id=self.bound_channel_id)


class EmptyQueue(SessionError):
    @property
    def message(self) -> str:
        return UserMessages.NO_SONG_IN_QUEUE


class QueueFull(SessionError):
    limit: int

    @property
    def message(self) -> str:
        return UserMessages.QUEUE_FULL.format(limit=self.limit)


class PlayerFailure(SessionError):
    reason: str

    @property
    def message(self) -> str:
        return UserMessages.PLAYER_FAILURE.format(reason=self.reason)


class TrackResolutionFailure(SessionError):
    query: str
    reason: str

    @property
    def message(self) -> str:
        return UserMessages.TRACK_NOT_FOUND.format(query=self.query, reason=self.reason)


class InvalidTransition(SessionError):
    operation: str
    state: SessionState

    @property
    def message(self) -> str:
        return UserMessages.INVALID_TRANSITION.format(
            operation=self.operation, state=self.state.value
        )


class InvalidVolume(SessionError):
    volume: float

    @property
    def message(self) -> str:
        return UserMessages.INVALID_VOLUME.format(percent=round(self.volume * 100))


class SessionSnapshot(BaseModel):
    """Read-only view of a live session."""

    model_config = ConfigDict(frozen=True)

    guild_id: DiscordSnowflake
    bound_channel_id: ChannelIdField
    voice_channel_id: ChannelIdField
    state: SessionState
    now_playing: Track | None
    upcoming: list[Track]
    loop_enabled: bool
    volume: VolumeFloat
    teardown_pending: bool

    @property
    def total_tracks(self) -> int:
        return len(self.upcoming) + (1 if self.now_playing else 0)

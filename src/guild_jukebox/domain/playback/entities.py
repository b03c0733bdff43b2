"""Core domain entities for the playback bounded context."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from guild_jukebox.domain.playback.value_objects import SessionState
from guild_jukebox.domain.shared.datetime_utils import utcnow
from guild_jukebox.domain.shared.exceptions import (
    BusinessRuleViolationError,
    InvalidOperationError,
)
from guild_jukebox.domain.shared.messages import ErrorMessages
from guild_jukebox.domain.shared.types import (
    ChannelIdField,
    DiscordSnowflake,
    DurationSeconds,
    MaxQueueSize,
    NonEmptyStr,
    TrackTitleStr,
    UserIdField,
    UtcDatetimeField,
    VolumeFloat,
)


class Track(BaseModel):
    """Immutable value object representing a playable track."""

    model_config = ConfigDict(frozen=True, strict=True)

    ref: NonEmptyStr
    title: TrackTitleStr
    stream_ref: NonEmptyStr
    thumbnail_ref: NonEmptyStr | None = None
    duration_seconds: DurationSeconds | None = None
    requested_by_id: UserIdField | None = None

    @property
    def duration_formatted(self) -> str:
        """Format duration as MM:SS or HH:MM:SS."""
        if self.duration_seconds is None:
            return "Unknown"

        hours, remainder = divmod(self.duration_seconds, 3600)
        minutes, seconds = divmod(remainder, 60)

        if hours > 0:
            return f"{hours}:{minutes:02d}:{seconds:02d}"
        return f"{minutes}:{seconds:02d}"

    @property
    def display_title(self) -> str:
        """Get display title with duration if available."""
        if self.duration_seconds:
            return f"{self.title} [{self.duration_formatted}]"
        return self.title

    def with_requester(self, user_id: UserIdField) -> Track:
        """Return a copy of this track with the requester populated."""
        return self.model_copy(update={"requested_by_id": user_id})


class GuildPlaybackSession(BaseModel):
    """Aggregate root holding the queue and playback state of one guild.

    Pure state: starting, stopping and timing are done by the application
    layer, which calls these transitions once the player has acted.
    """

    model_config = ConfigDict(strict=True, validate_assignment=True)

    guild_id: DiscordSnowflake
    bound_channel_id: ChannelIdField
    voice_channel_id: ChannelIdField
    queue: list[Track] = Field(default_factory=list)
    now_playing: Track | None = None
    loop_enabled: bool = False
    volume: VolumeFloat = 0.5
    state: SessionState = SessionState.IDLE
    max_queue_size: MaxQueueSize = 50
    created_at: UtcDatetimeField = Field(default_factory=utcnow)
    last_activity: UtcDatetimeField = Field(default_factory=utcnow)

    @property
    def queue_length(self) -> int:
        return len(self.queue)

    @property
    def is_playing(self) -> bool:
        return self.state == SessionState.PLAYING

    @property
    def is_paused(self) -> bool:
        return self.state == SessionState.PAUSED

    @property
    def is_draining(self) -> bool:
        return self.state == SessionState.DRAINING

    @property
    def upcoming(self) -> list[Track]:
        return list(self.queue)

    def touch(self) -> None:
        """Update last activity timestamp."""
        self.last_activity = utcnow()

    def enqueue(self, track: Track) -> int:
        """Append a track and return its one-based queue position."""
        if self.queue_length >= self.max_queue_size:
            raise BusinessRuleViolationError(
                rule="MAX_QUEUE_SIZE",
                message=ErrorMessages.QUEUE_FULL.format(limit=self.max_queue_size),
            )

        self.queue.append(track)
        self.touch()
        return len(self.queue)

    def dequeue(self) -> Track | None:
        """Remove and return the next track from the queue."""
        if not self.queue:
            return None

        track = self.queue.pop(0)
        self.touch()
        return track

    def next_track(self, *, suppress_loop: bool = False) -> Track | None:
        """Pick what plays after the current track.

        With loop enabled the current track is replayed, unless
        ``suppress_loop`` is set for this one transition.
        """
        if self.loop_enabled and not suppress_loop and self.now_playing is not None:
            return self.now_playing
        return self.dequeue()

    def clear_queue(self) -> int:
        """Clear all tracks from the queue and return the count removed."""
        count = len(self.queue)
        self.queue.clear()
        self.touch()
        return count

    def transition_to(self, new_state: SessionState) -> None:
        """Transition to a new playback state."""
        if not self.state.can_transition_to(new_state):
            raise InvalidOperationError(
                operation=f"transition to {new_state.value}",
                current_state=self.state.value,
                message=f"Cannot transition from {self.state.value} to {new_state.value}",
            )

        self.state = new_state
        self.touch()

    def begin_playback(self, track: Track) -> None:
        """Record that the player has started ``track``."""
        self.transition_to(SessionState.PLAYING)
        self.now_playing = track

    def drain(self) -> Track | None:
        """Clear the current track and enter the teardown window.

        Returns the track that was playing, if any.
        """
        last = self.now_playing
        self.transition_to(SessionState.DRAINING)
        self.now_playing = None
        return last

    def pause(self) -> None:
        if self.state != SessionState.PLAYING:
            raise InvalidOperationError(operation="pause", current_state=self.state.value)
        self.transition_to(SessionState.PAUSED)

    def resume(self) -> None:
        if self.state != SessionState.PAUSED:
            raise InvalidOperationError(operation="resume", current_state=self.state.value)
        self.transition_to(SessionState.PLAYING)

    def toggle_loop(self) -> bool:
        """Flip the loop flag and return its new value."""
        self.loop_enabled = not self.loop_enabled
        self.touch()
        return self.loop_enabled

    def set_volume(self, volume: float) -> None:
        self.volume = volume
        self.touch()

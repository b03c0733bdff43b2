"""TrackResolver implementation backed by yt-dlp."""

from __future__ import annotations

import asyncio
import logging
import re
import time
from typing import Any, Final, cast

from yt_dlp import YoutubeDL

from guild_jukebox.application.interfaces.track_resolver import TrackResolver
from guild_jukebox.config.settings import AudioSettings
from guild_jukebox.domain.playback.entities import Track
from guild_jukebox.domain.shared.exceptions import TrackResolutionError
from guild_jukebox.domain.shared.messages import LogTemplates
from guild_jukebox.infrastructure.audio.models import (
    CACHE_MAX_SIZE,
    CACHE_TTL,
    LOG_URL_TRUNCATE,
    AudioFormatInfo,
    CacheEntry,
    ExtractorArgs,
    YouTubeExtractorConfig,
    YtDlpOpts,
    YtDlpTrackInfo,
)

logger = logging.getLogger(__name__)

URL_PATTERNS: Final[list[re.Pattern[str]]] = [
    re.compile(r"https?://"),
    re.compile(r"www\."),
]


class YtDlpTrackResolver(TrackResolver):
    """Resolves URLs directly and anything else through a one-result search.

    Blocking yt-dlp calls run in a worker thread. URL lookups are cached
    for :data:`CACHE_TTL` seconds.
    """

    def __init__(self, settings: AudioSettings | None = None) -> None:
        self._settings = settings or AudioSettings()
        self._cache: dict[str, CacheEntry] = {}
        self._opts = YtDlpOpts(
            format=self._settings.ytdlp_format,
            extractor_args=ExtractorArgs(
                youtube=YouTubeExtractorConfig(pot_server_url=self._settings.pot_server_url)
            ),
        )
        logger.info(LogTemplates.YTDLP_POT_CONFIGURED, self._settings.pot_server_url)

    def is_url(self, query: str) -> bool:
        return any(pattern.search(query) for pattern in URL_PATTERNS)

    async def resolve(self, query: str) -> Track | None:
        query = query.strip()
        if not query:
            return None

        if self.is_url(query):
            info = await asyncio.to_thread(self._extract_info_sync, query)
        else:
            info = await asyncio.to_thread(self._search_sync, query)

        if info is None:
            return None
        return self._info_to_track(info)

    def _new_client(self) -> YoutubeDL:
        return YoutubeDL(params=cast(Any, self._opts.model_dump(exclude_none=True)))

    def _extract_info_sync(self, url: str) -> YtDlpTrackInfo | None:
        now = time.time()
        cached = self._cache.get(url)
        if cached is not None:
            if now - cached.cached_at < CACHE_TTL:
                logger.debug(LogTemplates.CACHE_HIT_URL, url[:LOG_URL_TRUNCATE])
                return cached.info
            self._cache.pop(url, None)

        try:
            with self._new_client() as ydl:
                data = ydl.extract_info(url, download=False)
        except Exception as e:
            logger.exception(LogTemplates.YTDLP_FAILED_EXTRACT_INFO, url)
            raise TrackResolutionError(url, reason=str(e)) from e

        result = YtDlpTrackInfo.model_validate(dict(data)) if isinstance(data, dict) else None
        self._cache[url] = CacheEntry(info=result, cached_at=now)
        self._prune_cache(now)
        return result

    def _search_sync(self, query: str) -> YtDlpTrackInfo | None:
        try:
            with self._new_client() as ydl:
                data = ydl.extract_info(f"ytsearch1:{query}", download=False)
        except Exception as e:
            logger.exception(LogTemplates.YTDLP_FAILED_SEARCH, query)
            raise TrackResolutionError(query, reason=str(e)) from e

        if not isinstance(data, dict):
            return None
        entries = data.get("entries") or []
        for entry in entries:
            if entry:
                return YtDlpTrackInfo.model_validate(dict(entry))
        return None

    def _prune_cache(self, now: float) -> None:
        if len(self._cache) <= CACHE_MAX_SIZE:
            return
        expired = [k for k, entry in self._cache.items() if now - entry.cached_at >= CACHE_TTL]
        for k in expired:
            self._cache.pop(k, None)
        if expired:
            logger.debug(LogTemplates.CACHE_EXPIRED_CLEANED, len(expired))

    def _info_to_track(self, info: YtDlpTrackInfo) -> Track | None:
        ref = info.webpage_url or info.url
        if not ref:
            logger.warning(LogTemplates.YTDLP_NO_URL_IN_INFO_DICT)
            return None

        stream_ref = info.url or self._stream_from_formats(info.formats)
        if not stream_ref:
            logger.warning(LogTemplates.YTDLP_NO_STREAM_URL, info.title)
            return None

        try:
            return Track(
                ref=ref,
                title=info.title,
                stream_ref=stream_ref,
                thumbnail_ref=info.thumbnail,
                duration_seconds=info.duration,
            )
        except Exception:
            logger.exception(LogTemplates.YTDLP_FAILED_INFO_TO_TRACK)
            return None

    @staticmethod
    def _stream_from_formats(formats: list[AudioFormatInfo]) -> str | None:
        audio_formats = [f for f in formats if f.acodec != "none" and f.url]
        return audio_formats[-1].url if audio_formats else None

"""
Sync session: the current sync point set and the corrections derived from it.
"""
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from .correction import DEFAULT_MIN_DURATION_MS, SyncPoint, apply_correction
from .errors import DuplicateSyncPointError, SessionFileError, UnknownSubtitleError, UnknownSyncPointError
from .srt import SubtitleEntry

logger = logging.getLogger( __name__ );

SESSION_VERSION = 1;


class SyncSession:
    """
    Holds original subtitle entries and an ordered set of sync points.

    Corrected entries are recomputed in full after every add, remove or
    clear, so they always reflect the current sync point set. With no
    sync points there are no corrected entries.
    """

    def __init__(
        self,
        entries: Sequence[SubtitleEntry],
        sync_points: Iterable[SyncPoint] = (),
        min_duration: int = DEFAULT_MIN_DURATION_MS,
        source: Optional[str] = None
    ):
        self.entries: Tuple[SubtitleEntry, ...] = tuple( entries );
        self.min_duration = min_duration;
        self.source = source;
        self.corrected: List[SubtitleEntry] = [];
        self._points: List[SyncPoint] = [];
        self._entries_by_id = { entry.id: entry for entry in self.entries };

        for point in sync_points:
            self._insert( point, replace=True );
        self._recompute();

    @property
    def sync_points( self ) -> Tuple[SyncPoint, ...]:
        """Sync points in insertion order."""
        return tuple( self._points );

    def __len__( self ):
        return len( self._points );

    def entry( self, subtitle_id: int ) -> SubtitleEntry:
        """Look up an original entry by its id."""
        try:
            return self._entries_by_id[subtitle_id];
        except KeyError:
            raise UnknownSubtitleError( f"No subtitle with id {subtitle_id}" ) from None;

    def _insert( self, point: SyncPoint, replace: bool ):
        existing = [ p for p in self._points if p.reference_time == point.reference_time ];

        if existing and not replace:
            raise DuplicateSyncPointError(
                f"A sync point already exists at {point.reference_time}ms"
            );

        for old_point in existing:
            self._points.remove( old_point );
            logger.debug( f"Replaced sync point {old_point.id} at {old_point.reference_time}ms" );

        self._points.append( point );

    def _recompute( self ):
        if not self._points:
            self.corrected = [];
            return;

        self.corrected = apply_correction( self.entries, self._points, min_duration=self.min_duration );
        logger.debug( f"Recomputed {len( self.corrected )} entries from {len( self._points )} sync points" );

    def add_point( self, point: SyncPoint, replace: bool = False ) -> SyncPoint:
        """
        Add a sync point and recompute corrections.

        Raises:
            DuplicateSyncPointError: If a point with the same reference time
                exists and replace is False
        """
        self._insert( point, replace );
        self._recompute();
        return point;

    def add( self, reference_time: int, target_time: int, subtitle_id: Optional[int] = None, replace: bool = False ) -> SyncPoint:
        """Create and add a sync point from raw times (ms)."""
        return self.add_point( SyncPoint( reference_time, target_time, subtitle_id ), replace=replace );

    def add_for_entry( self, subtitle_id: int, target_time: int, replace: bool = False ) -> SyncPoint:
        """Add a sync point asserting that an entry really starts at target_time."""
        entry = self.entry( subtitle_id );
        return self.add( entry.start_time, target_time, subtitle_id=entry.id, replace=replace );

    def remove( self, point_id: str ) -> SyncPoint:
        """Remove a sync point by id and recompute corrections."""
        for point in self._points:
            if point.id == point_id:
                self._points.remove( point );
                self._recompute();
                return point;

        raise UnknownSyncPointError( f"No sync point with id {point_id}" );

    def clear( self ):
        """Remove all sync points; corrected entries become empty."""
        self._points = [];
        self._recompute();

    def to_dict( self ) -> Dict:
        return {
            'version': SESSION_VERSION,
            'source': self.source,
            'saved_at': datetime.now().isoformat(),
            'sync_points': [ point.to_dict() for point in self._points ]
        };

    @classmethod
    def from_dict( cls, data: Dict, entries: Sequence[SubtitleEntry], min_duration: int = DEFAULT_MIN_DURATION_MS ) -> "SyncSession":
        """Rebuild a session from saved state; corrections are recomputed, not loaded."""
        if not isinstance( data, dict ) or not isinstance( data.get( 'sync_points', [] ), list ):
            raise SessionFileError( "Session data must be an object with a 'sync_points' list" );

        try:
            points = [ SyncPoint.from_dict( item ) for item in data.get( 'sync_points', [] ) ];
        except ( KeyError, TypeError, ValueError, OverflowError ) as e:
            raise SessionFileError( f"Invalid sync point in session data: {e}" ) from e;

        return cls( entries, points, min_duration=min_duration, source=data.get( 'source' ) );

    def save( self, path: Path ) -> Path:
        """Write the sync points to a JSON session file."""
        path = Path( path );
        path.write_text( json.dumps( self.to_dict(), indent=2 ), encoding="utf-8" );
        logger.debug( f"Saved {len( self._points )} sync points to {path}" );
        return path;

    @classmethod
    def load( cls, path: Path, entries: Sequence[SubtitleEntry], min_duration: int = DEFAULT_MIN_DURATION_MS ) -> "SyncSession":
        """
        Load sync points from a JSON session file.

        Raises:
            FileNotFoundError: If the session file does not exist
            SessionFileError: If the file is not valid session JSON
        """
        path = Path( path );
        if not path.exists():
            raise FileNotFoundError( f"Session file not found: {path}" );

        try:
            data = json.loads( path.read_text( encoding="utf-8" ) );
        except json.JSONDecodeError as e:
            raise SessionFileError( f"Invalid session file {path}: {e}" ) from e;

        return cls.from_dict( data, entries, min_duration=min_duration );

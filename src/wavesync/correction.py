"""
Sync point correction engine.

Maps subtitle timestamps through a piecewise-linear function built from
user supplied sync points (original subtitle time -> true media time).
"""
import logging
import math
import uuid
from bisect import bisect_right
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .srt import SubtitleEntry

logger = logging.getLogger( __name__ );

DEFAULT_MIN_DURATION_MS = 100;


def _new_point_id() -> str:
    return uuid.uuid4().hex;


@dataclass( frozen=True )
class SyncPoint:
    """A user asserted correspondence between a subtitle time and the media timeline."""

    reference_time: int;                    # Original subtitle time (ms)
    target_time: int;                       # Observed media time (ms)
    subtitle_id: Optional[int] = None;      # Entry the point was taken from
    id: str = field( default_factory=_new_point_id );

    @property
    def offset( self ) -> int:
        return self.target_time - self.reference_time;

    def to_dict( self ) -> Dict:
        return {
            'id': self.id,
            'reference_time': self.reference_time,
            'target_time': self.target_time,
            'subtitle_id': self.subtitle_id
        };

    @classmethod
    def from_dict( cls, data: Dict ) -> "SyncPoint":
        subtitle_id = data.get( 'subtitle_id' );
        return cls(
            reference_time=round_ms( float( data['reference_time'] ) ),
            target_time=round_ms( float( data['target_time'] ) ),
            subtitle_id=int( subtitle_id ) if subtitle_id is not None else None,
            id=str( data.get( 'id' ) or _new_point_id() )
        );


def round_ms( value: float ) -> int:
    """Round to the nearest millisecond, halves rounding up."""
    return int( math.floor( value + 0.5 ) );


def sort_sync_points( sync_points: Iterable[SyncPoint] ) -> List[SyncPoint]:
    """
    Return a working copy of the points sorted by reference time.

    Points sharing a reference time are collapsed to the one that comes
    last in the input, so the most recent assertion wins and no segment
    ever has zero width.
    """
    ordered = sorted( sync_points, key=lambda point: point.reference_time );

    unique = [];
    for point in ordered:
        if unique and unique[-1].reference_time == point.reference_time:
            logger.debug( f"Sync point {unique[-1].id} superseded by {point.id} at {point.reference_time}ms" );
            unique[-1] = point;
        else:
            unique.append( point );

    return unique;


def _extend( anchor: SyncPoint, first: SyncPoint, second: SyncPoint, timestamp: float ) -> float:
    """Continue the line through first/second, anchored at one of its end points."""
    slope = ( second.target_time - first.target_time ) / ( second.reference_time - first.reference_time );
    return anchor.target_time + slope * ( timestamp - anchor.reference_time );


def build_correction( sync_points: Iterable[SyncPoint] ) -> Callable[[float], float]:
    """
    Build the correction function for a set of sync points.

    - No points: identity
    - One point: constant offset
    - Two or more: linear interpolation between the bracketing points,
      linear extrapolation with the slope of the first/last segment outside them

    Args:
        sync_points: Sync points in any order

    Returns:
        Function mapping an original time (ms) to a corrected time (ms, unrounded)
    """
    points = sort_sync_points( sync_points );

    if not points:
        return lambda timestamp: timestamp;

    if len( points ) == 1:
        offset = points[0].offset;
        return lambda timestamp: timestamp + offset;

    references = [ point.reference_time for point in points ];
    first, second = points[0], points[1];
    before_last, last = points[-2], points[-1];

    def correct( timestamp: float ) -> float:
        if timestamp <= first.reference_time:
            return _extend( first, first, second, timestamp );

        if timestamp >= last.reference_time:
            return _extend( last, before_last, last, timestamp );

        index = bisect_right( references, timestamp ) - 1;
        lower, upper = points[index], points[index + 1];

        progress = ( timestamp - lower.reference_time ) / ( upper.reference_time - lower.reference_time );
        return lower.target_time + progress * ( upper.target_time - lower.target_time );

    return correct;


def apply_correction(
    entries: Sequence[SubtitleEntry],
    sync_points: Iterable[SyncPoint],
    min_duration: int = DEFAULT_MIN_DURATION_MS
) -> List[SubtitleEntry]:
    """
    Apply sync point corrections to every entry's start and end time.

    Always recomputes from the original entries; the inputs are never
    modified and the returned entries are new objects.

    A single sync point shifts everything by its offset, clamped so that
    start >= 0 and end >= start + min_duration. With two or more points
    each timestamp is interpolated independently and clamped so that
    start >= 0 and end >= start.

    Args:
        entries: Original subtitle entries
        sync_points: Current sync point set
        min_duration: Minimum displayable duration (ms) for single offset mode

    Returns:
        Corrected subtitle entries, in the same order as the input
    """
    points = sort_sync_points( sync_points );

    if not points:
        return [ entry.with_times( entry.start_time, entry.end_time ) for entry in entries ];

    corrected = [];

    if len( points ) == 1:
        offset = points[0].offset;
        logger.debug( f"Applying uniform offset of {offset}ms to {len( entries )} entries" );

        for entry in entries:
            start_time = max( 0, round_ms( entry.start_time + offset ) );
            end_time = max( start_time + min_duration, round_ms( entry.end_time + offset ) );
            corrected.append( entry.with_times( start_time, end_time ) );

        return corrected;

    correct = build_correction( points );
    logger.debug( f"Applying piecewise correction with {len( points )} sync points to {len( entries )} entries" );

    for entry in entries:
        start_time = max( 0, round_ms( correct( entry.start_time ) ) );
        end_time = max( start_time, round_ms( correct( entry.end_time ) ) );
        corrected.append( entry.with_times( start_time, end_time ) );

    return corrected;


def correction_stats( original: Sequence[SubtitleEntry], corrected: Sequence[SubtitleEntry] ) -> Dict:
    """Get statistics about the start time shifts between two entry lists."""
    shifts = [ after.start_time - before.start_time for before, after in zip( original, corrected ) ];

    if not shifts:
        return {};

    stats = {
        'num_entries': len( shifts ),
        'min_shift_ms': min( shifts ),
        'max_shift_ms': max( shifts ),
        'avg_shift_ms': sum( shifts ) / len( shifts ),
        'changed_entries': sum( 1 for shift in shifts if shift != 0 )
    };

    return stats;

"""
SRT codec: parsing and formatting of SubRip text and timestamps.

Timestamps are handled as integer milliseconds from media start.
"""
import logging
import math
import re
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple, Union

from .errors import FormatError

logger = logging.getLogger( __name__ );

TIMESTAMP_PATTERN = re.compile( r"([0-9]{2,}):([0-9]{2}):([0-9]{2}),([0-9]{3})" );
TIMING_PATTERN = re.compile( r"(\S+) --> (\S+)" );
INDEX_PATTERN = re.compile( r"[0-9]+" );

MS_PER_HOUR = 3600000;
MS_PER_MINUTE = 60000;
MS_PER_SECOND = 1000;


@dataclass( frozen=True )
class SubtitleEntry:
    """One subtitle block: id, start/end in milliseconds and its text lines."""

    id: int;                        # Sequence number from the source document
    start_time: int;                # Start time in milliseconds
    end_time: int;                  # End time in milliseconds
    text: Tuple[str, ...] = field( default_factory=tuple );  # Display lines, in order

    def __post_init__( self ):
        if not isinstance( self.text, tuple ):
            object.__setattr__( self, "text", tuple( self.text ) );

    @property
    def duration( self ) -> int:
        return self.end_time - self.start_time;

    @property
    def start_timestamp( self ) -> str:
        return format_timestamp( self.start_time );

    @property
    def end_timestamp( self ) -> str:
        return format_timestamp( self.end_time );

    def with_times( self, start_time: int, end_time: int ) -> "SubtitleEntry":
        """Return a copy of this entry with new start and end times."""
        return SubtitleEntry( self.id, start_time, end_time, self.text );

    def __repr__( self ):
        first_line = self.text[0] if self.text else "";
        return f"SubtitleEntry(id={self.id}, {self.start_timestamp} --> {self.end_timestamp}, text='{first_line[:30]}')";


def parse_timestamp( text: str ) -> int:
    """
    Parse an SRT timestamp (HH:MM:SS,mmm) into milliseconds.

    Hours take two or more digits; minutes and seconds exactly two,
    milliseconds exactly three.

    Args:
        text: Timestamp string

    Returns:
        Milliseconds from media start

    Raises:
        FormatError: If the string is not a valid timestamp
    """
    match = TIMESTAMP_PATTERN.fullmatch( text );
    if not match:
        raise FormatError( f"Invalid timestamp format: {text}" );

    hours, minutes, seconds, milliseconds = ( int( group ) for group in match.groups() );

    if minutes > 59 or seconds > 59:
        raise FormatError( f"Invalid timestamp format: {text}" );

    return hours * MS_PER_HOUR + minutes * MS_PER_MINUTE + seconds * MS_PER_SECOND + milliseconds;


def format_timestamp( ms: int ) -> str:
    """
    Format milliseconds as an SRT timestamp (HH:MM:SS,mmm).

    Hours are zero-padded to two digits and never wrap at 24.

    Raises:
        ValueError: If ms is negative
    """
    ms = int( ms );
    if ms < 0:
        raise ValueError( f"Cannot format negative timestamp: {ms}ms" );

    hours = ms // MS_PER_HOUR;
    minutes = ( ms % MS_PER_HOUR ) // MS_PER_MINUTE;
    seconds = ( ms % MS_PER_MINUTE ) // MS_PER_SECOND;
    milliseconds = ms % MS_PER_SECOND;

    return f"{hours:02d}:{minutes:02d}:{seconds:02d},{milliseconds:03d}";


def seconds_to_ms( seconds: float ) -> int:
    """Convert a playback position in float seconds to whole milliseconds."""
    return int( math.floor( seconds * 1000 + 0.5 ) );


# Parser states. A block moves AwaitingId -> AwaitingTiming -> AccumulatingText
# and returns to AwaitingId once a blank line closes it.

@dataclass( frozen=True )
class AwaitingId:
    pass


@dataclass( frozen=True )
class AwaitingTiming:
    id: int;


@dataclass( frozen=True )
class AccumulatingText:
    id: int;
    start_time: int;
    end_time: int;
    lines: Tuple[str, ...] = ();

    def to_entry( self ) -> SubtitleEntry:
        return SubtitleEntry( self.id, self.start_time, self.end_time, self.lines );


ParserState = Union[AwaitingId, AwaitingTiming, AccumulatingText];


def _split_lines( content: str ) -> List[str]:
    if content.startswith( "\ufeff" ):
        content = content[1:];
    return content.replace( "\r\n", "\n" ).replace( "\r", "\n" ).split( "\n" );


def _parse_index( line: str, line_number: int ) -> int:
    if not INDEX_PATTERN.fullmatch( line ) or int( line ) < 1:
        raise FormatError( "invalid subtitle id", line_number );
    return int( line );


def _parse_timing( line: str, line_number: int ) -> Tuple[int, int]:
    match = TIMING_PATTERN.fullmatch( line );
    if not match:
        raise FormatError( "invalid timestamp line", line_number );

    try:
        return parse_timestamp( match.group( 1 ) ), parse_timestamp( match.group( 2 ) );
    except FormatError as e:
        raise FormatError( f"invalid timestamp line ({e.message})", line_number ) from e;


def _step( state: ParserState, line: str, line_number: int, entries: List[SubtitleEntry] ) -> ParserState:
    """Advance the parser by one (already stripped) line."""
    if not line:
        # Blank lines only close a block that already holds text
        if isinstance( state, AccumulatingText ) and state.lines:
            entries.append( state.to_entry() );
            return AwaitingId();
        return state;

    if isinstance( state, AwaitingId ):
        return AwaitingTiming( _parse_index( line, line_number ) );

    if isinstance( state, AwaitingTiming ):
        start_time, end_time = _parse_timing( line, line_number );
        return AccumulatingText( state.id, start_time, end_time );

    return AccumulatingText( state.id, state.start_time, state.end_time, state.lines + ( line, ) );


def parse_srt( content: str ) -> List[SubtitleEntry]:
    """
    Parse SRT text into an ordered list of subtitle entries.

    Each block is an integer id line, a "HH:MM:SS,mmm --> HH:MM:SS,mmm"
    timing line and one or more text lines, closed by a blank line or the
    end of input. Blocks without any text line are dropped.

    Args:
        content: Raw SRT document

    Returns:
        List of SubtitleEntry objects in document order

    Raises:
        FormatError: On an invalid id or timing line, with its 1-based line number
    """
    entries = [];
    state = AwaitingId();

    for line_number, raw_line in enumerate( _split_lines( content ), start=1 ):
        state = _step( state, raw_line.strip(), line_number, entries );

    if isinstance( state, AccumulatingText ) and state.lines:
        entries.append( state.to_entry() );
    elif not isinstance( state, AwaitingId ):
        logger.debug( f"Dropped trailing subtitle {state.id} without text" );

    return entries;


def format_entry( entry: SubtitleEntry ) -> str:
    """Format a single entry as an SRT block, including its blank separator line."""
    return "\n".join( [
        str( entry.id ),
        f"{entry.start_timestamp} --> {entry.end_timestamp}",
        *entry.text,
        ""
    ] );


def format_srt( entries: Iterable[SubtitleEntry] ) -> str:
    """
    Format subtitle entries as SRT text.

    Entries are written in the order given; keeping them time-ordered is
    up to the caller.
    """
    return "\n".join( format_entry( entry ) for entry in entries );

"""
File handling for subtitle and media paths: reading, writing and discovery.
"""
import re
from pathlib import Path
from typing import List, Optional, Sequence
import pysrt

from .backup import create_backup
from .errors import FormatError, UnsupportedFileError
from .logging import get_logger
from .srt import SubtitleEntry, format_srt, parse_srt

VIDEO_EXTENSIONS = [ ".mp4", ".mkv", ".avi", ".mov", ".wmv", ".flv", ".webm", ".m4v" ];
AUDIO_EXTENSIONS = [ ".mp3", ".wav", ".m4a", ".aac", ".ogg", ".flac" ];
LANGUAGE_CODES = [ "eng", "english", "spa", "spanish", "fre", "french", "ger", "german" ];

LANGUAGE_SUFFIX_PATTERN = re.compile( r"\.(" + "|".join( LANGUAGE_CODES ) + r")$", re.IGNORECASE );


def is_video_file( filename ) -> bool:
    return Path( filename ).suffix.lower() in VIDEO_EXTENSIONS;


def is_audio_file( filename ) -> bool:
    return Path( filename ).suffix.lower() in AUDIO_EXTENSIONS;


def is_srt_file( filename ) -> bool:
    return str( filename ).lower().endswith( ".srt" );


def base_name( filename ) -> str:
    """
    Strip the extension and a trailing language code from a filename.

    S01E01.eng.srt -> S01E01
    S01E01.mkv -> S01E01
    """
    without_ext = re.sub( r"\.[^.]+$", "", Path( filename ).name );
    return LANGUAGE_SUFFIX_PATTERN.sub( "", without_ext );


def companion_srt_names( media_filename ) -> List[str]:
    """Candidate subtitle filenames for a media file, most likely first."""
    base = base_name( media_filename );
    return [ f"{base}.srt", f"{base}.eng.srt", f"{base}.english.srt" ];


def find_companion_srt( media_path: Path ) -> Optional[Path]:
    """Find a subtitle file next to a media file, if one exists."""
    media_path = Path( media_path );

    for name in companion_srt_names( media_path.name ):
        candidate = media_path.parent / name;
        if candidate.is_file():
            get_logger().debug( f"Found companion subtitles: {candidate}" );
            return candidate;

    return None;


def format_file_size( num_bytes: int ) -> str:
    """Format a byte count for display, e.g. 1536 -> '1.5 KB'."""
    if num_bytes <= 0:
        return "0 B";

    sizes = [ "B", "KB", "MB", "GB", "TB" ];
    value = float( num_bytes );
    i = 0;
    while value >= 1024 and i < len( sizes ) - 1:
        value /= 1024;
        i += 1;

    return f"{round( value, 2 ):g} {sizes[i]}";


def corrected_output_path( subtitle_file: Path ) -> Path:
    """Default output path for corrected subtitles: <stem>.corrected.srt."""
    subtitle_file = Path( subtitle_file );
    return subtitle_file.parent / f"{subtitle_file.stem}.corrected{subtitle_file.suffix}";


def validate_subtitle_file( subtitle_file: Path ):
    """
    Validate subtitle file existence and format.

    Raises:
        FileNotFoundError: If the file does not exist
        UnsupportedFileError: If the file is not an .srt file
    """
    if not subtitle_file.exists():
        raise FileNotFoundError( f"Subtitle file not found: {subtitle_file}" );

    if not is_srt_file( subtitle_file ):
        raise UnsupportedFileError(
            f"Only .srt files are supported, got: {subtitle_file.suffix or subtitle_file.name}"
        );


def _convert_pysrt_time( time ) -> int:
    return max( 0, (
        time.hours * 3600000 +
        time.minutes * 60000 +
        time.seconds * 1000 +
        time.milliseconds
    ) );


def _read_lenient( subtitle_file: Path, encoding: str ) -> List[SubtitleEntry]:
    """Read through pysrt, which skips unparseable blocks; ids are renumbered from 1."""
    subs = pysrt.open( str( subtitle_file ), encoding=encoding, error_handling=pysrt.SubRipFile.ERROR_PASS );

    entries = [];
    for sub in subs:
        lines = [ line.strip() for line in sub.text.splitlines() if line.strip() ];
        if not lines:
            continue;

        entries.append( SubtitleEntry(
            id=len( entries ) + 1,
            start_time=_convert_pysrt_time( sub.start ),
            end_time=_convert_pysrt_time( sub.end ),
            text=lines
        ) );

    return entries;


def read_srt_file( subtitle_file: Path, lenient: bool = False, encoding: str = "utf-8-sig" ) -> List[SubtitleEntry]:
    """
    Read and parse an SRT file.

    Args:
        subtitle_file: Path to the .srt file
        lenient: Skip malformed blocks instead of failing
        encoding: Text encoding of the file

    Returns:
        Parsed subtitle entries

    Raises:
        FileNotFoundError: If the file does not exist
        UnsupportedFileError: If the file is not an .srt file
        FormatError: If the file cannot be decoded, or (strict mode) parsed
    """
    logger = get_logger();
    subtitle_file = Path( subtitle_file );
    validate_subtitle_file( subtitle_file );

    logger.info( f"Parsing subtitle file: {subtitle_file} ({format_file_size( subtitle_file.stat().st_size )})" );

    if lenient:
        entries = _read_lenient( subtitle_file, encoding );
    else:
        try:
            content = subtitle_file.read_text( encoding=encoding );
        except UnicodeDecodeError as e:
            raise FormatError( f"Cannot decode {subtitle_file.name} as {encoding}: {e.reason}" ) from e;
        entries = parse_srt( content );

    logger.info( f"Parsed {len( entries )} subtitle entries" );
    return entries;


def write_srt_file( entries: Sequence[SubtitleEntry], output_file: Path, backup: bool = True, backup_dir: Path = None ) -> Path:
    """
    Write entries as an SRT file (UTF-8), backing up any file being replaced.

    Returns:
        Path to the written file
    """
    output_file = Path( output_file );

    if backup and output_file.exists():
        create_backup( output_file, backup_dir );

    output_file.write_text( format_srt( entries ), encoding="utf-8" );
    get_logger().info( f"Saved {len( entries )} subtitle entries: {output_file}" );

    return output_file;

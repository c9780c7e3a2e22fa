"""
CLI entry point for WaveSync with argument parsing and .env settings.
"""
import argparse
import math
import sys
from pathlib import Path
from typing import List, Tuple
from rich.table import Table

from . import __version__
from .config import Settings, load_settings
from .correction import SyncPoint, correction_stats
from .errors import ConfigurationError, FormatError, WaveSyncError
from .files import corrected_output_path, find_companion_srt, is_srt_file, read_srt_file, write_srt_file
from .logging import setup_logging
from .session import SyncSession
from .srt import TIMESTAMP_PATTERN, parse_timestamp, seconds_to_ms


def parse_time_value( value: str ) -> int:
    """Parse a time given as HH:MM:SS,mmm or as float seconds into milliseconds."""
    value = value.strip();

    if TIMESTAMP_PATTERN.fullmatch( value ):
        return parse_timestamp( value );

    try:
        seconds = float( value );
    except ValueError:
        raise FormatError( f"Invalid time value: {value} (use HH:MM:SS,mmm or seconds)" ) from None;

    if not math.isfinite( seconds ):
        raise FormatError( f"Invalid time value: {value} (must be a finite number)" );
    if seconds < 0:
        raise FormatError( f"Invalid time value: {value} (must not be negative)" );
    return seconds_to_ms( seconds );


def _split_pair( value: str ) -> Tuple[str, str]:
    left, sep, right = value.partition( "=" );
    if not sep or not left.strip() or not right.strip():
        raise argparse.ArgumentTypeError( f"expected LEFT=RIGHT, got: {value}" );
    return left, right;


def point_argument( value: str ) -> Tuple[int, int]:
    """argparse type for --point REF=TARGET."""
    reference, target = _split_pair( value );
    try:
        return parse_time_value( reference ), parse_time_value( target );
    except FormatError as e:
        raise argparse.ArgumentTypeError( str( e ) ) from None;


def entry_argument( value: str ) -> Tuple[int, int]:
    """argparse type for --entry ID=TARGET."""
    subtitle_id, target = _split_pair( value );
    if not subtitle_id.strip().isdigit():
        raise argparse.ArgumentTypeError( f"subtitle id must be a positive integer, got: {subtitle_id}" );
    try:
        return int( subtitle_id ), parse_time_value( target );
    except FormatError as e:
        raise argparse.ArgumentTypeError( str( e ) ) from None;


class WaveSyncCLI:
    """
    Command line interface for sync point subtitle correction.

    Sync points come from --point/--entry arguments and, optionally, a
    JSON session file that is updated with the final point set.
    """

    def __init__( self ):
        self.parser = self._create_parser();
        self.args = None;
        self.logger = None;
        self.settings: Settings = None;

    def _create_parser( self ):
        """Create argument parser with all WaveSync options."""
        parser = argparse.ArgumentParser(
            prog="wavesync",
            description="Correct drifting SRT subtitle timing from sync points",
            epilog="Environment variables: WAVESYNC_LOG_DIR, WAVESYNC_BACKUP_DIR, "
                   "WAVESYNC_MIN_DURATION_MS, WAVESYNC_ENCODING"
        );

        parser.add_argument(
            "--subs", "--srt", "--subtitle", "-s",
            type=Path,
            dest="subtitle",
            help="Path to subtitle file (.srt format only)"
        );

        parser.add_argument(
            "--media", "--video", "-m",
            type=Path,
            dest="media",
            help="Media file; used to find a companion .srt when --subs is omitted"
        );

        parser.add_argument(
            "--point", "-p",
            action="append",
            type=point_argument,
            default=[],
            dest="points",
            metavar="REF=TARGET",
            help="Sync point: original subtitle time = true media time "
                 "(HH:MM:SS,mmm or seconds). Repeatable."
        );

        parser.add_argument(
            "--entry", "-e",
            action="append",
            type=entry_argument,
            default=[],
            dest="entry_points",
            metavar="ID=TARGET",
            help="Sync point from subtitle ID's start time to the true media time. Repeatable."
        );

        parser.add_argument(
            "--session",
            type=Path,
            help="JSON session file to load sync points from and save them to"
        );

        parser.add_argument(
            "--output", "-o",
            type=Path,
            help="Output path (default: <name>.corrected.srt beside the input)"
        );

        parser.add_argument(
            "--min-duration",
            type=int,
            default=None,
            help="Minimum subtitle duration in ms for single point offsets (default: 100)"
        );

        parser.add_argument(
            "--preview",
            type=int,
            default=0,
            metavar="N",
            help="Show a table of the first N corrections"
        );

        parser.add_argument(
            "--lenient",
            action="store_true",
            help="Skip malformed subtitle blocks instead of failing"
        );

        parser.add_argument(
            "--no-backup",
            action="store_true",
            help="Do not back up an existing output file before overwriting it"
        );

        parser.add_argument(
            "--dry-run",
            action="store_true",
            help="Compute corrections without writing any file"
        );

        parser.add_argument(
            "--debug",
            action="store_true",
            help="Enable debug mode with verbose output"
        );

        parser.add_argument(
            "--version",
            action="version",
            version=f"%(prog)s {__version__}"
        );

        return parser;

    def _validate_arguments( self ):
        """Validate parsed arguments; returns a list of error messages."""
        errors = [];

        if self.args.subtitle is None:
            if self.args.media is None:
                errors.append( "A subtitle file is required (--subs), or --media with a companion .srt" );
            else:
                companion = find_companion_srt( self.args.media );
                if companion is None:
                    errors.append( f"No companion subtitle file found for: {self.args.media}" );
                else:
                    self.logger.info( f"Using companion subtitles: {companion}" );
                    self.args.subtitle = companion;

        if self.args.subtitle is not None:
            if not self.args.subtitle.exists():
                errors.append( f"Subtitle file not found: {self.args.subtitle}" );
            elif not is_srt_file( self.args.subtitle ):
                errors.append( f"Only .srt subtitle files are supported, got: {self.args.subtitle.suffix}" );

        if self.args.output is not None and not is_srt_file( self.args.output ):
            errors.append( f"Output file must have a .srt extension: {self.args.output}" );

        if self.args.min_duration is not None and self.args.min_duration < 0:
            errors.append( "Minimum duration must not be negative" );

        if self.args.preview < 0:
            errors.append( "Preview count must not be negative" );

        return errors;

    def parse_args( self, argv=None ):
        """Parse command line arguments and validate configuration."""
        self.args = self.parser.parse_args( argv );

        try:
            self.settings = load_settings();
        except ConfigurationError as e:
            self.logger = setup_logging( debug=self.args.debug );
            self.logger.error( f"Configuration error: {e}" );
            sys.exit( 1 );

        self.logger = setup_logging( debug=self.args.debug, log_dir=self.settings.log_dir );

        errors = self._validate_arguments();
        if errors:
            self.logger.error( "Configuration errors:" );
            for error in errors:
                self.logger.error( f"  - {error}" );
            sys.exit( 1 );

        if self.args.min_duration is None:
            self.args.min_duration = self.settings.min_duration_ms;

        self.logger.info( f"WaveSync v{__version__} starting..." );
        self.logger.info( f"Subtitles: {self.args.subtitle}" );
        self.logger.debug( f"Debug mode: {self.args.debug}" );

        return self.args;

    def build_session( self ) -> SyncSession:
        """Load subtitles and collect sync points from the session file and arguments."""
        entries = read_srt_file(
            self.args.subtitle,
            lenient=self.args.lenient,
            encoding=self.settings.encoding
        );

        if self.args.session and self.args.session.exists():
            session = SyncSession.load( self.args.session, entries, min_duration=self.args.min_duration );
            self.logger.info( f"Loaded {len( session )} sync point(s) from {self.args.session}" );
        else:
            session = SyncSession( entries, min_duration=self.args.min_duration, source=self.args.subtitle.name );

        # Points given on the command line replace saved ones at the same reference time
        for reference_time, target_time in self.args.points:
            session.add_point( SyncPoint( reference_time, target_time ), replace=True );

        for subtitle_id, target_time in self.args.entry_points:
            session.add_for_entry( subtitle_id, target_time, replace=True );

        return session;

    def show_preview( self, original: List, corrected: List, limit: int ):
        """Print a table of the first corrections."""
        table = Table( title=f"First {min( limit, len( corrected ) )} corrections" );
        table.add_column( "ID", justify="right" );
        table.add_column( "Original" );
        table.add_column( "Corrected" );
        table.add_column( "Shift (ms)", justify="right" );

        for before, after in list( zip( original, corrected ) )[:limit]:
            table.add_row(
                str( before.id ),
                f"{before.start_timestamp} --> {before.end_timestamp}",
                f"{after.start_timestamp} --> {after.end_timestamp}",
                f"{after.start_time - before.start_time:+d}"
            );

        self.logger.console.print( table );

    def run( self ) -> int:
        """Run the correction; returns the process exit code."""
        session = self.build_session();

        if not session.sync_points:
            self.logger.warning( "No sync points given; subtitles are written unchanged" );
            corrected = list( session.entries );
        else:
            corrected = session.corrected;
            self.logger.info( f"Applied {len( session )} sync point(s)" );
            for point in sorted( session.sync_points, key=lambda p: p.reference_time ):
                self.logger.debug( f"  {point.reference_time}ms -> {point.target_time}ms ({point.offset:+d}ms)" );

        stats = correction_stats( session.entries, corrected );
        if stats:
            self.logger.info( f"Shifted {stats['changed_entries']}/{stats['num_entries']} entries, "
                              f"start shift {stats['min_shift_ms']:+d}ms to {stats['max_shift_ms']:+d}ms "
                              f"(avg {stats['avg_shift_ms']:+.0f}ms)" );

        if self.args.preview:
            self.show_preview( session.entries, corrected, self.args.preview );

        output_file = self.args.output or corrected_output_path( self.args.subtitle );

        if self.args.dry_run:
            self.logger.info( f"Dry run: Would save corrected subtitles to {output_file}" );
            return 0;

        write_srt_file(
            corrected,
            output_file,
            backup=not self.args.no_backup,
            backup_dir=self.settings.backup_dir
        );

        if self.args.session:
            session.save( self.args.session );
            self.logger.info( f"Saved {len( session )} sync point(s) to {self.args.session}" );

        return 0;


def main( argv=None ):
    """Main entry point for the WaveSync CLI."""
    cli = WaveSyncCLI();
    args = cli.parse_args( argv );

    try:
        exit_code = cli.run();
    except FormatError as e:
        cli.logger.error( f"Invalid subtitle file {args.subtitle}: {e}" );
        exit_code = 1;
    except WaveSyncError as e:
        cli.logger.error( str( e ) );
        exit_code = 1;
    except KeyboardInterrupt:
        cli.logger.warning( "Interrupted by user" );
        exit_code = 130;
    except Exception as e:
        cli.logger.error( f"Unexpected error: {e}" );
        if args.debug:
            raise;
        exit_code = 1;

    sys.exit( exit_code );


if __name__ == "__main__":
    main();

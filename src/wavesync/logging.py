"""
Logging system for WaveSync with 5MB startup rotation and Rich integration.
"""
import logging
import shutil
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from rich.console import Console
from rich.logging import RichHandler

MAX_LOG_BYTES = 5 * 1024 * 1024;  # 5MB


class WaveSyncLogger:
    """
    Application logger for WaveSync with log rotation and Rich display.

    Handlers are attached to the "wavesync" logger, so module loggers
    (logging.getLogger( __name__ )) inside the package share them.

    Features:
    - 5MB size check on startup, rotates if exceeded
    - Rich console output with colors
    - File logging with rotation
    - INFO default, DEBUG with --debug flag
    """

    def __init__( self, name: str = "wavesync", debug: bool = False, log_dir: Path = None ):
        self.name = name;
        self.debug_enabled = debug;
        self.console = Console( stderr=True );

        self.logs_dir = Path( log_dir ) if log_dir else Path( "logs" );
        self.logs_dir.mkdir( parents=True, exist_ok=True );

        self.log_file = self.logs_dir / f"{name}.log";

        self._check_and_rotate_on_startup();

        self.logger = self._setup_logger();

    def _check_and_rotate_on_startup( self ):
        """Check log file size on startup and rotate if >5MB."""
        if self.log_file.exists():
            file_size = self.log_file.stat().st_size;
            if file_size > MAX_LOG_BYTES:
                timestamp = datetime.now().isoformat().replace( ":", "-" );
                backup_name = self.logs_dir / f"{self.name}.{timestamp}.log";

                shutil.move( str( self.log_file ), str( backup_name ) );
                self.console.print( f"Rotated log file to {backup_name}" );

    def _setup_logger( self ):
        """Setup logger with Rich console and file handlers."""
        logger = logging.getLogger( self.name );
        logger.setLevel( logging.DEBUG if self.debug_enabled else logging.INFO );
        logger.propagate = False;

        # Clear existing handlers
        for handler in logger.handlers[:]:
            logger.removeHandler( handler );
            handler.close();

        console_handler = RichHandler(
            console=self.console,
            rich_tracebacks=True,
            show_time=True,
            show_path=self.debug_enabled
        );
        console_handler.setLevel( logging.DEBUG if self.debug_enabled else logging.INFO );
        console_handler.setFormatter( logging.Formatter( "%(message)s" ) );
        logger.addHandler( console_handler );

        file_handler = RotatingFileHandler(
            self.log_file,
            maxBytes=MAX_LOG_BYTES,
            backupCount=5,
            encoding="utf-8"
        );
        file_handler.setLevel( logging.DEBUG );
        file_handler.setFormatter( logging.Formatter(
            "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        ) );
        logger.addHandler( file_handler );

        return logger;

    def debug( self, message, **kwargs ):
        self.logger.debug( message, **kwargs );

    def info( self, message, **kwargs ):
        self.logger.info( message, **kwargs );

    def warning( self, message, **kwargs ):
        self.logger.warning( message, **kwargs );

    def error( self, message, **kwargs ):
        self.logger.error( message, **kwargs );

    def critical( self, message, **kwargs ):
        self.logger.critical( message, **kwargs );


# Global logger instance
_logger = None;


def get_logger( debug: bool = False, log_dir: Path = None ) -> WaveSyncLogger:
    """Get the global WaveSync logger instance."""
    global _logger;
    if _logger is None:
        _logger = WaveSyncLogger( debug=debug, log_dir=log_dir );
    return _logger;


def setup_logging( debug: bool = False, log_dir: Path = None ) -> WaveSyncLogger:
    """(Re)configure logging for the application."""
    global _logger;
    _logger = WaveSyncLogger( debug=debug, log_dir=log_dir );
    return _logger;

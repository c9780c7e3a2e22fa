"""
Exception hierarchy for WaveSync.
"""
from typing import Optional


class WaveSyncError( Exception ):
    """Base class for all WaveSync errors."""
    pass


class FormatError( WaveSyncError, ValueError ):
    """
    Malformed SRT text or timestamp.
    
    Carries a human readable message and, when known, the 1-based
    source line the failure was detected on.
    """
    
    def __init__( self, message: str, line: Optional[int] = None ):
        self.message = message;
        self.line = line;
        super().__init__( message if line is None else f"line {line}: {message}" );


class ConfigurationError( WaveSyncError ):
    """Invalid value in environment or .env configuration."""
    pass


class UnsupportedFileError( WaveSyncError ):
    """File is not an .srt subtitle file."""
    pass


class DuplicateSyncPointError( WaveSyncError ):
    """A sync point with the same reference time already exists."""
    pass


class UnknownSyncPointError( WaveSyncError, KeyError ):
    """No sync point with the requested id."""
    
    def __str__( self ):
        return Exception.__str__( self );


class UnknownSubtitleError( WaveSyncError, KeyError ):
    """No subtitle entry with the requested id."""
    
    def __str__( self ):
        return Exception.__str__( self );


class SessionFileError( WaveSyncError ):
    """Session file could not be read or has an invalid structure."""
    pass

"""
Shared fixtures for WaveSync tests.
"""
import sys
from pathlib import Path
import pytest

# Add src directory to path for testing
sys.path.insert( 0, str( Path( __file__ ).parent.parent / "src" ) );

SAMPLES_DIR = Path( __file__ ).parent / "samples";


@pytest.fixture( autouse=True )
def isolated_cwd( tmp_path, monkeypatch ):
    """Run every test in a scratch directory so logs/ and backup/ stay out of the repo."""
    import wavesync.logging as wavesync_logging;

    monkeypatch.chdir( tmp_path );
    for name in ( "WAVESYNC_LOG_DIR", "WAVESYNC_BACKUP_DIR", "WAVESYNC_MIN_DURATION_MS", "WAVESYNC_ENCODING" ):
        monkeypatch.delenv( name, raising=False );
    monkeypatch.setattr( wavesync_logging, "_logger", None );
    yield tmp_path;


@pytest.fixture
def sample_srt() -> Path:
    return SAMPLES_DIR / "sample.srt";


@pytest.fixture
def sample_content( sample_srt ) -> str:
    return sample_srt.read_text( encoding="utf-8" );

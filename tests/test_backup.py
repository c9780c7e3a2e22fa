"""
Test cases for backup creation and retention.
"""
from datetime import datetime, timedelta
from unittest.mock import patch
import pytest

from wavesync.backup import BackupManager, create_backup


class TestBackupManager:
    """Test backup naming, discovery and retention."""

    def test_backup_filename( self, tmp_path ):
        manager = BackupManager( tmp_path / "backup" );
        name = manager.get_backup_filename( tmp_path / "movie.eng.srt", now=datetime( 2024, 5, 1, 12, 30, 0 ) );

        assert name == "movie.eng.2024-05-01T12-30-00.srt";

    def test_backup_filename_with_sequence( self, tmp_path ):
        manager = BackupManager( tmp_path / "backup" );
        name = manager.get_backup_filename( tmp_path / "movie.srt", now=datetime( 2024, 5, 1, 12, 30, 0 ), sequence=2 );

        assert name == "movie.2024-05-01T12-30-00_2.srt";

    def test_create_backup( self, tmp_path ):
        original = tmp_path / "movie.srt";
        original.write_text( "content" );

        backup_path = create_backup( original, tmp_path / "backup" );

        assert backup_path.parent == tmp_path / "backup";
        assert backup_path.read_text() == "content";

    def test_backups_within_the_same_second_are_kept( self, tmp_path ):
        manager = BackupManager( tmp_path / "backup" );
        original = tmp_path / "movie.srt";
        now = datetime( 2024, 5, 1, 12, 30, 0 );

        with patch( "wavesync.backup.datetime" ) as mock_datetime:
            mock_datetime.now.return_value = now;
            mock_datetime.strptime = datetime.strptime;

            original.write_text( "first" );
            first = manager.create_backup( original );
            original.write_text( "second" );
            second = manager.create_backup( original );

        assert first != second;
        assert first.read_text() == "first";
        assert second.read_text() == "second";
        assert [ path for path, _, _ in manager.get_existing_backups( original ) ] == [ first, second ];

    def test_create_backup_missing_file( self, tmp_path ):
        with pytest.raises( FileNotFoundError ):
            create_backup( tmp_path / "missing.srt", tmp_path / "backup" );

    def test_existing_backups_sorted_oldest_first( self, tmp_path ):
        manager = BackupManager( tmp_path / "backup" );
        manager.backup_dir.mkdir();
        original = tmp_path / "movie.eng.srt";

        start = datetime( 2024, 1, 1 );
        for hours in [ 3, 1, 2 ]:
            name = manager.get_backup_filename( original, now=start + timedelta( hours=hours ) );
            ( manager.backup_dir / name ).write_text( "x" );
        ( manager.backup_dir / "movie.eng.not-a-date.srt" ).write_text( "x" );

        backups = manager.get_existing_backups( original );

        assert [ timestamp.hour for _, timestamp, _ in backups ] == [ 1, 2, 3 ];

    def test_retention_removes_oldest( self, tmp_path ):
        manager = BackupManager( tmp_path / "backup" );
        manager.backup_dir.mkdir();
        manager.max_small_files = 2;
        original = tmp_path / "movie.srt";
        original.write_text( "small" );

        start = datetime( 2024, 1, 1 );
        for hours in range( 4 ):
            name = manager.get_backup_filename( original, now=start + timedelta( hours=hours ) );
            ( manager.backup_dir / name ).write_text( "x" );

        removed = manager.apply_retention_policy( original );

        remaining = manager.get_existing_backups( original );
        assert removed == 2;
        assert [ timestamp.hour for _, timestamp, _ in remaining ] == [ 2, 3 ];

    def test_retention_uses_large_file_limit( self, tmp_path ):
        manager = BackupManager( tmp_path / "backup" );
        manager.backup_dir.mkdir();
        manager.size_threshold = 10;
        manager.max_small_files = 5;
        manager.max_large_files = 1;
        original = tmp_path / "movie.srt";
        original.write_text( "a large enough file" );

        start = datetime( 2024, 1, 1 );
        for hours in range( 3 ):
            name = manager.get_backup_filename( original, now=start + timedelta( hours=hours ) );
            ( manager.backup_dir / name ).write_text( "x" );

        assert manager.apply_retention_policy( original ) == 2;
        assert len( manager.get_existing_backups( original ) ) == 1;

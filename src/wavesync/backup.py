"""
Timestamped backups of subtitle files before they are overwritten.
"""
import shutil
from datetime import datetime
from pathlib import Path
from typing import List, Tuple

from .logging import get_logger

BACKUP_TIMESTAMP_FORMAT = "%Y-%m-%dT%H-%M-%S";


class BackupManager:
    """
    Manages backup copies with a retention policy based on file size.

    Rules:
    - Files <150KB: Keep up to 50 copies
    - Files ≥150KB: Keep up to 25 copies
    - ISO-8601 timestamped copies, e.g. movie.2024-05-01T12-30-00.srt
      (movie.2024-05-01T12-30-00_1.srt for a second copy within the same second)
    """

    def __init__( self, backup_dir: Path = None ):
        self.logger = get_logger();
        self.backup_dir = Path( backup_dir ) if backup_dir else Path( "backup" );

        self.size_threshold = 150 * 1024;  # 150KB
        self.max_small_files = 50;
        self.max_large_files = 25;

    def get_backup_filename( self, original_file: Path, now: datetime = None, sequence: int = 0 ) -> str:
        """
        Generate backup filename with an ISO-8601 timestamp (no microseconds).

        A non-zero sequence is appended for further backups within the same second.
        """
        timestamp = ( now or datetime.now() ).strftime( BACKUP_TIMESTAMP_FORMAT );
        if sequence:
            timestamp = f"{timestamp}_{sequence}";
        return f"{original_file.stem}.{timestamp}{original_file.suffix}";

    def get_existing_backups( self, original_file: Path ) -> List[Tuple[Path, datetime, int]]:
        """
        Get existing backups of a file, oldest first.

        Returns:
            List of (backup_path, timestamp, size_bytes) tuples
        """
        if not self.backup_dir.exists():
            return [];

        pattern = f"{original_file.stem}.????-??-??T??-??-??*{original_file.suffix}";

        backup_info = [];
        for backup_path in self.backup_dir.glob( pattern ):
            try:
                timestamp_str, _, sequence = backup_path.stem.rsplit( ".", 1 )[1].partition( "_" );
                timestamp = datetime.strptime( timestamp_str, BACKUP_TIMESTAMP_FORMAT );
                size_bytes = backup_path.stat().st_size;
                backup_info.append( ( backup_path, timestamp, size_bytes, int( sequence or 0 ) ) );

            except ( ValueError, IndexError, OSError ) as e:
                self.logger.debug( f"Skipping malformed backup file {backup_path}: {e}" );

        backup_info.sort( key=lambda x: ( x[1], x[3] ) );
        return [ ( path, timestamp, size_bytes ) for path, timestamp, size_bytes, _ in backup_info ];

    def apply_retention_policy( self, original_file: Path ) -> int:
        """
        Remove the oldest backups of a file beyond the retention limit.

        Returns:
            Number of backups removed
        """
        backups = self.get_existing_backups( original_file );
        if not backups:
            return 0;

        if original_file.exists():
            current_size = original_file.stat().st_size;
        else:
            current_size = sum( size for _, _, size in backups ) / len( backups );

        max_backups = self.max_small_files if current_size < self.size_threshold else self.max_large_files;

        if len( backups ) <= max_backups:
            return 0;

        backups_to_remove = backups[:-max_backups];

        removed_count = 0;
        for backup_path, _, _ in backups_to_remove:
            try:
                backup_path.unlink();
                removed_count += 1;
                self.logger.debug( f"Removed old backup: {backup_path.name}" );
            except OSError as e:
                self.logger.warning( f"Could not remove backup {backup_path}: {e}" );

        if removed_count:
            self.logger.info( f"Removed {removed_count} old backup(s) to enforce retention policy" );

        return removed_count;

    def create_backup( self, file_path: Path ) -> Path:
        """
        Copy a file into the backup directory and apply the retention policy.

        Raises:
            FileNotFoundError: If the file does not exist
        """
        file_path = Path( file_path );
        if not file_path.exists():
            raise FileNotFoundError( f"File to backup not found: {file_path}" );

        self.backup_dir.mkdir( parents=True, exist_ok=True );
        now = datetime.now();
        sequence = 0;
        backup_path = self.backup_dir / self.get_backup_filename( file_path, now );
        while backup_path.exists():
            sequence += 1;
            backup_path = self.backup_dir / self.get_backup_filename( file_path, now, sequence );

        shutil.copy2( file_path, backup_path );
        self.logger.info( f"Created backup: {backup_path}" );

        self.apply_retention_policy( file_path );

        return backup_path;


def create_backup( file_path: Path, backup_dir: Path = None ) -> Path:
    """
    Convenience function to create a backup file.

    Args:
        file_path: Path to file to backup
        backup_dir: Optional backup directory (defaults to ./backup)

    Returns:
        Path to created backup file
    """
    return BackupManager( backup_dir ).create_backup( file_path );

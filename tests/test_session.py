"""
Test cases for sync session management and session files.
"""
import json
import pytest

from wavesync.errors import (
    DuplicateSyncPointError,
    SessionFileError,
    UnknownSubtitleError,
    UnknownSyncPointError
)
from wavesync.session import SyncSession
from wavesync.srt import parse_srt


@pytest.fixture
def entries( sample_content ):
    return parse_srt( sample_content );


class TestSyncSession:
    """Test add/remove/clear and live recomputation."""

    def test_new_session_has_no_corrections( self, entries ):
        session = SyncSession( entries );

        assert session.sync_points == ();
        assert session.corrected == [];
        assert len( session ) == 0;

    def test_add_recomputes( self, entries ):
        session = SyncSession( entries );

        session.add( 0, 500 );

        assert len( session.corrected ) == len( entries );
        assert session.corrected[0].start_time == entries[0].start_time + 500;

    def test_add_for_entry_uses_entry_start( self, entries ):
        session = SyncSession( entries );

        point = session.add_for_entry( 3, 8000 );

        assert point.reference_time == entries[2].start_time;
        assert point.subtitle_id == 3;
        assert session.corrected[2].start_time == 8000;

    def test_add_for_unknown_entry( self, entries ):
        session = SyncSession( entries );

        with pytest.raises( UnknownSubtitleError ):
            session.add_for_entry( 999, 1000 );

    def test_duplicate_reference_rejected( self, entries ):
        session = SyncSession( entries );
        session.add( 1000, 1500 );

        with pytest.raises( DuplicateSyncPointError ):
            session.add( 1000, 2000 );

        assert len( session ) == 1;

    def test_duplicate_negative_reference_rejected( self, entries ):
        session = SyncSession( entries );
        session.add( -500, 0 );

        with pytest.raises( DuplicateSyncPointError ):
            session.add( -500, 100 );

    def test_duplicate_reference_replaced( self, entries ):
        session = SyncSession( entries );
        old_point = session.add( 1000, 1500 );

        new_point = session.add( 1000, 2000, replace=True );

        assert session.sync_points == ( new_point, );
        assert old_point not in session.sync_points;

    def test_remove_recomputes( self, entries ):
        session = SyncSession( entries );
        first = session.add( 0, 0 );
        session.add( 10000, 11000 );

        session.remove( first.id );

        # a single remaining point is a uniform +1000ms offset
        assert session.corrected[0].start_time == entries[0].start_time + 1000;

    def test_remove_last_point_clears_corrections( self, entries ):
        session = SyncSession( entries );
        point = session.add( 0, 500 );

        session.remove( point.id );

        assert session.corrected == [];

    def test_remove_unknown_point( self, entries ):
        session = SyncSession( entries );

        with pytest.raises( UnknownSyncPointError ):
            session.remove( "missing" );

    def test_clear( self, entries ):
        session = SyncSession( entries );
        session.add( 0, 0 );
        session.add( 10000, 11000 );

        session.clear();

        assert session.sync_points == ();
        assert session.corrected == [];

    def test_corrections_match_full_recompute( self, entries ):
        from wavesync.correction import apply_correction;

        session = SyncSession( entries );
        session.add( 0, 100 );
        session.add( 30000, 31500 );
        removable = session.add( 20000, 25000 );
        session.remove( removable.id );

        assert session.corrected == apply_correction( entries, session.sync_points );

    def test_originals_untouched( self, entries ):
        session = SyncSession( entries );
        session.add( 0, 5000 );

        assert list( session.entries ) == entries;


class TestSessionFiles:
    """Test JSON save/load of sync points."""

    def test_save_and_load( self, entries, tmp_path ):
        session = SyncSession( entries, source="sample.srt" );
        session.add( 0, 100 );
        session.add_for_entry( 12, 70000 );

        path = session.save( tmp_path / "session.json" );
        loaded = SyncSession.load( path, entries );

        assert loaded.sync_points == session.sync_points;
        assert loaded.corrected == session.corrected;
        assert loaded.source == "sample.srt";

    def test_saved_structure( self, entries, tmp_path ):
        session = SyncSession( entries );
        session.add( 1000, 1500, subtitle_id=1 );

        data = json.loads( session.save( tmp_path / "session.json" ).read_text() );

        assert data['version'] == 1;
        assert data['sync_points'][0]['reference_time'] == 1000;
        assert data['sync_points'][0]['target_time'] == 1500;
        assert data['sync_points'][0]['subtitle_id'] == 1;
        assert 'saved_at' in data;

    def test_load_missing_file( self, entries, tmp_path ):
        with pytest.raises( FileNotFoundError ):
            SyncSession.load( tmp_path / "nope.json", entries );

    def test_load_invalid_json( self, entries, tmp_path ):
        path = tmp_path / "broken.json";
        path.write_text( "{not json" );

        with pytest.raises( SessionFileError ):
            SyncSession.load( path, entries );

    @pytest.mark.parametrize( "data", [
        [],
        { 'sync_points': "nope" },
        { 'sync_points': [ { 'target_time': 10 } ] },
        { 'sync_points': [ { 'reference_time': "abc", 'target_time': 10 } ] },
        { 'sync_points': [ { 'reference_time': "inf", 'target_time': 10 } ] }
    ] )
    def test_invalid_structure( self, entries, data ):
        with pytest.raises( SessionFileError ):
            SyncSession.from_dict( data, entries );

    def test_from_dict_with_duplicate_references_keeps_last( self, entries ):
        data = { 'sync_points': [
            { 'id': "a", 'reference_time': 1000, 'target_time': 1500 },
            { 'id': "b", 'reference_time': 1000, 'target_time': 2000 }
        ] };

        session = SyncSession.from_dict( data, entries );

        assert [ point.id for point in session.sync_points ] == [ "b" ];

    def test_load_negative_target( self, entries, tmp_path ):
        path = tmp_path / "early.json";
        path.write_text( json.dumps( { 'sync_points': [ { 'reference_time': 1000, 'target_time': -200 } ] } ) );

        session = SyncSession.load( path, entries );

        assert session.sync_points[0].offset == -1200;
        assert ( session.corrected[0].start_time, session.corrected[0].end_time ) == ( 0, 2235 );
        assert session.corrected[2].start_time == 5820;

import random

import pytest

from csv2playlist.application.sync import TrackSyncEngine, select_new_track_ids
from csv2playlist.domain.entities import SyncOutcome, TrackRecord
from csv2playlist.domain.errors import RemoteTransportError


PLAYLIST_ID = "test_playlist_id1"
# Alphabetical so the canonical (sorted) submission order matches input order
TRACK_IDS = ["3ndjkfd9", "asqww_nf", "vvcs33"]


def _records(ids):
    return [TrackRecord(name=f"song {i}", track_id=track_id) for i, track_id in enumerate(ids)]


class TestTrackSyncEngine:
    """Tests for filtering and adding tracks."""

    def test_adds_all_tracks_to_empty_playlist(self, fake_api_factory):
        api = fake_api_factory(tracks={PLAYLIST_ID: []})

        result = TrackSyncEngine(api).sync(PLAYLIST_ID, _records(TRACK_IDS))

        assert result.outcome is SyncOutcome.ADDED
        assert result.submitted == tuple(TRACK_IDS)
        assert result.added == 3
        assert api.calls_to("list_track_ids") == [(PLAYLIST_ID,)]
        assert api.calls_to("add_tracks") == [(PLAYLIST_ID, TRACK_IDS)]
        # Resolution capabilities are not touched
        assert api.calls_to("find_playlist_id") == []
        assert api.calls_to("create_playlist") == []

    def test_skips_tracks_already_in_playlist(self, fake_api_factory):
        api = fake_api_factory(tracks={PLAYLIST_ID: [TRACK_IDS[0], TRACK_IDS[2]]})

        result = TrackSyncEngine(api).sync(PLAYLIST_ID, _records(TRACK_IDS))

        assert result.outcome is SyncOutcome.ADDED
        assert api.calls_to("add_tracks") == [(PLAYLIST_ID, ["asqww_nf"])]
        assert result.already_present == 2
        assert result.requested == 3

    def test_removes_duplicates_from_input(self, fake_api_factory):
        api = fake_api_factory(tracks={PLAYLIST_ID: []})
        desired = ["vvcs33", "3ndjkfd9", "vvcs33"]

        result = TrackSyncEngine(api).sync(PLAYLIST_ID, _records(desired))

        (call,) = api.calls_to("add_tracks")
        assert sorted(call[1]) == ["3ndjkfd9", "vvcs33"]
        assert len(call[1]) == len(set(call[1]))
        assert result.requested == 3

    def test_nothing_to_add_when_all_present(self, fake_api_factory):
        api = fake_api_factory(tracks={PLAYLIST_ID: list(TRACK_IDS)})

        result = TrackSyncEngine(api).sync(PLAYLIST_ID, _records(TRACK_IDS))

        assert result.outcome is SyncOutcome.NOTHING_TO_ADD
        assert result.submitted == ()
        assert result.added == 0
        assert api.calls_to("add_tracks") == []

    def test_duplicates_of_existing_tracks_yield_nothing_to_add(self, fake_api_factory):
        api = fake_api_factory(tracks={PLAYLIST_ID: ["asqww_nf"]})

        result = TrackSyncEngine(api).sync(PLAYLIST_ID, _records(["asqww_nf", "asqww_nf"]))

        assert result.outcome is SyncOutcome.NOTHING_TO_ADD
        assert result.already_present == 1
        assert api.calls_to("add_tracks") == []

    def test_empty_input_still_lists_playlist(self, fake_api_factory):
        api = fake_api_factory(tracks={PLAYLIST_ID: ["asqww_nf"]})

        result = TrackSyncEngine(api).sync(PLAYLIST_ID, [])

        assert result.outcome is SyncOutcome.NOTHING_TO_ADD
        assert api.calls_to("list_track_ids") == [(PLAYLIST_ID,)]
        assert api.calls_to("add_tracks") == []

    def test_listing_error_prevents_addition(self, fake_api_factory):
        error = RemoteTransportError("list_tracks", "bad gateway", http_status=502)
        api = fake_api_factory(list_error=error)

        with pytest.raises(RemoteTransportError) as exc_info:
            TrackSyncEngine(api).sync(PLAYLIST_ID, _records(TRACK_IDS))

        assert exc_info.value is error
        assert api.calls_to("add_tracks") == []

    def test_addition_error_propagates(self, fake_api_factory):
        error = RemoteTransportError("add_tracks", "forbidden", http_status=403)
        api = fake_api_factory(tracks={PLAYLIST_ID: []}, add_error=error)

        with pytest.raises(RemoteTransportError) as exc_info:
            TrackSyncEngine(api).sync(PLAYLIST_ID, _records(TRACK_IDS))

        assert exc_info.value is error
        assert api.calls_to("add_tracks") == [(PLAYLIST_ID, TRACK_IDS)]

    def test_accepts_lazy_listing(self, fake_api_factory):
        """Listing may be a generator; it is consumed before adding."""
        api = fake_api_factory()
        api.list_track_ids = lambda playlist_id: (t for t in ["vvcs33"])

        result = TrackSyncEngine(api).sync(PLAYLIST_ID, _records(TRACK_IDS))

        assert result.submitted == ("3ndjkfd9", "asqww_nf")

    def test_to_json(self, fake_api_factory):
        api = fake_api_factory(tracks={PLAYLIST_ID: ["vvcs33"]})

        data = TrackSyncEngine(api).sync(PLAYLIST_ID, _records(TRACK_IDS)).to_json()

        assert data == {
            "playlistId": PLAYLIST_ID,
            "outcome": "added",
            "requested": 3,
            "alreadyPresent": 1,
            "submitted": ["3ndjkfd9", "asqww_nf"],
        }


class TestSelectNewTrackIds:
    """Tests for the set difference used before adding."""

    def test_result_is_set_difference_for_any_order(self):
        rng = random.Random(7)
        pool = [f"id{i:02d}" for i in range(30)]
        for _ in range(50):
            desired = [rng.choice(pool) for _ in range(rng.randint(0, 40))]
            existing = set(rng.sample(pool, rng.randint(0, 30)))

            selected = select_new_track_ids(desired, existing)

            assert set(selected) == set(desired) - existing
            assert len(selected) == len(set(selected))
            assert selected == sorted(selected)

    def test_ids_are_compared_exactly(self):
        assert select_new_track_ids(["ABC", "abc", " abc"], {"abc"}) == [" abc", "ABC"]

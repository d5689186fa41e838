"""VoteLedger 測試"""

from datetime import timedelta

import pytest

from conftest import NOW, add_profile, add_room, add_vote
from core.exceptions import (
    AlreadyVoted,
    InvalidOption,
    PermissionDenied,
    RoomNotFound,
    VoteNotFound,
    VotingClosed,
)
from core.vote_ledger import VoteLedger
from models import ArchivedVote, Room, UserRole, Vote

ATTEND, BUNK = "Attend Class", "Bunk Class"
OPTIONS = [ATTEND, BUNK]


def _vote(voter_id: str, option: str, minutes: int = 0) -> Vote:
    return Vote(
        room_id="r1",
        voter_id=voter_id,
        vote_option=option,
        timestamp=NOW + timedelta(minutes=minutes),
    )


# ============ cast（純檢查） ============

def test_cast_creates_vote() -> None:
    room = Room(id="r1", is_voting_open=True)
    vote = VoteLedger.cast(room, "v1", ATTEND, None, NOW)
    assert vote.id == "v1"
    assert vote.room_id == "r1"
    assert vote.vote_option == ATTEND
    assert vote.timestamp == NOW


def test_cast_checks_voting_open_first() -> None:
    room = Room(id="r1", is_voting_open=False)
    with pytest.raises(VotingClosed):
        VoteLedger.cast(room, "v1", "nope", _vote("v1", ATTEND), NOW)


def test_cast_checks_existing_vote_before_option() -> None:
    room = Room(id="r1", is_voting_open=True)
    with pytest.raises(AlreadyVoted) as exc:
        VoteLedger.cast(room, "v1", "nope", _vote("v1", ATTEND), NOW)
    assert exc.value.reason == "already_acted"


def test_cast_rejects_unknown_option() -> None:
    room = Room(id="r1", is_voting_open=True)
    with pytest.raises(InvalidOption):
        VoteLedger.cast(room, "v1", "Sleep In", None, NOW)


# ============ record_vote ============

def test_record_vote_twice_keeps_single_vote(db, room) -> None:
    VoteLedger.record_vote(db, room.id, "v1", ATTEND, now=NOW)
    with pytest.raises(AlreadyVoted):
        VoteLedger.record_vote(db, room.id, "v1", BUNK, now=NOW)

    votes = VoteLedger.list_votes(db, room.id)
    assert len(votes) == 1
    assert votes[0].vote_option == ATTEND


def test_record_vote_unknown_room(db) -> None:
    with pytest.raises(RoomNotFound):
        VoteLedger.record_vote(db, "missing", "v1", ATTEND)


def test_record_vote_closed_room(db, admin) -> None:
    room = add_room(db, admin.id, is_voting_open=False)
    with pytest.raises(VotingClosed):
        VoteLedger.record_vote(db, room.id, "v1", ATTEND)
    assert VoteLedger.list_votes(db, room.id) == []


def test_same_voter_in_different_rooms(db, admin) -> None:
    first = add_room(db, admin.id, code="AAAAAA")
    second = add_room(db, admin.id, code="BBBBBB")
    VoteLedger.record_vote(db, first.id, "v1", ATTEND)
    VoteLedger.record_vote(db, second.id, "v1", BUNK)
    assert VoteLedger.get_vote(db, first.id, "v1").vote_option == ATTEND
    assert VoteLedger.get_vote(db, second.id, "v1").vote_option == BUNK


# ============ tally / cumulative_series ============

def test_tally_zero_fills_options() -> None:
    assert VoteLedger.tally([], OPTIONS) == {ATTEND: 0, BUNK: 0}
    assert VoteLedger.tally([_vote("a", BUNK)], OPTIONS) == {ATTEND: 0, BUNK: 1}


def test_tally_ignores_unconfigured_options() -> None:
    votes = [_vote("a", ATTEND), _vote("b", "Other"), _vote("c", ATTEND)]
    assert VoteLedger.tally(votes, OPTIONS) == {ATTEND: 2, BUNK: 0}


def test_cumulative_series_sorted_running_totals() -> None:
    votes = [
        _vote("c", ATTEND, minutes=2),
        _vote("a", ATTEND, minutes=0),
        _vote("b", BUNK, minutes=1),
    ]
    series = VoteLedger.cumulative_series(votes, OPTIONS)

    assert [p.time for p in series] == [NOW + timedelta(minutes=m) for m in (0, 1, 2)]
    assert [p.counts for p in series] == [
        {ATTEND: 1, BUNK: 0},
        {ATTEND: 1, BUNK: 1},
        {ATTEND: 2, BUNK: 1},
    ]


def test_cumulative_series_is_monotonic_with_ties() -> None:
    votes = [_vote(str(i), OPTIONS[i % 2], minutes=i // 3) for i in range(9)]
    series = VoteLedger.cumulative_series(votes, OPTIONS)

    assert len(series) == len(votes)
    for earlier, later in zip(series, series[1:]):
        for option in OPTIONS:
            assert later.counts[option] >= earlier.counts[option]
    assert series[-1].counts == VoteLedger.tally(votes, OPTIONS)


def test_cumulative_series_empty() -> None:
    assert VoteLedger.cumulative_series([], OPTIONS) == []


# ============ remove_vote ============

def test_remove_vote_by_owner(db, room, admin) -> None:
    add_vote(db, room.id, "v1", ATTEND)
    add_vote(db, room.id, "v2", BUNK)

    VoteLedger.remove_vote(db, room.id, "v1", admin.id)

    assert [v.voter_id for v in VoteLedger.list_votes(db, room.id)] == ["v2"]


def test_remove_vote_requires_owner(db, room) -> None:
    add_profile(db, "other-admin")
    add_vote(db, room.id, "v1", ATTEND)
    with pytest.raises(PermissionDenied):
        VoteLedger.remove_vote(db, room.id, "v1", "other-admin")
    assert len(VoteLedger.list_votes(db, room.id)) == 1


def test_remove_vote_requires_admin_role(db) -> None:
    joinee = add_profile(db, "joinee-1", role=UserRole.JOINEE)
    room = add_room(db, joinee.id)
    add_vote(db, room.id, "v1", ATTEND)
    with pytest.raises(PermissionDenied):
        VoteLedger.remove_vote(db, room.id, "v1", joinee.id)


def test_remove_missing_vote(db, room, admin) -> None:
    with pytest.raises(VoteNotFound):
        VoteLedger.remove_vote(db, room.id, "ghost", admin.id)


# ============ archive_and_clear ============

def test_archive_and_clear_copies_verbatim(db, room) -> None:
    add_vote(db, room.id, "v1", ATTEND, timestamp=NOW)
    add_vote(db, room.id, "v2", BUNK, timestamp=NOW + timedelta(seconds=5))

    archived = VoteLedger.archive_and_clear(db, room)
    db.commit()

    assert len(archived) == 2
    assert VoteLedger.list_votes(db, room.id) == []

    rows = db.query(ArchivedVote).order_by(ArchivedVote.timestamp).all()
    assert [(a.id, a.voter_id, a.vote_option, a.timestamp) for a in rows] == [
        ("v1", "v1", ATTEND, NOW),
        ("v2", "v2", BUNK, NOW + timedelta(seconds=5)),
    ]
    assert {a.session_number for a in rows} == {1}


def test_archive_and_clear_without_votes(db, room) -> None:
    assert VoteLedger.archive_and_clear(db, room) == []
    assert db.query(ArchivedVote).count() == 0

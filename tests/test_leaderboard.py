import pytest

from keyspace.storage.leaderboard import Leaderboard, MemberNotFound
from keyspace.storage.schemas import LeaderEntry


def _seed(board: Leaderboard, count: int) -> None:
    for index in range(1, count + 1):
        board.add_member(f"member_{index}", index)


def test_key_layout(board, fake_redis):
    board.add_member("foo", 10)
    assert board.get_key() == "test:leaderboards:highscores"
    assert fake_redis.zscore("test:leaderboards:highscores", "foo") == 10.0


def test_add_and_remove_members(board):
    _seed(board, 5)
    assert board.total_members() == 5
    assert board.remove_member("member_1") == 1
    assert board.remove_member("member_1") == 0
    assert board.total_members() == 4
    assert board.close() is True


def test_rank_correctness(board):
    _seed(board, 5)
    assert [board.rank_for(f"member_{i}") for i in range(5, 0, -1)] == [1, 2, 3, 4, 5]
    assert board.rank_for("member_5", zero_indexed=True) == 0
    assert board.rank_for("nobody") is False


def test_zero_score_member_is_ranked(board):
    board.add_member("zero", 0)
    assert board.rank_for("zero") == 1
    assert board.check_member("zero") is True


def test_scores(board):
    _seed(board, 5)
    assert board.score_for("member_3") == 3.0
    assert board.score_for("nobody") is None
    assert board.check_member("nobody") is False
    assert board.total_score() == 15.0
    assert board.change_score_for("member_1", 5) == 6.0
    assert board.rank_for("member_1") == 1


def test_score_and_rank_for(board):
    _seed(board, 3)
    assert board.score_and_rank_for("member_2") == LeaderEntry(member="member_2", score=2.0, rank=2)
    assert board.score_and_rank_for("nobody") == LeaderEntry(member="nobody", score=None, rank=False)


def test_score_range(board):
    _seed(board, 30)
    assert board.total_members_in_score_range(10, 20) == 11
    assert board.remove_members_in_score_range(1, 5) == 5
    assert board.total_members() == 25
    assert board.check_member("member_5") is False
    assert board.check_member("member_6") is True


def test_pagination(board):
    _seed(board, 101)
    assert board.total_pages() == 2

    first = board.leaders(1)
    assert len(first) == 100
    assert first[0] == LeaderEntry(member="member_101", score=101.0, rank=1)

    assert board.leaders(2) == [LeaderEntry(member="member_1", score=1.0, rank=101)]
    # out of range pages are clamped
    assert board.leaders(0) == first
    assert board.leaders(5) == board.leaders(2)


def test_leaders_options(board):
    _seed(board, 3)
    plain = board.leaders(1, with_scores=False, with_rank=False)
    assert [entry.member for entry in plain] == ["member_3", "member_2", "member_1"]
    assert all(entry.score is None and entry.rank is None for entry in plain)
    assert board.leaders(1, zero_indexed=True)[0].rank == 0


def test_leaders_on_empty_board(board):
    assert board.total_pages() == 0
    assert board.leaders(1) is None


def test_page_size(board, store):
    board.page_size = 10
    _seed(board, 25)
    assert board.total_pages() == 3
    assert len(board.leaders(3)) == 5
    assert Leaderboard("other", store, page_size=0).page_size == 100


def test_around_me(board):
    _seed(board, 301)
    last = board.around_me("member_1")
    assert len(last) == 51
    assert last[-1] == LeaderEntry(member="member_1", score=1.0, rank=301)

    top = board.around_me("member_301")
    assert len(top) == 100
    assert top[0].member == "member_301"

    middle = board.around_me("member_150")
    assert len(middle) == 100
    assert "member_150" in [entry.member for entry in middle]


def test_around_me_unknown_member(board):
    _seed(board, 3)
    with pytest.raises(MemberNotFound):
        board.around_me("nobody")


def test_ranked_in_list(board):
    _seed(board, 5)
    entries = board.ranked_in_list(["member_1", "nobody"])
    assert entries == [
        LeaderEntry(member="member_1", score=1.0, rank=5),
        LeaderEntry(member="nobody", score=0.0, rank=False),
    ]
    assert board.ranked_in_list(["member_5"], with_scores=False)[0].score is None


def test_scored_in_list(board):
    _seed(board, 5)
    assert board.scored_in_list(2, 3) == [
        LeaderEntry(member="member_2", score=2.0),
        LeaderEntry(member="member_3", score=3.0),
    ]
    assert [entry.member for entry in board.scored_in_list(4, 10, with_scores=False)] == [
        "member_4",
        "member_5",
    ]


def test_all_members(board):
    _seed(board, 2)
    assert board.all_members() == [("member_2", 2.0), ("member_1", 1.0)]


def test_operations_on_another_board(board, fake_redis):
    _seed(board, 3)
    for index in range(1, 6):
        board.add_member(f"player_{index}", index * 10, name="weekly")

    assert board.get_key("weekly") == "test:leaderboards:weekly"
    assert fake_redis.zcard("test:leaderboards:weekly") == 5
    assert board.total_members() == 3
    assert board.total_members(name="weekly") == 5

    assert board.rank_for("player_5", name="weekly") == 1
    assert board.rank_for("player_5") is False
    assert board.score_for("player_2", name="weekly") == 20.0

    weekly = board.leaders(1, name="weekly")
    assert [entry.member for entry in weekly] == [f"player_{i}" for i in range(5, 0, -1)]
    assert weekly[0].rank == 1
    assert board.leaders(1)[0].member == "member_3"

    assert len(board.around_me("player_1", name="weekly")) == 5
    assert board.ranked_in_list(["player_3"], name="weekly") == [
        LeaderEntry(member="player_3", score=30.0, rank=3)
    ]
    assert board.remove_member("player_1", name="weekly") == 1
    assert board.total_pages(name="weekly") == 1

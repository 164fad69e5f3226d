from __future__ import annotations

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from homepage.actions import apply_move
from homepage.api.models import Actor, GameState, GameStats, GameStatus, NotificationStatus
from homepage.errors import CellOccupied, GameNotActive, InvalidPosition, PersistenceFailure, WrongTurn
from homepage.game_store import GAME_KEY, get_game, get_or_create_game, new_game, reset_game, save_game


def _play(r, notifier, moves: list[tuple[Actor, int]]) -> GameState:
    state = None
    for actor, position in moves:
        state = apply_move(r=r, notifier=notifier, actor=actor, position=position).state
    assert state is not None
    return state


def test_first_read_creates_fresh_game_with_world_to_move(redis_client) -> None:
    assert redis_client.get(GAME_KEY) is None

    state = get_or_create_game(r=redis_client)

    assert state.board == [""] * 9
    assert state.current_turn == Actor.world
    assert state.status == GameStatus.active
    assert state.move_history == []
    assert state.stats == GameStats()
    # Persisted on first read.
    assert get_game(r=redis_client) == state


def test_stored_document_uses_camel_case_keys(redis_client) -> None:
    get_or_create_game(r=redis_client)

    raw = redis_client.get(GAME_KEY)
    assert '"currentTurn":"world"' in raw
    assert '"moveHistory":[]' in raw
    assert '"alexWins":0' in raw


def test_valid_move_marks_cell_flips_turn_and_appends_history(redis_client, notifier) -> None:
    outcome = apply_move(r=redis_client, notifier=notifier, actor=Actor.world, position=4)
    state = outcome.state

    assert state.board[4] == "O"
    assert sum(1 for c in state.board if c) == 1
    assert state.current_turn == Actor.alex
    assert len(state.move_history) == 1
    assert state.move_history[0].actor == Actor.world
    assert state.move_history[0].position == 4
    assert state.last_move_at == state.move_history[0].timestamp

    # And it was saved.
    assert get_game(r=redis_client) == state


def test_alex_plays_x(redis_client, notifier) -> None:
    state = _play(redis_client, notifier, [(Actor.world, 0), (Actor.alex, 8)])
    assert state.board[8] == "X"
    assert state.current_turn == Actor.world
    assert [m.actor for m in state.move_history] == [Actor.world, Actor.alex]


@pytest.mark.parametrize("position", [-1, 9, 100, -100])
def test_out_of_range_position_rejected_and_state_unchanged(redis_client, notifier, position: int) -> None:
    before = get_or_create_game(r=redis_client)

    with pytest.raises(InvalidPosition):
        apply_move(r=redis_client, notifier=notifier, actor=Actor.world, position=position)

    assert get_game(r=redis_client) == before
    assert notifier.sent == []


def test_wrong_turn_rejected(redis_client, notifier) -> None:
    with pytest.raises(WrongTurn) as e:
        apply_move(r=redis_client, notifier=notifier, actor=Actor.alex, position=0)
    assert "World" in str(e.value)

    apply_move(r=redis_client, notifier=notifier, actor=Actor.world, position=0)
    with pytest.raises(WrongTurn) as e2:
        apply_move(r=redis_client, notifier=notifier, actor=Actor.world, position=1)
    assert "Alex" in str(e2.value)


def test_occupied_cell_rejected(redis_client, notifier) -> None:
    before = _play(redis_client, notifier, [(Actor.world, 4)])

    with pytest.raises(CellOccupied):
        apply_move(r=redis_client, notifier=notifier, actor=Actor.alex, position=4)

    assert get_game(r=redis_client) == before


def test_world_wins_increments_stats_once_and_locks_board(redis_client, notifier) -> None:
    state = _play(
        redis_client,
        notifier,
        [(Actor.world, 0), (Actor.alex, 3), (Actor.world, 1), (Actor.alex, 4), (Actor.world, 2)],
    )

    assert state.status == GameStatus.world_won
    assert state.stats == GameStats(alex_wins=0, world_wins=1, draws=0)

    with pytest.raises(GameNotActive):
        apply_move(r=redis_client, notifier=notifier, actor=Actor.alex, position=8)

    assert get_game(r=redis_client).stats.world_wins == 1


def test_alex_wins_on_diagonal(redis_client, notifier) -> None:
    state = _play(
        redis_client,
        notifier,
        [(Actor.world, 1), (Actor.alex, 0), (Actor.world, 2), (Actor.alex, 4), (Actor.world, 3), (Actor.alex, 8)],
    )
    assert state.status == GameStatus.alex_won
    assert state.stats.alex_wins == 1


def test_full_board_without_line_is_draw(redis_client, notifier) -> None:
    # O X O / O X X / X O O
    state = _play(
        redis_client,
        notifier,
        [
            (Actor.world, 0),
            (Actor.alex, 1),
            (Actor.world, 2),
            (Actor.alex, 4),
            (Actor.world, 3),
            (Actor.alex, 5),
            (Actor.world, 7),
            (Actor.alex, 6),
            (Actor.world, 8),
        ],
    )
    assert state.status == GameStatus.draw
    assert state.stats.draws == 1
    assert state.stats.alex_wins == 0
    assert state.stats.world_wins == 0


def test_notification_sent_only_while_game_active(redis_client, notifier) -> None:
    outcome = apply_move(r=redis_client, notifier=notifier, actor=Actor.world, position=0)
    assert outcome.notification == NotificationStatus.sent
    assert len(notifier.sent) == 1
    assert "The World just moved" in notifier.sent[0]
    assert "top-left (0)" in notifier.sent[0]

    outcome = apply_move(r=redis_client, notifier=notifier, actor=Actor.alex, position=3)
    assert "Waiting for The World's move" in notifier.sent[-1]

    _play(redis_client, notifier, [(Actor.world, 1), (Actor.alex, 4)])
    sent_before_win = len(notifier.sent)

    outcome = apply_move(r=redis_client, notifier=notifier, actor=Actor.world, position=2)
    assert outcome.state.status == GameStatus.world_won
    assert outcome.notification == NotificationStatus.skipped
    assert len(notifier.sent) == sent_before_win


def test_notification_failure_does_not_undo_move(redis_client, failing_notifier) -> None:
    outcome = apply_move(r=redis_client, notifier=failing_notifier, actor=Actor.world, position=6)

    assert failing_notifier.attempts == 1
    assert outcome.notification == NotificationStatus.failed
    assert outcome.state.board[6] == "O"

    persisted = get_game(r=redis_client)
    assert persisted is not None
    assert persisted.board[6] == "O"
    assert persisted.current_turn == Actor.alex


def test_reset_preserves_stats_and_clears_board(redis_client, notifier) -> None:
    _play(
        redis_client,
        notifier,
        [(Actor.world, 0), (Actor.alex, 3), (Actor.world, 1), (Actor.alex, 4), (Actor.world, 2)],
    )
    before = get_game(r=redis_client)
    assert before is not None and before.status == GameStatus.world_won

    state = reset_game(r=redis_client)

    assert state.board == [""] * 9
    assert state.status == GameStatus.active
    assert state.current_turn == Actor.world
    assert state.move_history == []
    assert state.stats == before.stats
    assert get_game(r=redis_client) == state


def test_reset_without_existing_game(redis_client) -> None:
    state = reset_game(r=redis_client)
    assert state.stats == GameStats()
    assert get_game(r=redis_client) == state


def test_stats_accumulate_across_games(redis_client, notifier) -> None:
    world_win = [(Actor.world, 0), (Actor.alex, 3), (Actor.world, 1), (Actor.alex, 4), (Actor.world, 2)]
    _play(redis_client, notifier, world_win)
    reset_game(r=redis_client)
    state = _play(redis_client, notifier, world_win)

    assert state.stats.world_wins == 2


class _BrokenStore:
    def get(self, name: str):
        raise RedisConnectionError("connection refused")

    def set(self, name: str, value: str):
        raise RedisConnectionError("connection refused")


def test_store_errors_surface_as_persistence_failure(notifier) -> None:
    with pytest.raises(PersistenceFailure):
        get_or_create_game(r=_BrokenStore())

    with pytest.raises(PersistenceFailure):
        apply_move(r=_BrokenStore(), notifier=notifier, actor=Actor.world, position=0)

    with pytest.raises(PersistenceFailure):
        save_game(r=_BrokenStore(), state=new_game())

    assert notifier.sent == []


def test_corrupt_document_is_persistence_failure(redis_client) -> None:
    redis_client.set(GAME_KEY, "{not json")
    with pytest.raises(PersistenceFailure):
        get_game(r=redis_client)


class _ExplodingNotifier:
    def send(self, text: str) -> None:
        raise RuntimeError("unexpected notifier bug")


def test_unexpected_notifier_error_does_not_fail_move(redis_client) -> None:
    outcome = apply_move(r=redis_client, notifier=_ExplodingNotifier(), actor=Actor.world, position=4)

    assert outcome.notification == NotificationStatus.failed
    assert outcome.state.board[4] == "O"
    assert get_game(r=redis_client).board[4] == "O"


def test_slack_non_object_body_does_not_fail_move(redis_client) -> None:
    import httpx

    from homepage.notifications import SlackNotifier

    client = httpx.Client(transport=httpx.MockTransport(lambda request: httpx.Response(200, content=b"[]")))
    slack = SlackNotifier(bot_token="xoxb-test", channel="#tictactoe", client=client)

    outcome = apply_move(r=redis_client, notifier=slack, actor=Actor.world, position=4)

    assert outcome.notification == NotificationStatus.failed
    assert get_game(r=redis_client).board[4] == "O"


def test_unknown_cell_mark_is_persistence_failure(redis_client) -> None:
    state = new_game()
    raw = state.model_dump_json(by_alias=True).replace('"board":["",', '"board":["Z",', 1)
    redis_client.set(GAME_KEY, raw)

    with pytest.raises(PersistenceFailure):
        get_game(r=redis_client)

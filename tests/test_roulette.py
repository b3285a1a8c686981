import random

import pytest

from conftest import FixedBullet, make_game
from func.roulette import (
    RouletteGame, CHAMBER_COUNT, SKIPS_PER_PLAYER,
    LOBBY, ACTIVE, FINISHED, AWAITING_FIRST_ACTION, CAN_PASS_OR_PULL,
    AlreadyStarted, AlreadyActedThisTurn, DuplicatePlayer, InsufficientPlayers,
    MustPullFirst, NoActiveGame, NoSkipsLeft, NotStarted, NotYourTurn,
)


def _fields(game: RouletteGame) -> dict:
    return {
        'players': list(game.players),
        'bullet': game.bullet_position,
        'pulls': game.pulls_fired,
        'turn': game.turn_index,
        'turn_state': game.turn_state,
        'skips': dict(game.skips_remaining),
        'status': game.status,
    }


def test_new_game_starts_in_lobby() -> None:
    rng = FixedBullet(2)
    game = RouletteGame("alice", rng=rng)

    assert game.status == LOBBY
    assert game.players == ["alice"]
    assert game.skips_remaining == {"alice": SKIPS_PER_PLAYER}
    assert game.pulls_fired == 0
    assert game.turn_index == 0
    assert game.bullet_position == 2
    assert game.current_player is None
    assert rng.calls == 1


@pytest.mark.parametrize("seed", range(50))
def test_bullet_is_drawn_within_the_cylinder(seed: int) -> None:
    game = RouletteGame("alice", rng=random.Random(seed))
    assert 0 <= game.bullet_position < CHAMBER_COUNT


def test_join_preserves_order_and_rejects_duplicates() -> None:
    game = RouletteGame("alice", rng=FixedBullet(0))
    game.join("bob")
    game.join("carol")

    before = _fields(game)
    with pytest.raises(DuplicatePlayer):
        game.join("bob")

    assert _fields(game) == before
    assert game.players == ["alice", "bob", "carol"]
    assert game.skips_remaining == {"alice": 2, "bob": 2, "carol": 2}


def test_join_after_begin_is_rejected() -> None:
    game = make_game(["alice", "bob"])
    with pytest.raises(AlreadyStarted):
        game.join("carol")
    assert game.players == ["alice", "bob"]


def test_begin_needs_two_players() -> None:
    game = RouletteGame("alice", rng=FixedBullet(0))

    with pytest.raises(InsufficientPlayers) as excinfo:
        game.begin()

    assert excinfo.value.context['player_count'] == 1
    assert game.status == LOBBY


def test_begin_hands_first_turn_to_first_player() -> None:
    game = make_game(["alice", "bob"], begin=False)
    assert game.begin() == "alice"
    assert game.status == ACTIVE
    assert game.current_player == "alice"

    with pytest.raises(AlreadyStarted):
        game.begin()


@pytest.mark.parametrize("action", ["pull", "pass_turn", "skip"])
def test_turn_actions_require_started_game(action: str) -> None:
    game = make_game(["alice", "bob"], begin=False)
    before = _fields(game)

    with pytest.raises(NotStarted):
        getattr(game, action)("alice")
    with pytest.raises(NotStarted):
        game.status_report()

    assert _fields(game) == before


def test_scenario_fatal_pull_on_fourth_shot() -> None:
    game = make_game(["p1", "p2"], bullet=3)

    assert game.pull("p1")['pulls_fired'] == 1
    assert game.pass_turn("p1") == "p2"
    assert game.pull("p2")['pulls_fired'] == 2
    assert game.pass_turn("p2") == "p1"
    assert game.pull("p1")['pulls_fired'] == 3

    result = game.pull("p1")

    assert result['fatal'] is True
    assert result['player'] == "p1"
    assert result['chamber_exhausted'] is False
    assert game.status == FINISHED
    assert game.loser == "p1"


def test_scenario_skips_run_out_after_two() -> None:
    game = make_game(["p1", "p2"])

    for expected_left in (1, 0):
        assert game.skip("p1")['skips_left'] == expected_left
        game.skip("p2")

    before = _fields(game)
    with pytest.raises(NoSkipsLeft):
        game.skip("p1")

    assert _fields(game) == before
    assert game.skips_remaining["p1"] == 0


def test_scenario_out_of_turn_pull_names_expected_player() -> None:
    game = make_game(["p1", "p2", "p3"])
    before = _fields(game)

    with pytest.raises(NotYourTurn) as excinfo:
        game.pull("p2")

    assert excinfo.value.context['expected'] == "p1"
    assert _fields(game) == before


def test_outsider_cannot_act() -> None:
    game = make_game(["p1", "p2"])
    with pytest.raises(NotYourTurn) as excinfo:
        game.skip("mallory")
    assert excinfo.value.context['expected'] == "p1"


def test_pass_requires_a_pull_first() -> None:
    game = make_game(["p1", "p2"])
    with pytest.raises(MustPullFirst):
        game.pass_turn("p1")

    game.pull("p1")
    assert game.turn_state == CAN_PASS_OR_PULL
    game.pass_turn("p1")
    assert game.turn_state == AWAITING_FIRST_ACTION
    assert game.has_acted_this_turn is False


def test_skip_is_refused_after_pulling() -> None:
    game = make_game(["p1", "p2"])
    game.pull("p1")
    before = _fields(game)

    with pytest.raises(AlreadyActedThisTurn):
        game.skip("p1")

    assert _fields(game) == before
    assert game.skips_remaining["p1"] == SKIPS_PER_PLAYER


def test_pass_and_skip_are_mutually_exclusive() -> None:
    fresh = make_game(["p1", "p2"])
    with pytest.raises(MustPullFirst):
        fresh.pass_turn("p1")
    fresh.skip("p1")

    pulled = make_game(["p1", "p2"])
    pulled.pull("p1")
    with pytest.raises(AlreadyActedThisTurn):
        pulled.skip("p1")
    pulled.pass_turn("p1")


def test_survivor_keeps_the_turn() -> None:
    game = make_game(["p1", "p2"])
    game.pull("p1")
    game.pull("p1")
    assert game.current_player == "p1"
    assert game.turn_index == 0


@pytest.mark.parametrize(
    ("pulls", "remaining", "odds"),
    [
        (1, 5, 20.0),
        (2, 4, 25.0),
        (3, 3, 33.3),
        (4, 2, 50.0),
        (5, 1, 100.0),
    ],
)
def test_survival_reports_odds_of_next_pull(pulls: int, remaining: int, odds: float) -> None:
    game = make_game(["p1", "p2"], bullet=5)

    for _ in range(pulls - 1):
        game.pull("p1")
    result = game.pull("p1")

    assert result['fatal'] is False
    assert result['remaining_chambers'] == remaining
    assert result['fatal_odds_next_pct'] == odds


def test_skipping_never_moves_the_cylinder() -> None:
    game = make_game(["p1", "p2"], bullet=0)
    game.skip("p1")
    game.skip("p2")
    game.skip("p1")

    assert game.pulls_fired == 0
    result = game.pull("p2")
    assert result['fatal'] is True


@pytest.mark.parametrize("bullet", range(CHAMBER_COUNT))
def test_exhausted_chamber_fallback_never_fires(bullet: int) -> None:
    game = make_game(["p1", "p2", "p3"], bullet=bullet)
    seen = []

    while game.status == ACTIVE:
        player = game.current_player
        result = game.pull(player)
        seen.append(game.pulls_fired)
        if not result['fatal']:
            game.pass_turn(player)

    assert result['chamber_exhausted'] is False
    assert result['pulls_fired'] == bullet
    assert seen == sorted(seen)
    assert max(seen) <= CHAMBER_COUNT
    assert game.bullet_position == bullet


def test_exhausted_chamber_fallback_catches_corrupted_state() -> None:
    game = make_game(["p1", "p2"], bullet=5)
    game._bullet_position = CHAMBER_COUNT

    for _ in range(CHAMBER_COUNT - 1):
        assert game.pull("p1")['fatal'] is False
    result = game.pull("p1")

    assert result['fatal'] is True
    assert result['chamber_exhausted'] is True
    assert game.status == FINISHED


def test_stop_finishes_from_any_live_state() -> None:
    lobby = make_game(["p1"], begin=False)
    lobby.stop()
    assert lobby.status == FINISHED

    active = make_game(["p1", "p2"])
    active.pull("p1")
    active.stop()
    assert active.status == FINISHED
    assert active.loser is None


def test_finished_game_rejects_everything() -> None:
    game = make_game(["p1", "p2"])
    game.stop()
    before = _fields(game)

    for call in (lambda: game.join("p3"), game.begin, lambda: game.pull("p1"),
                 lambda: game.pass_turn("p1"), lambda: game.skip("p1"), game.stop):
        with pytest.raises(NoActiveGame):
            call()

    assert _fields(game) == before


def test_status_report_is_read_only() -> None:
    game = make_game(["p1", "p2"])
    game.skip("p1")
    game.pull("p2")

    report = game.status_report()
    report['players'].append("intruder")
    report['skips_remaining']["p1"] = 99

    assert game.players == ["p1", "p2"]
    assert game.skips_remaining == {"p1": 1, "p2": 2}
    assert game.status_report()['current_player'] == "p2"
    assert game.status_report()['remaining_chambers'] == 5

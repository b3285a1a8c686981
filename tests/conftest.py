import pytest

from func.roulette import RouletteGame
from func.session_registry import SessionRegistry
from func.roulette_table import RouletteTable


class FixedBullet:
    "只在建局时被调用一次的随机源，固定子弹位置"

    def __init__(self, position: int):
        self.position = position
        self.calls = 0

    def randrange(self, stop: int) -> int:
        self.calls += 1
        assert 0 <= self.position < stop
        return self.position


def make_game(players, bullet: int = 5, begin: bool = True) -> RouletteGame:
    game = RouletteGame(players[0], rng=FixedBullet(bullet))
    for player in players[1:]:
        game.join(player)
    if begin:
        game.begin()
    return game


@pytest.fixture
def table_with_bullet():
    def _factory(bullet: int) -> RouletteTable:
        return RouletteTable(SessionRegistry(rng=FixedBullet(bullet)))
    return _factory

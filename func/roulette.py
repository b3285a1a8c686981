import random
from loguru import logger
from typing import Dict, List, Optional

"""
俄罗斯轮盘 游戏状态机
"""

CHAMBER_COUNT = 6          # 左轮弹仓容量
SKIPS_PER_PLAYER = 2       # 每名玩家可跳过回合的次数
MIN_PLAYERS = 2            # 开始游戏的最少人数

#游戏阶段
LOBBY = 'lobby'
ACTIVE = 'active'
FINISHED = 'finished'

#回合内子状态
AWAITING_FIRST_ACTION = 'awaiting_first_action'    # 只能 开枪 或 跳过
CAN_PASS_OR_PULL = 'can_pass_or_pull'              # 已开过枪，只能 继续开枪 或 让出回合


class RouletteError(Exception):
    "游戏规则错误，只影响当前指令，不会改动游戏状态"

    kind = 'RouletteError'

    def __init__(self, message: str = '', **context):
        super().__init__(message or self.kind)
        self.context = context


class AlreadyActive(RouletteError):
    kind = 'AlreadyActive'


class NoActiveGame(RouletteError):
    kind = 'NoActiveGame'


class DuplicatePlayer(RouletteError):
    kind = 'DuplicatePlayer'


class InsufficientPlayers(RouletteError):
    kind = 'InsufficientPlayers'


class NotStarted(RouletteError):
    kind = 'NotStarted'


class AlreadyStarted(RouletteError):
    kind = 'AlreadyStarted'


class NotYourTurn(RouletteError):
    kind = 'NotYourTurn'


class MustPullFirst(RouletteError):
    kind = 'MustPullFirst'


class AlreadyActedThisTurn(RouletteError):
    kind = 'AlreadyActedThisTurn'


class NoSkipsLeft(RouletteError):
    kind = 'NoSkipsLeft'


class UnknownCommand(RouletteError):
    kind = 'UnknownCommand'


class RouletteGame:
    """
    单局俄罗斯轮盘

    所有玩家共用一个弹仓，子弹位置在建局时抽取一次。
    第 pulls_fired 次扣扳机时若 pulls_fired == bullet_position 即中弹。
    """

    def __init__(self, first_player: str, rng: Optional[random.Random] = None):
        rng = rng or random.Random()

        self.players: List[str] = [first_player]
        self.chamber_count = CHAMBER_COUNT
        self._bullet_position = rng.randrange(self.chamber_count)
        self.pulls_fired = 0
        self.turn_index = 0
        self.turn_state = AWAITING_FIRST_ACTION
        self.skips_remaining: Dict[str, int] = {first_player: SKIPS_PER_PLAYER}
        self.status = LOBBY
        self.loser: Optional[str] = None

    @property
    def bullet_position(self) -> int:
        return self._bullet_position

    @property
    def has_acted_this_turn(self) -> bool:
        return self.turn_state == CAN_PASS_OR_PULL

    @property
    def current_player(self) -> Optional[str]:
        if self.status != ACTIVE:
            return None
        return self.players[self.turn_index % len(self.players)]

    @property
    def remaining_chambers(self) -> int:
        return self.chamber_count - self.pulls_fired

    #状态检查
    def _require_lobby(self):
        if self.status == FINISHED:
            raise NoActiveGame('游戏已结束')
        if self.status == ACTIVE:
            raise AlreadyStarted('游戏已经开始')

    def _require_active(self):
        if self.status == FINISHED:
            raise NoActiveGame('游戏已结束')
        if self.status == LOBBY:
            raise NotStarted('游戏尚未开始', players=list(self.players))

    def _require_turn(self, player: str):
        self._require_active()
        expected = self.current_player
        if player != expected:
            raise NotYourTurn(f'还没轮到 {player}', expected=expected)

    def _advance_turn(self) -> str:
        #轮到下一位
        self.turn_index += 1
        self.turn_state = AWAITING_FIRST_ACTION
        return self.current_player

    def _finish(self, loser: Optional[str] = None):
        self.status = FINISHED
        self.loser = loser

    def join(self, player: str) -> List[str]:
        #加入游戏
        self._require_lobby()
        if player in self.players:
            raise DuplicatePlayer(f'{player} 已经在游戏中', player=player)

        self.players.append(player)
        self.skips_remaining[player] = SKIPS_PER_PLAYER
        logger.info(f"玩家 {player} 加入游戏，当前 {len(self.players)} 人")
        return list(self.players)

    def begin(self) -> str:
        #开始游戏
        self._require_lobby()
        if len(self.players) < MIN_PLAYERS:
            raise InsufficientPlayers(
                f'至少需要{MIN_PLAYERS}名玩家',
                player_count=len(self.players),
                required=MIN_PLAYERS
            )

        self.status = ACTIVE
        self.turn_state = AWAITING_FIRST_ACTION
        logger.info(f"游戏开始，玩家: {', '.join(self.players)}")
        return self.current_player

    def pull(self, player: str) -> dict:
        """
        扣动扳机

        返回 {'fatal': True, ...} 时游戏已结束；
        否则 {'fatal': False, 'remaining_chambers': n, 'fatal_odds_next_pct': x}，回合不推进。
        """
        self._require_turn(player)

        if self.pulls_fired == self._bullet_position:
            self._finish(loser=player)
            logger.info(f"💥 {player} 在第 {self.pulls_fired + 1} 枪中弹")
            return {'fatal': True, 'player': player, 'chamber_exhausted': False,
                    'pulls_fired': self.pulls_fired}

        # 子弹位置与计数均有界时不会走到这里
        if self.pulls_fired + 1 >= self.chamber_count:
            logger.error(
                f"弹仓已打空却未命中子弹: pulls_fired={self.pulls_fired}, "
                f"bullet_position={self._bullet_position}"
            )
            self._finish(loser=player)
            return {'fatal': True, 'player': player, 'chamber_exhausted': True,
                    'pulls_fired': self.pulls_fired}

        self.pulls_fired += 1
        self.turn_state = CAN_PASS_OR_PULL
        remaining = self.remaining_chambers
        odds = round(100.0 / remaining, 1)
        logger.info(f"{player} 幸存，剩余弹仓 {remaining}")
        return {
            'fatal': False,
            'player': player,
            'pulls_fired': self.pulls_fired,
            'remaining_chambers': remaining,
            'fatal_odds_next_pct': odds
        }

    def pass_turn(self, player: str) -> str:
        #开过枪后让出回合
        self._require_turn(player)
        if not self.has_acted_this_turn:
            raise MustPullFirst('让出回合前至少要开一枪', player=player)

        next_player = self._advance_turn()
        logger.info(f"{player} 让出回合，轮到 {next_player}")
        return next_player

    def skip(self, player: str) -> dict:
        #不开枪直接跳过，消耗一次跳过机会，不消耗弹仓
        self._require_turn(player)
        if self.has_acted_this_turn:
            raise AlreadyActedThisTurn('本回合已经开过枪，只能让出回合', player=player)
        if self.skips_remaining[player] <= 0:
            raise NoSkipsLeft('跳过次数已用完', player=player, skips_left=0)

        self.skips_remaining[player] -= 1
        next_player = self._advance_turn()
        logger.info(f"{player} 跳过回合(剩余 {self.skips_remaining[player]} 次)，轮到 {next_player}")
        return {'next_player': next_player, 'skips_left': self.skips_remaining[player]}

    def stop(self):
        #强制结束
        if self.status == FINISHED:
            raise NoActiveGame('游戏已结束')
        self._finish()
        logger.info("游戏被强制结束")

    def snapshot(self) -> dict:
        #只读状态
        return {
            'status': self.status,
            'players': list(self.players),
            'current_player': self.current_player,
            'skips_remaining': dict(self.skips_remaining),
            'pulls_fired': self.pulls_fired,
            'remaining_chambers': self.remaining_chambers
        }

    def status_report(self) -> dict:
        self._require_active()
        return self.snapshot()

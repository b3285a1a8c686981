from loguru import logger
from typing import List, Optional

from func.roulette import (
    RouletteError, NoActiveGame, UnknownCommand,
    CHAMBER_COUNT, SKIPS_PER_PLAYER, MIN_PLAYERS
)
from func.session_registry import SessionRegistry

#指令别名 -> 标准指令
COMMAND_ALIASES = {
    'startroulette': 'create',
    'startgame': 'begin',
    'stopgame': 'stop',
}

COMMANDS = ['create', 'join', 'begin', 'pull', 'pass', 'skip', 'stop', 'status', 'help']

#帮助信息中展示的聊天指令
HELP_ENTRIES = [
    ('/startroulette', '创建新的轮盘游戏'),
    ('/join', '加入当前频道的游戏'),
    ('/startgame', f'开始游戏（至少需要{MIN_PLAYERS}名玩家）'),
    ('/pull', '轮到你时扣动扳机'),
    ('/pass', '开过枪后让给下一位'),
    ('/skip', f'不开枪跳过回合（每人{SKIPS_PER_PLAYER}次）'),
    ('/status', '查看当前游戏状态'),
    ('/stopgame', '结束当前游戏'),
    ('/help', '显示帮助'),
]


def resolve_player_id(username: Optional[str], identify_num: Optional[str],
                      nickname: Optional[str], user_id) -> str:
    "玩家标识：优先 用户名#识别号，其次昵称，最后用数字ID拼接"
    if username and identify_num:
        return f"{username}#{identify_num}"
    if username:
        return username
    if nickname:
        return nickname
    return f"player{user_id}"


class Outcome:
    """
    一条指令的处理结果

    成功时 ok=True，event 表示发生了什么，data 是对应的数据；
    失败时 ok=False，error 是错误类型（RouletteError.kind），context 是相关信息。
    """

    def __init__(self, command: str, session_key: str, player: str, ok: bool = True,
                 event: Optional[str] = None, data: Optional[dict] = None,
                 error: Optional[str] = None, message: str = '', context: Optional[dict] = None):
        self.command = command
        self.session_key = session_key
        self.player = player
        self.ok = ok
        self.event = event
        self.data = data or {}
        self.error = error
        self.message = message
        self.context = context or {}

    @classmethod
    def failure(cls, command: str, session_key: str, player: str, exc: RouletteError) -> 'Outcome':
        return cls(command, session_key, player, ok=False,
                   error=exc.kind, message=str(exc), context=dict(exc.context))

    def __repr__(self):
        if self.ok:
            return f"<Outcome {self.command} ok event={self.event}>"
        return f"<Outcome {self.command} error={self.error}>"


class RouletteTable:
    "把聊天指令分发到对应频道的游戏"

    def __init__(self, registry: Optional[SessionRegistry] = None):
        self.registry = registry or SessionRegistry()

    def handle(self, session_key: str, player: str, command: str, args: Optional[List[str]] = None) -> Outcome:
        #处理一条指令，规则错误都转成失败结果返回
        command = COMMAND_ALIASES.get(command.lower(), command.lower())

        try:
            if command == 'help':
                return Outcome(command, session_key, player, event='help',
                               data={'commands': list(HELP_ENTRIES)})

            if command not in COMMANDS:
                raise UnknownCommand(f'未知指令: {command}', command=command)

            with self.registry.locked(session_key):
                return self._dispatch(session_key, player, command)

        except RouletteError as e:
            logger.warning(f"频道 {session_key} 玩家 {player} 执行 {command} 被拒绝: {e.kind}")
            return Outcome.failure(command, session_key, player, e)

    def _dispatch(self, session_key: str, player: str, command: str) -> Outcome:
        if command == 'create':
            game = self.registry.create_if_absent_or_finished(session_key, player)
            return Outcome(command, session_key, player, event='created',
                           data={'players': list(game.players), 'chambers': CHAMBER_COUNT})

        game = self.registry.get_or_none(session_key)
        if game is None:
            raise NoActiveGame('当前频道没有进行中的游戏')

        if command == 'join':
            players = game.join(player)
            return Outcome(command, session_key, player, event='joined', data={'players': players})

        if command == 'begin':
            first = game.begin()
            return Outcome(command, session_key, player, event='started',
                           data={'players': list(game.players), 'current_player': first})

        if command == 'pull':
            result = game.pull(player)
            if result['fatal']:
                self.registry.remove(session_key)
                return Outcome(command, session_key, player, event='fatal', data=result)
            return Outcome(command, session_key, player, event='survived', data=result)

        if command == 'pass':
            next_player = game.pass_turn(player)
            return Outcome(command, session_key, player, event='passed',
                           data={'next_player': next_player})

        if command == 'skip':
            result = game.skip(player)
            return Outcome(command, session_key, player, event='skipped', data=result)

        if command == 'stop':
            game.stop()
            self.registry.remove(session_key)
            return Outcome(command, session_key, player, event='stopped',
                           data={'players': list(game.players)})

        # status
        return Outcome(command, session_key, player, event='status', data=game.status_report())

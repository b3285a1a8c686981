import random
import threading
from loguru import logger
from contextlib import contextmanager
from typing import Dict, Optional

from func.roulette import RouletteGame, AlreadyActive, FINISHED


class _SessionLock:
    "频道锁，waiters 为持有或等待该锁的次数"

    def __init__(self):
        self.lock = threading.RLock()
        self.waiters = 0


class SessionRegistry:
    "频道ID -> 当前游戏，每个频道最多一局未结束的游戏"

    def __init__(self, rng: Optional[random.Random] = None):
        self._games: Dict[str, RouletteGame] = {}
        self._locks: Dict[str, _SessionLock] = {}
        self._guard = threading.Lock()       # 保护上面两个字典
        self._rng = rng or random.Random()

    @contextmanager
    def locked(self, session_key: str):
        #同一频道的指令串行执行
        with self._guard:
            entry = self._locks.get(session_key)
            if entry is None:
                entry = _SessionLock()
                self._locks[session_key] = entry
            entry.waiters += 1

        try:
            with entry.lock:
                yield
        finally:
            #没有人再用这把锁且频道已空时清理
            with self._guard:
                entry.waiters -= 1
                if entry.waiters == 0 and session_key not in self._games:
                    del self._locks[session_key]

    def get_or_none(self, session_key: str) -> Optional[RouletteGame]:
        #获取游戏
        with self._guard:
            return self._games.get(session_key)

    def create_if_absent_or_finished(self, session_key: str, first_player: str) -> RouletteGame:
        #创建游戏，频道里已有未结束的游戏时拒绝
        with self.locked(session_key):
            with self._guard:
                current = self._games.get(session_key)
                if current is not None and current.status != FINISHED:
                    raise AlreadyActive('当前频道已经有一个游戏正在进行中', session_key=session_key)

                game = RouletteGame(first_player, rng=self._rng)
                self._games[session_key] = game

        logger.info(f"频道 {session_key} 由 {first_player} 创建了新游戏")
        return game

    def remove(self, session_key: str):
        #释放频道，可重复调用
        with self.locked(session_key):
            with self._guard:
                removed = self._games.pop(session_key, None)
        if removed is not None:
            logger.info(f"频道 {session_key} 的游戏已释放")

    def active_count(self) -> int:
        with self._guard:
            return sum(1 for game in self._games.values() if game.status != FINISHED)

    def lock_count(self) -> int:
        with self._guard:
            return len(self._locks)

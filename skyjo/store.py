"""In-memory transactional document store.

Game and player records live as versioned documents. ``atomically`` runs a
transaction body against private copies, then commits all of its writes at
once if none of the documents it read changed in the meantime; otherwise the
body runs again on fresh reads. Business-rule errors raised by the body abort
the attempt with nothing written.
"""

from __future__ import annotations

from collections import defaultdict
from copy import deepcopy
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Set, Tuple, TypeVar
import logging
import threading

from .errors import NotFound, TransactionAborted
from .models import GameState, PlayerState


logger = logging.getLogger(__name__)

T = TypeVar("T")
Key = Tuple[str, ...]
Listener = Callable[[GameState, Dict[str, PlayerState]], None]

DEFAULT_MAX_RETRIES = 5


def _game_key(game_id: str) -> Key:
    return ("game", game_id)


def _player_key(game_id: str, player_id: str) -> Key:
    return ("player", game_id, player_id)


@dataclass
class _Doc:
    version: int
    value: Any


class _Conflict(Exception):
    pass


class Transaction:
    def __init__(self, store: "MemoryStore") -> None:
        self._store = store
        self._reads: Dict[Key, int] = {}
        self._cache: Dict[Key, Any] = {}
        self._writes: Dict[Key, Any] = {}

    def _get(self, key: Key) -> Any:
        if key in self._cache:
            return self._cache[key]
        version, value = self._store._snapshot(key)
        self._reads[key] = version
        self._cache[key] = value
        return value

    def find_game(self, game_id: str) -> Optional[GameState]:
        return self._get(_game_key(game_id))

    def get_game(self, game_id: str) -> GameState:
        game = self.find_game(game_id)
        if game is None:
            raise NotFound("Game not found.")
        return game

    def get_player(self, game_id: str, player_id: str) -> PlayerState:
        player = self._get(_player_key(game_id, player_id))
        if player is None:
            raise NotFound("Player not found.")
        return player

    def set_game(self, game: GameState) -> None:
        key = _game_key(game.id)
        self._cache[key] = game
        self._writes[key] = game

    def set_player(self, game_id: str, player: PlayerState) -> None:
        key = _player_key(game_id, player.id)
        self._cache[key] = player
        self._writes[key] = player


class MemoryStore:
    def __init__(self, max_retries: int = DEFAULT_MAX_RETRIES) -> None:
        assert max_retries >= 1, "max_retries must be positive"
        self.max_retries = max_retries
        self._docs: Dict[Key, _Doc] = {}
        self._lock = threading.Lock()
        self._listeners: Dict[str, List[Listener]] = defaultdict(list)

    # --- reads outside transactions ---

    def _snapshot(self, key: Key) -> Tuple[int, Any]:
        with self._lock:
            doc = self._docs.get(key)
            if doc is None:
                return 0, None
            return doc.version, deepcopy(doc.value)

    def read_game(self, game_id: str) -> Optional[GameState]:
        return self._snapshot(_game_key(game_id))[1]

    def read_player(self, game_id: str, player_id: str) -> Optional[PlayerState]:
        return self._snapshot(_player_key(game_id, player_id))[1]

    def read_players(self, game_id: str) -> Dict[str, PlayerState]:
        with self._lock:
            return {
                key[2]: deepcopy(doc.value)
                for key, doc in self._docs.items()
                if key[0] == "player" and key[1] == game_id
            }

    def version(self, game_id: str) -> int:
        with self._lock:
            doc = self._docs.get(_game_key(game_id))
            return 0 if doc is None else doc.version

    # --- transactions ---

    def _commit(self, tx: Transaction) -> Set[str]:
        touched: Set[str] = set()
        with self._lock:
            for key, seen in tx._reads.items():
                doc = self._docs.get(key)
                current = 0 if doc is None else doc.version
                if current != seen:
                    raise _Conflict(key)
            for key, value in tx._writes.items():
                doc = self._docs.get(key)
                version = 1 if doc is None else doc.version + 1
                self._docs[key] = _Doc(version=version, value=deepcopy(value))
                touched.add(key[1])
        return touched

    def atomically(self, fn: Callable[[Transaction], T]) -> T:
        for attempt in range(1, self.max_retries + 1):
            tx = Transaction(self)
            result = fn(tx)
            try:
                touched = self._commit(tx)
            except _Conflict as e:
                logger.debug("transaction conflict on %s (attempt %d/%d)", e.args[0], attempt, self.max_retries)
                continue
            self._notify(touched)
            return result
        logger.warning("transaction aborted after %d attempts", self.max_retries)
        raise TransactionAborted("Too much contention, please retry.")

    # --- subscriptions ---

    def subscribe(self, game_id: str, on_change: Listener) -> Callable[[], None]:
        with self._lock:
            self._listeners[game_id].append(on_change)

        def unsubscribe() -> None:
            with self._lock:
                if on_change in self._listeners[game_id]:
                    self._listeners[game_id].remove(on_change)

        return unsubscribe

    def _notify(self, game_ids: Set[str]) -> None:
        for game_id in game_ids:
            with self._lock:
                listeners = list(self._listeners.get(game_id, []))
            if not listeners:
                continue
            game = self.read_game(game_id)
            if game is None:
                continue
            players = self.read_players(game_id)
            for listener in listeners:
                try:
                    listener(game, players)
                except Exception:
                    # Presentation listeners cannot undo a committed write
                    logger.exception("listener failed for game %s", game_id)

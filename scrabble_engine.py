import time
import random
import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Optional, Tuple

import numpy as np

from board import RACK_SIZE, Board, PlacedTile
from difficulty import Difficulty, select_move
from move_finder import Candidate, find_moves
from move_validator import validate_move
from scoring import FormedWord, score_move
from tiles import ALPHABET, Tile, TileIdGenerator, create_bag, draw_tiles, return_tiles
from turn_manager import finalize_scores, get_winner, next_player_index, should_end

logger = logging.getLogger(__name__)

# Tiles an AI player swaps when it has no playable move
AI_EXCHANGE_SIZE = 7


class GamePhase(str, Enum):
    PLAYING = "playing"
    ENDED = "ended"


class MoveKind(str, Enum):
    PLAY = "play"
    PASS = "pass"
    EXCHANGE = "exchange"


class StateError(str, Enum):
    GAME_NOT_IN_PROGRESS = "game_not_in_progress"
    PLAYER_NOT_FOUND = "player_not_found"
    NOT_YOUR_TURN = "not_your_turn"
    NO_TILES = "no_tiles"
    TILE_NOT_IN_RACK = "tile_not_in_rack"
    BLANK_NOT_DESIGNATED = "blank_not_designated"
    NOT_A_BLANK = "not_a_blank"
    BLANK_ALREADY_DESIGNATED = "blank_already_designated"
    INVALID_LETTER = "invalid_letter"
    INSUFFICIENT_BAG = "insufficient_bag"
    STALE_DECISION = "stale_decision"


STATE_ERROR_MESSAGES = {
    StateError.GAME_NOT_IN_PROGRESS: "Game not in progress",
    StateError.PLAYER_NOT_FOUND: "Player not in game",
    StateError.NOT_YOUR_TURN: "Not your turn",
    StateError.NO_TILES: "No tiles selected",
    StateError.TILE_NOT_IN_RACK: "Tile not in your rack",
    StateError.BLANK_NOT_DESIGNATED: "Choose a letter for the blank tile first",
    StateError.NOT_A_BLANK: "Only blank tiles can be given a letter",
    StateError.BLANK_ALREADY_DESIGNATED: "This blank already has a letter",
    StateError.INVALID_LETTER: "A blank must stand for a single letter A-Z",
    StateError.INSUFFICIENT_BAG: "Not enough tiles in bag",
    StateError.STALE_DECISION: "The game moved on before this decision was applied",
}


# --- Records ---

@dataclass(frozen=True)
class Seat:
    """Who sits at the table when a game starts."""
    name: str
    id: Optional[str] = None
    is_ai: bool = False
    ai_difficulty: Optional[str] = None


@dataclass(frozen=True)
class Player:
    id: str
    name: str
    score: int = 0
    rack: Tuple[Tile, ...] = ()
    is_eliminated: bool = False
    consecutive_passes: int = 0
    is_ai: bool = False
    ai_difficulty: Optional[str] = None

    def tile(self, tile_id):
        for tile in self.rack:
            if tile.id == tile_id:
                return tile
        return None

    def to_document(self):
        return {
            'id': self.id,
            'name': self.name,
            'score': self.score,
            'rack': [tile.to_document() for tile in self.rack],
            'is_eliminated': self.is_eliminated,
            'consecutive_passes': self.consecutive_passes,
            'is_ai': self.is_ai,
            'ai_difficulty': self.ai_difficulty,
        }

    @classmethod
    def from_document(cls, doc):
        return cls(
            id=doc['id'],
            name=doc['name'],
            score=doc['score'],
            rack=tuple(Tile.from_document(t) for t in doc['rack']),
            is_eliminated=doc.get('is_eliminated', False),
            consecutive_passes=doc.get('consecutive_passes', 0),
            is_ai=doc.get('is_ai', False),
            ai_difficulty=doc.get('ai_difficulty'),
        )

    def __repr__(self):
        return f"Player({self.name}, Score: {self.score}, Rack: {list(self.rack)})"


@dataclass(frozen=True)
class Move:
    """One entry of the move history."""
    player_id: str
    kind: MoveKind
    score: int = 0
    placements: Tuple[PlacedTile, ...] = ()
    words: Tuple[FormedWord, ...] = ()
    exchanged: int = 0
    timestamp: float = 0.0

    def to_document(self):
        return {
            'player_id': self.player_id,
            'kind': self.kind.value,
            'score': self.score,
            'placements': [p.to_document() for p in self.placements],
            'words': [w.to_document() for w in self.words],
            'exchanged': self.exchanged,
            'timestamp': self.timestamp,
        }

    @classmethod
    def from_document(cls, doc):
        return cls(
            player_id=doc['player_id'],
            kind=MoveKind(doc['kind']),
            score=doc['score'],
            placements=tuple(PlacedTile.from_document(p) for p in doc.get('placements', [])),
            words=tuple(FormedWord.from_document(w) for w in doc.get('words', [])),
            exchanged=doc.get('exchanged', 0),
            timestamp=doc.get('timestamp', 0.0),
        )


@dataclass(frozen=True)
class GameState:
    board: Board
    players: Tuple[Player, ...]
    bag: Tuple[Tile, ...]
    current_player_index: int = 0
    history: Tuple[Move, ...] = ()
    scoreless_turns: int = 0
    phase: GamePhase = GamePhase.PLAYING
    end_reason: Optional[str] = None

    @property
    def current_player(self):
        return self.players[self.current_player_index]

    @property
    def is_over(self):
        return self.phase is GamePhase.ENDED

    def player_index(self, player_id):
        for i, player in enumerate(self.players):
            if player.id == player_id:
                return i
        return None

    def with_player(self, index, player):
        players = list(self.players)
        players[index] = player
        return replace(self, players=tuple(players))

    def to_document(self):
        return {
            'board': self.board.to_document(),
            'players': [p.to_document() for p in self.players],
            'bag': [t.to_document() for t in self.bag],
            'current_player_index': self.current_player_index,
            'history': [m.to_document() for m in self.history],
            'scoreless_turns': self.scoreless_turns,
            'phase': self.phase.value,
            'end_reason': self.end_reason,
        }

    @classmethod
    def from_document(cls, doc):
        return cls(
            board=Board.from_document(doc['board']),
            players=tuple(Player.from_document(p) for p in doc['players']),
            bag=tuple(Tile.from_document(t) for t in doc['bag']),
            current_player_index=doc['current_player_index'],
            history=tuple(Move.from_document(m) for m in doc['history']),
            scoreless_turns=doc['scoreless_turns'],
            phase=GamePhase(doc['phase']),
            end_reason=doc.get('end_reason'),
        )


@dataclass(frozen=True)
class Outcome:
    """Result of a transition. On rejection `state` is the untouched input."""
    state: GameState
    error: Optional[Enum] = None
    detail: str = ""

    @property
    def ok(self):
        return self.error is None


def _rejected(state, error, detail=None):
    logger.debug("Rejected: %s", error.value)
    return Outcome(state, error, detail or STATE_ERROR_MESSAGES[error])


# --- Lifecycle ---

def start_game(seats, rng=None, id_generator=None):
    """
    Creates a new game: a freshly shuffled bag and a full rack for every
    seat, dealt in seat order. Seats may be given as plain names.
    """
    if not seats:
        raise ValueError("A game needs at least one player.")
    seats = [Seat(seat) if isinstance(seat, str) else seat for seat in seats]

    rng = rng or random.Random()
    bag = create_bag(id_generator or TileIdGenerator(), rng)

    players = []
    for i, seat in enumerate(seats):
        rack, bag = draw_tiles(bag, RACK_SIZE)
        players.append(Player(
            id=seat.id or f"player-{i}",
            name=seat.name,
            rack=rack,
            is_ai=seat.is_ai,
            ai_difficulty=seat.ai_difficulty,
        ))

    if len({p.id for p in players}) != len(players):
        raise ValueError("Player ids must be unique.")

    logger.debug("Started game for %s", [p.name for p in players])
    return GameState(board=Board.empty(), players=tuple(players), bag=bag)


def _check_turn(state, player_id):
    """Returns (player_index, rejection) for a turn action."""
    if state.phase is not GamePhase.PLAYING:
        return None, _rejected(state, StateError.GAME_NOT_IN_PROGRESS)
    index = state.player_index(player_id)
    if index is None:
        return None, _rejected(state, StateError.PLAYER_NOT_FOUND)
    if index != state.current_player_index:
        return None, _rejected(state, StateError.NOT_YOUR_TURN)
    return index, None


def _finish_turn(state, index):
    """Ends the game if a condition holds, otherwise hands the turn on."""
    check = should_end(state.players, state.bag, state.scoreless_turns)
    if check.ended:
        players = finalize_scores(state.players)
        logger.info("Game over: %s", check.reason)
        return replace(state, players=players, phase=GamePhase.ENDED, end_reason=check.reason)
    return replace(state, current_player_index=next_player_index(state.players, index))


def _resolve_placements(player, placements):
    """
    Matches each placement with the rack tile it names. Returns
    (resolved, error); resolved placements carry the rack's own tile,
    with blanks given their letter.
    """
    used = set()
    resolved = []
    for placed in placements:
        rack_tile = player.tile(placed.tile.id)
        if rack_tile is None or rack_tile.id in used:
            return None, StateError.TILE_NOT_IN_RACK
        used.add(rack_tile.id)

        if rack_tile.is_blank:
            letter = rack_tile.designated_letter or (placed.tile.designated_letter or "").upper()
            if not letter:
                return None, StateError.BLANK_NOT_DESIGNATED
            if len(letter) != 1 or letter not in ALPHABET:
                return None, StateError.INVALID_LETTER
            rack_tile = rack_tile.designate(letter)
        elif placed.tile.letter != rack_tile.letter:
            return None, StateError.TILE_NOT_IN_RACK

        resolved.append(PlacedTile(rack_tile, placed.position))
    return tuple(resolved), None


def commit_move(state, player_id, placements, dictionary, timestamp=None):
    """Validates, scores and applies a play for the player whose turn it is."""
    index, rejection = _check_turn(state, player_id)
    if rejection:
        return rejection

    placements = tuple(placements)
    if not placements:
        return _rejected(state, StateError.NO_TILES, "No tiles placed")

    player = state.players[index]
    resolved, error = _resolve_placements(player, placements)
    if error:
        return _rejected(state, error)

    result = validate_move(state.board, resolved, dictionary)
    if not result.valid:
        logger.debug("Invalid move by %s: %s", player.name, result.detail)
        return Outcome(state, result.error, result.detail)

    board = state.board.place_tiles(resolved)
    words, move_score = score_move(board, result.words, resolved)

    used_ids = {p.tile.id for p in resolved}
    kept = tuple(t for t in player.rack if t.id not in used_ids)
    drawn, bag = draw_tiles(state.bag, RACK_SIZE - len(kept))

    player = replace(player, score=player.score + move_score, rack=kept + drawn, consecutive_passes=0)
    move = Move(
        player_id=player.id,
        kind=MoveKind.PLAY,
        score=move_score,
        placements=resolved,
        words=words,
        timestamp=time.time() if timestamp is None else timestamp,
    )
    logger.debug("%s played %s for %d", player.name, [w.word for w in words], move_score)

    state = replace(
        state.with_player(index, player),
        board=board,
        bag=bag,
        history=state.history + (move,),
        scoreless_turns=0 if move_score > 0 else state.scoreless_turns + 1,
    )
    return Outcome(_finish_turn(state, index))


def pass_turn(state, player_id, timestamp=None):
    index, rejection = _check_turn(state, player_id)
    if rejection:
        return rejection

    player = state.players[index]
    player = replace(player, consecutive_passes=player.consecutive_passes + 1)
    move = Move(player.id, MoveKind.PASS, timestamp=time.time() if timestamp is None else timestamp)
    logger.debug("%s passed", player.name)

    state = replace(
        state.with_player(index, player),
        history=state.history + (move,),
        scoreless_turns=state.scoreless_turns + 1,
    )
    return Outcome(_finish_turn(state, index))


def exchange_tiles(state, player_id, tile_ids, rng=None, timestamp=None):
    """
    Swaps rack tiles for the same number drawn from the bag. The new tiles
    are drawn before the old ones go back, so a player never redraws the
    tiles they just returned.
    """
    index, rejection = _check_turn(state, player_id)
    if rejection:
        return rejection

    tile_ids = list(tile_ids)
    if not tile_ids:
        return _rejected(state, StateError.NO_TILES)

    player = state.players[index]
    if len(set(tile_ids)) != len(tile_ids) or any(player.tile(tid) is None for tid in tile_ids):
        return _rejected(state, StateError.TILE_NOT_IN_RACK, "Some tiles not found in rack")
    if len(state.bag) < len(tile_ids):
        return _rejected(state, StateError.INSUFFICIENT_BAG)

    outgoing = [player.tile(tid) for tid in tile_ids]
    outgoing_ids = set(tile_ids)
    kept = tuple(t for t in player.rack if t.id not in outgoing_ids)
    drawn, remaining = draw_tiles(state.bag, len(outgoing))
    bag = return_tiles(remaining, outgoing, rng)

    player = replace(player, rack=kept + drawn, consecutive_passes=0)
    move = Move(player.id, MoveKind.EXCHANGE, exchanged=len(outgoing),
                timestamp=time.time() if timestamp is None else timestamp)
    logger.debug("%s exchanged %d tiles", player.name, len(outgoing))

    state = replace(
        state.with_player(index, player),
        bag=bag,
        history=state.history + (move,),
        scoreless_turns=state.scoreless_turns + 1,
    )
    return Outcome(_finish_turn(state, index))


def set_blank_letter(state, player_id, tile_id, letter):
    """Gives a blank on the player's rack its letter. Allowed out of turn."""
    if state.phase is not GamePhase.PLAYING:
        return _rejected(state, StateError.GAME_NOT_IN_PROGRESS)
    index = state.player_index(player_id)
    if index is None:
        return _rejected(state, StateError.PLAYER_NOT_FOUND)

    player = state.players[index]
    tile = player.tile(tile_id)
    if tile is None:
        return _rejected(state, StateError.TILE_NOT_IN_RACK)
    if not tile.is_blank:
        return _rejected(state, StateError.NOT_A_BLANK)
    if tile.designated_letter:
        return _rejected(state, StateError.BLANK_ALREADY_DESIGNATED)
    letter = (letter or "").upper()
    if len(letter) != 1 or letter not in ALPHABET:
        return _rejected(state, StateError.INVALID_LETTER)

    rack = tuple(t.designate(letter) if t.id == tile_id else t for t in player.rack)
    return Outcome(state.with_player(index, replace(player, rack=rack)))


# --- AI turns ---

@dataclass(frozen=True)
class AIDecision:
    """What an AI player chose, tied to the history length it was computed for."""
    player_id: str
    kind: MoveKind
    history_length: int
    candidate: Optional[Candidate] = None
    tile_ids: Tuple[str, ...] = field(default=())


def decide_ai_turn(state, dictionary, rng=None):
    """
    Chooses the current AI player's action. With no playable move the AI
    swaps up to seven tiles while the bag can cover them, and passes
    otherwise. Returns None when it is not an AI player's turn.
    """
    if state.phase is not GamePhase.PLAYING:
        return None
    player = state.current_player
    if not player.is_ai:
        return None

    candidates = find_moves(state.board, player.rack, dictionary)
    difficulty = player.ai_difficulty or Difficulty.MEDIUM
    chosen = select_move(candidates, difficulty, rng)
    history_length = len(state.history)

    if chosen is not None:
        return AIDecision(player.id, MoveKind.PLAY, history_length, candidate=chosen)
    if len(state.bag) >= AI_EXCHANGE_SIZE:
        tile_ids = tuple(t.id for t in player.rack[:AI_EXCHANGE_SIZE])
        return AIDecision(player.id, MoveKind.EXCHANGE, history_length, tile_ids=tile_ids)
    return AIDecision(player.id, MoveKind.PASS, history_length)


def apply_ai_decision(state, decision, dictionary, rng=None, timestamp=None):
    """Commits a decision through the normal transitions, unless the game has moved on."""
    if len(state.history) != decision.history_length:
        return _rejected(state, StateError.STALE_DECISION)

    if decision.kind is MoveKind.PLAY:
        return commit_move(state, decision.player_id, decision.candidate.placements, dictionary, timestamp)
    if decision.kind is MoveKind.EXCHANGE:
        return exchange_tiles(state, decision.player_id, decision.tile_ids, rng, timestamp)
    return pass_turn(state, decision.player_id, timestamp)


def play_ai_turn(state, dictionary, rng=None, bag_rng=None, timestamp=None):
    """Decides and applies the current AI player's turn in one step."""
    decision = decide_ai_turn(state, dictionary, rng)
    if decision is None:
        if state.phase is not GamePhase.PLAYING:
            return _rejected(state, StateError.GAME_NOT_IN_PROGRESS)
        return _rejected(state, StateError.NOT_YOUR_TURN, "Current player is not an AI")
    return apply_ai_decision(state, decision, dictionary, bag_rng, timestamp)


# --- Views ---

def sanitized_view(state, player_id):
    """
    The game as one player may see it: other players' racks and the bag
    are reduced to counts. Returns None for a player not in the game.
    """
    my_index = state.player_index(player_id)
    if my_index is None:
        return None

    doc = state.to_document()
    players = []
    for i, player in enumerate(state.players):
        public = player.to_document()
        if i != my_index:
            del public['rack']
        public['rack_count'] = len(player.rack)
        players.append(public)

    doc['players'] = players
    doc['my_player_index'] = my_index
    doc['bag_count'] = len(state.bag)
    del doc['bag']
    return doc


def to_document(state):
    return state.to_document()


def from_document(doc):
    return GameState.from_document(doc)


# --- Session ---

class ScrabbleGame:
    """
    One game session: the dictionary, tile ids and random sources it owns,
    and the current state. Each action keeps the new state only if it
    succeeded.
    """

    def __init__(self, seats, dictionary, seed=None):
        self.seats = list(seats)
        self.dictionary = dictionary
        self.seed = seed
        self.id_generator = TileIdGenerator()
        self.rng = random.Random(seed)
        self.np_rng = np.random.default_rng(seed)
        self.state = None
        self.new_game()

    def new_game(self):
        self.id_generator.reset()
        self.state = start_game(self.seats, self.rng, self.id_generator)
        return self.state

    def _apply(self, outcome):
        if outcome.ok:
            self.state = outcome.state
        return outcome

    def commit_move(self, player_id, placements):
        return self._apply(commit_move(self.state, player_id, placements, self.dictionary))

    def pass_turn(self, player_id):
        return self._apply(pass_turn(self.state, player_id))

    def exchange_tiles(self, player_id, tile_ids):
        return self._apply(exchange_tiles(self.state, player_id, tile_ids, self.rng))

    def set_blank_letter(self, player_id, tile_id, letter):
        return self._apply(set_blank_letter(self.state, player_id, tile_id, letter))

    def play_ai_turn(self):
        return self._apply(play_ai_turn(self.state, self.dictionary, self.np_rng, self.rng))

    def find_moves(self, player_id=None):
        player = self.get_current_player()
        if player_id is not None:
            player = self.state.players[self.state.player_index(player_id)]
        return find_moves(self.state.board, player.rack, self.dictionary)

    def view(self, player_id):
        return sanitized_view(self.state, player_id)

    def get_current_player(self):
        """Returns the player whose turn it is."""
        return self.state.current_player

    def is_game_over(self):
        return self.state.is_over

    def get_winner(self):
        return get_winner(self.state.players)

    def display(self):
        return self.state.board.display()

import json
import random
import unittest

import numpy as np

from board import Board, PlacedTile, Position
from dictionary import WordList
from move_validator import ValidationError
from scrabble_engine import (
    GamePhase, GameState, MoveKind, Player, ScrabbleGame, Seat, StateError,
    apply_ai_decision, commit_move, decide_ai_turn, exchange_tiles, from_document,
    pass_turn, play_ai_turn, sanitized_view, set_blank_letter, start_game, to_document,
)
from tiles import BLANK, LETTER_POINTS, Tile, TileIdGenerator, letter_counts, starting_counts
from turn_manager import MAX_SCORELESS_TURNS

WORDS = ["CAT", "CATS", "AT", "TA", "ACT", "AN", "NA", "IN", "IT", "TI", "ON", "NO", "TO", "ENTAILS"]


def make_tiles(letters, prefix):
    return tuple(
        Tile(f"{prefix}-{i}", letter, LETTER_POINTS[letter], is_blank=(letter == BLANK))
        for i, letter in enumerate(letters)
    )


def make_state(rack0, rack1, bag="", ai=False):
    """A two-player game with known racks and bag."""
    return GameState(
        board=Board.empty(),
        players=(
            Player("p0", "Ann", rack=make_tiles(rack0, "a"), is_ai=ai, ai_difficulty="hard" if ai else None),
            Player("p1", "Bob", rack=make_tiles(rack1, "b")),
        ),
        bag=make_tiles(bag, "bag"),
    )


def play(state, player_index, *cells):
    """Placements of rack tiles by index: (rack_index, row, col)."""
    rack = state.players[player_index].rack
    return tuple(PlacedTile(rack[i], Position(r, c)) for i, r, c in cells)


def assert_conserved(test, state):
    tiles = list(state.bag) + list(state.board.tiles())
    for player in state.players:
        tiles.extend(player.rack)
    test.assertEqual(letter_counts(tiles), starting_counts())


class TestStartGame(unittest.TestCase):
    """Tests for dealing a new game in scrabble_engine.py"""

    def test_initial_player_racks(self):
        """Each player should start with 7 tiles."""
        state = start_game(["P1", "P2"], random.Random(1))
        self.assertEqual(len(state.players[0].rack), 7)
        self.assertEqual(len(state.players[1].rack), 7)
        # After drawing 14 tiles, 86 should remain in the bag
        self.assertEqual(len(state.bag), 86)
        self.assertEqual(state.phase, GamePhase.PLAYING)
        assert_conserved(self, state)

    def test_tile_ids_are_unique_per_session(self):
        state = start_game(["P1", "P2"], random.Random(1), TileIdGenerator())
        ids = [t.id for t in state.bag] + [t.id for p in state.players for t in p.rack]
        self.assertEqual(len(set(ids)), 100)
        self.assertIn("tile-0", ids)

    def test_seats(self):
        state = start_game([Seat("Ann", id="x"), Seat("Cpu", is_ai=True, ai_difficulty="easy")])
        self.assertEqual([p.id for p in state.players], ["x", "player-1"])
        self.assertTrue(state.players[1].is_ai)
        self.assertEqual(state.players[1].ai_difficulty, "easy")

    def test_no_seats(self):
        with self.assertRaises(ValueError):
            start_game([])

    def test_duplicate_ids(self):
        with self.assertRaises(ValueError):
            start_game([Seat("A", id="x"), Seat("B", id="x")])

    def test_same_seed_same_game(self):
        dictionary = WordList(WORDS)
        first = ScrabbleGame(["P1", "P2"], dictionary, seed=42)
        second = ScrabbleGame(["P1", "P2"], dictionary, seed=42)
        self.assertEqual(first.state, second.state)


class TestCommitMove(unittest.TestCase):

    def setUp(self):
        self.dictionary = WordList(WORDS)
        self.state = make_state("CATSXYZ", "ANIOTEE", bag="EEEEEEEEEE")

    def test_simple_move(self):
        outcome = commit_move(self.state, "p0", play(self.state, 0, (0, 7, 7), (1, 7, 8), (2, 7, 9)),
                              self.dictionary, timestamp=5.0)
        self.assertTrue(outcome.ok)
        state = outcome.state
        self.assertEqual(state.players[0].score, 10)
        self.assertEqual(len(state.players[0].rack), 7)
        self.assertEqual(len(state.bag), 7)
        self.assertEqual(state.current_player_index, 1)
        self.assertEqual(state.scoreless_turns, 0)

        move = state.history[-1]
        self.assertEqual(move.kind, MoveKind.PLAY)
        self.assertEqual(move.score, 10)
        self.assertEqual(move.timestamp, 5.0)
        self.assertEqual([w.word for w in move.words], ["CAT"])
        # The input state is left as it was
        self.assertTrue(self.state.board.is_vacant())

    def test_not_your_turn(self):
        outcome = commit_move(self.state, "p1", play(self.state, 1, (0, 7, 7), (1, 7, 8)), self.dictionary)
        self.assertEqual(outcome.error, StateError.NOT_YOUR_TURN)
        self.assertIs(outcome.state, self.state)

    def test_unknown_player(self):
        outcome = commit_move(self.state, "ghost", (), self.dictionary)
        self.assertEqual(outcome.error, StateError.PLAYER_NOT_FOUND)

    def test_game_over(self):
        ended = GameState(self.state.board, self.state.players, self.state.bag, phase=GamePhase.ENDED)
        outcome = commit_move(ended, "p0", play(ended, 0, (0, 7, 7)), self.dictionary)
        self.assertEqual(outcome.error, StateError.GAME_NOT_IN_PROGRESS)

    def test_no_tiles(self):
        outcome = commit_move(self.state, "p0", (), self.dictionary)
        self.assertEqual(outcome.error, StateError.NO_TILES)

    def test_tile_not_in_rack(self):
        stranger = PlacedTile(Tile("z-9", "C", 3), Position(7, 7))
        outcome = commit_move(self.state, "p0", (stranger,), self.dictionary)
        self.assertEqual(outcome.error, StateError.TILE_NOT_IN_RACK)

    def test_same_tile_twice(self):
        placements = play(self.state, 0, (0, 7, 7), (0, 7, 8))
        outcome = commit_move(self.state, "p0", placements, self.dictionary)
        self.assertEqual(outcome.error, StateError.TILE_NOT_IN_RACK)

    def test_validation_errors_pass_through(self):
        outcome = commit_move(self.state, "p0", play(self.state, 0, (0, 0, 0), (1, 0, 1)), self.dictionary)
        self.assertEqual(outcome.error, ValidationError.CENTER_NOT_COVERED)
        self.assertIs(outcome.state, self.state)

    def test_blank_needs_a_letter(self):
        state = make_state([BLANK, "A", "T"], "EEE", bag="EEEE")
        placements = play(state, 0, (0, 7, 7), (1, 7, 8), (2, 7, 9))
        outcome = commit_move(state, "p0", placements, self.dictionary)
        self.assertEqual(outcome.error, StateError.BLANK_NOT_DESIGNATED)

        outcome = set_blank_letter(state, "p0", "a-0", "c")
        self.assertTrue(outcome.ok)
        outcome = commit_move(outcome.state, "p0", placements, self.dictionary)
        self.assertTrue(outcome.ok)
        # Blank scores nothing: (0 + 1 + 1) * 2
        self.assertEqual(outcome.state.players[0].score, 4)
        self.assertEqual(outcome.state.board.tile_at((7, 7)).face, "C")

    def test_blank_letter_on_placement(self):
        state = make_state([BLANK, "A", "T"], "EEE", bag="EEEE")
        rack = state.players[0].rack
        placements = (
            PlacedTile(rack[0].designate("C"), Position(7, 7)),
            PlacedTile(rack[1], Position(7, 8)),
            PlacedTile(rack[2], Position(7, 9)),
        )
        self.assertTrue(commit_move(state, "p0", placements, self.dictionary).ok)

    def test_blank_letter_on_placement_must_be_one_letter(self):
        state = make_state([BLANK, "I", "T"], "EEE", bag="EEEE")
        rack = state.players[0].rack
        dictionary = WordList(["QUIT", "IT"])
        for letter in ("qu", "7", "É"):
            placements = (
                PlacedTile(rack[0].designate(letter), Position(7, 7)),
                PlacedTile(rack[1], Position(7, 8)),
                PlacedTile(rack[2], Position(7, 9)),
            )
            outcome = commit_move(state, "p0", placements, dictionary)
            self.assertEqual(outcome.error, StateError.INVALID_LETTER)
            self.assertIs(outcome.state, state)

    def test_going_out_ends_game(self):
        state = make_state("CAT", "KBE")
        outcome = commit_move(state, "p0", play(state, 0, (0, 7, 7), (1, 7, 8), (2, 7, 9)), self.dictionary)
        state = outcome.state
        self.assertEqual(state.phase, GamePhase.ENDED)
        self.assertEqual(state.end_reason, "Ann used all their tiles!")
        # K5 + B3 + E1 moves from Bob to Ann
        self.assertEqual(state.players[0].score, 10 + 9)
        self.assertEqual(state.players[1].score, -9)


class TestOtherActions(unittest.TestCase):

    def setUp(self):
        self.dictionary = WordList(WORDS)
        self.state = make_state("CATSXYZ", "ANIOTEE", bag="QQQQQQQQ")

    def test_pass(self):
        outcome = pass_turn(self.state, "p0", timestamp=1.0)
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.state.scoreless_turns, 1)
        self.assertEqual(outcome.state.players[0].consecutive_passes, 1)
        self.assertEqual(outcome.state.current_player_index, 1)
        self.assertEqual(outcome.state.history[-1].kind, MoveKind.PASS)

    def test_six_scoreless_turns_end_game(self):
        state = self.state
        for turn in range(MAX_SCORELESS_TURNS):
            self.assertEqual(state.phase, GamePhase.PLAYING)
            state = pass_turn(state, state.current_player.id).state
        self.assertEqual(state.phase, GamePhase.ENDED)
        self.assertEqual(state.end_reason, "Game ended: too many consecutive passes/zero-score turns")
        # Rack values are deducted once
        self.assertEqual(state.players[0].score, -(3 + 1 + 1 + 1 + 8 + 4 + 10))
        self.assertEqual(pass_turn(state, state.current_player.id).error, StateError.GAME_NOT_IN_PROGRESS)

    def test_exchange(self):
        outcome = exchange_tiles(self.state, "p0", ["a-4", "a-5", "a-6"], random.Random(0))
        self.assertTrue(outcome.ok)
        state = outcome.state
        rack_ids = [t.id for t in state.players[0].rack]
        self.assertEqual(rack_ids[:4], ["a-0", "a-1", "a-2", "a-3"])
        self.assertEqual(len(rack_ids), 7)
        self.assertFalse({"a-4", "a-5", "a-6"} & set(rack_ids))
        self.assertEqual(len(state.bag), 8)
        self.assertEqual(state.scoreless_turns, 1)
        self.assertEqual(state.history[-1].exchanged, 3)

    def test_exchange_errors(self):
        self.assertEqual(exchange_tiles(self.state, "p0", []).error, StateError.NO_TILES)
        self.assertEqual(exchange_tiles(self.state, "p0", ["a-0", "a-0"]).error, StateError.TILE_NOT_IN_RACK)
        self.assertEqual(exchange_tiles(self.state, "p0", ["b-0"]).error, StateError.TILE_NOT_IN_RACK)
        small = make_state("CATSXYZ", "EEE", bag="QQ")
        self.assertEqual(exchange_tiles(small, "p0", ["a-0", "a-1", "a-2"]).error, StateError.INSUFFICIENT_BAG)

    def test_set_blank_letter_errors(self):
        state = make_state([BLANK, "A"], "EEE")
        self.assertEqual(set_blank_letter(state, "p0", "a-1", "C").error, StateError.NOT_A_BLANK)
        self.assertEqual(set_blank_letter(state, "p0", "a-0", "1").error, StateError.INVALID_LETTER)
        self.assertEqual(set_blank_letter(state, "p0", "zz", "C").error, StateError.TILE_NOT_IN_RACK)
        self.assertEqual(set_blank_letter(state, "ghost", "a-0", "C").error, StateError.PLAYER_NOT_FOUND)

        designated = set_blank_letter(state, "p0", "a-0", "C").state
        self.assertEqual(set_blank_letter(designated, "p0", "a-0", "D").error, StateError.BLANK_ALREADY_DESIGNATED)

    def test_set_blank_letter_out_of_turn(self):
        state = make_state("EEE", [BLANK, "A"])
        self.assertTrue(set_blank_letter(state, "p1", "b-0", "q").ok)


class TestViewsAndDocuments(unittest.TestCase):

    def setUp(self):
        self.dictionary = WordList(WORDS)
        state = make_state("CATSXYZ", "ANIOTEE", bag="EEEEEEEEEE")
        self.state = commit_move(state, "p0", play(state, 0, (0, 7, 7), (1, 7, 8), (2, 7, 9)),
                                 self.dictionary, timestamp=2.5).state

    def test_sanitized_view_hides_other_racks(self):
        view = sanitized_view(self.state, "p1")
        self.assertEqual(view['my_player_index'], 1)
        self.assertNotIn('rack', view['players'][0])
        self.assertEqual(view['players'][0]['rack_count'], 7)
        self.assertEqual(len(view['players'][1]['rack']), 7)
        self.assertEqual(view['bag_count'], 7)
        self.assertNotIn('bag', view)

    def test_sanitized_view_unknown_player(self):
        self.assertIsNone(sanitized_view(self.state, "ghost"))

    def test_document_round_trip(self):
        doc = json.loads(json.dumps(to_document(self.state)))
        self.assertEqual(from_document(doc), self.state)


class TestAITurns(unittest.TestCase):

    def setUp(self):
        self.dictionary = WordList(WORDS)

    def test_ai_plays_best_move(self):
        state = make_state("CATQQQQ", "EEE", bag="EEEEEEEEE", ai=True)
        outcome = play_ai_turn(state, self.dictionary, np.random.default_rng(0), random.Random(0))
        self.assertTrue(outcome.ok)
        move = outcome.state.history[-1]
        self.assertEqual(move.kind, MoveKind.PLAY)
        self.assertEqual(move.score, 10)

    def test_ai_exchanges_when_stuck(self):
        state = make_state("QQQQQQQ", "EEE", bag="EEEEEEEEE", ai=True)
        decision = decide_ai_turn(state, self.dictionary)
        self.assertEqual(decision.kind, MoveKind.EXCHANGE)
        self.assertEqual(len(decision.tile_ids), 7)
        outcome = apply_ai_decision(state, decision, self.dictionary, random.Random(0))
        self.assertEqual(outcome.state.history[-1].kind, MoveKind.EXCHANGE)

    def test_ai_passes_when_bag_is_low(self):
        state = make_state("QQQQQQQ", "EEE", bag="EE", ai=True)
        outcome = play_ai_turn(state, self.dictionary)
        self.assertEqual(outcome.state.history[-1].kind, MoveKind.PASS)

    def test_stale_decision(self):
        state = make_state("CATQQQQ", "EEE", bag="EEEEEEEEE", ai=True)
        decision = decide_ai_turn(state, self.dictionary, np.random.default_rng(0))
        moved_on = pass_turn(state, "p0").state
        outcome = apply_ai_decision(moved_on, decision, self.dictionary)
        self.assertEqual(outcome.error, StateError.STALE_DECISION)
        self.assertIs(outcome.state, moved_on)

    def test_human_turn_is_not_played(self):
        state = make_state("CAT", "EEE")
        self.assertIsNone(decide_ai_turn(state, self.dictionary))
        self.assertEqual(play_ai_turn(state, self.dictionary).error, StateError.NOT_YOUR_TURN)


class TestScrabbleGame(unittest.TestCase):

    def test_ai_game_conserves_tiles(self):
        seats = [
            Seat("Hard", is_ai=True, ai_difficulty="hard"),
            Seat("Easy", is_ai=True, ai_difficulty="easy"),
        ]
        game = ScrabbleGame(seats, WordList(WORDS), seed=3)
        for _ in range(12):
            if game.is_game_over():
                break
            self.assertTrue(game.play_ai_turn().ok)
            assert_conserved(self, game.state)

    def test_rejected_action_keeps_state(self):
        game = ScrabbleGame(["P1", "P2"], WordList(WORDS), seed=1)
        before = game.state
        outcome = game.pass_turn("player-1")
        self.assertEqual(outcome.error, StateError.NOT_YOUR_TURN)
        self.assertIs(game.state, before)

        self.assertTrue(game.pass_turn("player-0").ok)
        self.assertEqual(game.get_current_player().name, "P2")

    def test_new_game_resets_tile_ids(self):
        game = ScrabbleGame(["P1", "P2"], WordList(WORDS), seed=1)
        game.new_game()
        ids = {t.id for t in game.state.bag} | {t.id for p in game.state.players for t in p.rack}
        self.assertIn("tile-0", ids)
        self.assertIn("tile-99", ids)


if __name__ == '__main__':
    unittest.main()

from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field

from .actions import Action
from .combo import Combo, ComboDetector
from .entities import Board, CardIdFactory, Deck, Player
from .errors import CardNotFound, DeckEmpty, GameError, GameFinished, PositionOccupied
from .types import Card, Difficulty, GameConfig, GameStatus, Position

logger = logging.getLogger(__name__)

Event = dict[str, object]

PLAYER_IDS = ("player1", "player2")


@dataclass
class StepResult:
    ok: bool
    events: list[Event]
    error: str | None = None
    # False when the action had already been applied and was skipped.
    applied: bool = True


@dataclass
class Game:
    board: Board
    deck: Deck
    players: list[Player]
    current_player_index: int = 0
    total_stars: int = 21
    discard_count: int = 0
    status: GameStatus = GameStatus.PLAYING
    last_placed_position: Position | None = None
    last_auto_drawn_player_id: str | None = None
    game_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    seed: int | None = None
    rng: random.Random = field(default_factory=random.Random)
    config: GameConfig = field(default_factory=GameConfig)
    event_log: list[Event] = field(default_factory=list)

    def current_player(self) -> Player:
        return self.players[self.current_player_index]

    def opponent(self) -> Player:
        return self.players[1 - self.current_player_index]

    def is_game_over(self) -> bool:
        return self.status == GameStatus.FINISHED

    def _require_playing(self) -> None:
        if self.status == GameStatus.FINISHED:
            raise GameFinished("Game is already finished")

    def _require_empty(self, pos: Position) -> None:
        if not self.board.is_empty(pos):
            raise PositionOccupied(f"Position {pos} is already occupied")

    def place_card(self, card: Card, pos: Position) -> None:
        """Put `card` on the board without touching any hand."""
        self._require_playing()
        self._require_empty(pos)
        self.board.place_card(card, pos)
        self.last_placed_position = pos
        self.event_log.append(
            {"type": "CARD_PLACED", "player": self.current_player().id, "card_id": card.id, "position": str(pos)}
        )

    def place_from_hand(self, card: Card, pos: Position) -> None:
        self._require_playing()
        self._require_empty(pos)
        player = self.current_player()
        if not player.hand.has(card):
            raise CardNotFound(f"Card {card.id} is not in {player.id}'s hand")
        player.play_card(card)
        self.place_card(card, pos)

    def discard_from_board(self, pos: Position) -> Card | None:
        self._require_playing()
        card = self.board.remove_card(pos)
        if card is not None:
            self.discard_count += 1
            self.event_log.append({"type": "BOARD_DISCARD", "card_id": card.id, "position": str(pos)})
        return card

    def discard_from_hand(self, card: Card) -> Card:
        self._require_playing()
        player = self.current_player()
        removed = player.play_card(card)
        self.discard_count += 1
        self.event_log.append({"type": "HAND_DISCARD", "player": player.id, "card_id": removed.id})
        return removed

    def draw_and_place_card(self, pos: Position) -> Card:
        self._require_playing()
        self._require_empty(pos)
        if self.deck.is_empty():
            raise DeckEmpty("Deck is empty")
        if self.deck.peek() is None:
            raise DeckEmpty("Top card of the deck is not known locally")
        card = self.deck.draw()
        assert card is not None
        self.event_log.append({"type": "CARD_DRAWN", "player": self.current_player().id, "to": "board"})
        self.place_card(card, pos)
        return card

    def cancel_placement(self, pos: Position) -> Card | None:
        """Take an uncommitted placement back into the current player's hand."""
        self._require_playing()
        card = self.board.remove_card(pos)
        if card is not None:
            self.current_player().draw_to_hand(card)
            self.event_log.append({"type": "PLACEMENT_CANCELLED", "card_id": card.id, "position": str(pos)})
        return card

    def claim_combo(self, combo: Combo) -> bool:
        if self.status == GameStatus.FINISHED:
            return False

        live = [pos for pos, card in zip(combo.positions, combo.cards) if self.board.get_card(pos) == card]
        if not live:
            # Already resolved.
            return False

        player = self.current_player()
        for pos in live:
            if self.board.remove_card(pos) is not None:
                self.discard_count += 1

        drawn = 0
        for _ in range(combo.draw_count):
            card = self.deck.draw()
            if card is None:
                break
            player.draw_to_hand(card)
            drawn += 1

        stars = min(combo.reward_stars, self.total_stars)
        player.add_stars(stars)
        self.total_stars -= stars

        self.event_log.append(
            {
                "type": "COMBO_CLAIMED",
                "player": player.id,
                "combo": combo.type.value,
                "stars": stars,
                "drawn": drawn,
            }
        )
        logger.debug("%s claimed %s for %d stars (%d left)", player.id, combo.type.value, stars, self.total_stars)
        return True

    def end_turn(self) -> None:
        self._require_playing()
        ending = self.current_player()
        if self.total_stars == 0 or self.deck.is_empty():
            self.status = GameStatus.FINISHED

        self.current_player_index = 1 - self.current_player_index
        self.event_log.append({"type": "TURN_ENDED", "player": ending.id})

        if self.status == GameStatus.FINISHED:
            winner = self.get_winner()
            self.event_log.append({"type": "GAME_ENDED", "winner": winner.id if winner else None})
            logger.info(
                "Game %s finished: %s", self.game_id, " vs ".join(f"{p.id}={p.stars}" for p in self.players)
            )
            return

        nxt = self.current_player()
        if not nxt.hand.has() and not self.deck.is_empty():
            card = self.deck.draw()
            if card is not None:
                nxt.draw_to_hand(card)
                self.last_auto_drawn_player_id = nxt.id
                self.event_log.append({"type": "AUTO_DRAW", "player": nxt.id})

    def get_winner(self) -> Player | None:
        if not self.is_game_over():
            return None
        p1, p2 = self.players
        if p1.stars > p2.stars:
            return p1
        if p2.stars > p1.stars:
            return p2
        return None

    def clear_auto_draw_flag(self) -> None:
        self.last_auto_drawn_player_id = None


def new_game(
    seed: int | None = None,
    *,
    player_goes_first: bool = True,
    difficulties: tuple[Difficulty | None, Difficulty | None] = (None, None),
    config: GameConfig | None = None,
    ids: CardIdFactory | None = None,
) -> Game:
    """Shuffle a fresh deck, deal both hands and pick the first player."""
    cfg = config or GameConfig()
    rng = random.Random(seed)
    deck = Deck.standard(ids or CardIdFactory(), cfg)
    deck.shuffle(rng)

    players = [Player(pid, cpu_difficulty=diff) for pid, diff in zip(PLAYER_IDS, difficulties)]
    for _ in range(cfg.initial_hand_size):
        for p in players:
            card = deck.draw()
            if card is not None:
                p.draw_to_hand(card)

    game = Game(
        board=Board(),
        deck=deck,
        players=players,
        current_player_index=0 if player_goes_first else 1,
        total_stars=cfg.initial_stars,
        seed=seed,
        rng=rng,
        config=cfg,
    )
    game.event_log.append({"type": "GAME_STARTED", "first": game.current_player().id})
    logger.info("New game %s (seed=%s, first=%s)", game.game_id, seed, game.current_player().id)
    return game


_detector = ComboDetector()


def _claim(game: Game, combo: Combo) -> bool:
    if game.is_game_over():
        raise GameFinished("Game is already finished")
    on_board = [game.board.get_card(pos) == card for pos, card in zip(combo.positions, combo.cards)]
    if not any(on_board):
        return False
    if not all(on_board):
        raise CardNotFound("Combo cards are no longer on the board")
    if _detector.check_combo(combo.cards, combo.positions) != combo.type:
        raise GameError(f"Not a valid {combo.type.value} combo")
    return game.claim_combo(combo)


def _apply(game: Game, action: Action) -> bool:
    if action.kind == "place":
        if not game.current_player().hand.has(action.card):
            return False
        game.place_from_hand(action.card, action.position)
        return True
    if action.kind == "draw_and_place":
        occupant = game.board.get_card(action.position)
        if occupant is not None and action.card is not None and occupant == action.card:
            return False
        game.draw_and_place_card(action.position)
        return True
    if action.kind == "discard_board":
        if game.board.is_empty(action.position):
            return False
        game.discard_from_board(action.position)
        return True
    if action.kind == "discard_hand":
        if not game.current_player().hand.has(action.card):
            return False
        game.discard_from_hand(action.card)
        return True
    if action.kind == "claim":
        return _claim(game, action.combo)
    if action.kind == "cancel":
        if game.board.is_empty(action.position):
            return False
        game.cancel_placement(action.position)
        return True
    if action.kind == "end_turn":
        if action.player != game.current_player_index:
            return False
        game.end_turn()
        return True
    raise GameError(f"Unknown action: {action!r}")


def step(game: Game, action: Action) -> StepResult:
    """Apply one command to the game.

    Contract violations come back as `ok=False` instead of raising. Replaying
    an action that was already applied is a no-op reported as `applied=False`.
    """
    mark = len(game.event_log)
    try:
        applied = _apply(game, action)
    except GameError as e:
        logger.warning("Rejected %s: %s", action.kind, e)
        return StepResult(ok=False, events=[], error=str(e), applied=False)
    if not applied:
        logger.debug("Skipped already-applied %s", action.kind)
    return StepResult(ok=True, events=game.event_log[mark:], applied=applied)

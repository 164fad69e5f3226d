from __future__ import annotations

from statemachine import State, StateMachine

from homepage.api.models import GameState, GameStatus


class GameFSM(StateMachine):
    """FSM wrapper around GameState.

    - active -> active on a move that doesn't end the game
    - active -> alexWon / worldWon / draw on a terminal move
    - any -> active on restart

    Moves are applied by the action layer; the FSM only guards transitions.
    """

    active = State(GameStatus.active.value, value=GameStatus.active.value, initial=True)
    alex_won = State(GameStatus.alex_won.value, value=GameStatus.alex_won.value)
    world_won = State(GameStatus.world_won.value, value=GameStatus.world_won.value)
    draw = State(GameStatus.draw.value, value=GameStatus.draw.value)

    play = active.to.itself()
    alex_wins = active.to(alex_won)
    world_wins = active.to(world_won)
    declare_draw = active.to(draw)
    restart = active.to.itself() | alex_won.to(active) | world_won.to(active) | draw.to(active)

    def __init__(self, game: GameState):
        self.game = game
        super().__init__(start_value=game.status.value)

    def conclude(self, result: GameStatus) -> None:
        """Fire the transition matching the evaluated board."""

        if result == GameStatus.active:
            self.play()
        elif result == GameStatus.alex_won:
            self.alex_wins()
        elif result == GameStatus.world_won:
            self.world_wins()
        else:
            self.declare_draw()

    def sync_status_to_model(self) -> None:
        self.game.status = GameStatus(str(self.current_state.value))

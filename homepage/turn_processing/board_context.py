from __future__ import annotations

from homepage.api.models import EMPTY_CELL, Actor, GameState, GameStatus


POSITION_NAMES: tuple[str, ...] = (
    "top-left",
    "top-center",
    "top-right",
    "middle-left",
    "center",
    "middle-right",
    "bottom-left",
    "bottom-center",
    "bottom-right",
)


def position_name(position: int) -> str:
    return POSITION_NAMES[position]


def board_text(*, state: GameState) -> str:
    """Render the board as a 3x3 grid; empty cells show their position number."""

    cells = [cell if cell != EMPTY_CELL else str(idx) for idx, cell in enumerate(state.board)]
    rows = [" | ".join(cells[i : i + 3]) for i in range(0, 9, 3)]
    return "\n".join(rows)


def move_notification_text(*, actor: Actor, position: int) -> str:
    """Message for the opposing side after a move that leaves the game active."""

    if actor == Actor.world:
        return (
            "🌎 *The World just moved!*\n"
            f"Position: {position_name(position)} ({position})\n\n"
            "Your turn, Alex! Reply with your move."
        )
    return f"✅ You played position {position} ({position_name(position)})!\n\nWaiting for The World's move..."


def result_text(*, state: GameState, position: int) -> str:
    """Reply to Alex after a move from Slack that ended the game."""

    lines = [f"✅ You played position {position} ({position_name(position)})!", ""]
    if state.status == GameStatus.alex_won:
        lines.append("🏆 You won!")
    elif state.status == GameStatus.world_won:
        lines.append("🌎 The World won!")
    else:
        lines.append("🤝 Game is a draw!")
    lines.extend(["", "```", board_text(state=state), "```"])
    return "\n".join(lines)

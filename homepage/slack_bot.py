from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any

from homepage.actions import apply_move
from homepage.api.models import Actor, GameStatus
from homepage.errors import CellOccupied, MoveRejected
from homepage.game_store import StateStore, get_game
from homepage.notifications import Notifier
from homepage.turn_processing.board_context import result_text


logger = logging.getLogger(__name__)

# A move is a message consisting of exactly one digit 0-8.
_MOVE_RE = re.compile(r"^([0-8])$")


def parse_move_text(text: str) -> int | None:
    m = _MOVE_RE.match(text.strip())
    if not m:
        return None
    return int(m.group(1))


def _reply(notifier: Notifier, text: str) -> None:
    try:
        notifier.send(text)
    except Exception as e:
        logger.warning("slack reply failed: %s", e, exc_info=True)


@dataclass(frozen=True, slots=True)
class SlackEventResult:
    # JSON body to answer with; None means a plain "OK".
    reply: dict[str, Any] | None = None
    moved: bool = False


def handle_slack_event(*, r: StateStore, notifier: Notifier, body: dict[str, Any]) -> SlackEventResult:
    """Handle one Slack Events API callback.

    Only url_verification gets a JSON reply; everything else is acknowledged
    with a plain OK so Slack doesn't retry.
    Messages that aren't moves, or arrive when it isn't Alex's turn, are
    ignored rather than answered.
    """

    if body.get("type") == "url_verification":
        return SlackEventResult(reply={"challenge": body.get("challenge")})

    event = body.get("event") or {}
    if event.get("type") != "message" or not event.get("text"):
        return SlackEventResult()

    # Our own replies come back as message events too.
    if event.get("bot_id"):
        return SlackEventResult()

    position = parse_move_text(str(event["text"]))
    if position is None:
        return SlackEventResult()

    state = get_game(r=r)
    if state is None:
        return SlackEventResult()
    if state.current_turn != Actor.alex or state.status != GameStatus.active:
        logger.info("ignoring slack move %s: not alex's turn", position)
        return SlackEventResult()

    try:
        outcome = apply_move(r=r, notifier=notifier, actor=Actor.alex, position=position)
    except CellOccupied:
        _reply(notifier, f"❌ Cell {position} is already taken!")
        return SlackEventResult()
    except MoveRejected as e:
        logger.info("slack move %s rejected: %s", position, e)
        return SlackEventResult()

    # Non-terminal moves were already confirmed by the move notification.
    if outcome.state.status != GameStatus.active:
        _reply(notifier, result_text(state=outcome.state, position=position))
    return SlackEventResult(moved=True)


def run_ping_blocks() -> list[dict[str, Any]]:
    """Block Kit message nudging Alex to go for a run."""

    return [
        {
            "type": "section",
            "text": {"type": "mrkdwn", "text": "*Run Status Check* 🏃"},
        },
        {
            "type": "section",
            "text": {
                "type": "mrkdwn",
                "text": (
                    "Hey Alex! Someone checked your website and noticed you haven't gone for a run today! 🏃‍♂️\n"
                    "Think you'll head out for one? 🤔"
                ),
            },
        },
        {
            "type": "context",
            "elements": [{"type": "mrkdwn", "text": "Sent from alexandercoyne.com"}],
        },
    ]

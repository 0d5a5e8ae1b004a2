"""
Test helpers for driving a controller through whole turns.
"""

from ..engine.events import GameEvent, GameEventType


def pairs_of(state) -> list[tuple[int, int]]:
    """Card ids grouped by asset, ordered by asset key."""
    groups: dict[int, list[int]] = {}
    for card in state.cards:
        groups.setdefault(card.asset_key, []).append(card.card_id)
    return [tuple(ids) for _, ids in sorted(groups.items())]


def mismatch_of(state, exclude=()) -> tuple[int, int]:
    """Two hidden cards from different pairs."""
    open_pairs = [
        ids for ids in pairs_of(state)
        if not state.get_card(ids[0]).is_matched and not set(ids) & set(exclude)
    ]
    return open_pairs[0][0], open_pairs[1][0]


def play_pair(controller, scheduler, first: int, second: int) -> None:
    """Flip two cards and let the comparison resolve."""
    controller.flip_card(first)
    controller.flip_card(second)
    scheduler.advance(controller.settings.reveal_delay)


class EventRecorder:
    """Collects every event emitted on a bus."""

    def __init__(self, bus):
        self.events: list[GameEvent] = []
        bus.on_any(self.events.append)

    def types(self) -> list[GameEventType]:
        return [e.type for e in self.events]

    def of(self, event_type: GameEventType) -> list:
        return [e.payload for e in self.events if e.type is event_type]

    def clear(self) -> None:
        self.events.clear()

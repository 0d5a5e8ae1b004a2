"""
PokeMemo CLI - Command-line interface for the engine.

Usage:
    pokememo serve [--host H --port P]      Run the HTTP API
    pokememo difficulties                   Show deck sizes
    pokememo demo [--players N --difficulty D --seed S]
                                            Play a scripted game offline
"""

import argparse
import random
import sys

from .config import configure_logging


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="PokeMemo - Turn-based Memory Matching Engine",
        prog="pokememo",
    )
    parser.add_argument("--log-level", help="Override POKEMEMO_LOG_LEVEL")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")

    # Difficulties command
    subparsers.add_parser("difficulties", help="Show deck sizes per difficulty")

    # Demo command
    demo_parser = subparsers.add_parser("demo", help="Play a scripted game offline")
    demo_parser.add_argument("--players", type=int, default=2, help="Number of players (1-4)")
    demo_parser.add_argument("--difficulty", default="easy", help="easy, medium or hard")
    demo_parser.add_argument("--seed", type=int, default=None, help="Seed for the shuffle")

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "difficulties":
        cmd_difficulties(args)
    elif args.command == "demo":
        cmd_demo(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("pokememo.api.app:app", host=args.host, port=args.port)


def cmd_difficulties(args):
    """Print the difficulty table."""
    from .engine import DIFFICULTY_CONFIG

    print(f"{'Difficulty':<12}{'Pairs':>6}{'Cards':>7}  Grid")
    for difficulty, config in DIFFICULTY_CONFIG.items():
        print(
            f"{difficulty.value:<12}{config.unique_count:>6}{config.total_cards:>7}"
            f"  {config.columns}x{config.rows}"
        )


def cmd_demo(args):
    """
    Play a whole game on a virtual clock.

    Each player remembers every face it has seen and flips a known
    pair when it can.
    """
    from .assets import StaticAssetProvider
    from .engine import (
        Difficulty, GameConfig, GameController, GameError, GameEventType,
        PlayerSetup, VirtualScheduler,
    )

    rng = random.Random(args.seed)
    scheduler = VirtualScheduler()
    controller = GameController(StaticAssetProvider(rng=rng), scheduler, rng=rng)
    settings = controller.settings

    seen: dict[int, int] = {}  # card_id -> asset_key

    def on_flip(event):
        seen[event.card.card_id] = event.card.asset_key
        print(f"  {event.player.name} flips #{event.card.card_id} ({event.card.name})")

    controller.on(GameEventType.CARD_FLIPPED, on_flip)
    controller.on(GameEventType.MATCH, lambda e: print(f"  Match! {e.player.name} scores {e.player.score}"))
    controller.on(GameEventType.MISMATCH, lambda e: print("  No match"))
    controller.on(GameEventType.TURN_SWITCH, lambda e: print(f"-- {e.to_player.name}'s turn --"))
    controller.on(GameEventType.GAME_OVER, lambda e: print_results(e))

    try:
        players = [PlayerSetup(name=f"Player {i + 1}") for i in range(args.players)]
        controller.init_game(GameConfig(difficulty=Difficulty(args.difficulty), players=players))
    except (GameError, ValueError) as e:
        print(f"Error: {e}")
        sys.exit(1)

    controller.start_game()
    state = controller.get_game_state()
    print(f"-- {state.current_player.name}'s turn --")

    while not state.is_game_over:
        if state.is_paused:
            controller.resume_game()
        first, second = choose_pair(state, seen, rng)
        controller.flip_card(first)
        if second is None:
            second = partner_of(first, seen, controller.get_game_state(), rng)
        controller.flip_card(second)
        scheduler.advance(settings.reveal_delay)
        state = controller.get_game_state()

    controller.destroy()


def choose_pair(state, seen, rng):
    """A remembered pair if one exists, otherwise an unseen first card."""
    hidden = [c.card_id for c in state.cards if not c.is_matched]
    by_key: dict[int, list[int]] = {}
    for card_id in hidden:
        if card_id in seen:
            by_key.setdefault(seen[card_id], []).append(card_id)
    for ids in by_key.values():
        if len(ids) == 2:
            return ids[0], ids[1]
    unseen = [i for i in hidden if i not in seen]
    return rng.choice(unseen or hidden), None


def partner_of(first, seen, state, rng):
    """The remembered twin of `first`, or any other hidden card."""
    key = seen[first]
    hidden = [c.card_id for c in state.cards if not c.is_matched and c.card_id != first]
    for card_id in hidden:
        if seen.get(card_id) == key:
            return card_id
    unseen = [i for i in hidden if i not in seen]
    return rng.choice(unseen or hidden)


def print_results(event):
    print("\n== Game over ==")
    for player in event.final_scores:
        print(f"  {player.name:<10} {player.score:>5}  ({player.matches} matches / {player.total_flips} flips)")
    if event.is_tie:
        print("Tie between " + ", ".join(w.name for w in event.winners))
    else:
        print(f"{event.winner.name} wins!")


if __name__ == "__main__":
    main()

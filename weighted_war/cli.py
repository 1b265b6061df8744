"""
Weighted War CLI - Command-line interface for the engine.

Usage:
    weighted-war serve [--host HOST] [--port PORT]     Run the API server
    weighted-war simulate [--games N] [--left P] [--right P] [--seed S]
                                                        Play local games between bid policies
"""

import argparse
import random
import sys

from .logging_utils import setup_logging, LOG_LEVEL


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Weighted War - sealed-bid card game engine",
        prog="weighted-war",
    )
    parser.add_argument("--log-level", default=LOG_LEVEL, help="Logging level")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Serve command
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address")
    serve_parser.add_argument("--port", type=int, default=8000, help="Bind port")
    serve_parser.add_argument("--reload", action="store_true", help="Reload on code changes")

    # Simulate command
    simulate_parser = subparsers.add_parser("simulate", help="Play games between bid policies")
    simulate_parser.add_argument("--games", type=int, default=1, help="Number of games")
    simulate_parser.add_argument("--left", default="random", help="Policy for the left seat")
    simulate_parser.add_argument("--right", default="match", help="Policy for the right seat")
    simulate_parser.add_argument("--seed", type=int, default=None, help="Random seed")

    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if args.command == "serve":
        cmd_serve(args)
    elif args.command == "simulate":
        cmd_simulate(args)
    else:
        parser.print_help()
        sys.exit(1)


def cmd_serve(args):
    """Run the API with uvicorn."""
    import uvicorn

    uvicorn.run(
        "weighted_war.api.app:app",
        host=args.host,
        port=args.port,
        reload=args.reload,
    )


def cmd_simulate(args):
    """Play complete games locally and print the results."""
    from .bots import create_policy
    from .engine_core import Seat, outcome_for, standings
    from .session import SessionManager, GameLoop

    rng = random.Random(args.seed)
    try:
        policies = {
            Seat.LEFT: create_policy(args.left, rng=rng),
            Seat.RIGHT: create_policy(args.right, rng=rng),
        }
    except ValueError as e:
        print(f"Error: {e}")
        sys.exit(1)

    manager = SessionManager(rng=rng)
    loop = GameLoop(manager)
    identities = {Seat.LEFT: "left-bot", Seat.RIGHT: "right-bot"}
    tally = {"win": 0, "lose": 0, "tie": 0}

    for game in range(1, args.games + 1):
        session_id = f"sim-{game}"
        manager.create_session(session_id, identities[Seat.LEFT], policies[Seat.LEFT].get_name())
        session = manager.join_session(session_id, identities[Seat.RIGHT], policies[Seat.RIGHT].get_name())

        while not session.is_finished:
            for seat in Seat:
                bid = policies[seat].select_bid(session, seat)
                session = loop.submit_bid(session_id, identities[seat], seat, bid).session

        scores = standings(session)
        result = outcome_for(session, Seat.LEFT)
        tally[result] += 1
        print(
            f"Game {game}: left {scores[Seat.LEFT]} - right {scores[Seat.RIGHT]}"
            f" (left {result}, forfeited pot {session.pot_cards})"
        )

    print(
        f"\n{args.left} (left) vs {args.right} (right): "
        f"{tally['win']} won, {tally['lose']} lost, {tally['tie']} tied"
    )


if __name__ == "__main__":
    main()

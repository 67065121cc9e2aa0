"""Command line reveal verifier.

Usage:
    faction-verify http://localhost:8000 my-game
    faction-verify --file reveal.json
"""

import argparse
import json
import logging
import sys
from typing import List, Optional

import httpx

from faction_selector.services.verifier import verify_reveal


def fetch_reveal(base_url: str, game_id: str, timeout: float = 10.0) -> dict:
    url = f"{base_url.rstrip('/')}/api/game/{game_id}/reveal"
    with httpx.Client(timeout=timeout) as client:
        response = client.get(url)
        response.raise_for_status()
        return response.json()


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Verify a revealed faction game.")
    parser.add_argument("base_url", nargs="?", help="Server base URL")
    parser.add_argument("game_id", nargs="?", help="Game ID")
    parser.add_argument("--file", help="Read the reveal JSON from a file instead")
    parser.add_argument("--timeout", type=float, default=10.0)
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.ERROR)

    if args.file:
        try:
            with open(args.file, "r", encoding="utf-8") as f:
                reveal = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            print(f"Could not read reveal file: {e}", file=sys.stderr)
            return 2
    elif args.base_url and args.game_id:
        try:
            reveal = fetch_reveal(args.base_url, args.game_id, args.timeout)
        except httpx.HTTPStatusError as e:
            print(f"Server refused reveal: {e.response.status_code} {e.response.text}", file=sys.stderr)
            return 2
        except httpx.HTTPError as e:
            print(f"Could not reach server: {e}", file=sys.stderr)
            return 2
    else:
        parser.error("give base_url and game_id, or --file")

    report = verify_reveal(reveal)
    for player in report.players:
        status = "OK  " if player.valid else "FAIL"
        detail = "" if player.valid else " - " + "; ".join(player.problems)
        print(f"[{status}] {player.name}{detail}")

    if report.all_valid:
        print("All commitments verified.")
        return 0
    print(f"Verification failed for: {', '.join(report.failed_players) or 'no players revealed'}")
    return 1


if __name__ == "__main__":
    sys.exit(main())

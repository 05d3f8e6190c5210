#main.py
import argparse
import sys
import time

from plexrpc.config import load_config
from plexrpc.debug import debug_log
from plexrpc.errors import ConfigError, PresenceSyncError
from plexrpc.factory import build_engine
from plexrpc.plex_client import PlexClient


def list_servers(config) -> int:
    if not config.auth_token:
        print("[Plex] Set PLEX_TOKEN first.")
        return 1

    plex = PlexClient(config.auth_token, config.username or "", config.client_id)
    try:
        servers = plex.get_servers()
    except PresenceSyncError as e:
        print(f"[Plex] Could not list servers: {e}")
        return 1

    for server in servers:
        print(f"{server}  owned={'yes' if server.owned else 'no'}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Show what you're watching on Plex in your Discord status.")
    parser.add_argument("--list-servers", action="store_true", help="print servers available to this account and exit")
    parser.add_argument("--poll", type=float, help="seconds between checks (default: PLEX_POLL_SECONDS or 3)")
    args = parser.parse_args(argv)

    try:
        config = load_config()
    except ConfigError as e:
        print(f"[Config] {e}")
        return 2

    if args.list_servers:
        return list_servers(config)

    if config.auth_token and not config.username:
        try:
            config.username = PlexClient(config.auth_token, "", config.client_id).fetch_username()
        except PresenceSyncError as e:
            print(f"[Plex] Could not look up username: {e}")

    poll_seconds = args.poll or config.poll_seconds
    engine = build_engine(config)
    target = config.target()
    last_status = None

    print(f"[Plex] Watching {target or 'nothing'}… (Ctrl+C to stop)")

    try:
        while True:
            try:
                status = engine.tick(target, config.is_authenticated())
            except PresenceSyncError as e:
                status = f"{type(e).__name__}: {e}"
                debug_log(f"Tick failed: {e}")

            if status != last_status:
                print(f"[RPC] {status}")
                last_status = status

            time.sleep(poll_seconds)
    except KeyboardInterrupt:
        print("\n[RPC] Clearing presence…")
    finally:
        engine.close()

    return 0


if __name__ == "__main__":
    sys.exit(main())

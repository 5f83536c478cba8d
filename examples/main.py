"""
main.py — Follow a Sketchroom room
==================================

Joins (or creates) a room and keeps the local client in sync until
the game ends or you press Ctrl+C.

    python main.py ABC234     # join a room
    python main.py            # create a room and host it

The client will:
  1. Poll the room every second and send a heartbeat
  2. Switch screens as the room status changes
  3. Submit your drawing when the countdown runs out
  4. Grant XP at the end of each round and of the game
"""

import asyncio
import logging
import sys

from sketchroom import FirestoreRoomStore, Player, RoomClient
from my_collaborators import MyNotifier, MyUploader

# ── Setup logging (so you can see what's happening) ──
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(name)s] %(levelname)s: %(message)s",
    datefmt="%H:%M:%S",
)

# ── Configuration ──
store = FirestoreRoomStore(
    project="your-gcp-project",
    collection="rooms",
    # emulator_host="localhost:8080",   # for the local emulator
)
player = Player(id="player-123", name="Ada", color="#E63946")


async def main(room_code=None):
    client = RoomClient(store, player, notifier=MyNotifier(), uploader=MyUploader())
    if room_code:
        result = await client.actions.join_room(room_code)
    else:
        result = await client.actions.create_room()
    if not result.ok:
        print(result.message)
        return
    print(f"In room {client.sync.room_code}")
    await client.run()


# ── Create your client and run ──
asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None))

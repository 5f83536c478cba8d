"""
my_collaborators.py — YOUR UPLOADER AND NOTIFIER
================================================

The sync core never touches image storage or push delivery itself.
It calls two collaborators you provide:

- an uploader with ``process_and_store_image(file) -> url``
- a notifier with ``notify(event, room, player_id)``

Either may be a plain method or a coroutine. Errors from the notifier
are logged and ignored; errors from the uploader come back to the
player as an action message.
"""

import logging
from pathlib import Path

logger = logging.getLogger("my_collaborators")


class MyUploader:

    def __init__(self, folder="uploads"):
        self.folder = Path(folder)
        self.folder.mkdir(parents=True, exist_ok=True)

    async def process_and_store_image(self, file):
        """
        Called when the local player is the uploader for the round.

        ``file`` is whatever your UI hands to ``actions.upload_image``;
        here it is a path on disk. Return the URL other clients will load.
        """
        # ─── YOUR STORAGE LOGIC HERE ───
        source = Path(file)
        target = self.folder / source.name
        target.write_bytes(source.read_bytes())
        return target.resolve().as_uri()

        # ─── OR: upload to a bucket ───
        # blob = bucket.blob(f"rooms/{source.name}")
        # blob.upload_from_filename(str(source))
        # return blob.public_url


class MyNotifier:

    def notify(self, event, room, player_id):
        """
        Called once per status edge that concerns the local player:
        upload_turn, drawing_started, voting_started, round_results,
        game_finished.
        """
        logger.info(f"[{room.room_code}] {player_id}: {event.value} (round {room.round_number})")

# Area: Client
"""
sketchroom.demo — Three-client demo game
========================================

Runs three ``RoomClient`` instances against one in-memory store in a
single event loop and plays a whole game: lobby, uploads, an optional
sabotage pick, drawing, voting, results, final, rewards, close.

Each bot looks only at its own client's screen and room snapshot, the
same way a real player would.

Usage:
    python -m sketchroom --demo
"""

from __future__ import annotations
import asyncio
import logging
import random
from typing import Dict, List, Optional

from ._store.memory import InMemoryRoomStore
from ._sync.enums import RoomStatus, SabotageType, Screen
from ._sync.models import GameSettings, Player
from .client import RoomClient

logger = logging.getLogger("sketchroom.demo")

DEMO_PLAYERS = [
    ("p1", "Ada", "#E63946"),
    ("p2", "Grace", "#457B9D"),
    ("p3", "Linus", "#2A9D8F"),
]

TICK_SECONDS = 0.05
MAX_TICKS = 2000
# Ticks the host lingers on results screens so every client observes them
DWELL_TICKS = 3


class DemoUploader:
    """Stands in for image compression and storage."""

    def __init__(self) -> None:
        self.count = 0

    async def process_and_store_image(self, file) -> str:
        self.count += 1
        return f"memory://images/{self.count}-{file}"


class DemoBot:
    """Plays one client by reacting to its current screen."""

    def __init__(self, client: RoomClient, is_host: bool, rng: random.Random) -> None:
        self.client = client
        self.is_host = is_host
        self.rng = rng
        self.screens: List[Screen] = [client.screen]
        self.dwell = 0

    @property
    def pid(self) -> str:
        return self.client.player.id

    async def act(self) -> None:
        client = self.client
        room = client.room
        if client.screen != self.screens[-1]:
            self.screens.append(client.screen)
            self.dwell = 0
        self.dwell += 1
        if room is None:
            return

        screen = client.screen
        if screen == Screen.LOBBY and self.is_host and len(room.players) == len(DEMO_PLAYERS):
            await client.actions.start_game()
        elif screen == Screen.UPLOADING and room.current_uploader_id == self.pid:
            await client.actions.upload_image(f"round-{room.round_number}.png")
        elif screen == Screen.SABOTAGE_SELECTION and room.saboteur_id == self.pid:
            targets = [pid for pid in room.player_ids() if pid != self.pid]
            await client.actions.choose_sabotage(
                self.rng.choice(targets), self.rng.choice(list(SabotageType)),
            )
        elif screen == Screen.DRAWING:
            if client.timer.displayed_deadline is not None and not client.has_submitted:
                client.add_stroke({"points": [[0, 0], [10, 10]], "color": client.player.color})
                client.done()
        elif screen == Screen.VOTING and self.pid not in room.votes:
            ids = room.player_ids()
            target = ids[(ids.index(self.pid) + 1) % len(ids)]
            await client.actions.cast_vote(target)
        elif self.is_host and self.dwell < DWELL_TICKS:
            return
        elif screen == Screen.RESULTS and self.is_host:
            await client.actions.advance_round()
        elif screen == Screen.FINAL and self.is_host:
            await client.actions.show_rewards()
        elif screen == Screen.REWARDS and self.is_host and room.status == RoomStatus.REWARDS:
            await client.end_game()


async def run_demo(
    rounds: int = 2,
    timer_duration: int = 10,
    seed: Optional[int] = None,
) -> Dict[str, List[Screen]]:
    """
    Play one game with three bots.

    Returns:
        Screens each player went through, keyed by player id
    """
    rng = random.Random(seed)
    store = InMemoryRoomStore(rng=rng)
    uploader = DemoUploader()

    bots: List[DemoBot] = []
    for index, (pid, name, color) in enumerate(DEMO_PLAYERS):
        client = RoomClient(
            store,
            Player(id=pid, name=name, color=color),
            uploader=uploader,
            rng=random.Random(rng.random()),
            poll_interval=TICK_SECONDS,
            ended_countdown=0.2,
            auto_ready=True,
        )
        bots.append(DemoBot(client, is_host=index == 0, rng=rng))

    host = bots[0].client
    created = await host.actions.create_room(
        GameSettings(timer_duration=timer_duration, total_rounds=rounds),
    )
    code = created.value
    logger.info(f"Demo room {code}")
    for bot in bots[1:]:
        await bot.client.actions.join_room(code)

    for _ in range(MAX_TICKS):
        for bot in bots:
            await bot.client.sync.poll_once()
            await bot.client.tick()
            await bot.act()
        await asyncio.sleep(TICK_SECONDS)
        if all(bot.client.screen == Screen.HOME for bot in bots):
            break
    else:
        logger.warning("Demo did not finish within the tick limit")

    for bot in bots:
        if bot.client.screen != bot.screens[-1]:
            bot.screens.append(bot.client.screen)
        await bot.client.notifications.drain()
        logger.info(
            f"{bot.pid}: {' → '.join(s.value for s in bot.screens)}"
        )
        for grant in bot.client.grants:
            logger.info(
                f"{bot.pid}: {grant.kind} reward round {grant.round_number}: "
                f"+{grant.xp} XP, +{grant.currency} currency"
            )

    return {bot.pid: bot.screens for bot in bots}

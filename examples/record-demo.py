#!/usr/bin/env python3
"""Record a scripted shell session, then play it back to stdout at 2x with dead time removed."""
import asyncio, subprocess, sys, time

import termreel
from termreel.replayer import CallbackRenderer

path = sys.argv[1] if len(sys.argv) > 1 else "demo.pcr"

with termreel.record(path, termreel.TerminalInfo(name="sh", shell_path="/bin/sh")) as rec:
    for key in "ecoh\x7f\x7fho hello\r":
        for command in rec.feed_input(key):
            out = subprocess.run(["/bin/sh", "-c", command], capture_output=True, text=True)
            rec.feed_output(out.stdout.replace("\n", "\r\n"))
        time.sleep(0.08)
    time.sleep(4)
    rec.feed_output("$ ")

session = termreel.load(path)
renderer = CallbackRenderer(lambda content, kind: print(content, end="", flush=True))
config = termreel.PlaybackConfig(speed=2.0, compress_dead_time=True)
with termreel.play(session, renderer, config) as player:
    asyncio.run(player.play())
print(f"\nPlayed {len(session.frames)} frames from {path}")

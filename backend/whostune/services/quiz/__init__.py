"""Quiz engine: question building, scoring, timers and per-game runtime.

Pure(ish) game mechanics used by the room state machine, kept apart from
the Socket.IO and HTTP transports.
"""

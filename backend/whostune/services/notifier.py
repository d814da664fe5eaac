class Notifier:
    """Outbound side of a room: who hears about what.

    Rooms call these hooks after each state change. The base class drops
    everything; the Socket.IO gateway provides the real implementation.
    """

    def subscribe(self, sid: str, code: str) -> None:
        pass

    def unsubscribe(self, sid: str, code: str) -> None:
        pass

    def to_room(self, code: str, event: str, data: dict, skip_sid: str = None) -> None:
        pass

    def to_connection(self, sid: str, event: str, data: dict) -> None:
        pass

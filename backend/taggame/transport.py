from typing import Any, Optional


class SocketIOBus:
    """Outbound port of the session coordinator, backed by Flask-SocketIO.

    Group membership goes straight to the underlying python-socketio server
    so it also works outside a request context (timer ticks).
    """

    def __init__(self, socketio, namespace: str = '/'):
        self._socketio = socketio
        self.namespace = namespace

    def emit(self, event: str, data: Any = None, to: Optional[str] = None, skip_sid: Optional[str] = None) -> None:
        self._socketio.emit(event, data, to=to, skip_sid=skip_sid, namespace=self.namespace)

    def join(self, sid: str, group: str) -> None:
        self._socketio.server.enter_room(sid, group, namespace=self.namespace)

    def leave(self, sid: str, group: str) -> None:
        self._socketio.server.leave_room(sid, group, namespace=self.namespace)

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional

class ConnectionStatus(Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"

@dataclass
class ConnectionState:
    """Counters and status for one listener, kept across reconnects"""
    status: ConnectionStatus = ConnectionStatus.DISCONNECTED
    attempts: int = 0
    first_connected_at: Optional[datetime] = None
    messages_received: int = 0

    @property
    def is_connected(self) -> bool:
        return self.status is ConnectionStatus.CONNECTED

    def next_attempt(self) -> int:
        self.attempts += 1
        return self.attempts

    def next_message(self) -> int:
        self.messages_received += 1
        return self.messages_received

    def mark_connected(self, when: datetime) -> bool:
        """Switch to CONNECTED; returns True when this is a transition"""
        changed = self.status is not ConnectionStatus.CONNECTED
        self.status = ConnectionStatus.CONNECTED
        if self.first_connected_at is None:
            self.first_connected_at = when
        return changed

    def mark_disconnected(self) -> bool:
        """Switch to DISCONNECTED; returns True only when leaving CONNECTED"""
        was_connected = self.status is ConnectionStatus.CONNECTED
        self.status = ConnectionStatus.DISCONNECTED
        return was_connected

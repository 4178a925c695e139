import logging
import random
import string
import threading
from typing import Callable, Dict, List, Optional

from .rules import RulesConfig
from .session import Session, room_id_for


logger = logging.getLogger(__name__)


class SessionRegistry:
    """Index of live sessions for one game.

    ``room_factory`` builds the broadcast room for a room id; ``timer`` is the
    countdown driver shared by every session in this registry.
    """

    def __init__(self, timer, room_factory: Callable[[str], object], id_length: int = 9):
        self.timer = timer
        self.room_factory = room_factory
        self.id_length = id_length
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def create_session(self, rules: RulesConfig) -> str:
        with self._lock:
            session_id = self._generate_session_id()
            session = Session(
                session_id,
                rules,
                registry=self,
                room=self.room_factory(room_id_for(session_id)),
                timer=self.timer,
            )
            self._sessions[session_id] = session
        logger.info(f"[session-create] session={session_id} total={len(self._sessions)}")
        return session_id

    def get_session(self, session_id: str) -> Optional[Session]:
        return self._sessions.get(session_id)

    def list_sessions(self) -> List[str]:
        return list(self._sessions)

    def end_session(self, session_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(session_id, None)
        if session is None:
            return
        session.close()
        logger.info(f"[session-end] session={session_id} total={len(self._sessions)}")

    def close(self) -> None:
        for session_id in self.list_sessions():
            self.end_session(session_id)

    def _generate_session_id(self) -> str:
        alphabet = string.ascii_lowercase + string.digits
        while True:
            session_id = ''.join(random.choices(alphabet, k=self.id_length))
            if session_id not in self._sessions:
                return session_id

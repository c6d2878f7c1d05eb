from __future__ import annotations

import logging
from typing import List, Protocol

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from api.core.profile import UserPreferenceProfile, profile_from_user
from api.db.models import User

logger = logging.getLogger(__name__)


class PeerSource(Protocol):
    def sample(self, subject_id: str, size: int) -> List[UserPreferenceProfile]: ...


class DatabasePeerSource:
    """Samples other stored users as the peer set.

    There is no friendship table yet, so any user other than the subject
    qualifies.
    """

    def __init__(self, db: Session):
        self.db = db

    def sample(self, subject_id: str, size: int) -> List[UserPreferenceProfile]:
        if size <= 0:
            return []
        try:
            users = (
                self.db.query(User)
                .filter(User.user_id != subject_id)
                .limit(size)
                .all()
            )
        except SQLAlchemyError as exc:
            logger.warning("Peer lookup failed for %s: %s", subject_id, exc)
            return []
        return [profile_from_user(user) for user in users]


class StaticPeerSource:
    def __init__(self, peers: List[UserPreferenceProfile] | None = None):
        self.peers = list(peers or [])

    def sample(self, subject_id: str, size: int) -> List[UserPreferenceProfile]:
        return [p for p in self.peers if p.user_id != subject_id][: max(size, 0)]

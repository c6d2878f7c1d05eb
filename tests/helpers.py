from __future__ import annotations

from typing import Any, Dict, Iterable, List, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.sql import operators

from api.core.profile import UserPreferenceProfile
from api.db.models import RecommendationHistory, User
from catalog.qloo_client import CatalogQuery


def make_user(user_id: str = "u1", **fields: Any) -> User:
    return User(user_id=user_id, **fields)


def make_profile(user_id: str = "u1", **interests: Sequence[str]) -> UserPreferenceProfile:
    return UserPreferenceProfile(
        user_id=user_id,
        interests={domain: tuple(labels) for domain, labels in interests.items()},
    )


def make_entity(
    entity_id: str,
    name: str,
    *,
    tags: Iterable[str] = (),
    popularity: float = 0.5,
    description: str = "",
    external: Dict[str, Any] | None = None,
) -> Dict[str, Any]:
    return {
        "entity_id": entity_id,
        "name": name,
        "popularity": popularity,
        "properties": {"description": description},
        "tags": [{"name": tag} for tag in tags],
        "external": external or {},
    }


class StubCatalog:
    """Catalog client double keyed by canonical tag.

    ``responses`` maps a tag to the entities returned for it; unknown tags
    return an empty list, like a catalog with no matches.
    """

    def __init__(
        self,
        responses: Dict[str, List[Dict[str, Any]]] | None = None,
        default: List[Dict[str, Any]] | None = None,
    ):
        self.responses = responses or {}
        self.default = default
        self.queries: List[CatalogQuery] = []

    async def fetch_entities(self, query: CatalogQuery) -> List[Dict[str, Any]]:
        self.queries.append(query)
        if query.tag in self.responses:
            entities = self.responses[query.tag]
        elif self.default is not None:
            # Prefix ids so every tag yields distinct entities.
            entities = [
                dict(e, entity_id=f"{query.tag}:{e['entity_id']}", name=f"{e['name']} ({query.tag})")
                for e in self.default
            ]
        else:
            entities = []
        return [dict(entity) for entity in entities]

    def tags_for(self, entity_type: str) -> List[str]:
        return [q.tag for q in self.queries if q.entity_type == entity_type]

    async def aclose(self):
        return None


class _UserQuery:
    def __init__(self, users: Sequence[User]):
        self._users = list(users)
        self._limit: int | None = None

    def filter(self, *criteria: Any, **kwargs: Any) -> "_UserQuery":
        for criterion in criteria:
            value = getattr(getattr(criterion, "right", None), "value", None)
            op = getattr(criterion, "operator", None)
            if value is None:
                continue
            if op is operators.ne:
                self._users = [u for u in self._users if u.user_id != value]
            else:
                self._users = [u for u in self._users if u.user_id == value]
        return self

    def limit(self, n: int) -> "_UserQuery":
        self._limit = n
        return self

    def one_or_none(self) -> User | None:
        return self._users[0] if self._users else None

    def all(self) -> List[User]:
        if self._limit is None:
            return list(self._users)
        return self._users[: self._limit]


class _ScalarResult:
    def __init__(self, rows: Sequence[Any]):
        self._rows = list(rows)

    def scalars(self) -> "_ScalarResult":
        return self

    def all(self) -> List[Any]:
        return list(self._rows)


class FakeSession:
    """
    Lightweight stub emulating the parts of a SQLAlchemy session the service uses.
    """

    def __init__(
        self,
        users: Sequence[User] | None = None,
        history: Sequence[RecommendationHistory] | None = None,
        fail_commit: bool = False,
    ):
        self.users = list(users or [])
        self.history = list(history or [])
        self.added: List[Any] = []
        self.commits = 0
        self.rollbacks = 0
        self.fail_commit = fail_commit
        self.executed: List[Any] = []

    def query(self, model: Any) -> _UserQuery:
        if model is not User:
            raise AssertionError(f"unexpected query for {model!r}")
        return _UserQuery(self.users)

    def execute(self, statement: Any, params: Any = None) -> _ScalarResult:
        self.executed.append(statement)
        return _ScalarResult(self.history)

    def add(self, obj: Any) -> None:
        self.added.append(obj)

    def commit(self) -> None:
        if self.fail_commit:
            raise SQLAlchemyError("database unavailable")
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1
        self.added.clear()

    def close(self) -> None:
        pass

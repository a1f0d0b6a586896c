"""Per-dashboard match session state.

Holds the currently selected found item, its ranked matches, the dismissal
set, a loading flag and an optional fatal error. Every selection is tagged
with a SelectionTicket (found id + generation); a resolution whose ticket is
no longer current is discarded, so a newer selection always supersedes an
in-flight one without cancelling it.
"""
from __future__ import annotations
import threading
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence

from app.domain.errors import ConfigurationError, OracleCallFailure
from app.models.items import DashboardError, DashboardState, FoundItemReport, LostItemReport, ScoredMatch
from app.scripts.logging_config import get_logger
from app.services.match_engine import MatchEngine, get_engine

logger = get_logger("match_session")

ORACLE_FAILURE_MESSAGE = "No matches found due to an error."


@dataclass(frozen=True)
class SelectionTicket:
    found_id: str
    generation: int


class MatchSession:
    def __init__(self, engine: MatchEngine, session_id: Optional[str] = None):
        self.engine = engine
        self.session_id = session_id or uuid.uuid4().hex
        self._lock = threading.Lock()
        self._selected_id: Optional[str] = None
        self._generation = 0
        self._ranked: List[ScoredMatch] = []
        self._dismissed: List[str] = []
        self._loading = False
        self._error: Optional[DashboardError] = None

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def selected_id(self) -> Optional[str]:
        return self._selected_id

    def begin(self, found: FoundItemReport) -> SelectionTicket:
        with self._lock:
            self._generation += 1
            self._selected_id = found.id
            self._ranked = []
            self._dismissed = []
            self._error = None
            self._loading = True
            ticket = SelectionTicket(found.id, self._generation)
        logger.info("selection begin session=%s found=%s gen=%d", self.session_id, found.id, ticket.generation)
        return ticket

    def is_current(self, ticket: SelectionTicket) -> bool:
        return ticket.found_id == self._selected_id and ticket.generation == self._generation

    def _apply(self, ticket: SelectionTicket, matches: List[ScoredMatch], error: Optional[DashboardError]) -> bool:
        with self._lock:
            if not self.is_current(ticket):
                logger.info("stale result discarded session=%s found=%s gen=%d current=%s/%d",
                            self.session_id, ticket.found_id, ticket.generation, self._selected_id, self._generation)
                return False
            self._ranked = list(matches)
            self._error = error
            self._loading = False
        return True

    async def resolve(self, ticket: SelectionTicket, found: FoundItemReport, lost_items: Sequence[LostItemReport]) -> bool:
        """Run the engine for a ticket from begin(); True if the result was applied."""
        try:
            matches = await self.engine.find_matches(found, lost_items)
        except ConfigurationError as e:
            logger.error("oracle not configured session=%s found=%s err=%s", self.session_id, found.id, e)
            return self._apply(ticket, [], DashboardError(kind="configuration_error", message=str(e)))
        except OracleCallFailure as e:
            logger.error("match search failed session=%s found=%s err=%s", self.session_id, found.id, e)
            return self._apply(ticket, [], DashboardError(kind="oracle_call_failure", message=ORACLE_FAILURE_MESSAGE))
        except Exception:
            # loading must end even on unexpected failures
            logger.exception("match search crashed session=%s found=%s", self.session_id, found.id)
            return self._apply(ticket, [], DashboardError(kind="oracle_call_failure", message=ORACLE_FAILURE_MESSAGE))
        return self._apply(ticket, matches, None)

    async def select(self, found: FoundItemReport, lost_items: Sequence[LostItemReport]) -> DashboardState:
        ticket = self.begin(found)
        await self.resolve(ticket, found, lost_items)
        return self.state()

    def dismiss(self, lost_item_id: str) -> None:
        with self._lock:
            if lost_item_id not in self._dismissed:
                self._dismissed.append(lost_item_id)

    def ranked(self) -> List[ScoredMatch]:
        with self._lock:
            return list(self._ranked)

    def visible(self) -> List[ScoredMatch]:
        with self._lock:
            hidden = set(self._dismissed)
            return [m for m in self._ranked if m.id not in hidden]

    def state(self) -> DashboardState:
        visible = self.visible()
        with self._lock:
            return DashboardState(
                selected_found_id=self._selected_id,
                loading=self._loading,
                matches=visible,
                dismissed=list(self._dismissed),
                error=self._error,
            )


class SessionRegistry:
    """In-process dashboard sessions keyed by session id."""

    def __init__(self, engine: MatchEngine):
        self.engine = engine
        self._sessions: Dict[str, MatchSession] = {}
        self._lock = threading.Lock()

    def create(self) -> MatchSession:
        session = MatchSession(self.engine)
        with self._lock:
            self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> Optional[MatchSession]:
        with self._lock:
            return self._sessions.get(session_id)


_registry: Optional[SessionRegistry] = None


def get_registry() -> SessionRegistry:
    global _registry
    if _registry is None:
        _registry = SessionRegistry(get_engine())
    return _registry

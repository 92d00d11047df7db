from typing import Dict, List, Optional, Sequence

from core.types import AggregateResult, SavedResearch


class SavedResearchStore:
    """
    In-memory storage for saved research runs, owned per user.

    In production, this would be backed by Redis or a database.
    """

    def __init__(self):
        self._research: Dict[str, SavedResearch] = {}
        self._user_research: Dict[str, List[str]] = {}  # user_id -> research ids

    def save(
        self,
        user_id: str,
        query: str,
        responses: Sequence[AggregateResult],
        synthesis: Optional[str],
    ) -> SavedResearch:
        """Save a finished run for a user."""
        research = SavedResearch(
            user_id=user_id,
            query=query,
            responses=list(responses),
            synthesis=synthesis,
        )
        self._research[research.id] = research
        self._user_research.setdefault(user_id, []).append(research.id)
        return research

    def get(self, research_id: str) -> Optional[SavedResearch]:
        """Get saved research by ID."""
        return self._research.get(research_id)

    def list_for_user(self, user_id: str) -> List[SavedResearch]:
        """All research saved by a user, newest first."""
        ids = self._user_research.get(user_id, [])
        research = [self._research[rid] for rid in ids if rid in self._research]
        return sorted(research, key=lambda r: r.created_at, reverse=True)

    def delete(self, user_id: str, research_id: str) -> bool:
        """Delete saved research. Only the owner can delete it."""
        research = self._research.get(research_id)
        if research is None or research.user_id != user_id:
            return False

        del self._research[research_id]
        self._user_research[user_id].remove(research_id)
        return True

    def clear(self) -> None:
        """Clear all stored data."""
        self._research.clear()
        self._user_research.clear()


# Global memory store instance
memory_store = SavedResearchStore()

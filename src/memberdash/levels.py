from __future__ import annotations

from memberdash.models import LEVEL_RULES, LevelRule
from memberdash.repository import DocumentStore


class LevelRuleSource:
    def __init__(self, store: DocumentStore) -> None:
        self.store = store

    async def list_active_level_rules(self) -> list[LevelRule]:
        # Raises CollectionNotFound; callers decide whether that is fatal.
        docs = await self.store.collection(LEVEL_RULES).query({"isActive": True}).fetch()
        rules: list[LevelRule] = []
        for doc in docs:
            level_id = doc.get("levelId")
            if level_id is None:
                continue
            rules.append(LevelRule(level_id=level_id, name=str(doc.get("name") or level_id)))
        return rules

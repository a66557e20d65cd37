"""
Escalation Infrastructure Repositories
======================================

In-memory rule, group and audit log storage plus the YAML rule loader.
Reads hand out copies so callers cannot mutate stored state by accident.
"""

from dataclasses import replace
from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError

from servicedesk.core import ConfigurationException, RepositoryException
from servicedesk.escalation.application import (
    EscalationRuleCreateDTO,
    IAuditLogRepository,
    IEscalationGroupRepository,
    IEscalationRuleRepository,
)
from servicedesk.escalation.domain import AuditLog, EscalationGroup, EscalationRule
from servicedesk.infrastructure.store import InMemoryStore
from servicedesk.shared.infrastructure.logging import get_logger

logger = get_logger(__name__)


def _copy_group(group: EscalationGroup) -> EscalationGroup:
    return replace(group, members=list(group.members))


class InMemoryEscalationRuleRepository(IEscalationRuleRepository):

    def __init__(self, store: InMemoryStore):
        self._store = store

    def _index_of(self, rule_id: str) -> Optional[int]:
        for i, rule in enumerate(self._store.rules):
            if rule.id == rule_id:
                return i
        return None

    async def list(self) -> List[EscalationRule]:
        return [replace(rule) for rule in self._store.rules]

    async def get_by_id(self, rule_id: str) -> Optional[EscalationRule]:
        index = self._index_of(rule_id)
        return replace(self._store.rules[index]) if index is not None else None

    async def add(self, rule: EscalationRule) -> EscalationRule:
        if self._index_of(rule.id) is not None:
            raise RepositoryException(f"Escalation rule {rule.id} already stored")
        self._store.rules.append(replace(rule))
        return rule

    async def replace(self, rule: EscalationRule) -> EscalationRule:
        index = self._index_of(rule.id)
        if index is None:
            raise RepositoryException(f"Escalation rule {rule.id} not stored")
        self._store.rules[index] = replace(rule)
        return rule

    async def delete(self, rule_id: str) -> bool:
        index = self._index_of(rule_id)
        if index is None:
            return False
        del self._store.rules[index]
        return True


class InMemoryEscalationGroupRepository(IEscalationGroupRepository):

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def list(self) -> List[EscalationGroup]:
        return [_copy_group(g) for g in self._store.groups.values()]

    async def get_by_id(self, group_id: str) -> Optional[EscalationGroup]:
        group = self._store.groups.get(group_id)
        return _copy_group(group) if group is not None else None

    async def add(self, group: EscalationGroup) -> EscalationGroup:
        if group.id in self._store.groups:
            raise RepositoryException(f"Escalation group {group.id} already stored")
        self._store.groups[group.id] = _copy_group(group)
        return group

    async def replace(self, group: EscalationGroup) -> EscalationGroup:
        if group.id not in self._store.groups:
            raise RepositoryException(f"Escalation group {group.id} not stored")
        self._store.groups[group.id] = _copy_group(group)
        return group


class InMemoryAuditLogRepository(IAuditLogRepository):

    def __init__(self, store: InMemoryStore):
        self._store = store

    async def append(self, entry: AuditLog) -> AuditLog:
        self._store.audit_logs.append(entry)
        return entry

    async def list(self, limit: int = 100) -> List[AuditLog]:
        return list(reversed(self._store.audit_logs))[:limit]


class EscalationRuleFile(BaseModel):
    """Top-level schema of the rule file: an ordered `rules` list."""
    rules: List[EscalationRuleCreateDTO] = Field(default_factory=list)


class YAMLRuleLoader:
    """
    Loads the initial rule list from YAML.

    File order is rule precedence. A missing file yields no rules.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> List[EscalationRule]:
        if not self.path.exists():
            logger.warning(f"Escalation rule file not found: {self.path}, starting with no rules")
            return []

        try:
            with open(self.path, "r") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as e:
            raise ConfigurationException(f"Malformed escalation rule file {self.path}", {"error": str(e)})

        try:
            parsed = EscalationRuleFile(**data)
        except ValidationError as e:
            raise ConfigurationException(
                f"Invalid escalation rules in {self.path}", {"errors": e.errors()}
            )

        rules = [dto.to_domain() for dto in parsed.rules]
        ids = [rule.id for rule in rules]
        if len(ids) != len(set(ids)):
            raise ConfigurationException(f"Duplicate rule IDs in {self.path}", {"rule_ids": ids})

        logger.info("Escalation rules loaded", extra={"path": str(self.path), "rule_count": len(rules)})
        return rules

"""
Contact reporting hierarchy built from managerId links
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Set

from services.entities import Contact

logger = logging.getLogger(__name__)


@dataclass
class HierarchyNode:
    contact: Contact
    level: int = 0
    children: List['HierarchyNode'] = field(default_factory=list)

    def to_dict(self) -> Dict:
        return {
            'id': self.contact.id,
            'name': self.contact.full_name,
            'title': self.contact.get('title'),
            'level': self.level,
            'children': [child.to_dict() for child in self.children],
        }


def find_manager_cycles(contacts: Iterable[Contact]) -> List[List[str]]:
    """
    Contact-id cycles formed by managerId links, each listed once.

    Each cycle starts from its member that appears first in `contacts`.
    """
    contacts = list(contacts)
    manager_of = {c.id: c.manager_id for c in contacts}
    order = {c.id: i for i, c in enumerate(contacts)}
    done: Set[str] = set()
    cycles = []

    for contact in contacts:
        path: List[str] = []
        on_path: Dict[str, int] = {}
        current: Optional[str] = contact.id
        while current is not None and current in manager_of and current not in done:
            if current in on_path:
                cycle = path[on_path[current]:]
                start = min(range(len(cycle)), key=lambda i: order[cycle[i]])
                cycles.append(cycle[start:] + cycle[:start])
                break
            on_path[current] = len(path)
            path.append(current)
            current = manager_of[current]
        done.update(path)
    return cycles


def build_reporting_hierarchy(account_id: str, contacts: Iterable[Contact]) -> List[HierarchyNode]:
    """
    Forest of the account's contacts ordered by reporting line.

    Roots are contacts with no manager, a manager outside the account, or a
    manager link that closes a cycle. A cycle is broken at the member that
    appears first in `contacts`, which becomes a root.
    """
    members = [c for c in contacts if c.account_id == account_id]
    by_id = {c.id: c for c in members}

    broken: Set[str] = set()
    for cycle in find_manager_cycles(members):
        logger.warning(f"Manager cycle in account {account_id}: {' -> '.join(cycle)}")
        broken.add(cycle[0])

    children_of: Dict[str, List[Contact]] = {}
    roots: List[Contact] = []
    for contact in members:
        manager_id = contact.manager_id
        if not manager_id or manager_id not in by_id or contact.id in broken or manager_id == contact.id:
            roots.append(contact)
        else:
            children_of.setdefault(manager_id, []).append(contact)

    def build(contact: Contact, level: int, seen: Set[str]) -> HierarchyNode:
        node = HierarchyNode(contact=contact, level=level)
        seen.add(contact.id)
        for child in children_of.get(contact.id, []):
            if child.id not in seen:
                node.children.append(build(child, level + 1, seen))
        return node

    seen: Set[str] = set()
    return [build(root, 0, seen) for root in roots]

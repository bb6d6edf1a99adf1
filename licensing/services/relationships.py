"""
services/relationships.py
-------------------------
One connect / replace / disconnect routine for every many-to-many edge.

Edges are declared in EDGES. Each names the parent model, the child model
and the parent's collection attribute. All three operations share a shape:
load the parent with that collection, compute the change, apply it, commit,
and return the re-read parent snapshot.

  connect(parent, ids)     adds only ids not already linked
  replace(parent, ids)     clears the collection, then adds the ids
  disconnect(parent, id)   removes one link if present

Ids that do not resolve to a child row are silently ignored. A missing
parent returns None. Edges marked immutable are structural (fixed when the
child is created) and every operation on them raises PolicyViolationError.

Each operation reports a "D" trace of the call and an "I" trace per link it
adds or removes through the supplied log callback.
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from licensing.core.errors import PolicyViolationError, parse_id
from licensing.models import Customer, Job, Realm, User
from licensing.services.snapshots import reread

LogFn = Callable[[str], None]


@dataclass(frozen=True)
class Edge:
    name: str
    parent: type
    child: type
    attr: str
    immutable: bool = False

    @property
    def parent_kind(self) -> str:
        return self.parent.__name__

    @property
    def child_kind(self) -> str:
        return self.child.__name__


EDGES: dict[str, Edge] = {
    e.name: e
    for e in (
        Edge("UserChildCustomer", User, Customer, "customers"),
        Edge("UserChildJob", User, Job, "jobs"),
        Edge("UserChildRealm", User, Realm, "realms"),
        Edge("CustomerChildUser", Customer, User, "users"),
        Edge("CustomerChildJob", Customer, Job, "jobs", immutable=True),
        Edge("JobChildUser", Job, User, "users"),
        Edge("RealmChildUser", Realm, User, "users"),
        Edge("RealmChildCustomer", Realm, Customer, "customers"),
    )
}


def _join(values: Optional[Sequence[str]]) -> str:
    return "NULL" if values is None else "[" + ",".join(values) + "]"


def _noop_log(message: str) -> None:
    pass


class RelationshipMutator:

    def __init__(self, log: Optional[LogFn] = None) -> None:
        self._log = log or _noop_log

    @staticmethod
    def _check_policy(edge: Edge) -> None:
        if edge.immutable:
            raise PolicyViolationError(
                f"Changing {edge.parent_kind.lower()} and {edge.child_kind.lower()} "
                "relationships is not permitted after they have been created.",
                kind=edge.name,
            )

    @staticmethod
    async def _load_parent(db: AsyncSession, edge: Edge, parent_id: int) -> Any:
        return await db.scalar(
            select(edge.parent)
            .options(selectinload(getattr(edge.parent, edge.attr)))
            .where(edge.parent.id == parent_id)
        )

    @staticmethod
    async def _load_children(db: AsyncSession, edge: Edge, ids: Sequence[int]) -> list:
        if not ids:
            return []
        result = await db.scalars(select(edge.child).where(edge.child.id.in_(ids)))
        return list(result.all())

    def _trace(self, op: str, edge: Edge, parent: Any, verb: str, child: Any) -> None:
        self._log(
            f"I {op}{edge.name} | {edge.parent_kind} {parent.id} {parent.name} "
            f"{verb} {edge.child_kind} {child.id} {child.name}"
        )

    async def connect(
        self, db: AsyncSession, edge: Edge, parent_id: str, child_ids: Sequence[str]
    ) -> Optional[Any]:
        op = "Connect"
        self._log(f"D {op}{edge.name}s({parent_id},{_join(child_ids)})")
        self._check_policy(edge)
        pid = parse_id(parent_id, edge.parent_kind)
        wanted = [parse_id(c, edge.child_kind) for c in child_ids]
        parent = await self._load_parent(db, edge, pid)
        if parent is None:
            return None
        collection = getattr(parent, edge.attr)
        linked = {child.id for child in collection}
        missing = [cid for cid in dict.fromkeys(wanted) if cid not in linked]
        for child in await self._load_children(db, edge, missing):
            self._trace(op, edge, parent, "ADD", child)
            collection.append(child)
        await db.commit()
        return await reread(db, edge.parent, pid)

    async def replace(
        self, db: AsyncSession, edge: Edge, parent_id: str, child_ids: Sequence[str]
    ) -> Optional[Any]:
        op = "Replace"
        self._log(f"D {op}{edge.name}s({parent_id},{_join(child_ids)})")
        self._check_policy(edge)
        pid = parse_id(parent_id, edge.parent_kind)
        wanted = list(dict.fromkeys(parse_id(c, edge.child_kind) for c in child_ids))
        parent = await self._load_parent(db, edge, pid)
        if parent is None:
            return None
        children = await self._load_children(db, edge, wanted)
        collection = getattr(parent, edge.attr)
        collection.clear()
        for child in children:
            self._trace(op, edge, parent, "ADD", child)
            collection.append(child)
        await db.commit()
        return await reread(db, edge.parent, pid)

    async def disconnect(
        self, db: AsyncSession, edge: Edge, parent_id: str, child_id: str
    ) -> Optional[Any]:
        op = "Disconnect"
        self._log(f"D {op}{edge.name}({parent_id},{child_id})")
        self._check_policy(edge)
        pid = parse_id(parent_id, edge.parent_kind)
        cid = parse_id(child_id, edge.child_kind)
        parent = await self._load_parent(db, edge, pid)
        if parent is None:
            return None
        collection = getattr(parent, edge.attr)
        child = next((c for c in collection if c.id == cid), None)
        if child is not None:
            self._trace(op, edge, parent, "DEL", child)
            collection.remove(child)
        await db.commit()
        return await reread(db, edge.parent, pid)

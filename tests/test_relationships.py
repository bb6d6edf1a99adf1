"""Tests for connect / replace / disconnect across the relationship edges."""

from __future__ import annotations

import pytest

from licensing.core.errors import IdentityBadFormatError, PolicyViolationError
from licensing.schemas import CustomerUpsert, JobUpsert, RealmUpsert, UserUpsert
from licensing.services.relationships import EDGES


async def _seed(provider):
    user = (await provider.upsert_user(UserUpsert(name="alice"))).entity
    acme = (await provider.upsert_customer(CustomerUpsert(name="acme"))).entity
    globex = (await provider.upsert_customer(CustomerUpsert(name="globex"))).entity
    return user, acme, globex


class TestConnect:

    @pytest.mark.asyncio
    async def test_connect_adds_links(self, provider):
        user, acme, globex = await _seed(provider)
        result = await provider.connect_user_child_customers(user.id, [acme.id, globex.id])
        assert sorted(c.name for c in result.customers) == ["acme", "globex"]
        # Children are summaries without their own children.
        assert all(c.users is None for c in result.customers)

    @pytest.mark.asyncio
    async def test_connect_is_idempotent(self, provider, trace):
        user, acme, _ = await _seed(provider)
        await provider.connect_user_child_customers(user.id, [acme.id])
        trace.clear()
        result = await provider.connect_user_child_customers(user.id, [acme.id])
        assert [c.name for c in result.customers] == ["acme"]
        assert [m for m in trace if m.startswith("I ")] == []

    @pytest.mark.asyncio
    async def test_connect_ignores_unknown_children(self, provider):
        user, acme, _ = await _seed(provider)
        result = await provider.connect_user_child_customers(user.id, [acme.id, "30000000"])
        assert [c.name for c in result.customers] == ["acme"]

    @pytest.mark.asyncio
    async def test_connect_visible_from_other_side(self, provider):
        user, acme, _ = await _seed(provider)
        await provider.connect_user_child_customers(user.id, [acme.id])
        customer = await provider.read_customer(acme.id)
        assert [u.name for u in customer.users] == ["alice"]

    @pytest.mark.asyncio
    async def test_missing_parent_returns_none(self, provider):
        _, acme, _ = await _seed(provider)
        assert await provider.connect_user_child_customers("1", [acme.id]) is None
        assert await provider.replace_user_child_customers("1", [acme.id]) is None
        assert await provider.disconnect_user_child_customer("1", acme.id) is None

    @pytest.mark.asyncio
    async def test_bad_child_id(self, provider):
        user, _, _ = await _seed(provider)
        with pytest.raises(IdentityBadFormatError):
            await provider.connect_user_child_customers(user.id, ["acme"])


class TestReplace:

    @pytest.mark.asyncio
    async def test_replace_sets_exact_children(self, provider):
        user, acme, globex = await _seed(provider)
        await provider.connect_user_child_customers(user.id, [acme.id])
        result = await provider.replace_user_child_customers(user.id, [globex.id])
        assert [c.name for c in result.customers] == ["globex"]

    @pytest.mark.asyncio
    async def test_replace_twice_is_stable(self, provider):
        user, acme, globex = await _seed(provider)
        first = await provider.replace_user_child_customers(user.id, [acme.id, globex.id])
        second = await provider.replace_user_child_customers(user.id, [acme.id, globex.id])
        assert sorted(c.id for c in first.customers) == sorted(c.id for c in second.customers)

    @pytest.mark.asyncio
    async def test_replace_with_nothing_clears(self, provider):
        user, acme, globex = await _seed(provider)
        await provider.connect_user_child_customers(user.id, [acme.id, globex.id])
        result = await provider.replace_user_child_customers(user.id, [])
        assert result.customers == []


class TestDisconnect:

    @pytest.mark.asyncio
    async def test_disconnect_removes_one(self, provider):
        user, acme, globex = await _seed(provider)
        await provider.connect_user_child_customers(user.id, [acme.id, globex.id])
        result = await provider.disconnect_user_child_customer(user.id, acme.id)
        assert [c.name for c in result.customers] == ["globex"]

    @pytest.mark.asyncio
    async def test_disconnect_absent_link_is_noop(self, provider, trace):
        user, acme, _ = await _seed(provider)
        result = await provider.disconnect_user_child_customer(user.id, acme.id)
        assert result.customers == []
        assert [m for m in trace if m.startswith("I ")] == []


class TestOtherEdges:

    @pytest.mark.asyncio
    async def test_user_jobs_and_realms(self, provider):
        user = (await provider.upsert_user(UserUpsert(name="alice"))).entity
        job = (await provider.upsert_job(JobUpsert(name="survey"))).entity
        realm = (await provider.upsert_realm(RealmUpsert(name="north"))).entity
        assert [j.name for j in (await provider.connect_user_child_jobs(user.id, [job.id])).jobs] == ["survey"]
        assert [r.name for r in (await provider.connect_user_child_realms(user.id, [realm.id])).realms] == ["north"]
        assert (await provider.replace_user_child_jobs(user.id, [])).jobs == []
        assert (await provider.disconnect_user_child_realm(user.id, realm.id)).realms == []

    @pytest.mark.asyncio
    async def test_job_and_customer_child_users(self, provider):
        user, acme, _ = await _seed(provider)
        job = (await provider.upsert_job(JobUpsert(name="survey"))).entity
        result = await provider.connect_job_child_users(job.id, [user.id])
        assert [u.name for u in result.users] == ["alice"]
        assert (await provider.disconnect_job_child_user(job.id, user.id)).users == []
        result = await provider.replace_customer_child_users(acme.id, [user.id])
        assert [u.name for u in result.users] == ["alice"]
        assert (await provider.disconnect_customer_child_user(acme.id, user.id)).users == []
        assert (await provider.connect_customer_child_users(acme.id, [user.id])).users[0].id == user.id

    @pytest.mark.asyncio
    async def test_realm_children(self, provider):
        user, acme, _ = await _seed(provider)
        realm = (await provider.upsert_realm(RealmUpsert(name="north"))).entity
        await provider.connect_realm_child_users(realm.id, [user.id])
        result = await provider.replace_realm_child_customers(realm.id, [acme.id])
        assert [u.name for u in result.users] == ["alice"]
        assert [c.name for c in result.customers] == ["acme"]
        assert (await provider.disconnect_realm_child_customer(realm.id, acme.id)).customers == []
        assert (await provider.replace_realm_child_users(realm.id, [])).users == []
        assert (await provider.connect_realm_child_customers(realm.id, [acme.id])).customers[0].name == "acme"
        assert (await provider.disconnect_realm_child_user(realm.id, user.id)).users == []


class TestImmutableCustomerJobs:

    @pytest.mark.asyncio
    async def test_every_operation_is_rejected(self, provider):
        acme = (await provider.upsert_customer(CustomerUpsert(name="acme"))).entity
        globex = (await provider.upsert_customer(CustomerUpsert(name="globex"))).entity
        job = (await provider.upsert_job(JobUpsert(name="survey", customer_id=acme.id))).entity

        with pytest.raises(PolicyViolationError):
            await provider.connect_customer_child_jobs(globex.id, [job.id])
        with pytest.raises(PolicyViolationError):
            await provider.replace_customer_child_jobs(acme.id, [])
        with pytest.raises(PolicyViolationError):
            await provider.disconnect_customer_child_job(acme.id, job.id)

        assert (await provider.read_job(job.id)).customer_id == acme.id

    def test_only_customer_jobs_is_immutable(self):
        assert [name for name, edge in EDGES.items() if edge.immutable] == ["CustomerChildJob"]


class TestTraces:

    @pytest.mark.asyncio
    async def test_connect_traces(self, provider, trace):
        user, acme, _ = await _seed(provider)
        await provider.connect_user_child_customers(user.id, [acme.id])
        assert trace == [
            f"D ConnectUserChildCustomers({user.id},[{acme.id}])",
            f"I ConnectUserChildCustomer | User {user.id} alice ADD Customer {acme.id} acme",
        ]

    @pytest.mark.asyncio
    async def test_disconnect_traces(self, provider, trace):
        user, acme, _ = await _seed(provider)
        await provider.connect_user_child_customers(user.id, [acme.id])
        trace.clear()
        await provider.disconnect_user_child_customer(user.id, acme.id)
        assert trace == [
            f"D DisconnectUserChildCustomer({user.id},{acme.id})",
            f"I DisconnectUserChildCustomer | User {user.id} alice DEL Customer {acme.id} acme",
        ]

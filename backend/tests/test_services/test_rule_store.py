"""Rule store tests: tenant scoping, validation before write, usage-guarded deletes."""

import uuid
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from campreserv.errors import ConflictError, NotFoundError, ValidationError
from campreserv.models.campground import Campground, SiteClass
from campreserv.models.quote import Quote, QuoteRuleUsage
from campreserv.services import rule_store
from campreserv.services.audit_service import list_changes
from campreserv.tenancy import TenantContext


async def _other_tenant(db_session: AsyncSession) -> TenantContext:
    campground = Campground(name="Elsewhere", slug=f"elsewhere-{uuid.uuid4().hex[:8]}")
    db_session.add(campground)
    await db_session.flush()
    return TenantContext(campground.id)


async def _lodging_tax(db_session: AsyncSession, tenant: TenantContext, **fields):
    data = {"name": "Lodging tax", "type": "percentage", "rate": Decimal("7.5"), **fields}
    return await rule_store.create_rule(db_session, rule_store.TAX_RULES, tenant, data, actor="svc-test")


async def _issue_stub_quote(db_session: AsyncSession, tenant: TenantContext, rule_kind: str, rule_id) -> Quote:
    """Persist a minimal issued quote that used ``rule_id``."""
    quote = Quote(
        campground_id=tenant.campground_id,
        arrival_date=date(2025, 7, 1),
        departure_date=date(2025, 7, 3),
        nights=2,
        base_subtotal_cents=10000,
        total_before_tax_cents=10000,
        total_cents=10750,
        breakdown={},
    )
    quote.rule_usages = [QuoteRuleUsage(rule_kind=rule_kind, rule_id=rule_id, amount_cents=750)]
    db_session.add(quote)
    await db_session.flush()
    return quote


class TestCreate:
    """create_rule fills defaults and assigns the insertion sequence."""

    async def test_partial_payload_gets_column_defaults(self, db_session: AsyncSession, tenant: TenantContext):
        rule = await _lodging_tax(db_session, tenant)
        assert rule.is_active is True
        assert rule.requires_waiver is False
        assert rule.campground_id == tenant.campground_id
        assert rule.sort_order == 1

    async def test_sort_order_increments(self, db_session: AsyncSession, tenant: TenantContext):
        await _lodging_tax(db_session, tenant)
        second = await _lodging_tax(db_session, tenant, name="County tax")
        assert second.sort_order == 2

    async def test_invalid_rule_not_written(self, db_session: AsyncSession, tenant: TenantContext):
        with pytest.raises(ValidationError) as exc_info:
            await rule_store.create_rule(
                db_session, rule_store.TAX_RULES, tenant, {"name": "No rate", "type": "percentage"}
            )
        assert exc_info.value.field == "rate"

        rows, total = await rule_store.list_rules(db_session, rule_store.TAX_RULES, tenant)
        assert rows == []
        assert total == 0

    async def test_foreign_site_class_rejected(
        self, db_session: AsyncSession, tenant: TenantContext, db_site_class: SiteClass
    ):
        other = await _other_tenant(db_session)
        with pytest.raises(ValidationError) as exc_info:
            await rule_store.create_rule(
                db_session,
                rule_store.PRICING_RULES,
                other,
                {
                    "name": "Scoped",
                    "type": "season",
                    "adjustment_type": "percent",
                    "adjustment_value": Decimal("0.1"),
                    "site_class_id": db_site_class.id,
                },
            )
        assert exc_info.value.field == "site_class_id"

    async def test_create_is_audited(self, db_session: AsyncSession, tenant: TenantContext):
        rule = await _lodging_tax(db_session, tenant)
        entries, total = await list_changes(db_session, tenant, rule_id=rule.id)
        assert total == 1
        assert entries[0].action == "create"
        assert entries[0].actor == "svc-test"
        assert entries[0].changes["name"] == "Lodging tax"


class TestUpdate:
    """update_rule validates the merged row and skips empty diffs."""

    async def test_other_tenant_not_found(self, db_session: AsyncSession, tenant: TenantContext):
        rule = await _lodging_tax(db_session, tenant)
        other = await _other_tenant(db_session)
        with pytest.raises(NotFoundError):
            await rule_store.update_rule(db_session, rule_store.TAX_RULES, other, rule.id, {"name": "Stolen"})

    async def test_no_op_update_not_audited(self, db_session: AsyncSession, tenant: TenantContext):
        rule = await _lodging_tax(db_session, tenant)
        await rule_store.update_rule(db_session, rule_store.TAX_RULES, tenant, rule.id, {"rate": Decimal("7.50")})

        _, total = await list_changes(db_session, tenant, rule_id=rule.id)
        assert total == 1

    async def test_rejected_update_leaves_row(self, db_session: AsyncSession, tenant: TenantContext):
        rule = await _lodging_tax(db_session, tenant, max_nights=29)
        with pytest.raises(ValidationError):
            await rule_store.update_rule(
                db_session, rule_store.TAX_RULES, tenant, rule.id, {"min_nights": 30, "name": "Long stay"}
            )
        assert rule.name == "Lodging tax"
        assert rule.min_nights is None

    async def test_set_active_is_idempotent(self, db_session: AsyncSession, tenant: TenantContext):
        rule = await _lodging_tax(db_session, tenant)
        for _ in range(2):
            await rule_store.set_active(db_session, rule_store.TAX_RULES, tenant, rule.id, False)
        assert rule.is_active is False

        entries, _ = await list_changes(db_session, tenant, rule_id=rule.id)
        assert [entry.action for entry in entries] == ["toggle", "create"]


class TestDelete:
    """Rules with usage history can only be deactivated."""

    async def test_delete_unused(self, db_session: AsyncSession, tenant: TenantContext):
        rule = await _lodging_tax(db_session, tenant)
        await rule_store.delete_rule(db_session, rule_store.TAX_RULES, tenant, rule.id)

        with pytest.raises(NotFoundError):
            await rule_store.get_rule(db_session, rule_store.TAX_RULES, tenant, rule.id)

    async def test_delete_used_rule_conflicts(self, db_session: AsyncSession, tenant: TenantContext):
        rule = await _lodging_tax(db_session, tenant)
        await _issue_stub_quote(db_session, tenant, "tax_rule", rule.id)

        assert await rule_store.usage_count(db_session, rule_store.TAX_RULES, rule) == 1
        with pytest.raises(ConflictError):
            await rule_store.delete_rule(db_session, rule_store.TAX_RULES, tenant, rule.id)

        deactivated = await rule_store.set_active(db_session, rule_store.TAX_RULES, tenant, rule.id, False)
        assert deactivated.is_active is False

    async def test_usage_of_other_kind_ignored(self, db_session: AsyncSession, tenant: TenantContext):
        rule = await _lodging_tax(db_session, tenant)
        await _issue_stub_quote(db_session, tenant, "pricing_rule", rule.id)
        assert await rule_store.usage_count(db_session, rule_store.TAX_RULES, rule) == 0

    async def test_delete_audit_keeps_snapshot(self, db_session: AsyncSession, tenant: TenantContext):
        rule = await _lodging_tax(db_session, tenant)
        rule_id = rule.id
        await rule_store.delete_rule(db_session, rule_store.TAX_RULES, tenant, rule_id, actor="svc-test")

        entries, _ = await list_changes(db_session, tenant, rule_id=rule_id)
        assert entries[0].action == "delete"
        assert entries[0].changes["name"] == "Lodging tax"


class TestRuleTables:
    """Every rule table carries the campground key and the insertion sequence."""

    @pytest.mark.parametrize("family", list(rule_store.FAMILIES.values()), ids=lambda family: family.kind)
    def test_campground_scoped_columns(self, family):
        table = family.model.__table__
        (foreign_key,) = table.c.campground_id.foreign_keys
        assert foreign_key.target_fullname == "campgrounds.id"
        assert foreign_key.ondelete == "CASCADE"
        assert table.c.campground_id.nullable is False
        assert table.c.sort_order.nullable is False

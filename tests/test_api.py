"""
TaxBridge - API Endpoint Tests

Tests for the HTTP surface: calculators, payroll, PIT and subscriptions.
Decimals are serialized as strings.
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from httpx import AsyncClient


class TestHealth:

    async def test_health_check(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    async def test_api_root(self, client: AsyncClient):
        response = await client.get("/api/v1")
        assert response.status_code == 200
        assert response.json()["endpoints"]["payroll"] == "/api/v1/payroll"


class TestTaxEndpoints:
    """Stateless calculator endpoints."""

    async def test_paye(self, client: AsyncClient):
        response = await client.post("/api/v1/tax/paye", json={
            "gross_salary": "250000",
            "tax_year": 2026,
            "has_pension": True,
            "has_nhf": True,
            "has_nhis": True,
        })
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["paye"]) == Decimal("21843.75")
        assert Decimal(data["net_salary"]) == Decimal("190447.92")
        assert len(data["band_breakdown"]) == 2

    async def test_paye_missing_flag(self, client: AsyncClient):
        response = await client.post("/api/v1/tax/paye", json={
            "gross_salary": "250000",
            "tax_year": 2026,
            "has_pension": True,
            "has_nhf": True,
        })
        assert response.status_code == 422
        error = response.json()["detail"]
        assert error["code"] == "MISSING_ELIGIBILITY_FLAG"
        assert error["field"] == "has_nhis"

    async def test_paye_rejects_2025(self, client: AsyncClient):
        response = await client.post("/api/v1/tax/paye", json={
            "gross_salary": "250000",
            "tax_year": 2025,
            "has_pension": True,
            "has_nhf": True,
            "has_nhis": True,
        })
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_TAX_YEAR"

    async def test_cit(self, client: AsyncClient):
        response = await client.post("/api/v1/tax/cit", json={
            "turnover": "100000000",
            "taxable_profit": "20000000",
            "tax_year": 2026,
        })
        assert response.status_code == 200
        data = response.json()
        assert data["company_size"] == "standard"
        assert Decimal(data["cit_amount"]) == Decimal("6000000")
        assert Decimal(data["development_levy"]) == Decimal("800000")
        assert data["filing_deadline"] == "2027-06-30"

    async def test_development_levy_rate(self, client: AsyncClient):
        response = await client.get("/api/v1/tax/development-levy/2027")
        assert response.status_code == 200
        assert Decimal(response.json()["rate"]) == Decimal("3.5")

    async def test_development_levy_rejects_2025(self, client: AsyncClient):
        response = await client.get("/api/v1/tax/development-levy/2025")
        assert response.status_code == 422

    async def test_vat_obligation_threshold(self, client: AsyncClient):
        response = await client.post("/api/v1/tax/vat/obligation", json={"turnover": "100000000"})
        assert response.status_code == 200
        assert response.json()["is_vat_obligated"] is False

    async def test_vat(self, client: AsyncClient):
        response = await client.post("/api/v1/tax/vat", json={
            "amount": "10000",
            "tax_year": 2026,
            "turnover": "150000000",
        })
        assert response.status_code == 200
        assert Decimal(response.json()["vat_amount"]) == Decimal("750")

    async def test_negative_vat_amount(self, client: AsyncClient):
        response = await client.post("/api/v1/tax/vat", json={
            "amount": "-10",
            "tax_year": 2026,
            "turnover": "150000000",
        })
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "INVALID_AMOUNT"

    async def test_wht_non_resident(self, client: AsyncClient):
        response = await client.post("/api/v1/tax/wht", json={
            "amount": "100000",
            "wht_type": "professional_services",
            "tax_year": 2026,
            "is_non_resident": True,
        })
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["wht_rate"]) == Decimal("10")
        assert Decimal(data["wht_amount"]) == Decimal("10000")


class TestPayrollEndpoints:
    """Payroll batch, schedules and remittance."""

    async def _generate(self, client, company_id):
        return await client.post("/api/v1/payroll/generate", json={
            "entity_id": str(company_id),
            "entity_type": "company",
            "month": 1,
            "year": 2026,
        })

    async def test_generate(self, client: AsyncClient, company_id, make_employee):
        for _ in range(3):
            await make_employee(company_id)

        response = await self._generate(client, company_id)
        assert response.status_code == 201
        data = response.json()
        assert data["created_records"] == 3
        assert len(data["records"]) == 3
        assert data["schedule"]["status"] == "draft"
        assert Decimal(data["schedule"]["totals"]["total_paye"]) == Decimal("65531.25")
        assert Decimal(data["remittance"]["total_paye"]) == Decimal("65531.25")
        assert data["remittance"]["remittance_deadline"] == "2026-02-10"
        assert data["employee_counts"] == {"total": 3, "active": 3, "inactive": 0, "undefined_status": 0}

    async def test_generate_without_active_employees(self, client: AsyncClient, company_id, make_employee):
        await make_employee(company_id, is_active=False)

        response = await self._generate(client, company_id)
        assert response.status_code == 422
        error = response.json()["detail"]
        assert error["code"] == "NO_ACTIVE_EMPLOYEES"
        assert error["details"]["inactive"] == 1

    async def test_generate_for_submitted_period(self, client: AsyncClient, company_id, make_employee):
        await make_employee(company_id)
        schedule_id = (await self._generate(client, company_id)).json()["schedule"]["id"]
        await client.patch(f"/api/v1/payroll/schedules/{schedule_id}/status", json={"status": "submitted"})

        response = await self._generate(client, company_id)
        assert response.status_code == 422
        error = response.json()["detail"]
        assert error["code"] == "PAYROLL_PERIOD_LOCKED"
        assert error["details"]["violated_rule"] == "DRAFT_PERIODS_ONLY"

    async def test_schedule_lifecycle(self, client: AsyncClient, company_id, make_employee):
        await make_employee(company_id)
        schedule_id = (await self._generate(client, company_id)).json()["schedule"]["id"]

        listing = await client.get(
            "/api/v1/payroll/schedules",
            params={"entity_id": str(company_id), "entity_type": "company"},
        )
        assert listing.status_code == 200
        assert listing.json()["total"] == 1
        assert listing.json()["pages"] == 1

        detail = await client.get(f"/api/v1/payroll/schedules/{schedule_id}")
        assert Decimal(detail.json()["totals"]["total_gross_salary"]) == Decimal("250000")

        approved = await client.patch(
            f"/api/v1/payroll/schedules/{schedule_id}/status", json={"status": "approved"},
        )
        assert approved.status_code == 200
        assert approved.json()["status"] == "approved"

        invalid = await client.patch(
            f"/api/v1/payroll/schedules/{schedule_id}/status", json={"status": "paid"},
        )
        assert invalid.status_code == 422
        assert invalid.json()["detail"]["code"] == "INVALID_STATUS_TRANSITION"

        deleted = await client.delete(f"/api/v1/payroll/schedules/{schedule_id}")
        assert deleted.status_code == 200

        missing = await client.get(f"/api/v1/payroll/schedules/{schedule_id}")
        assert missing.status_code == 404
        assert missing.json()["detail"]["code"] == "SCHEDULE_NOT_FOUND"

    async def test_mark_remitted(self, client: AsyncClient, company_id, make_employee):
        await make_employee(company_id)
        await self._generate(client, company_id)

        response = await client.post("/api/v1/payroll/remittances/mark-remitted", json={
            "entity_id": str(company_id),
            "entity_type": "company",
            "month": 1,
            "year": 2026,
            "remittance_date": "2026-02-08",
            "reference": "NRS-2026-0001",
        })
        assert response.status_code == 200
        assert response.json()["status"] == "remitted"


class TestPITEndpoints:
    """Employment deductions and PIT summary."""

    async def test_deductions_crud(self, client: AsyncClient):
        account_id = str(uuid4())
        url = "/api/v1/pit/employment-deductions"

        created = await client.put(url, json={
            "account_id": account_id,
            "tax_year": 2026,
            "annual_pension": "400000",
            "annual_rent": "1000000",
        })
        assert created.status_code == 200
        assert Decimal(created.json()["annual_rent_relief"]) == Decimal("200000")

        fetched = await client.get(url, params={"account_id": account_id, "tax_year": 2026})
        assert fetched.status_code == 200

        patched = await client.patch(url, json={
            "account_id": account_id,
            "tax_year": 2026,
            "annual_rent": "3000000",
        })
        assert patched.status_code == 200
        assert Decimal(patched.json()["annual_rent_relief"]) == Decimal("500000")
        assert Decimal(patched.json()["annual_pension"]) == Decimal("400000")

        deleted = await client.delete(url, params={"account_id": account_id, "tax_year": 2026})
        assert deleted.status_code == 204

        missing = await client.get(url, params={"account_id": account_id, "tax_year": 2026})
        assert missing.status_code == 404

    async def test_rent_relief_mismatch(self, client: AsyncClient):
        response = await client.put("/api/v1/pit/employment-deductions", json={
            "account_id": str(uuid4()),
            "tax_year": 2026,
            "annual_rent": "1000000",
            "annual_rent_relief": "300000",
        })
        assert response.status_code == 422
        assert response.json()["detail"]["code"] == "RENT_RELIEF_MISMATCH"

    async def test_summary(self, client: AsyncClient):
        response = await client.post("/api/v1/pit/summary", json={
            "account_id": str(uuid4()),
            "tax_year": 2026,
            "total_gross_income": "1500000",
            "wht_credits": "5000",
        })
        assert response.status_code == 200
        data = response.json()
        assert Decimal(data["pit_before_wht"]) == Decimal("105000")
        assert Decimal(data["pit_after_wht"]) == Decimal("100000")
        assert data["filing_deadline"] == "2027-03-31"


class TestSubscriptionEndpoints:
    """Plans, feature gates and activation."""

    async def test_new_user_is_on_free(self, client: AsyncClient):
        response = await client.get(f"/api/v1/subscription/{uuid4()}")
        assert response.status_code == 200
        assert response.json()["plan"] == "free"
        assert response.json()["plan_name"] == "Free"

    async def test_payroll_feature_gate(self, client: AsyncClient):
        response = await client.get(f"/api/v1/subscription/{uuid4()}/features/payroll")
        assert response.status_code == 422
        error = response.json()["detail"]
        assert error["code"] == "PLAN_FEATURE_REQUIRED"
        assert error["details"]["required_plan"] == "Company"

    async def test_purchase_and_upgrade_preview(self, client: AsyncClient):
        user_id = str(uuid4())

        initialized = await client.post("/api/v1/subscription/initialize", json={
            "user_id": user_id,
            "plan": "starter",
            "billing_cycle": "monthly",
        })
        assert initialized.status_code == 201
        reference = initialized.json()["reference"]
        assert Decimal(initialized.json()["amount"]) == Decimal("3500")
        assert initialized.json()["upgrade"]["has_bonus"] is True

        activated = await client.post("/api/v1/subscription/activate", json={"reference": reference})
        assert activated.status_code == 200
        assert activated.json()["plan"] == "starter"
        assert activated.json()["previous_plan"] == "free"

        again = await client.post("/api/v1/subscription/activate", json={"reference": reference})
        assert again.status_code == 422
        assert again.json()["detail"]["code"] == "ALREADY_PROCESSED"

        preview = await client.post("/api/v1/subscription/calculate-upgrade", json={
            "user_id": user_id,
            "target_plan": "standard",
            "billing_cycle": "monthly",
        })
        assert preview.status_code == 200
        assert preview.json()["has_bonus"] is True
        assert preview.json()["bonus_days"] >= 28

    async def test_unknown_payment_reference(self, client: AsyncClient):
        response = await client.post("/api/v1/subscription/activate", json={"reference": "TXB-none"})
        assert response.status_code == 404

from __future__ import annotations

import pytest
from fastapi import status

from src.core.config import settings


API_PREFIX = f"{settings.API_PREFIX}/v1"


@pytest.mark.asyncio
async def test_quote_organization_annual(client, fake_redis):
    response = await client.post(
        f"{API_PREFIX}/billing/quote",
        json={
            "role": "ADMIN",
            "unitPrice": 56,
            "period": "annual",
            "siteCount": 1,
            "specialistCount": 10,
            "isPatient": False,
        },
    )

    assert response.status_code == status.HTTP_200_OK, response.text
    body = response.json()
    assert body["type"] == "CALCULATED"
    assert body["monthlyBeforeDiscount"] == pytest.approx(560)
    assert body["monthlyEquivalent"] == pytest.approx(392)
    assert body["total"] == pytest.approx(4704)
    assert body["discount"] == pytest.approx(0.30)
    assert body["billingCycle"] == "annual"


@pytest.mark.asyncio
async def test_quote_accepts_site_band(client, fake_redis):
    response = await client.post(
        f"{API_PREFIX}/billing/quote",
        json={"role": "FARMACIA", "unitPrice": 56, "siteCount": "5-10", "specialistCount": 4},
    )

    body = response.json()
    assert body["sedeCount"] == 7
    assert body["sedesSubtotal"] == pytest.approx(225)
    assert body["total"] == pytest.approx(56 * 4 + 225)


@pytest.mark.asyncio
async def test_quote_escalates_to_custom(client, fake_redis):
    response = await client.post(
        f"{API_PREFIX}/billing/quote",
        json={"role": "ADMIN", "unitPrice": 35, "siteCount": "11+", "specialistCount": 5},
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {
        "type": "CUSTOM",
        "requiresQuote": True,
        "specialistCount": 5,
        "sedeCount": 11,
    }


@pytest.mark.asyncio
async def test_quote_individual_physician(client, fake_redis):
    response = await client.post(
        f"{API_PREFIX}/billing/quote",
        json={"role": "MEDICO", "unitPrice": 70, "period": "annual", "specialistCount": 300},
    )

    body = response.json()
    assert body["type"] == "INDIVIDUAL"
    assert body["total"] == 70


@pytest.mark.asyncio
async def test_quote_patient_defaults_to_patient_branch(client, fake_redis):
    response = await client.post(
        f"{API_PREFIX}/billing/quote",
        json={"role": "PACIENTE", "unitPrice": 12.99, "period": "quarterly", "specialistCount": 200},
    )

    body = response.json()
    assert body["type"] == "CALCULATED"
    assert body["monthlyEquivalent"] == pytest.approx(1.0825)
    assert body["total"] == pytest.approx(3.0851, abs=1e-4)


@pytest.mark.asyncio
async def test_quote_rejects_unknown_role(client, fake_redis):
    response = await client.post(
        f"{API_PREFIX}/billing/quote",
        json={"role": "ASTRONAUT", "unitPrice": 10},
    )

    assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
    assert response.json()["message"] == "Invalid request payload"


@pytest.mark.asyncio
async def test_quote_rate_limit(client, fake_redis, monkeypatch):
    monkeypatch.setattr(settings.limits, "rate_limit_rpm", 1)
    payload = {"role": "ADMIN", "unitPrice": 56, "specialistCount": 2}

    first = await client.post(f"{API_PREFIX}/billing/quote", json=payload)
    assert first.status_code == status.HTTP_200_OK

    second = await client.post(f"{API_PREFIX}/billing/quote", json=payload)
    assert second.status_code == status.HTTP_429_TOO_MANY_REQUESTS
    assert second.json()["message"] == "Rate limit exceeded"


@pytest.mark.asyncio
async def test_recommend_prices_from_catalog(client, test_db, fake_redis):
    response = await client.post(
        f"{API_PREFIX}/billing/recommend",
        json={"role": "ADMIN", "period": "quarterly", "siteCount": 2, "specialistCount": 15},
    )

    assert response.status_code == status.HTTP_200_OK, response.text
    body = response.json()
    assert body["plan"]["slug"] == "clinica"
    assert body["quote"]["pricePerEsp"] == pytest.approx(49)
    monthly = 49 * 15 + 45
    assert body["quote"]["total"] == pytest.approx(monthly * 0.9 * 3)


@pytest.mark.asyncio
async def test_recommend_patient_uses_annual_price(client, test_db, fake_redis):
    response = await client.post(
        f"{API_PREFIX}/billing/recommend",
        json={"role": "PACIENTE", "period": "annual", "patientPlan": "family"},
    )

    body = response.json()
    assert body["plan"]["slug"] == "paciente-family"
    assert body["quote"]["total"] == pytest.approx(29.99)


@pytest.mark.asyncio
async def test_recommend_without_catalog_is_not_found(client, fake_redis):
    response = await client.post(
        f"{API_PREFIX}/billing/recommend",
        json={"role": "ADMIN", "specialistCount": 3},
    )

    assert response.status_code == status.HTTP_404_NOT_FOUND
    assert response.json()["message"] == "No plans available for this role"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "site_count, sedes, surcharge",
    [("1", 1, 0), ("4", 4, 135), ("5-10", 7, 225), ("11+", 11, 345)],
)
async def test_site_surcharge_endpoint(client, site_count, sedes, surcharge):
    response = await client.get(
        f"{API_PREFIX}/billing/sites/surcharge", params={"siteCount": site_count}
    )

    assert response.status_code == status.HTTP_200_OK
    assert response.json() == {"sedeCount": sedes, "sedesSubtotal": surcharge}


@pytest.mark.asyncio
async def test_plans_catalog_with_recommendation(client, test_db):
    response = await client.get(
        f"{API_PREFIX}/plans", params={"role": "LABORATORIO", "specialistCount": 45}
    )

    assert response.status_code == status.HTTP_200_OK
    body = response.json()
    assert [plan["slug"] for plan in body["plans"]] == ["starter", "clinica", "pro", "enterprise"]
    assert body["recommended"] == "pro"
    assert body["plans"][0]["monthlyPrice"] == 56


@pytest.mark.asyncio
async def test_plans_catalog_for_physician(client, test_db):
    response = await client.get(f"{API_PREFIX}/plans", params={"role": "MEDICO"})

    body = response.json()
    assert body["recommended"] == "medico"
    assert len(body["plans"]) == 1


@pytest.mark.asyncio
async def test_quote_coerces_non_finite_and_negative_counts(client, fake_redis):
    response = await client.post(
        f"{API_PREFIX}/billing/quote",
        json={"role": "ADMIN", "unitPrice": 56, "specialistCount": "inf", "siteCount": -5},
    )

    assert response.status_code == status.HTTP_200_OK, response.text
    body = response.json()
    assert body["specialistCount"] == 1
    assert body["sedeCount"] == 1
    assert body["total"] == pytest.approx(56)

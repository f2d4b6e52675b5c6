from datetime import timedelta

from sqlalchemy.exc import OperationalError

from app.application.apply_discount import ApplyDiscountUseCase
from app.domain.discount_codes import CODE_EXPIRED, CODE_NOT_FOUND, INTERNAL_ERROR
from app.domain.models import DiscountCodeType, Role, utcnow
from app.main import app
from app.presentation.api import get_apply_discount_use_case
from tests.factories import auth_headers, create_discount_code, create_user


async def test_validate_valid_code(client, uow):
    await create_discount_code(uow, "VERANO10", "10")

    resp = await client.post("/api/discounts/validate", json={"code": " verano10 ", "cart_total": 20000})

    assert resp.status_code == 200
    body = resp.json()
    assert body["valid"] is True
    assert body["discount_amount"] == 2000
    assert body["final_total"] == 18000
    assert body["type"] == "PERCENT"


async def test_validate_is_idempotent_preview(client, uow):
    await create_discount_code(uow, "FIJO", "1500", type=DiscountCodeType.FIXED, max_redemptions=1)
    payload = {"code": "FIJO", "cart_total": 10000}

    first = await client.post("/api/discounts/validate", json=payload)
    second = await client.post("/api/discounts/validate", json=payload)

    assert first.status_code == second.status_code == 200
    assert first.json() == second.json()
    assert first.json()["valid"] is True
    async with uow() as u:
        stored = await u.discount_codes.get_by_code("FIJO")
    assert stored.usage_count == 0


async def test_business_rejections_are_200(client, uow):
    await create_discount_code(uow, "VIEJO", "10", expires_at=utcnow() - timedelta(days=1))

    expired = await client.post("/api/discounts/validate", json={"code": "VIEJO", "cart_total": 5000})
    unknown = await client.post("/api/discounts/validate", json={"code": "NADA", "cart_total": 5000})

    assert expired.status_code == 200
    assert expired.json() == {
        "valid": False, "message": CODE_EXPIRED, "discount_amount": None,
        "final_total": None, "type": None, "amount": None,
    }
    assert unknown.json()["message"] == CODE_NOT_FOUND


async def test_validate_input_is_checked(client):
    assert (await client.post("/api/discounts/validate", json={"code": "", "cart_total": 100})).status_code == 422
    assert (await client.post("/api/discounts/validate", json={"code": "X", "cart_total": -1})).status_code == 422


async def test_data_access_failure_is_500(client):
    class FailingUseCase(ApplyDiscountUseCase):
        def __init__(self):
            pass

        async def __call__(self, dto):
            raise OperationalError("SELECT 1", {}, Exception("db down"))

    app.dependency_overrides[get_apply_discount_use_case] = lambda: FailingUseCase()
    try:
        resp = await client.post("/api/discounts/validate", json={"code": "X", "cart_total": 100})
    finally:
        app.dependency_overrides.pop(get_apply_discount_use_case)

    assert resp.status_code == 500
    assert resp.json() == {"valid": False, "message": INTERNAL_ERROR}


async def test_admin_discount_code_lifecycle(client, uow):
    admin = await create_user(uow, Role.ADMIN)
    headers = auth_headers(admin)

    created = await client.post(
        "/api/admin/discounts",
        headers=headers,
        json={"code": "navidad", "type": "PERCENT", "amount": "20", "max_redemptions": 50},
    )
    assert created.status_code == 201
    body = created.json()
    assert body["code"] == "NAVIDAD"
    assert body["usage_count"] == 0
    assert body["created_by_id"] == admin.id

    duplicate = await client.post(
        "/api/admin/discounts", headers=headers, json={"code": "NAVIDAD", "type": "FIXED", "amount": "100"}
    )
    assert duplicate.status_code == 409

    updated = await client.put(f"/api/admin/discounts/{body['id']}", headers=headers, json={"active": False})
    assert updated.status_code == 200
    assert updated.json()["active"] is False

    listing = await client.get("/api/admin/discounts", headers=headers)
    assert listing.json()["total"] == 1

    deleted = await client.delete(f"/api/admin/discounts/{body['id']}", headers=headers)
    assert deleted.status_code == 200
    missing = await client.put(f"/api/admin/discounts/{body['id']}", headers=headers, json={"active": True})
    assert missing.status_code == 404


async def test_invalid_discount_codes_are_rejected(client, uow):
    headers = auth_headers(await create_user(uow, Role.SUPER_ADMIN))

    over = await client.post("/api/admin/discounts", headers=headers, json={"code": "X", "type": "PERCENT", "amount": "120"})
    zero = await client.post("/api/admin/discounts", headers=headers, json={"code": "Y", "type": "FIXED", "amount": "0"})

    assert over.status_code == 400
    assert zero.status_code == 400


async def test_update_with_null_required_field_is_400(client, uow):
    headers = auth_headers(await create_user(uow, Role.ADMIN))
    discount_code = await create_discount_code(uow, "VERANO", "10", max_redemptions=5)

    for field in ("amount", "type", "active"):
        resp = await client.put(f"/api/admin/discounts/{discount_code.id}", headers=headers, json={field: None})
        assert resp.status_code == 400, field

    cleared = await client.put(
        f"/api/admin/discounts/{discount_code.id}", headers=headers, json={"max_redemptions": None}
    )
    assert cleared.status_code == 200
    assert cleared.json()["max_redemptions"] is None

from sqlalchemy import select

from app.domain.models import Role
from app.infrastructure.db_schema import discount_redemptions_tbl, payments_tbl
from tests.factories import auth_headers, create_discount_code, create_promotion, create_user


def draft(name="Ana"):
    return {"name_on_sticker": name, "flag_code": "CL"}


async def test_single_sticker_checkout(client, uow):
    resp = await client.post("/api/checkout/stickers", json={"email": "Ana@Mail.cl", "stickers": [draft()]})

    assert resp.status_code == 201
    body = resp.json()
    assert body["amount"] == 6990
    assert body["original_amount"] is None
    assert body["reference"].startswith("SFT-")
    assert len(body["stickers"]) == 1
    sticker = body["stickers"][0]
    assert sticker["status"] == "ORDERED"
    assert sticker["group_id"] is None
    assert len(sticker["slug"]) == 7

    async with uow() as u:
        user = await u.users.get_by_email("ana@mail.cl")
        payments = await u.payments.list_for_sticker(await u.stickers.get_by_id(sticker["id"]))
    assert user is not None
    assert [p.status.value for p in payments] == ["PENDING"]


async def test_group_checkout_applies_quantity_promotion(client, uow):
    await create_promotion(uow, 2, "10", priority=1)
    await create_promotion(uow, 5, "15", priority=2)

    resp = await client.post(
        "/api/checkout/stickers",
        json={"email": "familia@mail.cl", "stickers": [draft(f"S{i}") for i in range(7)]},
    )

    body = resp.json()
    assert resp.status_code == 201
    assert body["original_amount"] == 48930
    assert body["discount_amount"] == 7340
    assert body["amount"] == 41590
    group_ids = {s["group_id"] for s in body["stickers"]}
    assert len(group_ids) == 1 and None not in group_ids


async def test_discount_code_replaces_promotion_and_is_redeemed(client, uow, session_factory):
    await create_promotion(uow, 2, "50", priority=1)
    code = await create_discount_code(uow, "AMIGO", "10")

    resp = await client.post(
        "/api/checkout/stickers",
        json={"email": "amigo@mail.cl", "stickers": [draft(), draft("Bea")], "discount_code": "amigo"},
    )

    assert resp.status_code == 201
    assert resp.json()["discount_amount"] == 1398
    assert resp.json()["amount"] == 13980 - 1398

    async with uow() as u:
        stored = await u.discount_codes.get_by_id(code.id)
    assert stored.usage_count == 1
    async with session_factory() as session:
        redemptions = (await session.execute(select(discount_redemptions_tbl))).fetchall()
        payment = (await session.execute(select(payments_tbl))).fetchone()
    assert len(redemptions) == 1
    assert payment.discount_code_id == code.id
    assert payment.promotion_id is None


async def test_invalid_code_is_400_and_writes_nothing(client, session_factory):
    resp = await client.post(
        "/api/checkout/stickers",
        json={"email": "x@mail.cl", "stickers": [draft()], "discount_code": "NOEXISTE"},
    )

    assert resp.status_code == 400
    async with session_factory() as session:
        assert (await session.execute(select(payments_tbl))).fetchall() == []


async def test_checkout_requires_stickers(client):
    resp = await client.post("/api/checkout/stickers", json={"email": "x@mail.cl", "stickers": []})

    assert resp.status_code == 422


async def test_sticker_visible_to_owner_and_managers_only(client, uow):
    resp = await client.post("/api/checkout/stickers", json={"email": "owner@mail.cl", "stickers": [draft()]})
    sticker_id = resp.json()["stickers"][0]["id"]

    async with uow() as u:
        owner = await u.users.get_by_email("owner@mail.cl")
    stranger = await create_user(uow, Role.USER)
    admin = await create_user(uow, Role.ADMIN)

    own = await client.get(f"/api/stickers/{sticker_id}", headers=auth_headers(owner))
    assert own.status_code == 200
    assert own.json()["payments"][0]["status"] == "PENDING"

    assert (await client.get(f"/api/stickers/{sticker_id}", headers=auth_headers(admin))).status_code == 200
    assert (await client.get(f"/api/stickers/{sticker_id}", headers=auth_headers(stranger))).status_code == 404
    assert (await client.get("/api/stickers/missing", headers=auth_headers(admin))).status_code == 404
    assert (await client.get(f"/api/stickers/{sticker_id}")).status_code == 401

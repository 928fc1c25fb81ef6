from decimal import Decimal

from barbershop.models import Product, ProductSale


def sale_body(shop, **overrides):
    body = {"barber_id": shop.barber.id, "product_id": shop.pomade.id, "client_name": "Walk-in", "quantity": 2}
    body.update(overrides)
    return body


def test_barber_sells_with_catalog_price(as_barber, repo, shop):
    resp = as_barber.post("/api/product-sales", json=sale_body(shop))
    assert resp.status_code == 201
    body = resp.json()
    assert Decimal(body["unit_price"]) == Decimal("10.00")
    assert body["validated_by_admin"] is False
    assert body["date"]


def test_sale_does_not_touch_stock(as_barber, repo, shop):
    as_barber.post("/api/product-sales", json=sale_body(shop, quantity=3))
    assert repo.get(Product, shop.pomade.id).stock_quantity == 5


def test_barber_cannot_sell_for_another_barber(as_barber, repo, shop):
    resp = as_barber.post("/api/product-sales", json=sale_body(shop, barber_id=shop.other_barber.id))
    assert resp.status_code == 403
    assert repo.find(ProductSale) == []


def test_quantity_must_be_positive(as_barber, shop):
    assert as_barber.post("/api/product-sales", json=sale_body(shop, quantity=0)).status_code == 400


def test_inactive_product_cannot_be_sold(as_admin, repo, shop):
    shop.pomade.active = False
    repo.add(shop.pomade)
    assert as_admin.post("/api/product-sales", json=sale_body(shop)).status_code == 400


def test_validate_is_admin_only_and_idempotent(as_admin, as_barber, product_sale_factory):
    sale = product_sale_factory()
    assert as_barber.post(f"/api/product-sales/{sale.id}/validate").status_code == 403
    assert as_admin.post(f"/api/product-sales/{sale.id}/validate").json()["validated_by_admin"] is True
    assert as_admin.post(f"/api/product-sales/{sale.id}/validate").status_code == 200


def test_barber_deletes_own_unvalidated_sale(as_barber, repo, product_sale_factory):
    sale = product_sale_factory()
    assert as_barber.delete(f"/api/product-sales/{sale.id}").status_code == 204
    assert repo.get(ProductSale, sale.id) is None


def test_validated_sale_is_barber_immutable(as_admin, as_barber, repo, product_sale_factory):
    sale = product_sale_factory(validated_by_admin=True)
    assert as_barber.delete(f"/api/product-sales/{sale.id}").status_code == 403
    assert repo.get(ProductSale, sale.id) is not None
    assert as_admin.delete(f"/api/product-sales/{sale.id}").status_code == 204


def test_other_barber_cannot_delete(as_other_barber, product_sale_factory):
    sale = product_sale_factory()
    assert as_other_barber.delete(f"/api/product-sales/{sale.id}").status_code == 403


def test_listing_is_scoped(as_admin, as_barber, shop, product_sale_factory):
    mine = product_sale_factory(quantity=3, validated_by_admin=True)
    product_sale_factory(barber_id=shop.other_barber.id)

    own = as_barber.get("/api/product-sales").json()
    assert [s["id"] for s in own] == [mine.id]
    assert Decimal(own[0]["commission_amount"]) == Decimal("6.00")
    assert own[0]["product"]["sku"] == "POM-1"
    assert len(as_admin.get("/api/product-sales").json()) == 2


def test_unvalidated_sale_shows_no_commission(as_barber, product_sale_factory):
    product_sale_factory(quantity=3)
    assert Decimal(as_barber.get("/api/product-sales").json()[0]["commission_amount"]) == Decimal("0.00")

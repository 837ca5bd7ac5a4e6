from datetime import datetime, timedelta
from decimal import Decimal

from tests.conftest import auth_headers


def test_purchase_history_newest_first(client, make_user, make_ebook, make_purchase):
    user = make_user()
    first, second = make_ebook(title="First"), make_ebook(title="Second")
    now = datetime.utcnow()
    make_purchase(user, first, amount="5.00", purchased_at=now - timedelta(days=1))
    make_purchase(user, second, amount="2.00", purchased_at=now)
    make_purchase(make_user(), first)

    history = client.get("/purchases", headers=auth_headers(user)).json()

    assert [p["ebook_id"] for p in history] == [second.id, first.id]
    assert history[0]["ebook"]["title"] == "Second"
    assert Decimal(history[1]["amount"]) == Decimal("5.00")


def test_ownership_queries(client, make_user, make_ebook, make_purchase):
    user = make_user()
    owned, other = make_ebook(), make_ebook()
    make_purchase(user, owned, checkout_id="cs_1")
    # re-purchase of the same ebook is allowed
    make_purchase(user, owned, checkout_id="cs_2")
    headers = auth_headers(user)

    assert client.get(f"/purchases/has-purchased/{owned.id}", headers=headers).json() is True
    assert client.get(f"/purchases/has-purchased/{other.id}", headers=headers).json() is False
    assert client.get("/purchases/ids", headers=headers).json() == [owned.id]
    assert len(client.get("/purchases", headers=headers).json()) == 2

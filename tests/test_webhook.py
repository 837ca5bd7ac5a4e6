from decimal import Decimal

import pytest
from sqlmodel import select

from app.models.cart import CartItem
from app.models.purchase import Purchase
from app.schemas.payment_schemas import CheckoutLine, CheckoutMetadata
from app.services.checkout_metadata import encode_items
from tests.conftest import sign_payload, webhook_body


def completed_event(user, ebooks, checkout_id="cs_test_abc", event_id="evt_1Live"):
    lines = [CheckoutLine(ebook_id=e.id, unit_amount=999) for e in ebooks]
    return {
        "id": event_id,
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": checkout_id,
                "object": "checkout.session",
                "payment_intent": "pi_test_123",
                "metadata": {
                    "user_id": str(user.id),
                    "customer_email": user.email,
                    "customer_name": user.name,
                    **encode_items(CheckoutMetadata(items=lines)),
                },
            }
        },
    }


def post_event(client, event, secret=None):
    body = webhook_body(event)
    signature = sign_payload(body) if secret is None else sign_payload(body, secret)
    return client.post(
        "/webhooks/stripe",
        content=body,
        headers={"Stripe-Signature": signature, "Content-Type": "application/json"},
    )


@pytest.fixture
def buyer_with_cart(session, make_user, make_ebook):
    user = make_user()
    first = make_ebook(price=Decimal("9.99"))
    second = make_ebook(price=Decimal("3.00"))
    for ebook in (first, second):
        session.add(CartItem(user_id=user.id, ebook_id=ebook.id))
    session.commit()
    return user, first, second


def purchases_for(session, checkout_id):
    session.expire_all()
    return session.exec(
        select(Purchase)
        .where(Purchase.stripe_checkout_session_id == checkout_id)
        .order_by(Purchase.id)
    ).all()


def test_missing_signature_is_rejected(client):
    response = client.post("/webhooks/stripe", content=b"{}")
    assert response.status_code == 400


def test_bad_signature_is_rejected(client, session, buyer_with_cart):
    user, first, second = buyer_with_cart
    response = post_event(client, completed_event(user, [first, second]), secret="whsec_wrong")

    assert response.status_code == 400
    assert purchases_for(session, "cs_test_abc") == []


def test_missing_webhook_secret_fails_closed(client, payments):
    payments.webhook_secret = None
    body = webhook_body({"id": "evt_1", "type": "ping"})

    response = client.post(
        "/webhooks/stripe",
        content=body,
        headers={"Stripe-Signature": sign_payload(body)},
    )

    assert response.status_code == 400


def test_test_events_echo_verification_without_writes(client, session, buyer_with_cart):
    user, first, second = buyer_with_cart
    event = completed_event(user, [first, second], event_id="evt_test_webhook")

    response = post_event(client, event)

    assert response.status_code == 200
    assert response.json() == {"verified": True}
    assert purchases_for(session, "cs_test_abc") == []


def test_completed_checkout_creates_purchases_and_clears_cart(client, session, payments, buyer_with_cart):
    user, first, second = buyer_with_cart
    # charged amounts differ from the live catalog prices
    payments.line_items["cs_test_abc"] = [
        {"ebook_id": first.id, "amount_total": 500},
        {"ebook_id": second.id, "amount_total": 200},
    ]

    response = post_event(client, completed_event(user, [first, second]))

    assert response.status_code == 200
    assert response.json()["status"] == "fulfilled"

    rows = purchases_for(session, "cs_test_abc")
    assert [(p.ebook_id, p.amount) for p in rows] == [
        (first.id, Decimal("5.00")),
        (second.id, Decimal("2.00")),
    ]
    assert all(p.user_id == user.id for p in rows)
    assert all(p.stripe_payment_intent_id == "pi_test_123" for p in rows)

    cart = session.exec(select(CartItem).where(CartItem.user_id == user.id)).all()
    assert cart == []


def test_amounts_fall_back_to_line_position(client, session, payments, buyer_with_cart):
    user, first, second = buyer_with_cart
    payments.line_items["cs_test_abc"] = [
        {"ebook_id": None, "amount_total": 700},
        {"ebook_id": None, "amount_total": 100},
    ]

    post_event(client, completed_event(user, [first, second]))

    assert [p.amount for p in purchases_for(session, "cs_test_abc")] == [
        Decimal("7.00"),
        Decimal("1.00"),
    ]


def test_redelivered_event_does_not_duplicate_purchases(client, session, payments, buyer_with_cart):
    user, first, second = buyer_with_cart
    payments.line_items["cs_test_abc"] = [
        {"ebook_id": first.id, "amount_total": 500},
        {"ebook_id": second.id, "amount_total": 200},
    ]
    event = completed_event(user, [first, second])

    assert post_event(client, event).status_code == 200

    # a new cart item added after payment must survive the replay
    session.add(CartItem(user_id=user.id, ebook_id=first.id))
    session.commit()

    replay = post_event(client, event)

    assert replay.status_code == 200
    assert replay.json()["status"] == "duplicate"
    assert len(purchases_for(session, "cs_test_abc")) == 2
    assert len(session.exec(select(CartItem).where(CartItem.user_id == user.id)).all()) == 1


def test_other_event_types_are_acknowledged(client):
    for event_type in ("payment_intent.succeeded", "customer.created"):
        event = {"id": "evt_1Other", "type": event_type, "data": {"object": {"id": "obj_1"}}}
        response = post_event(client, event)
        assert response.status_code == 200
        assert response.json() == {"received": True}


def test_processing_failure_rolls_back_and_asks_for_retry(client, session, payments, buyer_with_cart, monkeypatch):
    user, first, second = buyer_with_cart
    payments.line_items["cs_test_abc"] = [
        {"ebook_id": first.id, "amount_total": 500},
        {"ebook_id": second.id, "amount_total": 200},
    ]

    def broken_clear(*args, **kwargs):
        raise RuntimeError("database went away")

    monkeypatch.setattr("app.services.payment_confirmation.clear_cart", broken_clear)

    response = post_event(client, completed_event(user, [first, second]))

    assert response.status_code == 500
    assert purchases_for(session, "cs_test_abc") == []
    assert len(session.exec(select(CartItem).where(CartItem.user_id == user.id)).all()) == 2


def test_event_without_ebooks_is_a_processing_failure(client, session, make_user):
    user = make_user()
    event = {
        "id": "evt_1Empty",
        "type": "checkout.session.completed",
        "data": {"object": {"id": "cs_empty", "metadata": {"user_id": str(user.id)}}},
    }

    assert post_event(client, event).status_code == 500
    assert purchases_for(session, "cs_empty") == []


def test_concurrent_delivery_resolves_to_duplicate(client, session, payments, monkeypatch, make_user, make_ebook, make_purchase):
    user = make_user()
    ebook = make_ebook()
    # the other delivery committed between our check and our insert
    make_purchase(user, ebook, amount="9.99", checkout_id="cs_test_race")
    payments.line_items["cs_test_race"] = [{"ebook_id": ebook.id, "amount_total": 999}]

    checks = []

    def racing_check(db, checkout_id):
        checks.append(checkout_id)
        return len(checks) > 1

    monkeypatch.setattr("app.services.payment_confirmation.session_already_fulfilled", racing_check)

    response = post_event(client, completed_event(user, [ebook], checkout_id="cs_test_race"))

    assert response.status_code == 200
    assert response.json() == {"received": True, "status": "duplicate", "purchases": 0}
    assert checks == ["cs_test_race", "cs_test_race"]
    assert len(purchases_for(session, "cs_test_race")) == 1

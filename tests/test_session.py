from wardrobe.session import UserSession
from wardrobe.utils import encryption


def test_token_is_encrypted_at_rest(cipher):
    store = {}
    session = UserSession(store, cipher)
    session.token = "tok-123"
    assert store["token"] != "tok-123"
    assert session.token == "tok-123"


def test_unreadable_token_is_dropped(cipher):
    store = {"token": "garbage"}
    session = UserSession(store, cipher)
    assert session.token is None
    assert "token" not in store


def test_user_and_role(cipher):
    session = UserSession({}, cipher)
    assert not session.is_authenticated
    session.token = "tok"
    session.user = {"username": "pm", "role": "PRODUCT_MANAGER"}
    assert session.is_authenticated
    assert session.role == "PRODUCT_MANAGER"
    assert session.username == "pm"
    assert session.customer_id is None


def test_cart_copies(cipher):
    session = UserSession({}, cipher)
    session.save_cart([{"productId": 1, "quantity": 2}])
    items = session.cart_items
    items[0]["quantity"] = 99
    assert session.cart_items == [{"productId": 1, "quantity": 2}]


def test_clear(cipher):
    store = {"other": 1}
    session = UserSession(store, cipher)
    session.token = "tok"
    session.user = {"username": "u", "role": "CEO"}
    session.save_cart([{"productId": 1, "quantity": 1}])
    session.clear()
    assert store == {"other": 1}


def test_fernet_round_trip(app):
    with app.app_context():
        store = {}
        session = UserSession(store, encryption)
        session.token = "tok-123"
        assert store["token"] != "tok-123"
        assert session.token == "tok-123"
        assert UserSession({"token": "not-fernet"}, encryption).token is None

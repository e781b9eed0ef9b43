import pytest

from routes import ROUTES, get_route, match, url_for


@pytest.mark.parametrize("path,name,params", [
    ("/", "home", {}),
    ("/shop", "shop", {}),
    ("/shop?category=fashion", "shop", {}),
    ("/product/12", "product", {"id": "12"}),
    ("/checkout/", "checkout", {}),
    ("/order-confirmation/ORD-1001", "order_confirmation", {"id": "ORD-1001"}),
    ("/profile/orders", "profile_orders", {}),
    ("/profile/orders/ORD-7", "profile_order", {"id": "ORD-7"}),
    ("/admin", "admin", {}),
])
def test_match(path, name, params):
    route, found = match(path)
    assert route.name == name
    assert found == params


def test_unknown_path():
    assert match("/nowhere") is None
    assert match("/product/1/extra") is None


def test_protection_flags():
    public = {r.name for r in ROUTES if not r.requires_auth}
    assert public == {"home", "shop", "product", "cart", "wishlist", "login"}
    assert [r.name for r in ROUTES if r.requires_admin] == ["admin"]
    assert all(r.name.startswith("profile") for r in ROUTES if r.path.startswith("/profile"))
    assert all(r.requires_auth for r in ROUTES if r.path.startswith("/profile"))


def test_url_for():
    assert url_for("order_confirmation", id="ORD-1001") == "/order-confirmation/ORD-1001"
    assert url_for("shop") == "/shop"
    with pytest.raises(KeyError):
        get_route("missing")


def test_pattern_names_path_params():
    assert list(get_route("profile_order").pattern.groupindex) == ["id"]
    assert get_route("home").pattern.match("/")
    assert not get_route("home").pattern.match("/shop")

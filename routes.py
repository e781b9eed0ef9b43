from typing import Dict, List, Optional, Pattern, Tuple

from pydantic import BaseModel
from starlette.routing import compile_path


class Route(BaseModel):
    name: str
    path: str
    requires_auth: bool = False
    requires_admin: bool = False

    @property
    def pattern(self) -> Pattern:
        regex, _, _ = compile_path(self.path)
        return regex


ROUTES: List[Route] = [
    Route(name="home", path="/"),
    Route(name="shop", path="/shop"),
    Route(name="product", path="/product/{id}"),
    Route(name="cart", path="/cart"),
    Route(name="wishlist", path="/wishlist"),
    Route(name="login", path="/login"),
    Route(name="checkout", path="/checkout", requires_auth=True),
    Route(name="order_confirmation", path="/order-confirmation/{id}", requires_auth=True),
    Route(name="profile", path="/profile", requires_auth=True),
    Route(name="profile_orders", path="/profile/orders", requires_auth=True),
    Route(name="profile_order", path="/profile/orders/{id}", requires_auth=True),
    Route(name="profile_addresses", path="/profile/addresses", requires_auth=True),
    Route(name="profile_notifications", path="/profile/notifications", requires_auth=True),
    Route(name="profile_rewards", path="/profile/rewards", requires_auth=True),
    Route(name="profile_settings", path="/profile/settings", requires_auth=True),
    Route(name="profile_help", path="/profile/help", requires_auth=True),
    Route(name="admin", path="/admin", requires_auth=True, requires_admin=True),
]

_BY_NAME: Dict[str, Route] = {r.name: r for r in ROUTES}


def get_route(name: str) -> Route:
    return _BY_NAME[name]


def match(path: str) -> Optional[Tuple[Route, Dict[str, str]]]:
    path = path.split("?", 1)[0].rstrip("/") or "/"
    for route in ROUTES:
        m = route.pattern.match(path)
        if m:
            return route, m.groupdict()
    return None


def url_for(name: str, **params) -> str:
    path = get_route(name).path
    for key, value in params.items():
        path = path.replace("{" + key + "}", str(value))
    return path

import logging
from typing import List, Optional, Tuple

from api import ApiError, StoreApi
from listing import ListingPage, ListingQuery, run_listing
from schemas import Category, Product, Subcategory

logger = logging.getLogger(__name__)

# -----------------------
# Static categories
# -----------------------

def _category(slug: str, name: str, icon: str, subs: List[Tuple[str, str]]) -> Category:
    return Category(
        id=slug,
        name=name,
        slug=slug,
        icon=icon,
        subcategories=[Subcategory(id=s, name=n, slug=s, category_id=slug) for s, n in subs],
    )


CATEGORIES: List[Category] = [
    _category("electronics", "Electronics", "📱", [
        ("mobiles", "Mobile Phones"),
        ("laptops", "Laptops & Computers"),
        ("tablets", "Tablets & iPads"),
        ("tvs", "Televisions"),
        ("audio", "Audio & Headphones"),
        ("cameras", "Cameras & Photography"),
        ("wearables", "Smart Wearables"),
    ]),
    _category("fashion", "Fashion", "👕", [
        ("men-clothing", "Men's Clothing"),
        ("women-clothing", "Women's Clothing"),
        ("footwear", "Footwear"),
        ("ethnic", "Ethnic & Fusion"),
    ]),
    _category("home-living", "Home & Living", "🏠", [
        ("furniture", "Furniture"),
        ("kitchen", "Kitchen & Dining"),
        ("lighting", "Lighting & Lamps"),
    ]),
    _category("beauty", "Beauty & Personal Care", "💄", [
        ("skincare", "Skincare"),
        ("makeup", "Makeup"),
    ]),
    _category("accessories", "Accessories", "⌚", [
        ("watches", "Watches"),
        ("bags", "Bags & Luggage"),
        ("sunglasses", "Sunglasses & Frames"),
        ("belts-wallets", "Belts & Wallets"),
    ]),
    _category("sports", "Sports & Fitness", "🏏", [
        ("fitness", "Fitness Equipment"),
        ("sportswear", "Sports Clothing"),
        ("yoga", "Yoga & Meditation"),
        ("team-sports", "Team Sports"),
    ]),
]

# -----------------------
# Static products
# -----------------------

_IMG = "https://images.unsplash.com/photo-{}?w=500"

_RAW_PRODUCTS: List[dict] = [
    # Electronics
    {"name": "Samsung Galaxy S24 Ultra 5G", "price": 129999, "mrp": 149999, "description": "Flagship smartphone with 200MP camera, S Pen support, and Snapdragon 8 Gen 3", "category": "electronics", "subcategory": "mobiles", "brand": "Samsung", "image": _IMG.format("1511707171634-5f897ff02aa9"), "rating": 4.7, "reviews": 12453, "stock": 45, "is_best_seller": True},
    {"name": "iPhone 15 Pro Max 256GB", "price": 159900, "mrp": 169900, "description": "Apple A17 Pro chip, Titanium design, 48MP camera system", "category": "electronics", "subcategory": "mobiles", "brand": "Apple", "image": _IMG.format("1592899677977-9c10ca588bbd"), "rating": 4.8, "reviews": 23456, "stock": 32, "is_featured": True},
    {"name": "OnePlus 12 5G (12GB RAM)", "price": 64999, "mrp": 69999, "description": "Snapdragon 8 Gen 3, 100W SUPERVOOC charging, Hasselblad camera", "category": "electronics", "subcategory": "mobiles", "brand": "OnePlus", "image": _IMG.format("1605236453806-6ff36851218e"), "rating": 4.6, "reviews": 8765, "stock": 78, "is_new_arrival": True},
    {"name": "Redmi Note 13 Pro+ 5G", "price": 29999, "mrp": 34999, "description": "200MP camera, 120W charging, AMOLED display", "category": "electronics", "subcategory": "mobiles", "brand": "Xiaomi", "image": _IMG.format("1511707171634-5f897ff02aa9"), "rating": 4.4, "reviews": 25678, "stock": 150, "is_best_seller": True},
    {"name": "MacBook Air M3 13-inch", "price": 114900, "mrp": 124900, "description": "Apple M3 chip, 18-hour battery, Liquid Retina display", "category": "electronics", "subcategory": "laptops", "brand": "Apple", "image": _IMG.format("1517336714731-489689fd1ca8"), "rating": 4.8, "reviews": 6789, "stock": 25, "is_featured": True},
    {"name": "Dell XPS 15 (i7, 16GB)", "price": 189990, "mrp": 214990, "description": "OLED touch display, RTX 4060, Premium aluminium build", "category": "electronics", "subcategory": "laptops", "brand": "Dell", "image": _IMG.format("1496181133206-80ce9b88a853"), "rating": 4.6, "reviews": 2345, "stock": 0},
    {"name": "Sony WH-1000XM5 Headphones", "price": 26990, "mrp": 34990, "description": "Industry leading noise cancellation, 30-hour battery", "category": "electronics", "subcategory": "audio", "brand": "Sony", "image": _IMG.format("1505740420928-5e560c06d30e"), "rating": 4.8, "reviews": 18765, "stock": 60, "is_best_seller": True},
    {"name": "boAt Airdopes 141", "price": 1299, "mrp": 4490, "description": "42H playtime, ENx technology, IPX4 water resistance", "category": "electronics", "subcategory": "audio", "brand": "boAt", "image": _IMG.format("1583394838336-acd977736f90"), "rating": 4.1, "reviews": 98765, "stock": 500},
    {"name": "Apple Watch Series 9 GPS", "price": 41900, "mrp": 44900, "description": "S9 chip, Double tap gesture, Always-on Retina display", "category": "electronics", "subcategory": "wearables", "brand": "Apple", "image": _IMG.format("1546868871-7041f2a55e12"), "rating": 4.7, "reviews": 5432, "stock": 40, "is_new_arrival": True},
    {"name": "MI TV 5X 55\"", "price": 39999, "mrp": 54999, "description": "4K HDR, Dolby Vision, PatchWall", "category": "electronics", "subcategory": "tvs", "brand": "Xiaomi", "image": _IMG.format("1593359677879-a4bb92f829d1"), "rating": 4.3, "reviews": 12345, "stock": 78},
    # Fashion
    {"name": "Allen Solly Regular Fit Formal Shirt", "price": 1299, "mrp": 2499, "description": "Cotton blend, Regular fit, Full sleeves", "category": "fashion", "subcategory": "men-clothing", "brand": "Allen Solly", "image": _IMG.format("1596755094514-f87e34085b2c"), "rating": 4.4, "reviews": 8765, "stock": 200},
    {"name": "Levi's 511 Slim Fit Jeans", "price": 2799, "mrp": 4999, "description": "Stretch denim, Slim fit, Classic design", "category": "fashion", "subcategory": "men-clothing", "brand": "Levi's", "image": _IMG.format("1542272454315-4c01d7abdf4a"), "rating": 4.5, "reviews": 15678, "stock": 180, "is_best_seller": True},
    {"name": "Nike Dri-FIT Training T-Shirt", "price": 1795, "mrp": 2495, "description": "Moisture-wicking, Regular fit, Breathable", "category": "fashion", "subcategory": "men-clothing", "brand": "Nike", "image": _IMG.format("1503341504253-dff4815485f1"), "rating": 4.5, "reviews": 8901, "stock": 160},
    {"name": "Biba Printed Anarkali Kurta", "price": 1899, "mrp": 3499, "description": "Cotton blend, Flared fit, Ethnic print", "category": "fashion", "subcategory": "women-clothing", "brand": "Biba", "image": _IMG.format("1595777457583-95e059d581b8"), "rating": 4.5, "reviews": 9876, "stock": 145},
    {"name": "FabIndia Silk Saree", "price": 4999, "mrp": 7999, "description": "Pure silk, Traditional weave, With blouse piece", "category": "fashion", "subcategory": "ethnic", "brand": "FabIndia", "image": _IMG.format("1595777457583-95e059d581b8"), "rating": 4.7, "reviews": 4567, "stock": 56, "is_featured": True},
    {"name": "Nike Air Max 270", "price": 12995, "mrp": 15995, "description": "Max Air unit, Mesh upper, Foam midsole", "category": "fashion", "subcategory": "footwear", "brand": "Nike", "image": _IMG.format("1542291026-7eec264c27ff"), "rating": 4.7, "reviews": 23456, "stock": 89, "is_featured": True},
    {"name": "Adidas Ultraboost 22", "price": 14999, "mrp": 18999, "description": "Boost midsole, Primeknit upper, Continental rubber", "category": "fashion", "subcategory": "footwear", "brand": "Adidas", "image": _IMG.format("1460353581641-37baddab0fa2"), "rating": 4.8, "reviews": 18765, "stock": 67, "is_new_arrival": True},
    {"name": "Bata Power Running Shoes", "price": 1999, "mrp": 2999, "description": "Lightweight, Memory foam, Anti-slip sole", "category": "fashion", "subcategory": "footwear", "brand": "Bata", "image": _IMG.format("1542291026-7eec264c27ff"), "rating": 4.2, "reviews": 34567, "stock": 234},
    # Home & Living
    {"name": "Urban Ladder L-Shaped Sofa", "price": 64999, "mrp": 84999, "description": "6-seater, Premium fabric, Solid wood frame", "category": "home-living", "subcategory": "furniture", "brand": "Urban Ladder", "image": _IMG.format("1555041469-a586c61ea9bc"), "rating": 4.6, "reviews": 3456, "stock": 12},
    {"name": "Pepperfry Ergonomic Office Chair", "price": 12999, "mrp": 18999, "description": "Mesh back, Lumbar support, Height adjustable", "category": "home-living", "subcategory": "furniture", "brand": "Pepperfry", "image": _IMG.format("1555041469-a586c61ea9bc"), "rating": 4.3, "reviews": 5678, "stock": 0},
    {"name": "Philips HD6975 Digital Air Fryer", "price": 9999, "mrp": 14995, "description": "7L capacity, Digital display, 1500W", "category": "home-living", "subcategory": "kitchen", "brand": "Philips", "image": _IMG.format("1507473885765-e6ed057f782c"), "rating": 4.5, "reviews": 8765, "stock": 54, "is_best_seller": True},
    {"name": "Borosil 5L Stainless Steel Pressure Cooker", "price": 2499, "mrp": 3999, "description": "Tri-ply base, Induction compatible, 5-year warranty", "category": "home-living", "subcategory": "kitchen", "brand": "Borosil", "image": _IMG.format("1507473885765-e6ed057f782c"), "rating": 4.6, "reviews": 6543, "stock": 98},
    {"name": "Philips Hue Smart LED Bulb Starter Kit", "price": 7999, "mrp": 9999, "description": "Color changing, Voice control, Bluetooth", "category": "home-living", "subcategory": "lighting", "brand": "Philips", "image": _IMG.format("1507473885765-e6ed057f782c"), "rating": 4.7, "reviews": 5678, "stock": 43, "is_new_arrival": True},
    {"name": "Wipro Garnet 22W LED Panel Light", "price": 899, "mrp": 1499, "description": "Cool daylight, Slim design, Energy efficient", "category": "home-living", "subcategory": "lighting", "brand": "Wipro", "image": _IMG.format("1507473885765-e6ed057f782c"), "rating": 4.3, "reviews": 23456, "stock": 310},
    # Beauty
    {"name": "Maybelline Fit Me Foundation", "price": 399, "mrp": 599, "description": "Natural finish, Poreless, Lightweight", "category": "beauty", "subcategory": "makeup", "brand": "Maybelline", "image": _IMG.format("1512496015851-a90fb38ba796"), "rating": 4.4, "reviews": 45678, "stock": 267},
    {"name": "Mamaearth Vitamin C Face Serum", "price": 549, "mrp": 799, "description": "With Turmeric, Brightening, Paraben-free", "category": "beauty", "subcategory": "skincare", "brand": "Mamaearth", "image": _IMG.format("1556228720-195a672e8a03"), "rating": 4.2, "reviews": 56789, "stock": 345, "is_best_seller": True},
    {"name": "Forest Essentials Soundarya Radiance Cream", "price": 3675, "mrp": 4200, "description": "24K Gold, Anti-aging, Ayurvedic", "category": "beauty", "subcategory": "skincare", "brand": "Forest Essentials", "image": _IMG.format("1556228720-195a672e8a03"), "rating": 4.6, "reviews": 2345, "stock": 34},
    {"name": "Kama Ayurveda Kumkumadi Oil", "price": 2695, "mrp": None, "description": "Miraculous beauty fluid, Saffron and sandalwood", "category": "beauty", "subcategory": "skincare", "brand": None, "image": _IMG.format("1556228720-195a672e8a03"), "rating": 4.5, "reviews": 1890, "stock": 27},
    # Accessories
    {"name": "Titan Octane Chronograph Watch", "price": 7995, "mrp": 10995, "description": "Stainless steel, Water resistant, Luminous hands", "category": "accessories", "subcategory": "watches", "brand": "Titan", "image": _IMG.format("1523275335684-37898b6baf30"), "rating": 4.5, "reviews": 8765, "stock": 67},
    {"name": "Fossil Grant Chronograph Leather Watch", "price": 9995, "mrp": 13995, "description": "Genuine leather, Roman numerals, 24-hour dial", "category": "accessories", "subcategory": "watches", "brand": "Fossil", "image": _IMG.format("1523275335684-37898b6baf30"), "rating": 4.6, "reviews": 6543, "stock": 45, "is_featured": True},
    {"name": "Ray-Ban Aviator Classic Sunglasses", "price": 8990, "mrp": 11990, "description": "Polarized, Metal frame, UV protection", "category": "accessories", "subcategory": "sunglasses", "brand": "Ray-Ban", "image": _IMG.format("1572635196237-14b3f281503f"), "rating": 4.7, "reviews": 12345, "stock": 56},
    {"name": "American Tourister Urban Track Backpack", "price": 2499, "mrp": 4999, "description": "33L capacity, Laptop compartment, Water resistant", "category": "accessories", "subcategory": "bags", "brand": "American Tourister", "image": _IMG.format("1548036328-c9fa89d128fa"), "rating": 4.4, "reviews": 9876, "stock": 120},
    {"name": "Hidesign Men's Leather Wallet", "price": 1895, "mrp": 2995, "description": "Genuine leather, RFID blocking, Multiple card slots", "category": "accessories", "subcategory": "belts-wallets", "brand": "Hidesign", "image": _IMG.format("1627123424574-724758594e93"), "rating": 4.5, "reviews": 4567, "stock": 88},
    # Sports
    {"name": "Decathlon 20kg Dumbbell Set", "price": 2999, "mrp": 4499, "description": "Adjustable weights, Rubber coating, With case", "category": "sports", "subcategory": "fitness", "brand": "Decathlon", "image": _IMG.format("1534438327276-14e5300c3a48"), "rating": 4.4, "reviews": 6789, "stock": 89},
    {"name": "Nike Yoga Mat 5mm", "price": 2495, "mrp": 3295, "description": "Non-slip surface, Cushioned, Lightweight", "category": "sports", "subcategory": "yoga", "brand": "Nike", "image": _IMG.format("1544367567-0f2fcb009e0b"), "rating": 4.5, "reviews": 8765, "stock": 145},
    {"name": "SG Cricket Bat English Willow", "price": 8999, "mrp": 12999, "description": "Grade 1 English willow, Full size, With cover", "category": "sports", "subcategory": "team-sports", "brand": "SG", "image": _IMG.format("1534438327276-14e5300c3a48"), "rating": 4.6, "reviews": 3456, "stock": 40},
]

PRODUCTS: List[Product] = [Product(id=i, **p) for i, p in enumerate(_RAW_PRODUCTS, start=1)]


def get_category(slug: str) -> Optional[Category]:
    return next((c for c in CATEGORIES if c.slug == slug), None)


def find_product(products: List[Product], product_id: int) -> Optional[Product]:
    return next((p for p in products if p.id == product_id), None)


class CatalogService:
    """Product source for the storefront.

    Prefers the backend when one is configured. On an API or network failure
    the last good listing (or the static catalog) is served instead and
    ``source`` says so; nothing is substituted when the call succeeds.
    """

    def __init__(self, api: Optional[StoreApi] = None, products: Optional[List[Product]] = None):
        self.api = api
        self.static = list(products if products is not None else PRODUCTS)
        self._cache: Optional[List[Product]] = None
        self.source = "static"

    def products(self) -> List[Product]:
        if self.api is None:
            self.source = "static"
            return self.static
        try:
            items = self.api.list_products()
        except ApiError as e:
            logger.warning("Catalog fetch failed (%s), serving %s copy", e, "cached" if self._cache else "static")
            self.source = "fallback"
            return self._cache if self._cache is not None else self.static
        self._cache = items
        self.source = "api"
        return items

    def get(self, product_id: int) -> Optional[Product]:
        if self.api is not None:
            try:
                return self.api.get_product(product_id)
            except ApiError as e:
                if e.status_code == 404:
                    return None
                logger.warning("Product %s fetch failed (%s), using local copy", product_id, e)
        return find_product(self._cache or self.static, product_id)

    def listing(self, query: ListingQuery, page_size: int = 12) -> ListingPage:
        """Run the shop listing, letting the backend narrow a text search first."""
        if query.q and self.api is not None:
            try:
                products = self.api.search_products(query.q)
                self.source = "api"
            except ApiError as e:
                logger.warning("Search for %r failed (%s), searching local copy", query.q, e)
                self.source = "fallback"
                products = self._cache if self._cache is not None else self.static
        else:
            products = self.products()
        return run_listing(products, query, page_size=page_size, source=self.source)

    def categories(self) -> List[Category]:
        if self.api is None:
            return CATEGORIES
        try:
            slugs = self.api.list_categories()
        except ApiError as e:
            logger.warning("Category fetch failed (%s), serving static categories", e)
            return CATEGORIES
        known = {c.slug: c for c in CATEGORIES}
        return [known.get(s) or Category(id=s, name=s.replace("-", " ").title(), slug=s) for s in slugs]

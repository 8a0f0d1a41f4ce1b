# catalog.py
from typing import Any, Dict

# Seeded into an empty catalog on first read
DEFAULT_PRODUCTS = [
    {
        "name": "Premium Coffee Blend",
        "description": "Artisan roasted coffee beans sourced from premium farms. Rich, smooth flavor with notes of chocolate and caramel.",
        "price": 2499,
        "category": "Beverages",
        "image": "☕",
        "stock": 50,
        "rating": 4.8,
        "reviews": 156,
        "features": ["100% Arabica", "Fair Trade", "Fresh Roasted", "1lb Bag"],
    },
    {
        "name": "Fresh Baked Croissants",
        "description": "Buttery, flaky croissants baked fresh daily. Available in plain, chocolate, and almond varieties.",
        "price": 350,
        "category": "Bakery",
        "image": "🥐",
        "stock": 30,
        "rating": 4.9,
        "reviews": 203,
        "features": ["Fresh Daily", "Butter Rich", "Multiple Varieties", "Vegan Option"],
    },
    {
        "name": "Phone Screen Repair",
        "description": "Professional screen replacement service for all major smartphone brands. Same-day service available.",
        "price": 8999,
        "category": "Services",
        "image": "📱",
        "stock": 10,
        "rating": 4.7,
        "reviews": 342,
        "features": ["Same-Day Service", "Warranty Included", "All Brands", "Professional Grade"],
    },
    {
        "name": "Laptop Diagnostic Service",
        "description": "Comprehensive laptop diagnostic and repair service. We identify and fix hardware and software issues.",
        "price": 4999,
        "category": "Services",
        "image": "💻",
        "stock": 15,
        "rating": 4.6,
        "reviews": 128,
        "features": ["Full Diagnostic", "Hardware Repair", "Software Fix", "Data Recovery"],
    },
    {
        "name": "Artisan Sourdough Bread",
        "description": "Traditional sourdough bread made with natural fermentation. Crusty exterior, soft interior.",
        "price": 699,
        "category": "Bakery",
        "image": "🍞",
        "stock": 25,
        "rating": 4.9,
        "reviews": 187,
        "features": ["Natural Fermentation", "No Preservatives", "Large Loaf", "Freezes Well"],
    },
    {
        "name": "Specialty Tea Collection",
        "description": "Curated selection of premium teas from around the world. Includes green, black, herbal, and oolong varieties.",
        "price": 1899,
        "category": "Beverages",
        "image": "🫖",
        "stock": 40,
        "rating": 4.7,
        "reviews": 94,
        "features": ["20 Tea Bags", "Premium Quality", "Multiple Varieties", "Gift Ready"],
    },
]


def product_view(product: Dict[str, Any]) -> Dict[str, Any]:
    stock = product.get("stock") or 0
    return {
        "id": product["id"],
        "name": product["name"],
        "description": product.get("description"),
        "price": product.get("price"),
        "category": product.get("category"),
        "image": product.get("image"),
        "stock": stock,
        "rating": product.get("rating") or 0,
        "reviews": product.get("reviews") or 0,
        "features": product.get("features") or [],
        "inStock": stock > 0,
    }

"""Hardcoded demo fixtures: the customer profile, products and Circle offers."""

import datetime
from typing import Any, Dict, List, Optional

DEMO_CUSTOMER: Dict[str, Any] = {
    "id": "CUST-89234",
    "email": "lauren.bailey@gmail.com",
    "name": "Lauren Bailey",
    "phone": "(555) 123-4567",
    "rewardsMember": "Circle Member",
    "memberSince": "2019",
    "accountStatus": "Active",
}

DEMO_PRODUCTS: List[Dict[str, Any]] = [
    {
        "productId": "TCIN-81234567",
        "title": "Stanley Quencher H2.0 Tumbler 40oz",
        "price": 45.00,
        "category": "kitchen",
        "image": "https://target.scene7.com/is/image/Target/GUEST_stanley_40oz",
        "rating": 4.8,
    },
    {
        "productId": "TCIN-82345678",
        "title": "Threshold Performance Bath Towel",
        "price": 12.00,
        "category": "home",
        "image": "https://target.scene7.com/is/image/Target/GUEST_threshold_towel",
        "rating": 4.6,
    },
    {
        "productId": "TCIN-83456789",
        "title": "Apple AirPods Pro (2nd Generation)",
        "price": 249.99,
        "category": "electronics",
        "image": "https://target.scene7.com/is/image/Target/GUEST_airpods_pro",
        "rating": 4.7,
    },
    {
        "productId": "TCIN-84567890",
        "title": "Good & Gather Organic Cold Brew Coffee 32oz",
        "price": 5.49,
        "category": "grocery",
        "image": "https://target.scene7.com/is/image/Target/GUEST_cold_brew",
        "rating": 4.4,
    },
    {
        "productId": "TCIN-85678901",
        "title": "Cat & Jack Kids' Rain Jacket",
        "price": 25.00,
        "category": "kids",
        "image": "https://target.scene7.com/is/image/Target/GUEST_rain_jacket",
        "rating": 4.5,
    },
    {
        "productId": "TCIN-86789012",
        "title": "Hearth & Hand with Magnolia Ceramic Mug",
        "price": 7.99,
        "category": "kitchen",
        "image": "https://target.scene7.com/is/image/Target/GUEST_magnolia_mug",
        "rating": 4.9,
    },
]

CIRCLE_OFFERS: List[Dict[str, Any]] = [
    {"offerId": "CIRCLE-KITCHEN-20", "category": "kitchen", "description": "20% off kitchen storage"},
    {"offerId": "CIRCLE-HOME-15", "category": "home", "description": "15% off bath towels and sheets"},
    {"offerId": "CIRCLE-GROCERY-5", "category": "grocery", "description": "$5 off a $25 grocery order"},
    {"offerId": "CIRCLE-KIDS-25", "category": "kids", "description": "25% off kids' outerwear"},
]


def demo_identity(email: Optional[str] = None, name: Optional[str] = None) -> Dict[str, Any]:
    """Build the demo customer profile, optionally overriding email and name.

    Any credentials are accepted; the rest of the profile is always the
    same fixture.
    """
    identity = dict(DEMO_CUSTOMER)
    if email:
        identity["email"] = email
    if name:
        identity["name"] = name
    identity["authenticatedAt"] = datetime.datetime.now(datetime.timezone.utc).isoformat()
    return identity

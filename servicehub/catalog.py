"""Static product and service catalog"""

from typing import Optional

from pydantic import BaseModel


class Product(BaseModel):
    id: int
    name: str
    description: str
    price: float
    category: str
    rating: float


class Service(BaseModel):
    id: int
    name: str
    description: str
    duration: str  # display form, e.g. "2 hours"
    durationMinutes: int
    price: float
    category: str
    rating: float


PRODUCTS: list[Product] = [
    Product(
        id=1,
        name="Premium Wireless Headphones",
        description="High-quality wireless headphones with noise cancellation and 30-hour battery life.",
        price=199.99,
        category="Electronics",
        rating=4.8,
    ),
    Product(
        id=2,
        name="Smart Watch Pro",
        description="Feature-rich smartwatch with health tracking, GPS, and water resistance.",
        price=299.99,
        category="Electronics",
        rating=4.6,
    ),
    Product(
        id=3,
        name="Organic Coffee Beans",
        description="Premium organic coffee beans sourced from sustainable farms. 1kg pack.",
        price=24.99,
        category="Food & Beverage",
        rating=4.9,
    ),
    Product(
        id=4,
        name="Yoga Mat Premium",
        description="Eco-friendly yoga mat with superior grip and cushioning. Perfect for all yoga styles.",
        price=49.99,
        category="Fitness",
        rating=4.7,
    ),
    Product(
        id=5,
        name="Leather Backpack",
        description="Handcrafted genuine leather backpack with laptop compartment and multiple pockets.",
        price=149.99,
        category="Fashion",
        rating=4.5,
    ),
    Product(
        id=6,
        name="Skincare Set",
        description="Complete skincare routine set with cleanser, toner, serum, and moisturizer.",
        price=79.99,
        category="Beauty",
        rating=4.8,
    ),
]

SERVICES: list[Service] = [
    Service(
        id=1,
        name="Professional Photography",
        description="Professional photo shoot session for portraits, events, or product photography. Includes editing and high-resolution images.",
        duration="2 hours",
        durationMinutes=120,
        price=299,
        category="Photography",
        rating=4.9,
    ),
    Service(
        id=2,
        name="Home Cleaning Service",
        description="Deep cleaning service for your home. Includes all rooms, kitchen, bathrooms, and common areas. Eco-friendly products used.",
        duration="3-4 hours",
        durationMinutes=210,
        price=149,
        category="Home Services",
        rating=4.7,
    ),
    Service(
        id=3,
        name="Personal Training Session",
        description="One-on-one personal training session tailored to your fitness goals. Includes workout plan and nutrition advice.",
        duration="1 hour",
        durationMinutes=60,
        price=75,
        category="Fitness",
        rating=4.8,
    ),
    Service(
        id=4,
        name="Web Development Consultation",
        description="Expert consultation for your web development needs. Includes code review, architecture planning, and best practices.",
        duration="1.5 hours",
        durationMinutes=90,
        price=199,
        category="Technology",
        rating=5.0,
    ),
    Service(
        id=5,
        name="Massage Therapy",
        description="Relaxing full-body massage therapy session. Helps relieve stress, tension, and muscle soreness.",
        duration="1 hour",
        durationMinutes=60,
        price=89,
        category="Wellness",
        rating=4.9,
    ),
    Service(
        id=6,
        name="Tutoring Session",
        description="Personalized tutoring session for students. Covers various subjects including math, science, and languages.",
        duration="1 hour",
        durationMinutes=60,
        price=50,
        category="Education",
        rating=4.6,
    ),
]


def list_products(category: Optional[str] = None) -> list[Product]:
    if not category or category == "All":
        return list(PRODUCTS)
    return [p for p in PRODUCTS if p.category == category]


def get_product(product_id: int) -> Optional[Product]:
    return next((p for p in PRODUCTS if p.id == product_id), None)


def list_services(category: Optional[str] = None) -> list[Service]:
    if not category or category == "All":
        return list(SERVICES)
    return [s for s in SERVICES if s.category == category]


def categories(items) -> list[str]:
    """Distinct categories in catalog order, prefixed with "All" """
    seen: list[str] = []
    for item in items:
        if item.category not in seen:
            seen.append(item.category)
    return ["All", *seen]

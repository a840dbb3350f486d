"""Keyword-based expense categorization"""

from decimal import Decimal
from typing import Dict, List

from cashflow_insights.domain.models import Category, CategoryPrediction

MATCH_CONFIDENCE = 0.85
FALLBACK_CONFIDENCE = 0.3

# Scanned in insertion order; first category with a hit wins
CATEGORY_KEYWORDS: Dict[Category, List[str]] = {
    Category.FOOD: ["restaurant", "cafe", "food", "meal", "lunch", "dinner", "breakfast", "swiggy", "zomato", "dominos", "pizza"],
    Category.TRANSPORT: ["uber", "ola", "petrol", "fuel", "metro", "bus", "auto", "taxi", "rapido"],
    Category.SHOPPING: ["amazon", "flipkart", "myntra", "mall", "shop", "store", "clothing", "fashion"],
    Category.ENTERTAINMENT: ["movie", "cinema", "netflix", "spotify", "prime", "hotstar", "game"],
    Category.BILLS: ["electricity", "water", "gas", "internet", "wifi", "broadband", "phone", "mobile"],
    Category.HEALTH: ["hospital", "doctor", "medicine", "pharmacy", "medical", "clinic", "health"],
    Category.GROCERIES: ["grocery", "supermarket", "dmart", "reliance", "fresh", "vegetables"],
    Category.EDUCATION: ["school", "college", "course", "udemy", "coursera", "book", "tuition"],
}


def classify_expense(description: str, amount: Decimal | int | float = 0) -> CategoryPrediction:
    """
    Map a free-text description to a category.

    Substring match on the lower-cased description. The first category in
    declaration order with a matching keyword wins, so "Uber Eats dinner"
    lands in food, not transport. Amount is accepted but not used yet.
    """
    text = (description or "").lower()

    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in text for keyword in keywords):
            return CategoryPrediction(category=category, confidence=MATCH_CONFIDENCE)

    return CategoryPrediction(category=Category.OTHER, confidence=FALLBACK_CONFIDENCE)

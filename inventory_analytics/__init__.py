"""
Inventory Analytics Engine

Aging stock, fast-moving products and sales executive performance derived
from orders, order items and the product catalog.
"""

__version__ = "1.0.0"

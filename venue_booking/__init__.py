"""
Venue booking core: pricing, booking and payment state machines, and
slot conflict detection for a venue marketplace.
"""

__version__ = "0.1.0"

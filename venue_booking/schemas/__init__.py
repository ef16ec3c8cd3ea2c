"""
Schemas for the booking core: enums, pricing values, booking and payment snapshots.
"""

"""
Business services for the venue booking core.
"""

"""
Availability Resolution Engine

Intent parsing chain, expanding slot search and slot categorization.
"""

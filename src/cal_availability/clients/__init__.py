"""
External service clients
"""

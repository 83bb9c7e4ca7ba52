"""
Service layer - conversation memory and session persistence.
"""

"""
HTTP API for the items service.
"""

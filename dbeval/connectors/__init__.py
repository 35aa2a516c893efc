"""
Backend and API connectors.
"""

"""
dbeval - database evaluation harness.

Benchmarks Neon, Supabase and MongoDB through identical workloads and
generates relational schemas from natural-language descriptions.
"""

__version__ = "0.1.0"

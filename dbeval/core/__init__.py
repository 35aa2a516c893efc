"""
Benchmark harness and schema generation.
"""

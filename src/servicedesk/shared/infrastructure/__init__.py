"""
Infrastructure Layer
=====================

Low-level technical concerns:
- Logging setup
- Latency measurement
"""

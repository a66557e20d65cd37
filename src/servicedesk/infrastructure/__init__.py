"""
Infrastructure Layer
=====================

Process-wide resources shared by every bounded context.
"""

"""
Service Desk Core
=================

SLA lifecycle, automated escalation and agent matching for a help-desk portal.

Bounded contexts:
- sla: deadline calculation, live status evaluation, ticket lifecycle
- escalation: ordered rule engine, escalation groups, audit log
- matching: weighted agent scoring and assignment
"""

__version__ = "1.0.0"

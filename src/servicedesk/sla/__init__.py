"""
SLA Bounded Context
===================

Stamps every ticket with a demand-adjusted resolution deadline at creation
and derives the live SLA status (ON_TRACK, AT_RISK, BREACHED) on read.
"""

"""
Shared Kernel Module
====================

Shared infrastructure used across all bounded contexts (SLA, Escalation,
Agent Matching).

DO NOT add business logic from SLA, Escalation or Matching to the shared kernel.
"""

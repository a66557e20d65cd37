"""
Escalation Bounded Context
==========================

Ordered, first-match-wins rules that mark open tickets as escalated,
reassign them and leave an internal note on the thread.
"""

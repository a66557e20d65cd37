"""
Agent Matching Module
=====================

Bounded Context for recommending agents for tickets.

Responsibilities:
- Score agents on skill, history, workload and asset familiarity
- Rank candidates for assignment views
- Record manual assignments
"""

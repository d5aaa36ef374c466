"""
Scheduler Test Suite.

- Job registry semantics (one job per schedule id)
- Record store (numbers, schedules, sent flag)
- Dispatch cycle (resolution, dedup, best-effort delivery)
- Scheduler service (arm, replace, cancel, fire, shutdown)
- Startup recovery
"""

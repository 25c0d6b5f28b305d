"""
Scheduling: the serial task queue, the paced task generator and plans.
"""

from serpsurfer.scheduler.queue import TaskQueue
from serpsurfer.scheduler.generator import TaskGenerator, pacing_delay, SECONDS_PER_DAY
from serpsurfer.scheduler.plans import Plan, PLANS, get_plan

__all__ = [
    "TaskQueue",
    "TaskGenerator",
    "pacing_delay",
    "SECONDS_PER_DAY",
    "Plan",
    "PLANS",
    "get_plan",
]

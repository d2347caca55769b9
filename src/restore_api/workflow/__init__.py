"""
Restore Workflow Module

Durable work-queue substrate for asynchronous blob restore requests:
- Restore request models and the table entity mapping
- Week-bucketed Azure Table Storage repository
- Dequeue-polling worker
"""

__version__ = "1.0.0"

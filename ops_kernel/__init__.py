"""
Ops Kernel

Shared core of the operations console:
- Document store with atomic batches, field transforms and subscriptions
- Optimistic concurrency via per-document versions
- Workflow state-machine value types and actor roles
- Structured logging and typed exceptions
"""

__version__ = "0.1.0"

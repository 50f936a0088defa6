"""Event-loop building blocks: dates, timers, pollers, task queues and file logging."""

__version__ = "1.5.24"
"""
apptrack: configuration-driven event tracking embedded in an application.

The package provides:
- A declarative rule set mapping observed occurrences (state transitions and
  action invocations) to tracking parameters
- A pure match engine that selects the applicable rules in configuration order
- A tracking engine that installs interception hooks, matches occurrences and
  publishes tracking events on an in-process bus
- A single-generation dated crash log, reported once on the next launch

Aggregation, sampling and transport of the emitted events are left to
subscribers.
"""

__all__ = [
    "__version__",
]

__version__ = "0.1.0"

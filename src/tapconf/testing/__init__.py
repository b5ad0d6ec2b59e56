"""tapconf testing utilities.

Modules:
    fixtures: Pytest fixtures (simulated_clock, network, substrate,
              observer, harness_config) and the in_memory_run() context
              manager.

Example:
    >>> from tapconf.testing.fixtures import in_memory_run
    >>> with in_memory_run(max_msg_count=20) as run:
    ...     report = run.run()
"""

from tapconf.testing.fixtures import in_memory_run

__all__ = ["in_memory_run"]

"""Step executors, imported lazily by the ``Pipeline`` wrapper methods."""

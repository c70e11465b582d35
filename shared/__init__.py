"""
Shared kernel of the reservation engine

Interval math, value objects, the error taxonomy, the in-process event bus
and the unit of work. Nothing here imports from ``apps``.
"""

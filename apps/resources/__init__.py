"""Resources app package.

Read-only catalog of bookable resources (rooms, vehicles, practitioners)
and the availability windows administrators declare for them. The
booking core only reads resources; it never changes their pricing.
"""

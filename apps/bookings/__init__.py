"""Bookings app package.

This app encapsulates the booking domain: the booking model and its
status machine, the resource calendar, pricing and the booking saga
that charges through the payment gateway before recording a booking.
Overlap of active bookings is prevented by a resource row lock with a
re-check at write time and, on PostgreSQL, by an exclusion constraint.
"""

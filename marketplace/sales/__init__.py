"""Enrollments, purchases and sale history."""

"""Instructor and customer profiles."""

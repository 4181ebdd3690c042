"""Courses, sections and lectures plus the instructor course endpoints."""

"""End-to-end tests.

Purpose
- Drive the installed ``vestibule`` command the way an operator does, through
  its global options, logging and flight recorder.
"""

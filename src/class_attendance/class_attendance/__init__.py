"""Class Attendance package.

This package is organized by feature modules (sessions, logs, check-in,
scoring, ...) with a thin Flask controller layer and service/repository layers.
"""

"""Attendance correction request workflow.

The package is organized by feature modules (requests, attendance, employees)
with repository protocols, MySQL and in-memory implementations, service
classes holding the business rules, and a thin Flask controller layer.
"""

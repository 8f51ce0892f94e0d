"""Tuition Center package.

Organized by feature modules (students, fees, attendance, reports, ...)
with a thin Flask controller layer over service/repository layers.
"""

"""Timekeeping package.

Organized by feature modules (attendance, overtime, leave, requests, payroll)
around one approval workflow engine, with a thin Flask JSON layer over
service/repository layers.
"""

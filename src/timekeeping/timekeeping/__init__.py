"""Timekeeping engine package.

This package is organized by feature modules (shifts, attendance, payroll, ...)
with a thin Flask JSON controller layer over service/repository layers.
The service layer can be used without Flask through container.build_container().
"""

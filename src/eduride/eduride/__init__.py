"""EduRide bus gate package.

This package is organized by feature modules (scans, attendance, notifications, ...)
with a thin Flask controller layer and service/repository layers.
"""

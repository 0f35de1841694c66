"""AbsensiNH attendance package.

Organized by feature modules (attendance, schedules, recap, requests, ...)
with a thin Flask controller layer over service/repository layers.
"""

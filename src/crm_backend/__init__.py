"""CRM / operations backend package.

This package is organized by feature modules (users, clients, projects, tasks,
sales, leads, attendance) with a thin Flask controller layer on top of
service and repository layers backed by MongoDB.
"""

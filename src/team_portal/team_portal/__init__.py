"""Team Portal package.

This package is organized by feature modules (users, projects, tasks, tickets,
attendance, leave, notifications) with a thin Flask controller layer and
service/repository layers. Every service consults the authorization policy
in ``policy`` before it touches data.
"""

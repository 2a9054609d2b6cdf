"""Training Center back office package.

Feature modules (users, students, income, deductions, reports, operation_logs)
each carry a model, a repository protocol with its MySQL implementation,
a service and a thin Flask controller.
"""

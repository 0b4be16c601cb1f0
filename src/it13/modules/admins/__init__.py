"""
Admins Module

Back-office administrator accounts.
"""

"""
Technicians Module

Technician accounts and credential issuance for approved applicants.
"""

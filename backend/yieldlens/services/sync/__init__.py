"""
Sync jobs run by the scheduler.
"""

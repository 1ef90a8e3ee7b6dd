"""
Event registrations: one per (user, event), created by the registering user.
"""

"""
Core team chat. Readable and writable by core team members and admins only.
"""

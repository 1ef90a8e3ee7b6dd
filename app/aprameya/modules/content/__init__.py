"""
Club content: projects, blogs, research items and events.

All four share the same access rules (public read, publisher-only create,
owner-or-admin mutation), so one gateway and one blueprint factory serve them.
"""

"""
Comments on projects, blogs and research items.
"""

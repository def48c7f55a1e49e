"""
Account module: a signed-in citizen's own profile, history and notifications.
"""

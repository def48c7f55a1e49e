"""
Moderation module.

Moderators see feedback inside their assigned location scope; admins see all.
Status changes and responses notify the submitter and land in the audit trail.
"""
